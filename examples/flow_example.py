"""Example: running agent flows in fan-out and chain mode.

Without OPENAI_API_KEY the agents return placeholder responses, so the
example runs offline.
"""

import asyncio
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conduit import (
    AgentNode,
    Edge,
    EndNode,
    ExecutionPolicy,
    Flow,
    StartNode,
    create_executor,
    load_flow,
)
from conduit.agents.logging_config import setup_rich_logging

HERE = os.path.dirname(__file__)


def build_review_flow() -> Flow:
    """
    Two reviewers answer the same prompt independently.

    Flow:
    Start -> Critic  -> End
    Start -> Editor  -> End
    """
    return Flow(
        id="review",
        name="Parallel review",
        nodes=[
            StartNode(id="start"),
            AgentNode(
                id="critic",
                label="Critic",
                system_prompt="Point out the weakest argument in the text.",
                temperature=0.3,
            ),
            AgentNode(
                id="editor",
                label="Editor",
                system_prompt="Rewrite the text to be half as long.",
                model="gpt-5-mini",
                reasoning_effort="low",
            ),
            EndNode(id="end"),
        ],
        edges=[
            Edge(id="e1", source_node_id="start", target_node_id="critic"),
            Edge(id="e2", source_node_id="start", target_node_id="editor"),
            Edge(id="e3", source_node_id="critic", target_node_id="end"),
            Edge(id="e4", source_node_id="editor", target_node_id="end"),
        ],
    )


async def example_fanout():
    print("=" * 80)
    print("FAN-OUT")
    print("=" * 80)

    executor = create_executor(policy=ExecutionPolicy.DIRECT_FANOUT)
    result = await executor.run(
        build_review_flow(), "Remote work makes every team more productive."
    )

    for agent_id, agent_result in result.to_dict()["agents"].items():
        print(f"\n  [{agent_id}]")
        print(f"  {agent_result['output'][:200]}")

    await executor.client.aclose()


async def example_chain():
    """Translate, then summarise the translation (see translate_flow.json)."""
    print("\n" + "=" * 80)
    print("CHAIN (STREAMING)")
    print("=" * 80)

    flow = load_flow(os.path.join(HERE, "translate_flow.json"))
    executor = create_executor(policy=ExecutionPolicy.SEQUENTIAL_CHAINS)

    current = {"agent": None}

    def on_chunk(agent_id: str, text: str) -> None:
        if current["agent"] != agent_id:
            current["agent"] = agent_id
            print(f"\n\n--- {agent_id} ---")
        print(text, end="", flush=True)

    result = await executor.stream_flow(flow, "Le chat dort sur le canapé.", on_chunk)
    print()

    if result.failed_agents:
        print("\nErrors:")
        for agent_id, agent_result in result.failed_agents.items():
            print(f"  {agent_id}: {agent_result.error}")

    await executor.client.aclose()


if __name__ == "__main__":
    setup_rich_logging(level="INFO")
    asyncio.run(example_fanout())
    asyncio.run(example_chain())
