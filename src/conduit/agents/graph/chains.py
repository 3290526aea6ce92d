"""Discovery of the agent sequences a flow executes."""

from enum import Enum
from typing import List

from loguru import logger

from .models import Flow, NodeKind


class ExecutionPolicy(str, Enum):
    """How a flow is turned into units of work."""
    # Agents wired start -> agent -> end, each run independently on the prompt
    DIRECT_FANOUT = "direct_fanout"
    # Multi-hop agent pipelines, each agent fed its predecessor's output
    SEQUENTIAL_CHAINS = "sequential_chains"


def find_agent_chains(flow: Flow) -> List[List[str]]:
    """Find every agent path from the start node into an end node.

    Edges are followed in flow order, so the result is stable for a given
    flow. Paths that never reach an end node are dropped and an agent is never
    revisited within the same path.

    Args:
        flow: Flow to inspect

    Returns:
        List of chains, each an ordered list of agent ids
    """
    starts = flow.nodes_of_kind(NodeKind.START)
    if not starts:
        return []

    chains: List[List[str]] = []

    def walk(node_id: str, path: List[str]) -> None:
        for edge in flow.outgoing(node_id):
            target = flow.get_node(edge.target_node_id)
            if target is None:
                continue

            if target.type == NodeKind.AGENT:
                if target.id in path:
                    logger.warning(f"[CHAINS] Cycle at '{target.id}', not following {path}")
                    continue
                walk(target.id, path + [target.id])
            elif target.type == NodeKind.END:
                if path and path not in chains:
                    chains.append(list(path))

    walk(starts[0].id, [])

    logger.debug(f"[CHAINS] Found {len(chains)} chain(s) in flow '{flow.name}': {chains}")
    return chains


def find_fanout_agents(flow: Flow) -> List[str]:
    """Find agents wired directly start -> agent -> end.

    Args:
        flow: Flow to inspect

    Returns:
        Agent ids in start-edge order
    """
    starts = flow.nodes_of_kind(NodeKind.START)
    if not starts:
        return []

    agents: List[str] = []
    for edge in flow.outgoing(starts[0].id):
        target = flow.get_node(edge.target_node_id)
        if target is None or target.type != NodeKind.AGENT or target.id in agents:
            continue

        reaches_end = any(
            (node := flow.get_node(out.target_node_id)) is not None
            and node.type == NodeKind.END
            for out in flow.outgoing(target.id)
        )
        if reaches_end:
            agents.append(target.id)

    logger.debug(f"[CHAINS] Fan-out agents in flow '{flow.name}': {agents}")
    return agents


def resolve_plan(flow: Flow, policy: ExecutionPolicy) -> List[List[str]]:
    """Resolve the execution plan for a policy.

    Fan-out agents are returned as one-agent chains.

    Args:
        flow: Flow to inspect
        policy: Chain discovery policy

    Returns:
        List of chains to run concurrently
    """
    if policy == ExecutionPolicy.SEQUENTIAL_CHAINS:
        return find_agent_chains(flow)
    return [[agent_id] for agent_id in find_fanout_agents(flow)]
