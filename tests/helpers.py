"""Flow builders and stub completion clients shared by the tests."""

import asyncio
from typing import Dict, List, Optional

from conduit.agents.exceptions import UpstreamError
from conduit.agents.graph import AgentNode, Edge, Flow


def agent(node_id: str, system_prompt: Optional[str] = None, **kwargs) -> AgentNode:
    return AgentNode(
        id=node_id,
        label=node_id.upper(),
        system_prompt=system_prompt or f"sys-{node_id}",
        **kwargs
    )


def build_flow(nodes, connections, name: str = "test-flow") -> Flow:
    """Build a flow from nodes and (source, target) id pairs."""
    edges = [
        Edge(id=f"edge-{source}-{target}", source_node_id=source, target_node_id=target)
        for source, target in connections
    ]
    return Flow(id="flow-1", name=name, nodes=list(nodes), edges=edges)


class EchoClient:
    """Completion client stand-in that echoes its prompts."""

    placeholder_mode = False

    def __init__(self, fail_on: Optional[set] = None, chunks: Optional[List[str]] = None):
        self.fail_on = fail_on or set()
        self.chunks = chunks
        self.calls: List[Dict[str, str]] = []
        self.closed = False

    def _respond(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt})
        if system_prompt in self.fail_on:
            raise UpstreamError(f"boom from {system_prompt}", status_code=500)
        return f"<{system_prompt}|{user_prompt}>"

    async def complete(self, model, system_prompt, user_prompt, temperature, max_tokens,
                       reasoning_effort=None):
        await asyncio.sleep(0)
        return self._respond(system_prompt, user_prompt)

    async def complete_streaming(self, model, system_prompt, user_prompt, temperature,
                                 max_tokens, on_delta, reasoning_effort=None):
        await asyncio.sleep(0)
        text = self._respond(system_prompt, user_prompt)
        pieces = self.chunks if self.chunks is not None else [text[:3], text[3:]]
        for piece in pieces:
            await asyncio.sleep(0)
            result = on_delta(piece)
            if asyncio.iscoroutine(result):
                await result
        return "".join(pieces)

    async def aclose(self):
        self.closed = True
