"""Execution engine: runs the agent chains of a flow against a completion client."""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union
from collections import Counter
from enum import Enum
import asyncio
import time
import uuid
from loguru import logger

from ..agent.client import CompletionClient
from ..agent.models import AgentRunResult, FlowRunResult
from ..agent.streaming import DeltaCallback, deliver
from ..exceptions import FlowValidationError, UpstreamError
from .chains import ExecutionPolicy, resolve_plan
from .models import AgentNode, Flow, NodeKind
from .validation import ValidationResult, ensure_valid, validate_flow

ChunkCallback = Callable[[str, str], Union[None, Awaitable[None]]]


class NodeStatus(Enum):
    """Status of a single agent invocation."""
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class FlowExecutor:
    """Runs flows and single agents.

    The executor keeps no state between calls apart from ``streaming_agents``,
    the ids of agents whose stream is currently open.
    """

    def __init__(
        self,
        client: CompletionClient,
        policy: ExecutionPolicy = ExecutionPolicy.DIRECT_FANOUT
    ):
        """Initialize executor.

        Args:
            client: Completion client used for every agent call
            policy: How chains are discovered
        """
        self.client = client
        self.policy = ExecutionPolicy(policy)
        self._open_streams: Counter = Counter()

    @property
    def streaming_agents(self) -> Set[str]:
        """Ids of agents with at least one open stream."""
        return {agent_id for agent_id, count in self._open_streams.items() if count > 0}

    def validate(self, flow: Flow) -> ValidationResult:
        """Validate a flow under this executor's policy."""
        return validate_flow(flow, self.policy)

    def plan(self, flow: Flow) -> List[List[str]]:
        """Validate a flow and resolve the chains to run.

        Raises:
            FlowValidationError: If the flow cannot run
        """
        ensure_valid(flow, self.policy)
        chains = resolve_plan(flow, self.policy)
        if not chains:
            raise FlowValidationError("No agent chain reaches an End node")
        return chains

    async def run(self, flow: Flow, prompt: str) -> FlowRunResult:
        """Execute a flow.

        Chains run concurrently; agents inside a chain run one after the other,
        each fed the previous agent's output. A failing agent ends its own
        chain only.

        Args:
            flow: Flow snapshot to execute
            prompt: User prompt given to the first agent of every chain

        Returns:
            Results keyed by agent id

        Raises:
            FlowValidationError: If the flow cannot run
        """
        return await self._execute(flow, prompt, on_chunk=None)

    async def stream_flow(
        self,
        flow: Flow,
        prompt: str,
        on_chunk: ChunkCallback
    ) -> FlowRunResult:
        """Execute a flow, streaming every agent's output as it arrives.

        Args:
            flow: Flow snapshot to execute
            prompt: User prompt
            on_chunk: Called with ``(agent_id, text)`` for every delta

        Returns:
            Results keyed by agent id

        Raises:
            FlowValidationError: If the flow cannot run
        """
        return await self._execute(flow, prompt, on_chunk=on_chunk)

    async def run_agent(self, agent: AgentNode, prompt: str) -> AgentRunResult:
        """Run a single agent on a prompt."""
        return await self._invoke(agent, prompt)

    async def stream_agent(
        self,
        agent: AgentNode,
        prompt: str,
        on_chunk: DeltaCallback
    ) -> AgentRunResult:
        """Run a single agent, delivering its output incrementally.

        On failure ``on_chunk`` receives one last chunk holding the formatted
        error before the error-tagged result is returned.
        """
        result = await self._invoke(agent, prompt, on_delta=on_chunk)
        if result.is_error:
            await deliver(on_chunk, result.output)
        return result

    async def _execute(
        self,
        flow: Flow,
        prompt: str,
        on_chunk: Optional[ChunkCallback]
    ) -> FlowRunResult:
        start_time = time.time()
        chains = self.plan(flow)
        run_id = uuid.uuid4().hex

        logger.info(
            f"[EXECUTOR] Run {run_id}: flow '{flow.name}', {len(chains)} chain(s), "
            f"policy={self.policy.value}, stream={on_chunk is not None}"
        )

        # One task per chain; a failing chain never cancels its siblings
        outcomes = await asyncio.gather(
            *(self._run_chain(flow, chain, prompt, on_chunk) for chain in chains),
            return_exceptions=True
        )

        agents: Dict[str, AgentRunResult] = {}
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
            agents.update(outcome)

        failed = sum(1 for r in agents.values() if r.is_error)
        logger.info(
            f"[EXECUTOR] Run {run_id} completed: {len(agents) - failed}/{len(agents)} agents, "
            f"time={time.time() - start_time:.2f}s"
        )
        return FlowRunResult(run_id=run_id, agents=agents)

    async def _run_chain(
        self,
        flow: Flow,
        chain: List[str],
        prompt: str,
        on_chunk: Optional[ChunkCallback]
    ) -> Dict[str, AgentRunResult]:
        results: Dict[str, AgentRunResult] = {}
        current_input = prompt

        for position, agent_id in enumerate(chain):
            agent = flow.get_node(agent_id)
            if agent is None or agent.type != NodeKind.AGENT:
                continue

            if on_chunk is None:
                result = await self._invoke(agent, current_input)
            else:
                result = await self.stream_agent(
                    agent, current_input, _bind_agent(on_chunk, agent_id)
                )
            results[agent_id] = result

            if result.is_error:
                abandoned = chain[position + 1:]
                if abandoned:
                    logger.warning(
                        f"[EXECUTOR] Chain stopped at '{agent_id}', not running {abandoned}"
                    )
                break

            current_input = result.output

        return results

    async def _invoke(
        self,
        agent: AgentNode,
        prompt: str,
        on_delta: Optional[DeltaCallback] = None
    ) -> AgentRunResult:
        self._transition(agent.id, NodeStatus.PENDING)
        start_time = time.time()

        try:
            if on_delta is None:
                output = await self.client.complete(
                    agent.model,
                    agent.system_prompt,
                    prompt,
                    agent.temperature,
                    agent.max_tokens,
                    reasoning_effort=agent.reasoning_effort
                )
            else:
                self._open_streams[agent.id] += 1
                self._transition(agent.id, NodeStatus.STREAMING)
                try:
                    output = await self.client.complete_streaming(
                        agent.model,
                        agent.system_prompt,
                        prompt,
                        agent.temperature,
                        agent.max_tokens,
                        on_delta,
                        reasoning_effort=agent.reasoning_effort
                    )
                finally:
                    self._close_stream(agent.id)
        except UpstreamError as e:
            self._transition(agent.id, NodeStatus.FAILED, str(e))
            return AgentRunResult.failure(e)
        except Exception as e:
            logger.exception(f"[EXECUTOR] Agent '{agent.id}' raised: {e}")
            self._transition(agent.id, NodeStatus.FAILED, str(e))
            return AgentRunResult.failure(e)

        self._transition(
            agent.id, NodeStatus.COMPLETED, f"{time.time() - start_time:.2f}s"
        )
        return AgentRunResult.success(output)

    def _close_stream(self, agent_id: str) -> None:
        # The same agent can stream in several chains at once
        self._open_streams[agent_id] -= 1
        if self._open_streams[agent_id] <= 0:
            del self._open_streams[agent_id]

    @staticmethod
    def _transition(agent_id: str, status: NodeStatus, detail: Any = None) -> None:
        suffix = f" ({detail})" if detail else ""
        if status == NodeStatus.FAILED:
            logger.warning(f"[EXECUTOR] Agent '{agent_id}' -> {status.value}{suffix}")
        else:
            logger.debug(f"[EXECUTOR] Agent '{agent_id}' -> {status.value}{suffix}")


def _bind_agent(on_chunk: ChunkCallback, agent_id: str) -> DeltaCallback:
    async def on_delta(text: str) -> None:
        await deliver(on_chunk, agent_id, text)
    return on_delta
