"""FastAPI application exposing flow validation, execution and streaming."""

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional
from contextlib import asynccontextmanager
import asyncio
import json
from loguru import logger

from .agents.agent.factory import create_completion_client
from .agents.exceptions import FlowValidationError
from .agents.graph import AgentNode, ExecutionPolicy, Flow, FlowExecutor
from .settings import Settings


class FlowRequest(BaseModel):
    """Request model for validating a flow."""

    flow: Flow
    policy: Optional[ExecutionPolicy] = Field(
        default=None, description="Chain discovery policy (server default if omitted)"
    )


class FlowRunRequest(FlowRequest):
    """Request model for running a flow."""

    prompt: str = Field(..., description="User prompt given to the first agent of every chain")


class AgentStreamRequest(BaseModel):
    """Request model for streaming a single agent."""

    agent: AgentNode
    prompt: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    placeholder_mode: bool
    execution_policy: str
    streaming_agents: List[str]


def create_app(
    settings: Optional[Settings] = None,
    executor: Optional[FlowExecutor] = None
) -> FastAPI:
    """Create the API application.

    Args:
        settings: Application settings (loads from environment if None)
        executor: Executor to serve (built from settings if None)

    Returns:
        FastAPI application
    """
    settings = settings or Settings()
    executor = executor or FlowExecutor(
        create_completion_client(settings), policy=settings.execution_policy
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle."""
        logger.info(
            f"Starting {settings.app_name} (policy={executor.policy.value}, "
            f"placeholder={executor.client.placeholder_mode})"
        )
        yield
        logger.info(f"Shutting down {settings.app_name}...")
        await executor.client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan
    )

    def executor_for(policy: Optional[ExecutionPolicy]) -> FlowExecutor:
        if policy is None or policy == executor.policy:
            return executor
        return FlowExecutor(executor.client, policy=policy)

    @app.get("/", response_model=Dict[str, str])
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running"
        }

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Check the health status of the application."""
        return HealthResponse(
            status="healthy",
            placeholder_mode=executor.client.placeholder_mode,
            execution_policy=executor.policy.value,
            streaming_agents=sorted(executor.streaming_agents)
        )

    @app.post("/flows/validate")
    async def validate(request: FlowRequest):
        """Validate a flow without running it."""
        return executor_for(request.policy).validate(request.flow).to_dict()

    @app.post("/flows/run")
    async def run_flow(request: FlowRunRequest):
        """Run a flow and return one result per agent."""
        try:
            result = await executor_for(request.policy).run(request.flow, request.prompt)
        except FlowValidationError as e:
            raise HTTPException(status_code=422, detail=e.reason)
        return result.to_dict()

    @app.post("/flows/stream")
    async def stream_flow(request: FlowRunRequest):
        """Run a flow, streaming newline-delimited JSON events.

        Each delta is sent as ``{"agentId": ..., "delta": ...}``; the last line
        is ``{"result": <FlowRunResult>}``.
        """
        flow_executor = executor_for(request.policy)
        try:
            flow_executor.plan(request.flow)
        except FlowValidationError as e:
            raise HTTPException(status_code=422, detail=e.reason)

        async def produce(emit: Callable[..., Awaitable[None]]) -> Dict[str, Any]:
            result = await flow_executor.stream_flow(
                request.flow,
                request.prompt,
                lambda agent_id, text: emit({"agentId": agent_id, "delta": text})
            )
            return {"result": result.to_dict()}

        events = _stream_events(produce, lambda event: json.dumps(event) + "\n")
        return StreamingResponse(events, media_type="application/x-ndjson")

    @app.post("/agents/stream")
    async def stream_agent(request: AgentStreamRequest):
        """Stream a single agent's output as plain text."""

        async def produce(emit: Callable[..., Awaitable[None]]) -> None:
            await executor.stream_agent(request.agent, request.prompt, emit)
            return None

        return StreamingResponse(_stream_events(produce, str), media_type="text/plain")

    return app


async def _stream_events(
    produce: Callable[[Callable[..., Awaitable[None]]], Awaitable[Any]],
    encode: Callable[[Any], str]
) -> AsyncIterator[str]:
    """Bridge callback-style streaming to an async iterator.

    ``produce`` receives an ``emit`` coroutine function; whatever it returns
    (unless None) is sent as the final event.
    """
    queue: asyncio.Queue = asyncio.Queue()
    done = object()

    async def emit(event: Any) -> None:
        await queue.put(event)

    async def worker() -> None:
        try:
            final = await produce(emit)
            if final is not None:
                await queue.put(final)
        finally:
            await queue.put(done)

    task = asyncio.create_task(worker())
    try:
        while True:
            event = await queue.get()
            if event is done:
                break
            yield encode(event)
        await task
    finally:
        if not task.done():
            task.cancel()


app = create_app()


def serve() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    settings = Settings()
    uvicorn.run("conduit.app:app", host=settings.api_host, port=settings.api_port)
