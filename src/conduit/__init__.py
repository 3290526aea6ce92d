"""Conduit: execution engine for agent flows."""

from .agents.exceptions import ConduitError, FlowValidationError, UpstreamError
from .agents.graph import (
    AgentNode,
    Edge,
    EndNode,
    ExecutionPolicy,
    Flow,
    FlowExecutor,
    NotesNode,
    StartNode,
    load_flow,
    validate_flow,
)
from .agents.agent import AgentRunResult, CompletionClient, FlowRunResult
from .agents.agent.factory import create_completion_client, create_executor

__version__ = "1.0.0"

__all__ = [
    "AgentNode",
    "AgentRunResult",
    "CompletionClient",
    "ConduitError",
    "Edge",
    "EndNode",
    "ExecutionPolicy",
    "Flow",
    "FlowExecutor",
    "FlowRunResult",
    "FlowValidationError",
    "NotesNode",
    "StartNode",
    "UpstreamError",
    "create_completion_client",
    "create_executor",
    "load_flow",
    "validate_flow",
]
