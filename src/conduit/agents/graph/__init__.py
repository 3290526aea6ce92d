"""Flow graph model, validation, chain discovery and execution."""

from .models import (
    AgentNode,
    Edge,
    EndNode,
    Flow,
    InputSchema,
    Node,
    NodeKind,
    NotesNode,
    Position,
    StartNode,
    load_flow,
)
from .chains import ExecutionPolicy, find_agent_chains, find_fanout_agents, resolve_plan
from .validation import ValidationResult, ensure_valid, validate_flow
from .executor import FlowExecutor, NodeStatus

__all__ = [
    # Model
    "AgentNode",
    "Edge",
    "EndNode",
    "Flow",
    "InputSchema",
    "Node",
    "NodeKind",
    "NotesNode",
    "Position",
    "StartNode",
    "load_flow",
    # Chains
    "ExecutionPolicy",
    "find_agent_chains",
    "find_fanout_agents",
    "resolve_plan",
    # Validation
    "ValidationResult",
    "ensure_valid",
    "validate_flow",
    # Execution
    "FlowExecutor",
    "NodeStatus",
]
