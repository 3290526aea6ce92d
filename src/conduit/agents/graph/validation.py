"""Structural validation of flows before execution."""

from dataclasses import dataclass
from typing import Optional, Set, Tuple

from loguru import logger

from ..exceptions import FlowValidationError
from .chains import ExecutionPolicy
from .models import Flow, NodeKind


_BASE_CONNECTIONS: Set[Tuple[str, str]] = {
    (NodeKind.START.value, NodeKind.AGENT.value),
    (NodeKind.AGENT.value, NodeKind.END.value),
}

_CHAIN_CONNECTIONS: Set[Tuple[str, str]] = _BASE_CONNECTIONS | {
    (NodeKind.AGENT.value, NodeKind.AGENT.value),
}


@dataclass
class ValidationResult:
    """Outcome of validating a flow."""
    valid: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = {"valid": self.valid}
        if self.error is not None:
            data["error"] = self.error
        return data


def allowed_connections(policy: ExecutionPolicy) -> Set[Tuple[str, str]]:
    """Return the legal (source kind, target kind) pairs for a policy."""
    if policy == ExecutionPolicy.SEQUENTIAL_CHAINS:
        return _CHAIN_CONNECTIONS
    return _BASE_CONNECTIONS


def validate_flow(
    flow: Flow,
    policy: ExecutionPolicy = ExecutionPolicy.DIRECT_FANOUT
) -> ValidationResult:
    """Check that a flow is well-formed and executable.

    Checks run in order and stop at the first failure:

    1. exactly one Start node
    2. at least one Agent node
    3. the Start node connects to at least one Agent node
    4. every edge joins existing, connectable nodes of a legal pairing

    Agents that cannot be reached are not an error; they are left out of
    execution.

    Args:
        flow: Flow to validate
        policy: Execution policy the flow will run under

    Returns:
        Validation result
    """
    starts = flow.nodes_of_kind(NodeKind.START)
    if not starts:
        return _invalid(flow, "Flow must have exactly one Start node")
    if len(starts) > 1:
        return _invalid(flow, "Flow can only have one Start node")

    if not flow.nodes_of_kind(NodeKind.AGENT):
        return _invalid(flow, "Flow must have at least one Agent node")

    start = starts[0]
    start_targets = [flow.get_node(edge.target_node_id) for edge in flow.outgoing(start.id)]
    if not any(node is not None and node.type == NodeKind.AGENT for node in start_targets):
        return _invalid(flow, "Start node must connect to at least one Agent node")

    legal = allowed_connections(policy)
    for edge in flow.edges:
        source = flow.get_node(edge.source_node_id)
        target = flow.get_node(edge.target_node_id)
        if source is None or target is None:
            return _invalid(flow, f"Edge '{edge.id}' references a missing node")
        if NodeKind.NOTES in (source.type, target.type):
            return _invalid(flow, f"Edge '{edge.id}' connects a Notes node")
        if (source.type, target.type) not in legal:
            return _invalid(
                flow,
                f"Edge '{edge.id}' has an invalid connection: {source.type} → {target.type}"
            )

    logger.debug(f"[VALIDATOR] Flow '{flow.name}' is valid ({policy.value})")
    return ValidationResult(valid=True)


def ensure_valid(
    flow: Flow,
    policy: ExecutionPolicy = ExecutionPolicy.DIRECT_FANOUT
) -> None:
    """Validate a flow and raise if it cannot run.

    Raises:
        FlowValidationError: If validation fails
    """
    result = validate_flow(flow, policy)
    if not result.valid:
        raise FlowValidationError(result.error or "Invalid flow")


def _invalid(flow: Flow, reason: str) -> ValidationResult:
    logger.info(f"[VALIDATOR] Flow '{flow.name}' rejected: {reason}")
    return ValidationResult(valid=False, error=reason)
