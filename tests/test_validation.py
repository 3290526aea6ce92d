"""Tests for flow validation."""

import pytest

from conduit.agents.exceptions import FlowValidationError
from conduit.agents.graph import (
    EndNode,
    ExecutionPolicy,
    StartNode,
    ensure_valid,
    validate_flow,
)

from helpers import agent, build_flow


def test_valid_fanout_flow(fanout_flow):
    result = validate_flow(fanout_flow)
    assert result.valid
    assert result.error is None
    assert result.to_dict() == {"valid": True}


def test_missing_start_node():
    flow = build_flow([agent("a"), EndNode(id="end")], [("a", "end")])

    result = validate_flow(flow)

    assert not result.valid
    assert "Start node" in result.error
    assert result.error == "Flow must have exactly one Start node"


def test_multiple_start_nodes():
    flow = build_flow(
        [StartNode(id="s1"), StartNode(id="s2"), agent("a"), EndNode(id="end")],
        [("s1", "a"), ("a", "end")],
    )

    result = validate_flow(flow)

    assert not result.valid
    assert result.error == "Flow can only have one Start node"


def test_missing_agent_node():
    flow = build_flow([StartNode(id="start"), EndNode(id="end")], [])

    result = validate_flow(flow)

    assert result.error == "Flow must have at least one Agent node"


def test_start_connected_only_to_end(note):
    flow = build_flow(
        [StartNode(id="start"), agent("a"), EndNode(id="end"), note],
        [("start", "end"), ("a", "end")],
    )

    result = validate_flow(flow)

    assert not result.valid
    assert result.error == "Start node must connect to at least one Agent node"


def test_start_without_edges():
    flow = build_flow([StartNode(id="start"), agent("a"), EndNode(id="end")], [("a", "end")])
    assert not validate_flow(flow).valid


def test_checks_short_circuit_in_order():
    # Two start nodes and no agents: the start-node check wins
    flow = build_flow([StartNode(id="s1"), StartNode(id="s2")], [])
    assert validate_flow(flow).error == "Flow can only have one Start node"


def test_edge_touching_notes_node(note):
    flow = build_flow(
        [StartNode(id="start"), agent("a"), EndNode(id="end"), note],
        [("start", "a"), ("a", "end"), ("a", "note")],
    )

    result = validate_flow(flow)

    assert not result.valid
    assert "Notes" in result.error


def test_dangling_edge():
    flow = build_flow(
        [StartNode(id="start"), agent("a"), EndNode(id="end")],
        [("start", "a"), ("a", "end"), ("a", "ghost")],
    )

    assert "missing node" in validate_flow(flow).error


def test_agent_to_agent_depends_on_policy(chain_flow):
    fanout = validate_flow(chain_flow, ExecutionPolicy.DIRECT_FANOUT)
    chains = validate_flow(chain_flow, ExecutionPolicy.SEQUENTIAL_CHAINS)

    assert not fanout.valid
    assert "agent → agent" in fanout.error
    assert chains.valid


def test_unreachable_agents_are_not_an_error():
    flow = build_flow(
        [StartNode(id="start"), agent("a"), agent("orphan"), EndNode(id="end")],
        [("start", "a"), ("a", "end")],
    )
    assert validate_flow(flow).valid


def test_ensure_valid_raises_with_reason():
    flow = build_flow([StartNode(id="start")], [])

    with pytest.raises(FlowValidationError) as excinfo:
        ensure_valid(flow)

    assert excinfo.value.reason == "Flow must have at least one Agent node"
