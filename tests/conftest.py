"""Shared fixtures for the flow engine tests."""

import pytest

from conduit.agents.graph import EndNode, Flow, NotesNode, StartNode

from helpers import EchoClient, agent, build_flow


@pytest.fixture
def echo_client() -> EchoClient:
    return EchoClient()


@pytest.fixture
def fanout_flow() -> Flow:
    """start -> A, B -> end."""
    return build_flow(
        [StartNode(id="start"), agent("a"), agent("b"), EndNode(id="end")],
        [("start", "a"), ("start", "b"), ("a", "end"), ("b", "end")],
    )


@pytest.fixture
def chain_flow() -> Flow:
    """start -> A -> B -> end."""
    return build_flow(
        [StartNode(id="start"), agent("a"), agent("b"), EndNode(id="end")],
        [("start", "a"), ("a", "b"), ("b", "end")],
    )


@pytest.fixture
def note() -> NotesNode:
    return NotesNode(id="note", content="remember to tune prompts")
