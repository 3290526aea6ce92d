"""Completion client and result models for agent nodes."""

# Result models
from .models import AgentRunResult, FlowRunResult

# Stream decoding
from .streaming import SSEDecoder

# Completion client
from .client import CompletionClient, placeholder_response

__all__ = [
    # Results
    "AgentRunResult",
    "FlowRunResult",
    # Streaming
    "SSEDecoder",
    # Client
    "CompletionClient",
    "placeholder_response",
]
