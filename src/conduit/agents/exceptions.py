"""Exceptions raised by the flow engine."""

from typing import Optional


class ConduitError(Exception):
    """Base class for all engine errors."""


class FlowValidationError(ConduitError):
    """The flow cannot be executed as drawn."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class UpstreamError(ConduitError):
    """The completion service rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DecodeError(ConduitError):
    """A streamed event could not be decoded."""
