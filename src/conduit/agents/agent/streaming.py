"""Decoder for server-sent chat completion streams."""

import inspect
import json
from typing import Any, Awaitable, Callable, List, Optional, Union

from loguru import logger

from ..exceptions import DecodeError

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

DeltaCallback = Callable[[str], Union[None, Awaitable[None]]]


async def deliver(callback: Callable[..., Any], *args: Any) -> None:
    """Call a sync or async callback and wait for it."""
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


def extract_delta(event: Any) -> str:
    """Return the text delta carried by a decoded stream event.

    Raises:
        DecodeError: If the event does not have the expected shape
    """
    try:
        choices = event.get("choices") or []
        if not choices:
            return ""
        delta = choices[0].get("delta") or {}
        return delta.get("content") or ""
    except (AttributeError, TypeError) as e:
        raise DecodeError(f"Unexpected stream event: {event!r}") from e


def parse_event_line(line: str) -> Optional[str]:
    """Decode one line of the event stream.

    Args:
        line: A complete line, without its newline

    Returns:
        The text delta, or None for lines that carry no text

    Raises:
        DecodeError: If the payload is not valid JSON
    """
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):]
    if payload.strip() == DONE_SENTINEL:
        return None

    try:
        event = json.loads(payload)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Malformed stream payload: {payload[:80]!r}") from e

    return extract_delta(event) or None


class SSEDecoder:
    """Incremental decoder for ``data: <json>`` event streams.

    Network reads may split an event anywhere, so the trailing partial line
    of each chunk is kept until the rest arrives. Malformed payloads are
    dropped and decoding carries on with the next line.
    """

    def __init__(self):
        self._buffer = ""
        self.dropped = 0

    def feed(self, chunk: str) -> List[str]:
        """Decode a chunk of the response body.

        Args:
            chunk: Text as read from the network

        Returns:
            Text deltas completed by this chunk, in order
        """
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        return self._decode_lines(lines)

    def flush(self) -> List[str]:
        """Decode whatever is left once the body has ended."""
        rest, self._buffer = self._buffer, ""
        return self._decode_lines([rest]) if rest else []

    def _decode_lines(self, lines: List[str]) -> List[str]:
        deltas = []
        for line in lines:
            try:
                delta = parse_event_line(line)
            except DecodeError as e:
                self.dropped += 1
                logger.debug(f"[STREAM] Skipping undecodable event: {e}")
                continue
            if delta:
                deltas.append(delta)
        return deltas
