"""Fake Anthropic streaming client for generation tests."""

from typing import Any, Iterable
from unittest.mock import AsyncMock, MagicMock


class AsyncIteratorMock:
    """Async iterator wrapper for mocking ``async for`` loops."""

    def __init__(self, items: Iterable[Any], error: Exception | None = None):
        self._items = list(items)
        self._idx = 0
        self._error = error

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._idx >= len(self._items):
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        item = self._items[self._idx]
        self._idx += 1
        return item


def text_delta(text: str) -> MagicMock:
    event = MagicMock()
    event.type = "content_block_delta"
    event.delta = MagicMock(text=text)
    return event


def other_event(event_type: str = "message_start") -> MagicMock:
    event = MagicMock()
    event.type = event_type
    return event


def chunked(text: str, parts: int) -> list[str]:
    """Split text into exactly ``parts`` consecutive deltas."""
    size, remainder = divmod(len(text), parts)
    chunks = []
    start = 0
    for i in range(parts):
        end = start + size + (1 if i < remainder else 0)
        chunks.append(text[start:end])
        start = end
    return chunks


def make_stream(
    deltas: Iterable[str],
    stop_reason: str = "end_turn",
    events: list[Any] | None = None,
    error: Exception | None = None,
) -> AsyncMock:
    """Build a mock ``client.messages.stream(...)`` context manager."""
    mock_stream = AsyncMock()
    mock_stream.__aenter__ = AsyncMock(return_value=mock_stream)
    mock_stream.__aexit__ = AsyncMock(return_value=False)

    stream_events = events if events is not None else [text_delta(d) for d in deltas]
    mock_stream.__aiter__ = lambda self: AsyncIteratorMock(stream_events, error=error)

    final_msg = MagicMock()
    final_msg.stop_reason = stop_reason
    mock_stream.get_final_message = AsyncMock(return_value=final_msg)
    return mock_stream


def make_client(mock_stream: AsyncMock) -> MagicMock:
    mock_client = MagicMock()
    mock_client.messages.stream.return_value = mock_stream
    return mock_client
