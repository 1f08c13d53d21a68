"""
Incremental parser for the ``text/event-stream`` line grammar.

Example::

    parser = SSEParser()
    for line in ["event: ping", "data: hello", ""]:
        event = parser.feed(line)
    # event == SSEEvent(event="ping", data="hello", id=None)

The parser does no I/O. :func:`aiter_events` drives it from an async line
source such as ``httpx.Response.aiter_lines()``.
"""

from __future__ import annotations

from typing import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator, List, Optional

from .errors import StreamReadError
from .types import SSEEvent


class SSEParser:
    """Accumulates fields line by line and flushes a record on a blank line."""

    def __init__(self, on_retry: Optional[Callable[[int], None]] = None) -> None:
        self.on_retry = on_retry
        self.line_number = 0
        self._event_type: Optional[str] = None
        self._id: Optional[str] = None
        self._data_lines: List[str] = []

    def feed(self, line: str) -> Optional[SSEEvent]:
        """Process one line (without terminator). Returns an event when a record completes."""
        self.line_number += 1

        if not line:
            if not self._data_lines:
                return None
            data = "\n".join(self._data_lines)
            if data.endswith("\n"):
                data = data[:-1]
            event = SSEEvent(
                event=self._event_type or "message",
                data=data,
                id=self._id,
            )
            self.reset()
            return event

        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if not sep:
            return None
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event_type = value
        elif field == "data":
            self._data_lines.append(value)
        elif field == "id":
            self._id = value
        elif field == "retry":
            self._handle_retry(value)
        return None

    def reset(self) -> None:
        """Drop the pending record."""
        self._event_type = None
        self._id = None
        self._data_lines = []

    def _handle_retry(self, value: str) -> None:
        if not (value.isascii() and value.isdigit()):
            return
        retry_ms = int(value)
        if retry_ms > 0 and self.on_retry is not None:
            self.on_retry(retry_ms)


def iter_events(lines: Iterable[str], parser: Optional[SSEParser] = None) -> Iterator[SSEEvent]:
    """Yield events from a finite sequence of lines. An unterminated trailing record is dropped."""
    parser = parser or SSEParser()
    for line in lines:
        event = parser.feed(line)
        if event is not None:
            yield event
    parser.reset()


async def aiter_events(
    lines: AsyncIterable[str],
    parser: Optional[SSEParser] = None,
) -> AsyncIterator[SSEEvent]:
    """Yield events from an async line source.

    A fault while reading a line is raised as :class:`StreamReadError` with
    the 1-based number of the line being read. Cancellation passes through
    untouched.
    """
    parser = parser or SSEParser()
    iterator = lines.__aiter__()
    while True:
        try:
            line = await iterator.__anext__()
        except StopAsyncIteration:
            break
        except Exception as exc:
            raise StreamReadError(parser.line_number + 1, exc) from exc

        event = parser.feed(line)
        if event is not None:
            yield event

    # Incomplete records at end of stream are never dispatched
    parser.reset()
