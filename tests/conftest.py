"""Shared helpers for eventwire tests."""

import asyncio
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional, Tuple

import httpx
import pytest

from eventwire import AsyncSSEClient, ClientConfig

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

URL = "http://sse.test/events"
NOTIFICATIONS = ("connected", "disconnected", "reconnecting", "message", "error")


# ---------------------------------------------------------------------------
# Transport helpers
# ---------------------------------------------------------------------------

async def _body(chunks: Iterable[bytes], hang: bool, fail_with: Optional[Exception]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk
    if fail_with is not None:
        raise fail_with
    if hang:
        await asyncio.Event().wait()


def sse_response(
    *chunks: bytes,
    status: int = 200,
    content_type: str = "text/event-stream",
    hang: bool = False,
    fail_with: Optional[Exception] = None,
) -> httpx.Response:
    """A streaming response whose body yields ``chunks`` then ends, hangs, or raises."""
    return httpx.Response(
        status,
        headers={"Content-Type": content_type},
        content=_body(chunks, hang, fail_with),
    )


def make_client(handler: Callable[[httpx.Request], Any], **config: Any) -> AsyncSSEClient:
    return AsyncSSEClient(ClientConfig(**config), transport=httpx.MockTransport(handler))


class Recorder:
    """Records every notification a client fires, in order."""

    def __init__(self, client: AsyncSSEClient) -> None:
        self.calls: List[Tuple[str, Any]] = []
        for name in NOTIFICATIONS:
            client.on(name, self._recorder(name))

    def _recorder(self, name: str) -> Callable[[Any], None]:
        def record(payload: Any) -> None:
            self.calls.append((name, payload))
        return record

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def payloads(self, name: str) -> List[Any]:
        return [payload for n, payload in self.calls if n == name]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def url():
    return URL
