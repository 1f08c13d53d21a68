"""
Async Server-Sent Events client with bounded exponential-backoff reconnect.

Example::

    client = AsyncSSEClient(ClientConfig(auto_reconnect=True))

    @client.on("message")
    def on_message(event):
        print(f"[{event.event}] {event.data}")

    client.on("disconnected", lambda payload: print(payload.reason))
    await client.connect("https://example.com/events")  # returns once stopped

Call ``client.disconnect()`` from any task, thread or listener to stop.
"""

from __future__ import annotations

import asyncio
import os
import sys
from datetime import datetime
from typing import Any, Optional

import httpx
from loguru import logger

from .emitter import EventEmitter
from .errors import AlreadyConnectedError, InvalidOperationError, StreamReadError
from .parser import SSEParser, aiter_events
from .reconnect import ReconnectPolicy
from .types import (
    ClientConfig,
    ConnectionState,
    DisconnectedPayload,
    DisconnectReason,
    ErrorPayload,
    ReconnectingPayload,
    SSEErrorType,
)

EVENT_STREAM_MEDIA_TYPE = "text/event-stream"

_LOADED_AT = datetime.now()


def describe_process() -> str:
    """Diagnostic identity of the current process. Informational only."""
    name = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "python"
    return (
        f"Process: {name} (PID: {os.getpid()}) | "
        f"Path: {sys.executable} | "
        f"Started: {_LOADED_AT:%Y-%m-%d %H:%M:%S}"
    )


def _media_type(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower()


class AsyncSSEClient(EventEmitter):
    """Async SSE client.

    Notifications (one payload argument each): ``connected`` (None),
    ``disconnected`` (:class:`DisconnectedPayload`), ``reconnecting``
    (:class:`ReconnectingPayload`), ``message`` (:class:`SSEEvent`) and
    ``error`` (:class:`ErrorPayload`).

    Args:
        config: Client configuration (defaults to :class:`ClientConfig`).
        http_client: Existing ``httpx.AsyncClient`` to stream through. Not
            closed by :meth:`aclose`.
        transport: Transport for the client created internally when
            ``http_client`` is not given.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__()
        self._config = config or ClientConfig()
        self._policy = ReconnectPolicy(self._config)
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout, read=self._config.read_timeout),
            transport=transport,
        )
        self._state: ConnectionState = "idle"
        self._url: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._cancel_requested = False
        self.process_info = describe_process()

    # --- Status ---

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def is_connected(self) -> bool:
        """True while an attempt is connecting or streaming. False during the backoff sleep."""
        task = self._task
        if task is None or task.done() or self._cancel_requested:
            return False
        return self._state in ("connecting", "streaming")

    @property
    def reconnect_attempts(self) -> int:
        return self._policy.attempt_count

    @property
    def policy(self) -> ReconnectPolicy:
        return self._policy

    # --- Public API ---

    async def connect(self, url: str) -> None:
        """Run the connection lifecycle until it stops for good.

        Raises:
            AlreadyConnectedError: a lifecycle is already active.
        """
        if self._task is not None and not self._task.done():
            raise AlreadyConnectedError()

        self._url = url
        self._cancel_requested = False
        self._loop = asyncio.get_running_loop()
        task = asyncio.create_task(self._run(url))
        task.add_done_callback(self._on_lifecycle_done)
        self._task = task

        try:
            await task
        except asyncio.CancelledError:
            # disconnect() cancels the lifecycle task, not the caller
            if not (self._cancel_requested and task.cancelled()):
                raise

    def disconnect(self) -> None:
        """Cancel the active lifecycle. No-op when idle. Safe from any thread."""
        task = self._task
        if task is None or task.done():
            return
        self._cancel_requested = True
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            task.cancel()
        elif self._loop is not None:
            self._loop.call_soon_threadsafe(task.cancel)

    async def reconnect(self) -> None:
        """Disconnect, wait the settle delay, and connect again to the last URL."""
        if self._url is None:
            raise InvalidOperationError("No URL to reconnect to; call connect() first")

        task = self._task
        if task is not None and task is asyncio.current_task():
            raise InvalidOperationError("reconnect() cannot run inside the connection lifecycle")
        self.disconnect()
        if task is not None:
            await asyncio.wait({task})
        await asyncio.sleep(self._config.settle_delay)
        self._policy.reset()
        await self.connect(self._url)

    def enable_auto_reconnect(self, base_delay: float = 5.0, max_attempts: int = 0) -> None:
        """Turn on automatic reconnects. ``max_attempts <= 0`` means unlimited."""
        self._policy.enable(base_delay, max_attempts)

    def disable_auto_reconnect(self) -> None:
        self._policy.disable()

    async def aclose(self) -> None:
        """Stop any active lifecycle and release the owned HTTP client."""
        task = self._task
        self.disconnect()
        if task is not None and task is not asyncio.current_task():
            await asyncio.wait({task})
        if self._owns_client:
            await self._http.aclose()

    # --- Context Manager ---

    async def __aenter__(self) -> "AsyncSSEClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    # --- Lifecycle ---

    def _on_lifecycle_done(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None

    async def _run(self, url: str) -> None:
        while True:
            await self._attempt(url)

            if self._cancel_requested:
                return
            if not self._policy.auto_reconnect:
                return
            if not self._policy.should_reconnect:
                max_attempts = self._policy.max_attempts
                logger.warning("Giving up on {} after {} reconnect attempts", url, max_attempts)
                await self._report(
                    SSEErrorType.CONNECTION_ERROR,
                    f"Maximum reconnect attempts ({max_attempts}) reached",
                )
                return

            attempt, delay = self._policy.next_attempt()
            logger.info("Reconnecting to {} (attempt {}, waiting {:.1f}s)", url, attempt, delay)
            await self._emit_async(
                "reconnecting",
                ReconnectingPayload(attempt=attempt, max_attempts=self._policy.max_attempts, delay=delay),
            )
            # Cancellation here abandons the reconnect without further notification
            await asyncio.sleep(delay)

    async def _attempt(self, url: str) -> DisconnectReason:
        """One connection attempt. Always fires ``disconnected`` with one reason."""
        self._state = "connecting"
        reason = DisconnectReason.UNKNOWN
        headers = {
            **self._config.headers,
            "Accept": EVENT_STREAM_MEDIA_TYPE,
            "Cache-Control": "no-cache",
        }
        logger.debug("Connecting to {}", url)

        try:
            async with self._http.stream("GET", url, headers=headers) as response:
                reason = await self._check_response(response)
                if reason is None:
                    self._policy.reset()
                    self._state = "streaming"
                    logger.info("Connected to {}", url)
                    await self._emit_async("connected", None)
                    reason = await self._consume(response)
        except asyncio.CancelledError:
            reason = DisconnectReason.CANCELLED
            raise
        except httpx.TimeoutException as exc:
            reason = DisconnectReason.TIMEOUT
            await self._report(SSEErrorType.TIMEOUT, "Connection timed out", exc)
        except httpx.TransportError as exc:
            reason = DisconnectReason.CONNECTION_FAILED
            await self._report(SSEErrorType.CONNECTION_ERROR, f"Failed to connect to server: {url}", exc)
        except Exception as exc:
            reason = DisconnectReason.UNEXPECTED_ERROR
            await self._report(SSEErrorType.UNKNOWN_ERROR, f"Unexpected error: {exc}", exc)
        finally:
            self._state = "disconnected"
            logger.info("Disconnected from {}: {}", url, reason.value)
            await self._emit_async("disconnected", DisconnectedPayload(reason=reason))
        return reason

    async def _check_response(self, response: httpx.Response) -> Optional[DisconnectReason]:
        if not response.is_success:
            error = httpx.HTTPStatusError(
                f"HTTP {response.status_code} {response.reason_phrase}",
                request=response.request,
                response=response,
            )
            await self._report(
                SSEErrorType.INVALID_URL,
                f"Unexpected status code: {response.status_code}",
                error,
            )
            return DisconnectReason.SERVER_ERROR

        content_type = response.headers.get("content-type")
        if _media_type(content_type) != EVENT_STREAM_MEDIA_TYPE:
            shown = content_type or "null"
            await self._report(
                SSEErrorType.INVALID_RESPONSE,
                f"Invalid Content-Type: {shown}",
                ValueError(f"Invalid Content-Type: {shown} (expected {EVENT_STREAM_MEDIA_TYPE})"),
            )
            return DisconnectReason.INVALID_CONTENT_TYPE
        return None

    async def _consume(self, response: httpx.Response) -> DisconnectReason:
        parser = SSEParser(on_retry=self._policy.apply_retry)
        try:
            async for event in aiter_events(response.aiter_lines(), parser):
                await self._cancel_checkpoint()
                failures = await self._emit_async("message", event)
                if failures:
                    await self._report(
                        SSEErrorType.DATA_PARSE_ERROR,
                        f"Error while handling message (line {parser.line_number})",
                    )
        except StreamReadError as exc:
            await self._report(SSEErrorType.STREAM_READ_ERROR, str(exc), exc.cause)
            return DisconnectReason.UNEXPECTED_ERROR
        except Exception as exc:
            await self._report(SSEErrorType.STREAM_ERROR, "Error while processing stream", exc)
            return DisconnectReason.UNEXPECTED_ERROR
        await self._cancel_checkpoint()
        return DisconnectReason.STREAM_ENDED

    async def _cancel_checkpoint(self) -> None:
        # Buffered lines never suspend; yield once so a pending disconnect() lands here
        if self._cancel_requested:
            await asyncio.sleep(0)

    async def _report(
        self,
        kind: SSEErrorType,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        logger.warning("{}: {}", kind.value, message)
        await self._emit_async("error", ErrorPayload(kind=kind, message=message, cause=cause))
