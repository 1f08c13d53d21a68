"""
eventwire: Server-Sent Events client for Python

Async SSE client with incremental event-stream parsing, ordered listener
fan-out and bounded exponential-backoff reconnect.

Example:
    >>> from eventwire import AsyncSSEClient, ClientConfig
    >>> client = AsyncSSEClient(ClientConfig(auto_reconnect=True))
    >>> client.on("message", lambda event: print(event.data))
    >>> await client.connect("https://example.com/events")
"""

from loguru import logger

from .client import AsyncSSEClient, describe_process
from .emitter import EventEmitter
from .errors import (
    AlreadyConnectedError,
    ConfigError,
    EventWireError,
    InvalidOperationError,
    StreamReadError,
)
from .parser import SSEParser, aiter_events, iter_events
from .reconnect import ReconnectPolicy, compute_delay, should_attempt
from .types import (
    ClientConfig,
    ConnectionState,
    DisconnectedPayload,
    DisconnectReason,
    ErrorPayload,
    ReconnectingPayload,
    SSEErrorType,
    SSEEvent,
)

# Library logging stays silent unless the application enables it
logger.disable("eventwire")

__version__ = "0.1.0"
__all__ = [
    # Client
    "AsyncSSEClient",
    "EventEmitter",
    "describe_process",
    # Parsing
    "SSEParser",
    "iter_events",
    "aiter_events",
    # Reconnect
    "ReconnectPolicy",
    "compute_delay",
    "should_attempt",
    # Types
    "ClientConfig",
    "ConnectionState",
    "DisconnectReason",
    "SSEErrorType",
    "SSEEvent",
    "DisconnectedPayload",
    "ReconnectingPayload",
    "ErrorPayload",
    # Errors
    "EventWireError",
    "AlreadyConnectedError",
    "InvalidOperationError",
    "StreamReadError",
    "ConfigError",
]
