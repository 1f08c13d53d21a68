"""Type definitions for the eventwire SSE client."""

from enum import Enum
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Enumerations
# ============================================================================

ConnectionState = Literal["idle", "connecting", "streaming", "disconnected"]


class DisconnectReason(str, Enum):
    """Why a connection attempt ended. Exactly one per attempt."""
    UNKNOWN = "unknown"
    CANCELLED = "cancelled"
    CONNECTION_FAILED = "connection_failed"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    INVALID_CONTENT_TYPE = "invalid_content_type"
    STREAM_ENDED = "stream_ended"
    UNEXPECTED_ERROR = "unexpected_error"


class SSEErrorType(str, Enum):
    """What kind of fault an error notification reports."""
    CONNECTION_ERROR = "connection_error"
    INVALID_URL = "invalid_url"
    INVALID_RESPONSE = "invalid_response"
    TIMEOUT = "timeout"
    STREAM_ERROR = "stream_error"
    STREAM_READ_ERROR = "stream_read_error"
    DATA_PARSE_ERROR = "data_parse_error"
    UNKNOWN_ERROR = "unknown_error"


# ============================================================================
# Event & Notification Payloads
# ============================================================================

class SSEEvent(BaseModel):
    """A decoded event-stream record."""
    event: str = "message"
    data: str
    id: Optional[str] = None

    class Config:
        frozen = True


class DisconnectedPayload(BaseModel):
    reason: DisconnectReason


class ReconnectingPayload(BaseModel):
    attempt: int
    max_attempts: int
    delay: float  # seconds


class ErrorPayload(BaseModel):
    kind: SSEErrorType
    message: str
    cause: Optional[BaseException] = None

    class Config:
        arbitrary_types_allowed = True


# ============================================================================
# Configuration
# ============================================================================

class ClientConfig(BaseModel):
    """Configuration for :class:`~eventwire.client.AsyncSSEClient`.

    Durations are in seconds. ``max_reconnect_attempts <= 0`` means no limit.
    ``read_timeout`` applies to each body read; ``None`` keeps idle streams
    open indefinitely.
    """
    auto_reconnect: bool = False
    reconnect_base_delay: float = Field(default=5.0, gt=0)
    reconnect_max_delay: float = Field(default=300.0, gt=0)
    max_reconnect_attempts: int = 0
    timeout: float = 100.0
    read_timeout: Optional[float] = None
    settle_delay: float = 1.0
    headers: Dict[str, str] = Field(default_factory=dict)
