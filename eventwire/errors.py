"""Exceptions raised by eventwire."""

from typing import Optional

from .types import SSEErrorType


class EventWireError(Exception):
    """Base class for all eventwire errors."""

    kind: SSEErrorType = SSEErrorType.UNKNOWN_ERROR


class AlreadyConnectedError(EventWireError):
    """``connect()`` was called while a connection is still active."""

    kind = SSEErrorType.CONNECTION_ERROR

    def __init__(self, message: str = "Already connected") -> None:
        super().__init__(message)


class InvalidOperationError(EventWireError):
    """The client is not in a state that allows the requested operation."""


class StreamReadError(EventWireError):
    """Reading a line from the response body failed."""

    kind = SSEErrorType.STREAM_READ_ERROR

    def __init__(self, line_number: int, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Stream read error (line {line_number})")
        self.line_number = line_number
        self.cause = cause


class ConfigError(EventWireError):
    """The CLI configuration file is missing a value or holds a bad one."""
