"""Capped exponential backoff for reconnect attempts."""

from typing import Tuple

from .types import ClientConfig

MAX_BACKOFF_EXPONENT = 6  # 2**6 = 64x the base delay
DEFAULT_MAX_DELAY = 300.0


def compute_delay(attempt: int, base_delay: float, max_delay: float = DEFAULT_MAX_DELAY) -> float:
    """Delay in seconds before reconnect ``attempt`` (1-based)."""
    exponent = min(max(attempt - 1, 0), MAX_BACKOFF_EXPONENT)
    return min(base_delay * (2 ** exponent), max_delay)


def should_attempt(attempt_count: int, max_attempts: int) -> bool:
    """True while another attempt is allowed. ``max_attempts <= 0`` is unbounded."""
    return max_attempts <= 0 or attempt_count < max_attempts


class ReconnectPolicy:
    """Live reconnect state for one client.

    ``attempt_count`` is written only from the lifecycle task. The
    configuration attributes may be replaced from any caller; they are read
    at the next disconnect evaluation.
    """

    def __init__(self, config: ClientConfig) -> None:
        self.auto_reconnect = config.auto_reconnect
        self.base_delay = config.reconnect_base_delay
        self.max_delay = config.reconnect_max_delay
        self.max_attempts = config.max_reconnect_attempts
        self.attempt_count = 0

    @property
    def should_reconnect(self) -> bool:
        return should_attempt(self.attempt_count, self.max_attempts)

    def next_attempt(self) -> Tuple[int, float]:
        """Consume one attempt and return ``(attempt_number, delay)``."""
        self.attempt_count += 1
        return self.attempt_count, compute_delay(self.attempt_count, self.base_delay, self.max_delay)

    def reset(self) -> None:
        self.attempt_count = 0

    def enable(self, base_delay: float, max_attempts: int) -> None:
        if base_delay <= 0:
            raise ValueError("base_delay must be positive")
        self.base_delay = base_delay
        self.max_attempts = max_attempts
        self.auto_reconnect = True

    def disable(self) -> None:
        self.auto_reconnect = False

    def apply_retry(self, retry_ms: int) -> None:
        """Adopt a server-sent ``retry:`` value (milliseconds) as the base delay."""
        self.base_delay = retry_ms / 1000.0
