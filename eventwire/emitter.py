"""Ordered multi-listener fan-out for client notifications."""

import asyncio
import threading
from typing import Any, Callable, Dict, List, Optional

from loguru import logger


class EventEmitter:
    """Thread-safe event emitter.

    Listeners run in registration order. A listener that raises is logged
    and skipped so the rest still receive the notification.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Callable]] = {}
        self._once_wrappers: Dict[int, Callable] = {}
        self._lock = threading.Lock()

    def on(self, event: str, callback: Optional[Callable] = None) -> Any:
        """Register event listener. Can be used as decorator."""
        if callback is None:
            # Used as decorator: @emitter.on("event")
            def decorator(fn: Callable) -> Callable:
                self._add_listener(event, fn)
                return fn
            return decorator
        self._add_listener(event, callback)
        return self

    def off(self, event: str, callback: Callable) -> Any:
        """Remove event listener."""
        with self._lock:
            listeners = self._listeners.get(event)
            if listeners:
                target = self._once_wrappers.pop(id(callback), callback)
                if target in listeners:
                    listeners.remove(target)
        return self

    def once(self, event: str, callback: Callable) -> Any:
        """Register one-time event listener."""
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            self.off(event, callback)
            return callback(*args, **kwargs)

        with self._lock:
            self._once_wrappers[id(callback)] = wrapper
        self._add_listener(event, wrapper)
        return self

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, []))

    def _add_listener(self, event: str, callback: Callable) -> None:
        with self._lock:
            self._listeners.setdefault(event, []).append(callback)

    async def _emit_async(self, event: str, payload: Any = None) -> int:
        """Deliver ``payload`` to every listener; returns how many raised."""
        with self._lock:
            listeners = list(self._listeners.get(event, []))
        failures = 0
        for cb in listeners:
            try:
                result = cb(payload)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                failures += 1
                logger.exception("Listener {!r} for {!r} raised", cb, event)
        return failures
