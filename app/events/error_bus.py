"""Error reporting for failures that are handled away from the caller.

Background work (the poll loop, detached session saves, event handlers)
cannot raise to whoever started it. It reports here instead, and the CLI or
a test can inspect or subscribe to what went wrong. The bus is owned by the
application context and passed to collaborators explicitly.
"""

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

from log_config.logger import get_logger

logger = get_logger(__name__)


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"  # operation continues
    ERROR = "error"  # operation failed
    CRITICAL = "critical"  # data may be lost


class ErrorCategory(Enum):
    RECORDER = "recorder"  # background sync of the live snapshot
    STORAGE = "storage"  # saving or pruning session history
    DISK_SPACE = "disk_space"
    INTERNAL = "internal"  # observer callbacks


@dataclass
class ErrorEvent:
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    source: str
    timestamp: float = field(default_factory=time.time)
    exception: Optional[Exception] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        exc_info = f" ({self.exception.__class__.__name__})" if self.exception else ""
        return f"[{self.severity.value.upper()}] {self.category.value}/{self.source}: {self.message}{exc_info}"


ErrorCallback = Callable[[ErrorEvent], None]


class ErrorEventBus:
    """Collects reported errors, keeps a bounded history and fans them out.

    Subscribers registered with a category only see that category; those
    registered without one see everything. Callbacks run on the reporting
    thread after the bus lock is released.
    """

    def __init__(self, max_history: int = 100):
        # None key holds the subscribers to every category
        self._subscribers: Dict[Optional[ErrorCategory], List[ErrorCallback]] = {}
        self._history: Deque[ErrorEvent] = deque(maxlen=max_history)
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    def subscribe(self, callback: ErrorCallback, category: Optional[ErrorCategory] = None) -> None:
        with self._lock:
            self._subscribers.setdefault(category, []).append(callback)
        scope = category.value if category else "all"
        logger.debug(f"Subscribed {getattr(callback, '__name__', repr(callback))} to {scope} errors")

    def unsubscribe(self, callback: ErrorCallback, category: Optional[ErrorCategory] = None) -> None:
        """Remove a callback; unknown callbacks are ignored."""
        with self._lock:
            callbacks = self._subscribers.get(category, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def publish(self, event: ErrorEvent) -> None:
        with self._lock:
            self._history.append(event)
            self._counts[event.category] += 1
            callbacks = self._subscribers.get(event.category, []) + self._subscribers.get(None, [])

        logger.opt(exception=event.exception).log(event.severity.value.upper(), str(event))

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.opt(exception=e).error(
                    f"Error subscriber {getattr(callback, '__name__', repr(callback))} failed: {e}"
                )

    def report(
        self,
        category: ErrorCategory,
        severity: ErrorSeverity,
        message: str,
        source: str,
        exception: Optional[Exception] = None,
        **metadata: Any,
    ) -> ErrorEvent:
        """Build and publish an error event.

        Returns:
            The published event
        """
        event = ErrorEvent(
            category=category,
            severity=severity,
            message=message,
            source=source,
            exception=exception,
            metadata=metadata,
        )
        self.publish(event)
        return event

    def get_history(self, category: Optional[ErrorCategory] = None, limit: int = 100) -> List[ErrorEvent]:
        """Most recent events, oldest first, optionally filtered by category."""
        with self._lock:
            history = list(self._history)
        if category is not None:
            history = [e for e in history if e.category == category]
        return history[-limit:]

    def get_error_counts(self) -> Dict[ErrorCategory, int]:
        """Events reported per category, including those no longer in history."""
        with self._lock:
            return dict(self._counts)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
            self._counts.clear()


__all__ = [
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorEvent",
    "ErrorEventBus",
]
