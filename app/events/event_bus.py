"""Typed publish/subscribe bus between the recording controller and its observers.

Handlers are keyed by event class and run synchronously on the publishing
thread, in subscription order. The controller publishes while holding its
lock, so handlers must not block.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Callable, DefaultDict, List, Optional, Type, TypeVar

from app.events.error_bus import ErrorCategory, ErrorEventBus, ErrorSeverity
from log_config.logger import get_logger

logger = get_logger(__name__)

E = TypeVar("E")
Handler = Callable[[E], None]


class EventBus:
    """Thread-safe typed event bus.

    A failing handler is logged and reported to the error bus; the remaining
    handlers still receive the event.

    Example:
        ```python
        bus = EventBus()
        bus.subscribe(MetricsSyncedEvent, lambda e: print(f"{e.metrics.speed_kmh:.1f} km/h"))
        bus.publish(MetricsSyncedEvent(metrics=snapshot))
        ```
    """

    def __init__(self, error_bus: Optional[ErrorEventBus] = None):
        self._handlers: DefaultDict[Type, List[Handler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._error_bus = error_bus

    def subscribe(self, event_type: Type[E], handler: Handler) -> None:
        with self._lock:
            self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed to {event_type.__name__}")

    def unsubscribe(self, event_type: Type[E], handler: Handler) -> bool:
        """Remove a handler.

        Returns:
            True if the handler was subscribed
        """
        with self._lock:
            handlers = self._handlers.get(event_type)
            if not handlers or handler not in handlers:
                return False
            handlers.remove(handler)
            return True

    def get_subscriber_count(self, event_type: Type[E]) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, ()))

    def publish(self, event: object) -> None:
        event_type = type(event)
        with self._lock:
            handlers = list(self._handlers.get(event_type, ()))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self._handler_failed(event_type, handler, e)

    def _handler_failed(self, event_type: Type, handler: Handler, error: Exception) -> None:
        handler_name = getattr(handler, "__name__", repr(handler))
        logger.opt(exception=error).error(
            f"{event_type.__name__} handler {handler_name} raised {error.__class__.__name__}: {error}"
        )
        if self._error_bus is not None:
            self._error_bus.report(
                category=ErrorCategory.INTERNAL,
                severity=ErrorSeverity.WARNING,
                message=f"Event handler failed: {error}",
                source="EventBus",
                exception=error,
                event=event_type.__name__,
                handler=handler_name,
            )


__all__ = ["EventBus"]
