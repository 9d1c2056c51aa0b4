"""Event system for application-wide event handling."""

from app.events.error_bus import (
    ErrorCategory,
    ErrorEvent,
    ErrorEventBus,
    ErrorSeverity,
)
from app.events.event_bus import EventBus
from app.events.event_types import (
    AppForegroundedEvent,
    MetricsSyncedEvent,
    RecordingStateChangedEvent,
    SessionCompletedEvent,
)

__all__ = [
    "AppForegroundedEvent",
    "ErrorCategory",
    "ErrorEvent",
    "ErrorEventBus",
    "ErrorSeverity",
    "EventBus",
    "MetricsSyncedEvent",
    "RecordingStateChangedEvent",
    "SessionCompletedEvent",
]
