"""Event types for service communication.

All events are immutable dataclasses that flow through the EventBus.
The recording controller publishes what observers (screens, map follow,
CLI progress output) need; the host application publishes lifecycle
notifications such as returning to the foreground.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import Optional

from contracts import LiveMetrics, RecordingState, SessionSummary


@dataclass(frozen=True)
class MetricsSyncedEvent:
    """Published after every synchronization step.

    Published By: RecordingSessionController
    Subscribed By: observers of live speed/distance/duration/position

    Frequency: every 0.5s while a session is open, every 2s when idle,
    plus once per lifecycle call

    Attributes:
        metrics: Snapshot produced by the synchronization step
    """
    metrics: LiveMetrics


@dataclass(frozen=True)
class RecordingStateChangedEvent:
    """Published when the synchronized lifecycle state differs from the previous one.

    Attributes:
        previous: State before the change
        current: State after the change
    """
    previous: RecordingState
    current: RecordingState


@dataclass(frozen=True)
class SessionCompletedEvent:
    """Published when a session was stopped and summarized.

    Persistence runs detached and may still be in progress.

    Attributes:
        summary: Summary returned to the caller
        session_id: Identifier of the finished session
        resort_id: Resort scope of the session, if any
    """
    summary: SessionSummary
    session_id: str
    resort_id: Optional[int] = None


@dataclass(frozen=True)
class AppForegroundedEvent:
    """Published by the host application when it returns to the foreground."""
    timestamp: float = field(default_factory=time.time)


__all__ = [
    "AppForegroundedEvent",
    "MetricsSyncedEvent",
    "RecordingStateChangedEvent",
    "SessionCompletedEvent",
]
