"""SessionRecorder interface for GPS run recording.

Responsibility: Track a ski session from location fixes and report live values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from contracts import Coordinate, LiveMetrics, RecordingState, SkiSession


class SessionRecorder(ABC):
    """Abstract interface for the session recorder.

    Lifecycle:
        idle -> recording (start), recording -> paused (pause),
        paused -> recording (resume), recording|paused -> stopped (stop).
        The recorder folds back to idle once stop() has produced the session.

    Reads:
        The live values are plain reads. snapshot() returns all of them
        taken together; implementations that can be updated from another
        thread must override it to read under their own lock.
    """

    @abstractmethod
    def start(self, resort_id: Optional[int] = None) -> None:
        """Begin tracking a new session, optionally scoped to a resort.

        May block (for example while waiting for location authorization).
        """

    @abstractmethod
    def pause(self) -> None:
        """Pause tracking. Distance and duration stop accruing."""

    @abstractmethod
    def resume(self) -> None:
        """Resume a paused session."""

    @abstractmethod
    def stop(self) -> SkiSession:
        """Finish the session and return its record.

        Raises:
            RecorderError: If no session is in progress
        """

    @property
    @abstractmethod
    def current_speed_kmh(self) -> float:
        ...

    @property
    @abstractmethod
    def distance_km(self) -> float:
        ...

    @property
    @abstractmethod
    def duration_sec(self) -> int:
        ...

    @property
    @abstractmethod
    def state(self) -> RecordingState:
        ...

    @property
    @abstractmethod
    def last_coordinate(self) -> Optional[Coordinate]:
        ...

    def snapshot(self) -> LiveMetrics:
        """Read every live value in one pass."""
        return LiveMetrics(
            speed_kmh=self.current_speed_kmh,
            distance_km=self.distance_km,
            duration_sec=self.duration_sec,
            state=self.state,
            current_coordinate=self.last_coordinate,
        )
