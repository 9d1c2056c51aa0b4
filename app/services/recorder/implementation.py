"""GPS-backed SessionRecorder implementation.

Consumes location fixes (from the device, a GPX replay or a simulator) and
maintains distance, speed, duration and route for the session in progress.
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Callable, List, Optional

from app.services.recorder.interface import SessionRecorder
from configs.settings import RecorderConfig
from contracts import Coordinate, LiveMetrics, LocationFix, RecordingState, SkiSession
from exceptions import RecorderError
from log_config.logger import get_logger
from metrics.track_stats import (
    MPS_TO_KMH,
    average_speed_kmh,
    elevation_drop_m,
    haversine_m,
    segment_speed_kmh,
)

logger = get_logger(__name__)


class GpsSessionRecorder(SessionRecorder):
    """Session recorder fed with LocationFix objects.

    Filtering:
    - Fixes with horizontal accuracy worse than max_accuracy_m are rejected
    - Fixes at the same quantized coordinate as the previous one are not
      added to the route
    - Segments implying a speed above max_speed_kmh are GPS jumps and rejected

    After stop() the recorder is idle but keeps reporting the finished
    session's distance and duration until the next start().

    Thread Safety:
        ingest() may be called from a location thread while the controller
        reads; all state is guarded by one lock.
    """

    def __init__(
        self,
        config: Optional[RecorderConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        """Initialize recorder.

        Args:
            config: Filtering thresholds
            clock: Monotonic clock used for duration and fix staleness
            wall_clock: Epoch clock used for session timestamps
            id_factory: Produces session identifiers
        """
        self._config = config or RecorderConfig()
        self._clock = clock
        self._wall_clock = wall_clock
        self._id_factory = id_factory
        self._lock = threading.Lock()

        self._state = RecordingState.IDLE
        self._reset_session(resort_id=None)

    def _reset_session(self, resort_id: Optional[int]) -> None:
        self._resort_id = resort_id
        self._started_at = 0.0
        self._distance_m = 0.0
        self._speed_kmh = 0.0
        self._top_speed_kmh = 0.0
        self._accumulated_s = 0.0
        self._active_since: Optional[float] = None
        self._last_fix_clock: Optional[float] = None
        self._anchor: Optional[LocationFix] = None  # last fix that counted toward distance
        self._last_coordinate: Optional[Coordinate] = None
        self._route: List[Coordinate] = []
        self._altitudes: List[Optional[float]] = []

    # Lifecycle

    def start(self, resort_id: Optional[int] = None) -> None:
        with self._lock:
            if self._state.is_active:
                logger.debug(f"start() ignored, recorder already {self._state.value}")
                return
            self._reset_session(resort_id)
            self._started_at = self._wall_clock()
            self._active_since = self._clock()
            self._state = RecordingState.RECORDING
        logger.info(f"Recording started (resort={resort_id})")

    def pause(self) -> None:
        with self._lock:
            if self._state != RecordingState.RECORDING:
                return
            self._accumulated_s += self._clock() - self._active_since
            self._active_since = None
            self._anchor = None
            self._speed_kmh = 0.0
            self._altitudes.append(None)  # no elevation accrues across the pause
            self._state = RecordingState.PAUSED
        logger.info("Recording paused")

    def resume(self) -> None:
        with self._lock:
            if self._state != RecordingState.PAUSED:
                return
            self._active_since = self._clock()
            self._state = RecordingState.RECORDING
        logger.info("Recording resumed")

    def stop(self) -> SkiSession:
        with self._lock:
            if not self._state.is_active:
                raise RecorderError(f"Cannot stop: recorder is {self._state.value}")

            self._state = RecordingState.STOPPED
            if self._active_since is not None:
                self._accumulated_s += self._clock() - self._active_since
                self._active_since = None
            duration = self._duration_locked()

            distance_km = self._distance_m / 1000.0
            session = SkiSession(
                id=self._id_factory(),
                resort_id=self._resort_id,
                started_at=self._started_at,
                ended_at=self._wall_clock(),
                distance_km=distance_km,
                avg_speed_kmh=average_speed_kmh(distance_km, duration),
                top_speed_kmh=self._top_speed_kmh,
                duration_sec=duration,
                elevation_drop_m=elevation_drop_m(self._altitudes),
                route=list(self._route),
            )

            self._speed_kmh = 0.0
            self._anchor = None
            self._state = RecordingState.IDLE

        logger.info(
            f"Recording stopped: {session.distance_km:.2f}km in {session.duration_sec}s, "
            f"top {session.top_speed_kmh:.1f}km/h"
        )
        return session

    # Location input

    def ingest(self, fix: LocationFix) -> bool:
        """Feed one location fix.

        Returns:
            True if the fix extended the route
        """
        accuracy = fix.horizontal_accuracy_m
        if accuracy is not None and (accuracy < 0 or accuracy > self._config.max_accuracy_m):
            logger.debug(f"Rejected fix with accuracy {accuracy}m")
            return False

        reported_kmh = None
        if fix.speed_mps is not None and fix.speed_mps >= 0:
            reported_kmh = fix.speed_mps * MPS_TO_KMH

        with self._lock:
            if not self._state.is_active:
                return False

            now = self._clock()
            previous = self._last_coordinate
            if previous is not None and previous.key() == fix.coordinate.key():
                self._last_fix_clock = now
                self._speed_kmh = reported_kmh or 0.0
                return False

            if self._state == RecordingState.PAUSED:
                self._last_coordinate = fix.coordinate
                self._last_fix_clock = now
                return False

            segment_kmh = 0.0
            segment_m = 0.0
            if self._anchor is not None:
                elapsed = fix.timestamp - self._anchor.timestamp
                if elapsed <= 0:
                    logger.debug("Rejected out-of-order fix")
                    return False
                segment_m = haversine_m(self._anchor.coordinate, fix.coordinate)
                segment_kmh = segment_speed_kmh(segment_m, elapsed)
                if segment_kmh > self._config.max_speed_kmh:
                    logger.debug(f"Rejected GPS jump ({segment_kmh:.0f}km/h)")
                    return False

            speed = reported_kmh if reported_kmh is not None else segment_kmh
            if speed > self._config.max_speed_kmh:
                speed = segment_kmh

            self._distance_m += segment_m
            self._speed_kmh = speed
            self._top_speed_kmh = max(self._top_speed_kmh, speed)
            self._route.append(fix.coordinate)
            self._altitudes.append(fix.altitude_m)
            self._anchor = fix
            self._last_coordinate = fix.coordinate
            self._last_fix_clock = now
            return True

    # Live values

    def _duration_locked(self) -> int:
        running = 0.0
        if self._active_since is not None:
            running = self._clock() - self._active_since
        return int(self._accumulated_s + running)

    def _speed_locked(self) -> float:
        if self._state != RecordingState.RECORDING or self._last_fix_clock is None:
            return 0.0
        if self._clock() - self._last_fix_clock > self._config.stale_fix_sec:
            return 0.0
        return self._speed_kmh

    @property
    def current_speed_kmh(self) -> float:
        with self._lock:
            return self._speed_locked()

    @property
    def distance_km(self) -> float:
        with self._lock:
            return self._distance_m / 1000.0

    @property
    def duration_sec(self) -> int:
        with self._lock:
            return self._duration_locked()

    @property
    def state(self) -> RecordingState:
        with self._lock:
            return self._state

    @property
    def last_coordinate(self) -> Optional[Coordinate]:
        with self._lock:
            return self._last_coordinate

    @property
    def resort_id(self) -> Optional[int]:
        with self._lock:
            return self._resort_id

    def snapshot(self) -> LiveMetrics:
        with self._lock:
            return LiveMetrics(
                speed_kmh=self._speed_locked(),
                distance_km=self._distance_m / 1000.0,
                duration_sec=self._duration_locked(),
                state=self._state,
                current_coordinate=self._last_coordinate,
            )
