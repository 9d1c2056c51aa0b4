"""Recording session controller.

Bridges a SessionRecorder to an observable LiveMetrics snapshot and
sequences start/pause/resume/stop. A single background thread pulls the
recorder on an adaptive cadence; lifecycle calls and foreground
notifications pull immediately.
"""

from __future__ import annotations

import dataclasses
import threading
from typing import Optional, Tuple

from app.events import (
    AppForegroundedEvent,
    ErrorCategory,
    ErrorEventBus,
    ErrorSeverity,
    EventBus,
    MetricsSyncedEvent,
    RecordingStateChangedEvent,
    SessionCompletedEvent,
)
from app.services.recorder import SessionRecorder
from app.services.storage import SessionPersister
from configs.settings import PollingConfig
from contracts import LiveMetrics, RecordingState, SessionSummary, SkiSession
from log_config.logger import get_logger

logger = get_logger(__name__)


class RecordingSessionController:
    """Owns the live recording snapshot and the session lifecycle.

    State machine (controller view):
        idle --start--> recording --pause--> paused --resume--> recording
        recording|paused --stop_and_summarize--> idle
    Calls in any other state are no-ops. Each call first syncs, so the
    guard sees the recorder's current state rather than the last tick.

    Snapshot discipline:
        The snapshot is an immutable LiveMetrics replaced wholesale under
        the controller lock, so a reader always sees values produced by one
        synchronization step. Events are published while the lock is held,
        in the order the snapshots were produced; handlers should be fast.

    Polling:
        One thread for the controller's lifetime, started in __init__ and
        stopped by close(). It sleeps active_interval while a session is
        open and idle_interval otherwise, and is woken early by lifecycle
        calls so the new cadence applies at once.
    """

    def __init__(
        self,
        recorder: SessionRecorder,
        persister: SessionPersister,
        event_bus: Optional[EventBus] = None,
        error_bus: Optional[ErrorEventBus] = None,
        polling: Optional[PollingConfig] = None,
        start_polling: bool = True,
    ):
        """Initialize controller.

        Args:
            recorder: Recorder collaborator
            persister: Detached persistence for finished sessions
            event_bus: Bus to publish snapshots on and receive foreground events from
            error_bus: Where failed background syncs are reported
            polling: Poll cadence
            start_polling: Start the background poll thread (tests drive
                run_poll_cycle() directly when False)
        """
        self._recorder = recorder
        self._persister = persister
        self._event_bus = event_bus
        self._error_bus = error_bus
        self._polling = polling or PollingConfig()

        self._lock = threading.RLock()
        self._snapshot = LiveMetrics()
        self._sync_count = 0

        self._wake = threading.Event()
        self._closed = False
        self._stop_polling = threading.Event()
        self._poll_thread: Optional[threading.Thread] = None

        if self._event_bus is not None:
            self._event_bus.subscribe(AppForegroundedEvent, self._handle_foreground)

        if start_polling:
            self._poll_thread = threading.Thread(
                target=self._poll_loop,
                name="RecordingPoll",
                daemon=True,
            )
            self._poll_thread.start()

        logger.debug("RecordingSessionController initialized")

    # Observable state

    @property
    def snapshot(self) -> LiveMetrics:
        return self._snapshot

    @property
    def state(self) -> RecordingState:
        return self._snapshot.state

    @property
    def sync_count(self) -> int:
        """Number of synchronization steps performed so far."""
        return self._sync_count

    @property
    def is_closed(self) -> bool:
        return self._closed

    def poll_interval(self) -> float:
        """Seconds until the next scheduled sync, based on the current state."""
        if self._snapshot.state.is_active:
            return self._polling.active_interval_s
        return self._polling.idle_interval_s

    # Synchronization

    def sync(self) -> LiveMetrics:
        """Copy all live values from the recorder in one pass.

        Returns:
            The new snapshot
        """
        with self._lock:
            fresh = self._recorder.snapshot()
            previous = self._snapshot
            self._snapshot = fresh
            self._sync_count += 1

            if self._event_bus is not None:
                if previous.state != fresh.state:
                    self._event_bus.publish(RecordingStateChangedEvent(previous=previous.state, current=fresh.state))
                self._event_bus.publish(MetricsSyncedEvent(metrics=fresh))
            return fresh

    def run_poll_cycle(self) -> float:
        """One iteration of the poll loop: sync, then report how long to sleep."""
        self.sync()
        return self.poll_interval()

    def _poll_loop(self) -> None:
        while not self._stop_polling.is_set():
            self._wake.clear()
            try:
                interval = self.run_poll_cycle()
            except Exception as e:
                # Keep polling; the recorder may recover on the next tick
                logger.opt(exception=e).error(f"Recorder sync failed: {e}")
                if self._error_bus is not None:
                    self._error_bus.report(
                        category=ErrorCategory.RECORDER,
                        severity=ErrorSeverity.WARNING,
                        message=f"Background sync failed: {e}",
                        source="RecordingSessionController",
                        exception=e,
                    )
                interval = self._polling.idle_interval_s
            self._wake.wait(interval)
        logger.debug("Poll loop exited")

    def _set_state_optimistically(self, state: RecordingState) -> None:
        """Show the requested state before the recorder confirms it.

        The metrics carried over all come from the last synchronization
        step; the re-sync that follows replaces the whole snapshot.
        """
        previous = self._snapshot
        self._snapshot = dataclasses.replace(previous, state=state)
        if self._event_bus is not None and previous.state != state:
            self._event_bus.publish(RecordingStateChangedEvent(previous=previous.state, current=state))

    def _kick(self) -> None:
        """Sync now and restart the poll timer from the fresh state."""
        self.sync()
        self._wake.set()

    def on_foreground(self) -> None:
        """Refresh immediately when the app returns to the foreground."""
        if self._closed:
            return
        logger.debug("App foregrounded, syncing recorder")
        self._kick()

    def _handle_foreground(self, event: AppForegroundedEvent) -> None:
        self.on_foreground()

    # Lifecycle

    def start(self, resort_id: Optional[int] = None) -> None:
        """Begin a new session. Ignored while a session is already open."""
        with self._lock:
            self.sync()
            if self._snapshot.state.is_active:
                logger.debug(f"start() ignored while {self._snapshot.state.value}")
                return
            self._recorder.start(resort_id=resort_id)
            self._kick()
        logger.info(f"Session started (resort={resort_id})")

    def pause(self) -> None:
        """Pause the open session. Only valid while recording."""
        with self._lock:
            self.sync()
            if self._snapshot.state != RecordingState.RECORDING:
                logger.debug(f"pause() ignored while {self._snapshot.state.value}")
                return
            self._recorder.pause()
            self._set_state_optimistically(RecordingState.PAUSED)
            self._kick()

    def resume(self) -> None:
        """Resume a paused session. Only valid while paused."""
        with self._lock:
            self.sync()
            if self._snapshot.state != RecordingState.PAUSED:
                logger.debug(f"resume() ignored while {self._snapshot.state.value}")
                return
            self._recorder.resume()
            self._set_state_optimistically(RecordingState.RECORDING)
            self._kick()

    def stop_and_summarize(self) -> Optional[Tuple[SessionSummary, SkiSession]]:
        """Stop the open session, schedule its persistence and summarize it.

        Persistence runs detached; this returns without waiting for it.

        Returns:
            (summary, session), or None if no session was open

        Raises:
            Whatever the recorder raises from stop()
        """
        with self._lock:
            self.sync()
            if not self._snapshot.state.is_active:
                logger.debug(f"stop_and_summarize() ignored while {self._snapshot.state.value}")
                return None

            session = self._recorder.stop()
            self._kick()

            summary = SessionSummary(
                distance_km=session.distance_km,
                avg_speed_kmh=session.avg_speed_kmh,
                top_speed_kmh=session.top_speed_kmh,
                elevation_drop_m=session.elevation_drop_m,
                duration_sec=session.duration_sec,
            )

            self._persister.persist_async(session)

            if self._event_bus is not None:
                self._event_bus.publish(
                    SessionCompletedEvent(summary=summary, session_id=session.id, resort_id=session.resort_id)
                )

        logger.info(
            f"Session {session.id} finished: {summary.distance_km:.2f}km, "
            f"{summary.duration_sec}s, avg {summary.avg_speed_kmh:.1f}km/h"
        )
        return summary, session

    # Teardown

    def close(self, timeout: float = 2.0) -> None:
        """Stop the poll loop. Safe to call more than once; only the first call acts."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if self._event_bus is not None:
            self._event_bus.unsubscribe(AppForegroundedEvent, self._handle_foreground)

        self._stop_polling.set()
        self._wake.set()
        if self._poll_thread is not None and self._poll_thread.is_alive():
            self._poll_thread.join(timeout=timeout)
        logger.debug("RecordingSessionController closed")

    def __enter__(self) -> "RecordingSessionController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
