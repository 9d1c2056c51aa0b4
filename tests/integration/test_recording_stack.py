"""End-to-end tests of the wired recording stack against real files."""

from __future__ import annotations

import threading

import pytest

from app.context import build_recording_stack
from app.events import AppForegroundedEvent, ErrorCategory, MetricsSyncedEvent, SessionCompletedEvent
from app.lifecycle import CleanupOutcome
from app.services.recorder import GpsSessionRecorder
from contracts import Coordinate, LocationFix, RecordingState
from fakes import FakeClock, MemoryStore, wait_until


def drive_run(recorder, clock, steps: int = 5) -> None:
    for i in range(steps):
        if i:
            clock.advance(1.0)
        recorder.ingest(
            LocationFix(
                coordinate=Coordinate(43.0 - i * 0.0001, 141.0),
                timestamp=clock(),
                altitude_m=1200.0 - i * 3.0,
                horizontal_accuracy_m=5.0,
            )
        )


@pytest.fixture
def clock():
    return FakeClock(start=1_700_000_000.0)


@pytest.fixture
def stack(app_context, clock):
    recorder = GpsSessionRecorder(app_context.config.recorder, clock=clock, wall_clock=clock)
    stack = build_recording_stack(app_context, recorder=recorder)
    yield stack
    stack.shutdown()


def test_record_and_persist_session(stack, clock):
    completed = []
    stack.context.event_bus.subscribe(SessionCompletedEvent, completed.append)
    controller = stack.controller

    controller.start(resort_id=8)
    drive_run(stack.recorder, clock)
    stack.context.event_bus.publish(AppForegroundedEvent())

    live = controller.snapshot
    assert live.state == RecordingState.RECORDING
    assert live.distance_km == pytest.approx(4 * 0.0111195, rel=1e-3)
    assert live.duration_sec == 4
    assert live.current_coordinate == Coordinate(43.0 - 4 * 0.0001, 141.0)

    summary, session = controller.stop_and_summarize()

    assert summary.distance_km == session.distance_km
    assert summary.duration_sec == 4
    assert summary.elevation_drop_m == pytest.approx(12.0)
    assert controller.state == RecordingState.IDLE
    assert controller.snapshot.duration_sec == summary.duration_sec
    assert completed[0].resort_id == 8

    assert stack.shutdown() is True
    stored = stack.store.load_sessions()
    assert [s.id for s in stored] == [session.id]
    assert stored[0].resort_id == 8
    assert len(stored[0].route) == 5


def test_poll_thread_publishes_metrics(stack, clock):
    synced = []
    stack.context.event_bus.subscribe(MetricsSyncedEvent, synced.append)

    stack.controller.start()
    drive_run(stack.recorder, clock, steps=2)

    # Active cadence is 0.5s; a poll must pick up the new distance without a kick
    assert wait_until(lambda: any(e.metrics.distance_km > 0 for e in synced), timeout=3.0)


def test_history_trimmed_to_max_sessions(stack, clock):
    controller = stack.controller
    for _ in range(7):
        controller.start()
        drive_run(stack.recorder, clock, steps=2)
        controller.stop_and_summarize()
        assert stack.persister.wait(timeout=5.0)
        clock.advance(60.0)

    assert len(stack.store) == stack.context.config.storage.max_sessions == 5
    assert stack.context.error_bus.get_history(category=ErrorCategory.STORAGE) == []


def test_shutdown_is_idempotent(stack):
    assert stack.shutdown() is True
    assert stack.shutdown() is True
    assert stack.controller.is_closed
    assert stack.context.event_bus.get_subscriber_count(AppForegroundedEvent) == 0


def test_shutdown_unclean_when_save_outlives_drain(app_context, clock):
    gate = threading.Event()
    store = MemoryStore(save_gate=gate)
    recorder = GpsSessionRecorder(app_context.config.recorder, clock=clock, wall_clock=clock)
    stack = build_recording_stack(app_context, recorder=recorder, store=store, drain_timeout=0.2)
    try:
        stack.controller.start()
        drive_run(stack.recorder, clock, steps=2)
        stack.controller.stop_and_summarize()

        assert stack.shutdown() is False
        assert stack.cleanup.report.outcomes["session-persistence"] == CleanupOutcome.FAILED
        assert stack.cleanup.report.critical_failures == ("session-persistence",)
    finally:
        gate.set()
        assert stack.persister.wait(timeout=5.0)

    assert len(store.saved) == 1
