"""Tests for GPX replay, simulated descent and the replay helpers."""

from __future__ import annotations

import pytest

from app.services.recorder import GpsSessionRecorder
from capture import GpxReplaySource, LocationSource, ReplayClock, SimulatedDescentSource, replay
from contracts import Coordinate, LocationFix, RecordingState
from exceptions import TrackImportError

GPX_TRACK = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>Morning run</name>
    <trkseg>
      <trkpt lat="43.0000" lon="141.0000"><ele>1200.0</ele><time>2024-01-20T01:00:00Z</time></trkpt>
      <trkpt lat="43.0001" lon="141.0000"><ele>1195.0</ele><time>2024-01-20T01:00:01Z</time></trkpt>
      <trkpt lat="43.0002" lon="141.0000"><ele>1188.0</ele><time>2024-01-20T01:00:02Z</time></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="43.0003" lon="141.0000"><ele>1190.0</ele><time>2024-01-20T01:00:10Z</time></trkpt>
    </trkseg>
  </trk>
</gpx>
"""

GPX_NO_TIMES = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><trkseg>
    <trkpt lat="43.0" lon="141.0"></trkpt>
    <trkpt lat="43.0001" lon="141.0"></trkpt>
  </trkseg></trk>
</gpx>
"""

GPX_EMPTY = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1"></gpx>
"""

START_EPOCH = 1705712400.0  # 2024-01-20T01:00:00Z


@pytest.fixture
def gpx_file(tmp_path):
    path = tmp_path / "run.gpx"
    path.write_text(GPX_TRACK, encoding="utf-8")
    return path


class TestGpxReplaySource:
    def test_reads_points_across_segments(self, gpx_file):
        fixes = list(GpxReplaySource(gpx_file).fixes())

        assert len(fixes) == 4
        assert fixes[0].coordinate == Coordinate(43.0, 141.0)
        assert fixes[0].timestamp == START_EPOCH
        assert fixes[3].timestamp == START_EPOCH + 10
        assert [f.altitude_m for f in fixes] == [1200.0, 1195.0, 1188.0, 1190.0]

    def test_can_iterate_twice(self, gpx_file):
        source = GpxReplaySource(gpx_file)
        assert list(source.fixes()) == list(source.fixes())

    def test_missing_times_spaced_one_second(self, tmp_path):
        path = tmp_path / "notimes.gpx"
        path.write_text(GPX_NO_TIMES, encoding="utf-8")

        fixes = list(GpxReplaySource(path).fixes())

        assert [f.timestamp for f in fixes] == [0.0, 1.0]
        assert fixes[0].altitude_m is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(TrackImportError):
            list(GpxReplaySource(tmp_path / "nope.gpx").fixes())

    def test_invalid_xml(self, tmp_path):
        path = tmp_path / "bad.gpx"
        path.write_text("<gpx><trk>", encoding="utf-8")

        with pytest.raises(TrackImportError):
            list(GpxReplaySource(path).fixes())

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "latin1.gpx"
        path.write_bytes(b'<?xml version="1.0"?><gpx><trk><name>\xff\xfe caf\xe9</name></trk></gpx>')

        with pytest.raises(TrackImportError, match="not valid UTF-8"):
            list(GpxReplaySource(path).fixes())

    def test_track_without_points(self, tmp_path):
        path = tmp_path / "empty.gpx"
        path.write_text(GPX_EMPTY, encoding="utf-8")

        with pytest.raises(TrackImportError):
            list(GpxReplaySource(path).fixes())


class TestSimulatedDescent:
    def test_profile_ramps_and_holds(self):
        source = SimulatedDescentSource(duration_s=120, cruise_speed_kmh=36.0)
        speeds = source.speed_profile_mps()

        assert len(speeds) == 121
        assert speeds[0] == 0.0
        assert speeds[-1] == 0.0
        assert speeds[60] == pytest.approx(10.0)
        assert speeds.max() == pytest.approx(10.0)

    def test_fixes_descend_at_one_hz(self):
        fixes = list(SimulatedDescentSource(start_time=500.0).fixes())

        assert len(fixes) == 121
        assert fixes[1].timestamp - fixes[0].timestamp == 1.0
        assert fixes[-1].coordinate.latitude < fixes[0].coordinate.latitude
        assert fixes[0].altitude_m - fixes[-1].altitude_m == pytest.approx(200.0)

    def test_without_altitude(self):
        fixes = list(SimulatedDescentSource(start_altitude_m=None, duration_s=10).fixes())
        assert all(f.altitude_m is None for f in fixes)


class TestReplay:
    def test_replay_counts_accepted(self):
        fixes = [LocationFix(Coordinate(43.0, 141.0), float(t)) for t in range(3)]

        class ListSource(LocationSource):
            def fixes(self):
                return iter(fixes)

        seen = []
        accepted = replay(
            ListSource(),
            lambda fix: fix.timestamp != 1.0,
            on_fix=lambda fix, ok: seen.append((fix.timestamp, ok)),
        )

        assert accepted == 2
        assert seen == [(0.0, True), (1.0, False), (2.0, True)]

    def test_pace_sleeps_between_fixes(self):
        sleeps = []
        source = SimulatedDescentSource(duration_s=3)

        replay(source, lambda fix: True, pace=2.0, sleep=sleeps.append)

        assert sleeps == [0.5, 0.5, 0.5]

    def test_no_sleep_at_full_speed(self):
        sleeps = []
        replay(SimulatedDescentSource(duration_s=3), lambda fix: True, sleep=sleeps.append)
        assert sleeps == []


class TestReplayClock:
    def test_advances_monotonically(self):
        clock = ReplayClock(100.0)
        clock.advance_to(105.0)
        clock.advance_to(103.0)
        assert clock() == 105.0

    def test_recorder_duration_follows_track(self, gpx_file):
        source = GpxReplaySource(gpx_file)
        clock = ReplayClock(START_EPOCH)
        recorder = GpsSessionRecorder(clock=clock, wall_clock=clock)

        recorder.start()
        accepted = replay(source, clock.feeding(recorder.ingest))
        session = recorder.stop()

        assert accepted == 4
        assert session.duration_sec == 10
        assert session.started_at == START_EPOCH
        assert session.ended_at == START_EPOCH + 10
        assert session.elevation_drop_m == pytest.approx(12.0)
        assert recorder.state == RecordingState.IDLE

    def test_simulated_run_end_to_end(self):
        source = SimulatedDescentSource()
        clock = ReplayClock(1_700_000_000.0)
        recorder = GpsSessionRecorder(clock=clock, wall_clock=clock)

        recorder.start()
        replay(source, clock.feeding(recorder.ingest))
        session = recorder.stop()

        assert session.duration_sec == 120
        assert session.distance_km == pytest.approx(0.8, rel=0.01)
        assert session.top_speed_kmh == pytest.approx(36.0)
        assert session.elevation_drop_m == pytest.approx(200.0)
