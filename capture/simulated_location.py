"""Simulated downhill run for demos and pipeline testing."""

from __future__ import annotations

import math
from typing import Iterator, Optional

import numpy as np

from contracts import Coordinate, LocationFix

from .location_source import LocationSource

METERS_PER_DEG_LAT = 111_320.0


class SimulatedDescentSource(LocationSource):
    """Deterministic straight-line descent at 1 Hz.

    Speed ramps up linearly over the first third of the run, holds, then
    ramps down; altitude drops in proportion to distance along the slope.
    """

    def __init__(
        self,
        start: Coordinate = Coordinate(43.0637, 141.3545),
        start_time: float = 1_700_000_000.0,
        duration_s: int = 120,
        cruise_speed_kmh: float = 36.0,
        heading_deg: float = 180.0,
        start_altitude_m: Optional[float] = 1200.0,
        gradient: float = 0.25,
    ):
        self._start = start
        self._start_time = start_time
        self._duration_s = duration_s
        self._cruise_mps = cruise_speed_kmh / 3.6
        self._heading = math.radians(heading_deg)
        self._start_altitude = start_altitude_m
        self._gradient = gradient

    def speed_profile_mps(self) -> np.ndarray:
        t = np.arange(self._duration_s + 1, dtype=float)
        ramp = max(self._duration_s / 3.0, 1.0)
        up = np.clip(t / ramp, 0.0, 1.0)
        down = np.clip((self._duration_s - t) / ramp, 0.0, 1.0)
        return self._cruise_mps * np.minimum(up, down)

    def fixes(self) -> Iterator[LocationFix]:
        speeds = self.speed_profile_mps()
        along = np.concatenate(([0.0], np.cumsum((speeds[1:] + speeds[:-1]) / 2.0)))
        north = along * math.cos(self._heading)
        east = along * math.sin(self._heading)
        lat0 = self._start.latitude
        lats = lat0 + north / METERS_PER_DEG_LAT
        lons = self._start.longitude + east / (METERS_PER_DEG_LAT * math.cos(math.radians(lat0)))

        for i in range(len(speeds)):
            altitude = None
            if self._start_altitude is not None:
                altitude = float(self._start_altitude - along[i] * self._gradient)
            yield LocationFix(
                coordinate=Coordinate(float(lats[i]), float(lons[i])),
                timestamp=self._start_time + i,
                altitude_m=altitude,
                speed_mps=float(speeds[i]),
                horizontal_accuracy_m=5.0,
            )
