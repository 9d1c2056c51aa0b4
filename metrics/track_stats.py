"""Distance, speed and elevation helpers for GPS tracks."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from contracts import Coordinate

EARTH_RADIUS_M = 6371000.0
MPS_TO_KMH = 3.6


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Return great-circle distance in meters between two WGS84 points.

    Uses the standard haversine formula; sufficient for per-fix distances
    over a typical ski track.
    """
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def segment_speed_kmh(distance_m: float, elapsed_s: float) -> float:
    if elapsed_s <= 0:
        return 0.0
    return distance_m / elapsed_s * MPS_TO_KMH


def average_speed_kmh(distance_km: float, duration_sec: float) -> float:
    """Average speed over the session, 0 for an empty session."""
    if duration_sec <= 0:
        return 0.0
    return distance_km / (duration_sec / 3600.0)


def elevation_drop_m(altitudes: Iterable[Optional[float]]) -> Optional[float]:
    """Sum of descending altitude deltas.

    Gaps (None) split the series; returns None when no altitude was recorded.
    """
    values = list(altitudes)
    if not any(a is not None for a in values):
        return None

    drop = 0.0
    previous: Optional[float] = None
    for altitude in values:
        if altitude is None:
            previous = None
            continue
        if previous is not None and altitude < previous:
            drop += previous - altitude
        previous = altitude
    return drop


__all__ = [
    "average_speed_kmh",
    "elevation_drop_m",
    "haversine_m",
    "segment_speed_kmh",
]
