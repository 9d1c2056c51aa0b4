"""Shared data contracts for ski run recording."""

from .types import (
    Coordinate,
    LiveMetrics,
    LocationFix,
    RecordingState,
    SessionSummary,
    SkiSession,
)

__all__ = [
    "Coordinate",
    "LiveMetrics",
    "LocationFix",
    "RecordingState",
    "SessionSummary",
    "SkiSession",
]
