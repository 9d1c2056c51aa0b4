"""Core data contracts for location fixes, live metrics and ski sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

COORDINATE_KEY_SCALE = 1_000_000


class RecordingState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"

    @property
    def is_active(self) -> bool:
        """True while a session is open (recording or paused)."""
        return self in (RecordingState.RECORDING, RecordingState.PAUSED)


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def key(self) -> tuple[int, int]:
        """Quantize to 1e-6 degrees (~0.1 m) for duplicate detection."""
        return (
            int(self.latitude * COORDINATE_KEY_SCALE),
            int(self.longitude * COORDINATE_KEY_SCALE),
        )

    def to_list(self) -> List[float]:
        return [self.latitude, self.longitude]


@dataclass(frozen=True)
class LocationFix:
    coordinate: Coordinate
    timestamp: float  # epoch seconds
    altitude_m: Optional[float] = None
    speed_mps: Optional[float] = None  # reported by the receiver, may be absent
    horizontal_accuracy_m: Optional[float] = None


@dataclass(frozen=True)
class LiveMetrics:
    """Snapshot of the recorder taken in a single synchronization pass."""

    speed_kmh: float = 0.0
    distance_km: float = 0.0
    duration_sec: int = 0
    state: RecordingState = RecordingState.IDLE
    current_coordinate: Optional[Coordinate] = None


@dataclass(frozen=True)
class SessionSummary:
    distance_km: float
    avg_speed_kmh: float
    top_speed_kmh: float
    duration_sec: int
    elevation_drop_m: Optional[float] = None


@dataclass(frozen=True)
class SkiSession:
    id: str
    started_at: float
    ended_at: float
    distance_km: float
    avg_speed_kmh: float
    top_speed_kmh: float
    duration_sec: int
    resort_id: Optional[int] = None
    elevation_drop_m: Optional[float] = None
    route: List[Coordinate] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "resort_id": self.resort_id,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "distance_km": self.distance_km,
            "avg_speed_kmh": self.avg_speed_kmh,
            "top_speed_kmh": self.top_speed_kmh,
            "duration_sec": self.duration_sec,
            "elevation_drop_m": self.elevation_drop_m,
            "route": [c.to_list() for c in self.route],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SkiSession":
        return cls(
            id=str(data["id"]),
            resort_id=data.get("resort_id"),
            started_at=float(data["started_at"]),
            ended_at=float(data["ended_at"]),
            distance_km=float(data["distance_km"]),
            avg_speed_kmh=float(data["avg_speed_kmh"]),
            top_speed_kmh=float(data["top_speed_kmh"]),
            duration_sec=int(data["duration_sec"]),
            elevation_drop_m=data.get("elevation_drop_m"),
            route=[Coordinate(lat, lon) for lat, lon in data.get("route", [])],
        )
