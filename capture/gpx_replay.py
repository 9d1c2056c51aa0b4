"""GPX file location source."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional, Union

import gpxpy
import gpxpy.gpx

from contracts import Coordinate, LocationFix
from exceptions import TrackImportError
from log_config.logger import get_logger

from .location_source import LocationSource

logger = get_logger(__name__)


class GpxReplaySource(LocationSource):
    """Reads track points from a GPX file.

    Points without a timestamp are spaced one second after the previous
    point. Reported speed is passed through when the file has it; otherwise
    the recorder derives speed from consecutive points.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._fixes: Optional[List[LocationFix]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> List[LocationFix]:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                gpx = gpxpy.parse(f)
        except OSError as e:
            raise TrackImportError(f"Cannot open GPX file {self._path}: {e}") from e
        except UnicodeDecodeError as e:
            raise TrackImportError(f"GPX file {self._path} is not valid UTF-8: {e}") from e
        except gpxpy.gpx.GPXException as e:
            raise TrackImportError(f"Invalid GPX file {self._path}: {e}") from e

        fixes: List[LocationFix] = []
        last_ts: Optional[float] = None
        for track in gpx.tracks:
            for segment in track.segments:
                for p in segment.points:
                    if p.time is not None:
                        ts = p.time.timestamp()
                    else:
                        ts = 0.0 if last_ts is None else last_ts + 1.0
                    fixes.append(
                        LocationFix(
                            coordinate=Coordinate(p.latitude, p.longitude),
                            timestamp=ts,
                            altitude_m=p.elevation,
                            speed_mps=getattr(p, "speed", None),
                        )
                    )
                    last_ts = ts

        if not fixes:
            raise TrackImportError(f"GPX file {self._path} has no track points")

        logger.info(f"Loaded {len(fixes)} track points from {self._path.name}")
        return fixes

    def fixes(self) -> Iterator[LocationFix]:
        if self._fixes is None:
            self._fixes = self._load()
        return iter(self._fixes)
