"""Location source abstraction and replay into a recorder."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable, Iterator, Optional

from contracts import LocationFix
from log_config.logger import get_logger

logger = get_logger(__name__)


class LocationSource(ABC):
    @abstractmethod
    def fixes(self) -> Iterator[LocationFix]:
        """Yield location fixes in chronological order."""


class ReplayClock:
    """Clock that follows the timestamps of replayed fixes.

    Pass it as both clocks of a GpsSessionRecorder so that duration and
    session timestamps reflect the track rather than the replay speed.
    """

    def __init__(self, start: float = 0.0):
        self._now = start

    def __call__(self) -> float:
        return self._now

    def advance_to(self, timestamp: float) -> None:
        # Never run backwards on out-of-order fixes
        if timestamp > self._now:
            self._now = timestamp

    def feeding(self, ingest: Callable[[LocationFix], bool]) -> Callable[[LocationFix], bool]:
        """Wrap an ingest function so the clock advances before each fix."""

        def _ingest(fix: LocationFix) -> bool:
            self.advance_to(fix.timestamp)
            return ingest(fix)

        return _ingest


def replay(
    source: LocationSource,
    ingest: Callable[[LocationFix], bool],
    pace: float = 0.0,
    on_fix: Optional[Callable[[LocationFix, bool], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Feed every fix of a source into a recorder.

    Args:
        source: Where fixes come from
        ingest: Usually GpsSessionRecorder.ingest
        pace: Real-time factor; 1.0 replays at recorded speed, 0 as fast as possible
        on_fix: Called with each fix and whether it was accepted
        sleep: Sleep function (injectable for tests)

    Returns:
        Number of accepted fixes
    """
    accepted = 0
    previous: Optional[LocationFix] = None
    for fix in source.fixes():
        if pace > 0 and previous is not None:
            gap = fix.timestamp - previous.timestamp
            if gap > 0:
                sleep(gap / pace)
        ok = ingest(fix)
        if ok:
            accepted += 1
        if on_fix is not None:
            on_fix(fix, ok)
        previous = fix

    logger.debug(f"Replay finished: {accepted} fixes accepted")
    return accepted
