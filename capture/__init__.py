"""Location capture module."""

from .gpx_replay import GpxReplaySource
from .location_source import LocationSource, ReplayClock, replay
from .simulated_location import SimulatedDescentSource

__all__ = ["GpxReplaySource", "LocationSource", "ReplayClock", "SimulatedDescentSource", "replay"]
