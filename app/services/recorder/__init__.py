"""Recorder service module - GPS session tracking.

This module provides the recorder collaborator driven by the recording
controller, and a location-fix based implementation.
"""

from .interface import SessionRecorder
from .implementation import GpsSessionRecorder

__all__ = ["SessionRecorder", "GpsSessionRecorder"]
