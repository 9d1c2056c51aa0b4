"""Recording lifecycle and live metrics."""

from app.recording.controller import RecordingSessionController

__all__ = ["RecordingSessionController"]
