"""Service layer for the GoSnow recorder.

├── recorder/    - GPS session tracking (the controller's recorder collaborator)
└── storage/     - Local session history and detached persistence

Each service module contains:
- interface.py: Abstract base class defining the contract
- implementation.py: Concrete implementation
"""

from .recorder import GpsSessionRecorder, SessionRecorder
from .storage import JsonLocalStore, LocalStore, SessionPersister

__all__ = [
    # Recorder service
    "SessionRecorder",
    "GpsSessionRecorder",
    # Storage service
    "LocalStore",
    "JsonLocalStore",
    "SessionPersister",
]
