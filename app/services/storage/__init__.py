"""Storage service module - local session history.

This module provides the local store collaborator, its JSON file
implementation, and the detached persistence hand-off.
"""

from .interface import LocalStore
from .implementation import JsonLocalStore
from .persister import SessionPersister

__all__ = ["LocalStore", "JsonLocalStore", "SessionPersister"]
