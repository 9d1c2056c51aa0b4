"""LocalStore interface for persisted ski sessions.

Responsibility: Keep a bounded history of finished sessions on the device.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from contracts import SkiSession


class LocalStore(ABC):
    """Abstract interface for local session storage.

    Thread-Safety:
        Implementations must tolerate calls from background persistence
        threads concurrently with reads from the caller's thread.
    """

    @abstractmethod
    def save_session(self, session: SkiSession) -> None:
        """Persist a finished session, replacing any record with the same id.

        Raises:
            DiskSpaceError: If there is not enough free space
            SessionWriteError: If the record cannot be written
        """

    @abstractmethod
    def load_sessions(self) -> List[SkiSession]:
        """Return stored sessions, newest first."""

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        """Remove one stored session.

        Raises:
            SessionNotFoundError: If no such session is stored
        """

    @abstractmethod
    def prune_to_limit(self, max_count: int) -> int:
        """Trim history to the newest max_count sessions.

        Returns:
            Number of sessions removed
        """
