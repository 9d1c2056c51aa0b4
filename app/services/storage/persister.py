"""Fire-and-forget persistence of finished sessions."""

from __future__ import annotations

import threading
import time
from typing import List, Optional

from app.events import ErrorCategory, ErrorEventBus, ErrorSeverity
from app.services.storage.interface import LocalStore
from contracts import SkiSession
from exceptions import DiskSpaceError
from log_config.logger import get_logger, log_performance

logger = get_logger(__name__)


class SessionPersister:
    """Saves sessions on detached worker threads.

    Each persist_async() call starts one worker that saves the session and
    then trims history to max_sessions. Failures are logged and reported to
    the error bus; they never reach the caller, which has already shown the
    session summary. Workers are not daemon threads, so a pending save
    finishes even if the controller that scheduled it has been closed.
    """

    def __init__(
        self,
        store: LocalStore,
        max_sessions: int = 100,
        error_bus: Optional[ErrorEventBus] = None,
    ):
        """Initialize persister.

        Args:
            store: Destination store
            max_sessions: History size kept after each save
            error_bus: Where persistence failures are reported (optional)
        """
        self._store = store
        self._max_sessions = max_sessions
        self._error_bus = error_bus
        self._lock = threading.Lock()
        self._workers: List[threading.Thread] = []
        self._completed = 0
        self._failed = 0

    @property
    def store(self) -> LocalStore:
        return self._store

    def persist_async(self, session: SkiSession) -> threading.Thread:
        """Schedule save + prune for a session and return immediately.

        Returns:
            The worker thread (already started)
        """
        worker = threading.Thread(
            target=self._persist,
            args=(session,),
            name=f"SessionPersist-{session.id[:8]}",
            daemon=False,
        )
        with self._lock:
            self._workers = [w for w in self._workers if w.is_alive()]
            self._workers.append(worker)
        worker.start()
        logger.debug(f"Scheduled persistence for session {session.id}")
        return worker

    def _persist(self, session: SkiSession) -> None:
        start = time.perf_counter()
        try:
            self._store.save_session(session)
            self._store.prune_to_limit(self._max_sessions)
        except Exception as e:
            with self._lock:
                self._failed += 1
            logger.opt(exception=e).error(f"Async save of session {session.id} failed: {e}")
            if self._error_bus is not None:
                self._error_bus.report(
                    category=ErrorCategory.DISK_SPACE if isinstance(e, DiskSpaceError) else ErrorCategory.STORAGE,
                    severity=ErrorSeverity.ERROR,
                    message=f"Session {session.id} was not saved: {e}",
                    source="SessionPersister",
                    exception=e,
                    session_id=session.id,
                )
            return

        with self._lock:
            self._completed += 1
        log_performance(f"persist session {session.id}", (time.perf_counter() - start) * 1000.0)

    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for w in self._workers if w.is_alive())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until scheduled workers finish.

        Args:
            timeout: Overall time budget in seconds, or None to wait indefinitely

        Returns:
            True if no worker is still running
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            workers = list(self._workers)

        for worker in workers:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            worker.join(timeout=remaining)

        return self.pending_count() == 0

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "completed": self._completed,
                "failed": self._failed,
                "pending": sum(1 for w in self._workers if w.is_alive()),
            }
