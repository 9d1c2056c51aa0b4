"""JSON file implementation of LocalStore.

Each session is one enveloped JSON document named after the session id.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import List, Union

from app.services.storage.interface import LocalStore
from contracts import SkiSession
from contracts.versioning import make_envelope, open_envelope
from exceptions import DiskSpaceError, SessionNotFoundError, SessionWriteError
from log_config.logger import get_logger

logger = get_logger(__name__)

SESSION_SUFFIX = ".json"


class JsonLocalStore(LocalStore):
    """Stores sessions as JSON files in a directory.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a reader never sees a half-written session.
    """

    def __init__(self, root: Union[str, Path], min_free_mb: float = 10.0):
        """Initialize store.

        Args:
            root: Directory holding session files (created if missing)
            min_free_mb: Refuse to write when less free space remains
        """
        self._root = Path(root)
        self._min_free_mb = min_free_mb
        self._lock = threading.Lock()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, session_id: str) -> Path:
        return self._root / f"{session_id}{SESSION_SUFFIX}"

    def _check_disk_space(self) -> None:
        usage = shutil.disk_usage(self._root)
        free_mb = usage.free / (1024**2)
        if free_mb < self._min_free_mb:
            logger.warning(f"Low disk space: {free_mb:.1f}MB free on {self._root}")
            raise DiskSpaceError(
                f"Only {free_mb:.1f}MB free, need {self._min_free_mb:.1f}MB to save sessions"
            )

    def save_session(self, session: SkiSession) -> None:
        document = json.dumps(make_envelope(session.to_dict()), indent=2)
        target = self._path_for(session.id)

        with self._lock:
            self._check_disk_space()
            tmp_name = None
            try:
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=self._root,
                    prefix=f".{session.id}.",
                    suffix=".tmp",
                    delete=False,
                ) as tmp:
                    tmp_name = tmp.name
                    tmp.write(document)
                    tmp.flush()
                    os.fsync(tmp.fileno())
                os.replace(tmp_name, target)
            except OSError as e:
                if tmp_name is not None and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise SessionWriteError(f"Failed to write session {session.id}: {e}", session_id=session.id) from e

        logger.debug(f"Saved session {session.id} to {target}")

    def _read(self, path: Path) -> SkiSession:
        data = json.loads(path.read_text(encoding="utf-8"))
        return SkiSession.from_dict(open_envelope(data))

    def load_sessions(self) -> List[SkiSession]:
        sessions = []
        with self._lock:
            paths = sorted(self._root.glob(f"*{SESSION_SUFFIX}"))
            for path in paths:
                try:
                    sessions.append(self._read(path))
                except (OSError, ValueError, KeyError, TypeError) as e:
                    logger.warning(f"Skipping unreadable session file {path.name}: {e}")

        sessions.sort(key=lambda s: s.ended_at, reverse=True)
        return sessions

    def load_session(self, session_id: str) -> SkiSession:
        path = self._path_for(session_id)
        with self._lock:
            if not path.exists():
                raise SessionNotFoundError(f"Session not found: {session_id}", session_id=session_id)
            return self._read(path)

    def delete_session(self, session_id: str) -> None:
        path = self._path_for(session_id)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                raise SessionNotFoundError(f"Session not found: {session_id}", session_id=session_id)
        logger.debug(f"Deleted session {session_id}")

    def prune_to_limit(self, max_count: int) -> int:
        if max_count < 0:
            raise ValueError("max_count must be >= 0")

        sessions = self.load_sessions()
        stale = sessions[max_count:]
        removed = 0
        for session in stale:
            try:
                self.delete_session(session.id)
                removed += 1
            except SessionNotFoundError:
                # Already removed by a concurrent prune
                continue

        if removed:
            logger.info(f"Pruned {removed} old session(s), keeping {max_count}")
        return removed

    def __len__(self) -> int:
        return sum(1 for _ in self._root.glob(f"*{SESSION_SUFFIX}"))
