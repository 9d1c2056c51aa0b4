"""Custom exception classes for GoSnow recorder."""

from __future__ import annotations

from typing import Optional


class GoSnowError(Exception):
    """Base exception for all GoSnow errors."""

    pass


class RecorderError(GoSnowError):
    """Raised when the session recorder cannot honour a request."""

    pass


class StorageError(GoSnowError):
    """Base exception for local session storage errors."""

    def __init__(self, message: str, session_id: Optional[str] = None):
        self.session_id = session_id
        super().__init__(message)


class DiskSpaceError(StorageError):
    """Raised when insufficient disk space is available."""

    pass


class SessionWriteError(StorageError):
    """Raised when a session file cannot be written."""

    pass


class SessionNotFoundError(StorageError):
    """Raised when a stored session does not exist."""

    pass


class ConfigError(GoSnowError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class TrackImportError(GoSnowError):
    """Raised when a GPX track cannot be read."""

    pass
