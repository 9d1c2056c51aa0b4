"""Lifecycle management for application shutdown and cleanup."""

from app.lifecycle.cleanup_manager import (
    CleanupManager,
    CleanupOutcome,
    CleanupReport,
    CleanupTask,
)

__all__ = [
    "CleanupManager",
    "CleanupOutcome",
    "CleanupReport",
    "CleanupTask",
]
