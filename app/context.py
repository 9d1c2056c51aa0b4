"""Application context and wiring of the recording stack.

Collaborators receive the context (or the pieces of it they need)
explicitly; there are no module-level singletons.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from app.events import ErrorEventBus, EventBus
from app.lifecycle import CleanupManager
from app.recording import RecordingSessionController
from app.services.recorder import GpsSessionRecorder, SessionRecorder
from app.services.storage import JsonLocalStore, LocalStore, SessionPersister
from configs.settings import AppConfig
from log_config.logger import configure_logging, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AppContext:
    config: AppConfig
    event_bus: EventBus
    error_bus: ErrorEventBus


def build_context(config: Optional[AppConfig] = None, configure_logs: bool = True) -> AppContext:
    """Create the buses for a configuration and apply its logging settings."""
    config = config or AppConfig()
    if configure_logs:
        logs_dir = Path(config.logging.dir) if config.logging.file_logging else None
        configure_logging(level=config.logging.level, logs_dir=logs_dir)

    error_bus = ErrorEventBus()
    return AppContext(config=config, event_bus=EventBus(error_bus=error_bus), error_bus=error_bus)


@dataclass
class RecordingStack:
    """Everything needed to record sessions, plus its shutdown sequence."""

    context: AppContext
    recorder: SessionRecorder
    store: LocalStore
    persister: SessionPersister
    controller: RecordingSessionController
    cleanup: CleanupManager = field(default_factory=CleanupManager)

    def shutdown(self) -> bool:
        """Close the controller and drain pending saves (runs once)."""
        return self.cleanup.cleanup()


def build_recording_stack(
    context: AppContext,
    recorder: Optional[SessionRecorder] = None,
    store: Optional[LocalStore] = None,
    start_polling: bool = True,
    drain_timeout: float = 10.0,
) -> RecordingStack:
    """Wire recorder, store, persister and controller from a context.

    Args:
        context: Application context
        recorder: Recorder to drive (defaults to a GpsSessionRecorder)
        store: Session store (defaults to a JsonLocalStore under storage.sessions_dir)
        start_polling: Start the controller's poll thread
        drain_timeout: How long shutdown waits for pending saves before
            reporting an unclean shutdown
    """
    config = context.config
    recorder = recorder or GpsSessionRecorder(config.recorder)
    store = store or JsonLocalStore(config.storage.sessions_dir, min_free_mb=config.storage.min_free_mb)
    persister = SessionPersister(store, max_sessions=config.storage.max_sessions, error_bus=context.error_bus)
    controller = RecordingSessionController(
        recorder,
        persister,
        event_bus=context.event_bus,
        error_bus=context.error_bus,
        polling=config.polling,
        start_polling=start_polling,
    )

    stack = RecordingStack(
        context=context,
        recorder=recorder,
        store=store,
        persister=persister,
        controller=controller,
    )
    stack.cleanup.register_cleanup("recording-controller", controller.close, timeout=3.0)
    stack.cleanup.register_cleanup(
        "session-persistence",
        lambda: persister.wait(timeout=drain_timeout),
        timeout=drain_timeout + 2.0,
        critical=True,
    )
    logger.debug("Recording stack built")
    return stack
