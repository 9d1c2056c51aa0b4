"""Ordered, time-bounded shutdown of the recording stack.

Shutdown steps are registered by name and run once, in registration order.
A step fails when it raises, returns False or outlives its timeout; a failed
critical step makes the whole shutdown unclean (for example a persistence
drain that gave up while a save was still running).
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from log_config.logger import get_logger

logger = get_logger(__name__)


class CleanupOutcome(Enum):
    COMPLETED = "completed"
    FAILED = "failed"  # raised or returned False
    TIMED_OUT = "timed_out"


@dataclass
class CleanupTask:
    """One shutdown step.

    The callback may return a bool; False means the step did not achieve
    what it is for. None (no return value) counts as success.
    """

    name: str
    callback: Callable[[], Optional[bool]]
    timeout: float = 5.0
    critical: bool = False


@dataclass(frozen=True)
class CleanupReport:
    outcomes: Dict[str, CleanupOutcome] = field(default_factory=dict)
    critical_failures: Tuple[str, ...] = ()
    elapsed_s: float = 0.0

    @property
    def clean(self) -> bool:
        return not self.critical_failures


def run_task(task: CleanupTask) -> CleanupOutcome:
    """Run one step on a helper thread and wait at most task.timeout for it.

    A timed-out step keeps running on its daemon thread; it cannot be killed.
    """
    box: Dict[str, object] = {}

    def target() -> None:
        try:
            box["result"] = task.callback()
        except Exception as e:
            box["error"] = e

    worker = threading.Thread(target=target, name=f"Cleanup-{task.name}", daemon=True)
    worker.start()
    worker.join(timeout=task.timeout)

    if worker.is_alive():
        logger.error(f"Cleanup step '{task.name}' timed out after {task.timeout}s")
        return CleanupOutcome.TIMED_OUT
    if "error" in box:
        error = box["error"]
        logger.opt(exception=error).error(f"Cleanup step '{task.name}' failed: {error}")
        return CleanupOutcome.FAILED
    if box.get("result") is False:
        logger.error(f"Cleanup step '{task.name}' reported failure")
        return CleanupOutcome.FAILED
    return CleanupOutcome.COMPLETED


class CleanupManager:
    """Runs registered shutdown steps exactly once.

    Concurrent or repeated cleanup() calls wait for the single run and get
    its result.
    """

    def __init__(self, default_timeout: float = 10.0):
        self._tasks: List[CleanupTask] = []
        self._default_timeout = default_timeout
        self._tasks_lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._report: Optional[CleanupReport] = None

    def register_cleanup(
        self,
        name: str,
        callback: Callable[[], Optional[bool]],
        timeout: Optional[float] = None,
        critical: bool = False,
    ) -> None:
        task = CleanupTask(
            name=name,
            callback=callback,
            timeout=self._default_timeout if timeout is None else timeout,
            critical=critical,
        )
        with self._tasks_lock:
            self._tasks.append(task)
        logger.debug(f"Registered cleanup step: {name}")

    def unregister_cleanup(self, name: str) -> bool:
        with self._tasks_lock:
            for task in self._tasks:
                if task.name == name:
                    self._tasks.remove(task)
                    return True
        return False

    @property
    def has_run(self) -> bool:
        return self._report is not None

    @property
    def report(self) -> Optional[CleanupReport]:
        """Outcome of the run, or None before cleanup() was called."""
        return self._report

    def cleanup(self) -> bool:
        """Run all steps (first call only).

        Returns:
            True if no critical step failed
        """
        with self._run_lock:
            if self._report is None:
                self._report = self._run()
            return self._report.clean

    def _run(self) -> CleanupReport:
        with self._tasks_lock:
            tasks = list(self._tasks)

        logger.info(f"Shutting down ({len(tasks)} steps)")
        start = time.monotonic()
        outcomes: Dict[str, CleanupOutcome] = {}
        critical_failures: List[str] = []

        for task in tasks:
            outcome = run_task(task)
            outcomes[task.name] = outcome
            if outcome is not CleanupOutcome.COMPLETED and task.critical:
                critical_failures.append(task.name)

        report = CleanupReport(
            outcomes=outcomes,
            critical_failures=tuple(critical_failures),
            elapsed_s=time.monotonic() - start,
        )
        if report.clean:
            logger.info(f"Shutdown completed in {report.elapsed_s:.2f}s")
        else:
            logger.warning(f"Shutdown unclean, failed steps: {', '.join(report.critical_failures)}")
        return report


__all__ = [
    "CleanupManager",
    "CleanupOutcome",
    "CleanupReport",
    "CleanupTask",
    "run_task",
]
