"""
Result models.

This module contains the outcome of a single build invocation and the
lifecycle states a build watcher moves through.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TerminationReason(Enum):
    """Why a build invocation did not complete successfully."""
    SPAWN_FAILURE = "spawn_failure"
    BUFFER_OVERFLOW = "buffer_overflow"
    NON_ZERO_EXIT = "non_zero_exit"
    CANCELLED = "cancelled"

    # The child ran and failed; alias of NON_ZERO_EXIT.
    PROCESS_ERROR = "non_zero_exit"


class WatcherState(Enum):
    """Lifecycle of a BuildWatcher. COMPLETED and FAILED are terminal."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (WatcherState.COMPLETED, WatcherState.FAILED)


@dataclass(frozen=True)
class BuildResult:
    """
    Final outcome of one build invocation.

    Created once when the child process is gone and never mutated.
    """

    # True only when the child exited with status 0.
    exit_success: bool
    # None on success.
    termination_reason: Optional[TerminationReason] = None
    # Tail of the child's error stream, decoded as UTF-8.
    captured_stderr: str = ""
    # Raw return code; negative when killed by a signal, None if never started.
    exit_code: Optional[int] = None
    # Description and errno of the spawn error for SPAWN_FAILURE.
    error_message: Optional[str] = None
    spawn_errno: Optional[int] = None

    @property
    def cancelled(self) -> bool:
        return self.termination_reason is TerminationReason.CANCELLED
