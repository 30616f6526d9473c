"""
Restart strategy for failed builds.

The build watcher never retries on its own. Callers that want a crashed
watch-mode build tool to come back wrap the watcher in a loop and consult a
RestartPolicy between attempts.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet

from ..models.results import BuildResult, TerminationReason
from .validators import validate_positive_float, validate_positive_integer

logger = logging.getLogger(__name__)

RESTARTABLE_REASONS = frozenset({
    TerminationReason.NON_ZERO_EXIT,
    TerminationReason.BUFFER_OVERFLOW,
})


@dataclass(frozen=True)
class RestartPolicy:
    """
    How often, and after which failures, a build is started again.

    Cancellation and spawn failures are never restartable: the first is an
    explicit stop request and the second would fail identically.
    """
    max_restarts: int = 0
    delay_seconds: float = 2.0
    restart_on: FrozenSet[TerminationReason] = field(default=RESTARTABLE_REASONS)

    def __post_init__(self):
        validate_positive_integer(self.max_restarts, min_value=0, field_name="max_restarts")
        validate_positive_float(self.delay_seconds, min_value=0.0, field_name="delay_seconds")
        not_allowed = set(self.restart_on) - RESTARTABLE_REASONS
        if not_allowed:
            names = sorted(reason.name for reason in not_allowed)
            raise ValueError(f"Termination reasons {names} can never be restarted")

    def should_restart(self, result: BuildResult, restarts_done: int) -> bool:
        """
        Decide whether another attempt should follow ``result``.

        Args:
            result: Result of the attempt that just finished
            restarts_done: Number of restarts already performed

        Returns:
            True if a fresh attempt should be started
        """
        if result.exit_success:
            return False
        if result.termination_reason not in self.restart_on:
            return False
        if restarts_done >= self.max_restarts:
            logger.debug(f"Restart limit of {self.max_restarts} reached")
            return False
        return True
