"""
Signal handling for the orchestration module.

This module manages signal registration, cleanup, and delegation to active
BuildSupervisor instances using a global registry pattern.
"""

import logging
import signal
import threading
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .supervisor import BuildSupervisor

logger = logging.getLogger(__name__)

# Signal handlers cannot be bound to instances, so active supervisors are
# kept in a registry the process-wide handler walks.
_active_supervisors: Dict[int, "BuildSupervisor"] = {}
_active_supervisors_lock = threading.Lock()


class SignalHandler:
    """
    Manages SIGINT/SIGTERM registration and cleanup for BuildSupervisor instances.

    A received signal asks every registered supervisor to cancel its build;
    the supervisor forwards the request into its event loop.
    """

    HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self):
        self._original_handlers: Dict[int, Any] = {}
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Install the shared handler, remembering the previous ones."""
        try:
            for signum in self.HANDLED_SIGNALS:
                self._original_handlers[signum] = signal.signal(signum, self._global_signal_handler)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up for build supervision")
        except ValueError as e:
            # signal.signal() only works in the main thread
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            for signum, handler in self._original_handlers.items():
                if handler is not None:
                    signal.signal(signum, handler)
            logger.debug("Signal handlers restored")
        except ValueError as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._original_handlers.clear()
            self._signal_handlers_set = False

    def register_supervisor(self, supervisor_id: int, supervisor: "BuildSupervisor") -> None:
        """
        Register a BuildSupervisor instance for signal handling.

        Args:
            supervisor_id: Unique identifier for the supervisor instance
            supervisor: The BuildSupervisor instance to register
        """
        with _active_supervisors_lock:
            _active_supervisors[supervisor_id] = supervisor
            logger.debug(f"Registered BuildSupervisor {supervisor_id} for signal handling")

    def unregister_supervisor(self, supervisor_id: int) -> None:
        with _active_supervisors_lock:
            if _active_supervisors.pop(supervisor_id, None) is not None:
                logger.debug(f"Unregistered BuildSupervisor {supervisor_id} from signal handling")

    @staticmethod
    def _global_signal_handler(signum: int, frame: Any) -> None:
        """
        Process-wide handler that asks all active supervisors to stop.

        Args:
            signum: Signal number that was received
            frame: Current stack frame (unused)
        """
        logger.warning(f"Signal {signal.strsignal(signum)} received. Stopping active builds...")
        with _active_supervisors_lock:
            supervisors = list(_active_supervisors.items())
        for supervisor_id, supervisor in supervisors:
            logger.info(f"Requesting shutdown for BuildSupervisor {supervisor_id}")
            supervisor.request_shutdown()
