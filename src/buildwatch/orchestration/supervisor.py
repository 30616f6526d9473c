"""
Build supervision for the orchestration module.

The BuildSupervisor is the caller that wraps a BuildWatcher: it relays the
build's output to the console, turns SIGINT/SIGTERM into cancellation, and
applies the restart policy. The watcher itself never retries.
"""

import asyncio
import logging
from typing import List, Optional

from ..executor.build_watcher import BuildWatcher
from ..executor.relay import ConsoleRelay, relay_events
from ..models.invocation import BuildInvocation
from ..models.results import BuildResult
from ..validation import RestartPolicy
from .signal_handler import SignalHandler

logger = logging.getLogger(__name__)


class BuildSupervisor:
    """
    Runs a build invocation under signal handling and a restart policy.

    Each attempt uses a fresh BuildWatcher. Cancellation stops the active
    attempt and prevents any further restarts.
    """

    def __init__(
        self,
        invocation: BuildInvocation,
        restart_policy: Optional[RestartPolicy] = None,
        relay: Optional[ConsoleRelay] = None,
        install_signal_handlers: bool = True,
    ):
        """
        Initialize the supervisor.

        Args:
            invocation: The build to run on every attempt
            restart_policy: When to start a failed build again; never by default
            relay: Console destination for build output
            install_signal_handlers: Turn SIGINT/SIGTERM into cancellation
        """
        self.invocation = invocation
        self.restart_policy = restart_policy or RestartPolicy()
        self.relay = relay or ConsoleRelay()
        self.install_signal_handlers = install_signal_handlers

        self.results: List[BuildResult] = []
        self.active_watcher: Optional[BuildWatcher] = None
        self.signal_handler = SignalHandler()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._cancelled = False
        self._cancel_event = asyncio.Event()

    @property
    def restarts(self) -> int:
        return max(len(self.results) - 1, 0)

    async def run(self) -> BuildResult:
        """
        Run the build, restarting it as the policy allows.

        Returns:
            The result of the last attempt
        """
        self._loop = asyncio.get_running_loop()
        supervisor_id = id(self)
        if self.install_signal_handlers:
            self.signal_handler.register_supervisor(supervisor_id, self)
            self.signal_handler.setup_signal_handlers()

        try:
            while True:
                result = await self._run_attempt()
                self.results.append(result)

                if self._cancelled or not self.restart_policy.should_restart(result, self.restarts):
                    return result

                logger.warning(
                    f"Build failed ({result.termination_reason.value}); restarting in "
                    f"{self.restart_policy.delay_seconds}s "
                    f"(restart {self.restarts + 1} of {self.restart_policy.max_restarts})"
                )
                await self._wait_before_restart()
        finally:
            self.active_watcher = None
            if self.install_signal_handlers:
                self.signal_handler.cleanup_signal_handlers()
                self.signal_handler.unregister_supervisor(supervisor_id)

    async def _run_attempt(self) -> BuildResult:
        watcher = BuildWatcher(self.invocation)
        self.active_watcher = watcher
        if self._cancelled:
            watcher.cancel()
        return await relay_events(watcher.events(), self.relay)

    async def _wait_before_restart(self) -> None:
        """Sleep for the restart delay, waking early on cancellation."""
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=self.restart_policy.delay_seconds)
        except asyncio.TimeoutError:
            pass

    def cancel(self) -> None:
        """Stop the active build and suppress further restarts. Event loop thread only."""
        if self._cancelled:
            logger.warning("Shutdown already in progress. Please be patient.")
            return
        self._cancelled = True
        self._cancel_event.set()
        if self.active_watcher is not None:
            self.active_watcher.cancel()

    def request_shutdown(self) -> None:
        """Thread- and signal-safe variant of cancel()."""
        if self._loop is None or self._loop.is_closed():
            self._cancelled = True
            return
        self._loop.call_soon_threadsafe(self.cancel)
