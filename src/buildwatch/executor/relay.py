"""
Console relay for build output events.

The relay is the only place build output reaches the console. It consumes any
asynchronous sequence of output events, whether produced by a BuildWatcher or
scripted in a test, so relaying can be exercised without spawning processes.
"""

import logging
import sys
from typing import AsyncIterable, BinaryIO, Optional

from ..models.events import ExitEvent, OutputEvent, StderrChunk, StdoutChunk
from ..models.results import BuildResult

logger = logging.getLogger(__name__)


def _binary_stream(stream) -> BinaryIO:
    # Text streams (sys.stdout) expose their byte layer as .buffer
    return getattr(stream, "buffer", stream)


class ConsoleRelay:
    """
    Writes build output chunks to binary stdout/stderr sinks as they arrive.

    Every chunk is flushed immediately so output appears incrementally rather
    than when the build exits. stderr chunks always reach the console, even
    on successful builds that only emit warnings.
    """

    def __init__(self, stdout: Optional[BinaryIO] = None, stderr: Optional[BinaryIO] = None):
        self.stdout = stdout if stdout is not None else _binary_stream(sys.stdout)
        self.stderr = stderr if stderr is not None else _binary_stream(sys.stderr)
        self.stdout_bytes = 0
        self.stderr_bytes = 0

    def write(self, event: OutputEvent) -> None:
        """Relay a single chunk event; exit events are ignored."""
        if isinstance(event, StdoutChunk):
            self.stdout.write(event.data)
            self.stdout.flush()
            self.stdout_bytes += len(event.data)
        elif isinstance(event, StderrChunk):
            self.stderr.write(event.data)
            self.stderr.flush()
            self.stderr_bytes += len(event.data)


async def relay_events(events: AsyncIterable[OutputEvent], relay: ConsoleRelay) -> BuildResult:
    """
    Relay every chunk of an event sequence and return its final result.

    Args:
        events: Output events ending with an ExitEvent
        relay: Destination for the chunks

    Returns:
        The BuildResult carried by the terminal ExitEvent

    Raises:
        RuntimeError: If the sequence ends without an ExitEvent
    """
    try:
        async for event in events:
            if isinstance(event, ExitEvent):
                logger.debug(
                    f"Relayed {relay.stdout_bytes} bytes of stdout and {relay.stderr_bytes} bytes of stderr"
                )
                return event.result
            relay.write(event)
    finally:
        # Closing an unfinished watcher sequence stops its build.
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()
    raise RuntimeError("Build event sequence ended without an exit event")
