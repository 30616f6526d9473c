"""
Build watcher: run an external build tool and stream its output.

This module provides the BuildWatcher, which launches one external build
command as a child process and exposes its output as an asynchronous sequence
of tagged events. Output is relayed chunk by chunk as it arrives, so a build
tool running in watch mode can stay resident indefinitely without its output
accumulating in memory.

A chunk is one line of output (or the unterminated tail at end of stream).
A single chunk larger than the invocation's output buffer limit stops the
build with TerminationReason.BUFFER_OVERFLOW.
"""

import asyncio
import logging
import os
from typing import AsyncIterator, Optional, Type, Union

from ..models.events import ExitEvent, OutputEvent, StderrChunk, StdoutChunk
from ..models.invocation import BuildInvocation
from ..models.results import BuildResult, TerminationReason, WatcherState
from ..system.processes import collect_descendants, stop_descendants, stop_process_group
from ..validation import ErrorSeverity, handle_error, handle_subprocess_error
from .relay import ConsoleRelay, relay_events

logger = logging.getLogger(__name__)

# Marker put on the event queue by a reader when its stream is exhausted.
_STREAM_CLOSED = object()
# Marker put on the event queue once the build process itself has exited.
_PROCESS_EXITED = object()


class BuildWatcher:
    """
    Single-use wrapper around one run of an external build command.

    Lifecycle: IDLE -> RUNNING -> COMPLETED | FAILED. A watcher cannot be
    restarted; every invocation gets a fresh instance.

    Usage:
        watcher = BuildWatcher(invocation)
        async for event in watcher.events():
            ...
        result = watcher.result
    """

    # Chunks handed from the reader tasks to the consumer; readers block when full.
    EVENT_QUEUE_SIZE = 64
    # How long output is still relayed after the build process exits. Helpers
    # that outlive it and keep the streams open are stopped afterwards.
    OUTPUT_DRAIN_SECONDS = 1.0

    def __init__(self, invocation: BuildInvocation):
        """
        Initialize the build watcher.

        Args:
            invocation: The build command, its arguments and limits
        """
        self.invocation = invocation
        self.state = WatcherState.IDLE
        self.result: Optional[BuildResult] = None
        self.process: Optional[asyncio.subprocess.Process] = None

        self._started = False
        self._stop_reason: Optional[TerminationReason] = None
        self._stop_task: Optional[asyncio.Task] = None
        # Written only by the stderr reader task.
        self._stderr_tail = bytearray()

    @property
    def pid(self) -> Optional[int]:
        """PID of the build process, or None before it has been started."""
        return self.process.pid if self.process else None

    @property
    def is_running(self) -> bool:
        return self.state is WatcherState.RUNNING

    def cancel(self) -> None:
        """
        Request that the build be stopped.

        The process tree is terminated and the watcher ends FAILED with
        TerminationReason.CANCELLED. Cancelling before the build has started
        prevents it from being spawned. Must be called from the event loop
        thread; signal handlers should go through ``loop.call_soon_threadsafe``.
        """
        self._request_stop(TerminationReason.CANCELLED)

    async def events(self) -> AsyncIterator[OutputEvent]:
        """
        Run the build and yield its output events.

        Yields StdoutChunk and StderrChunk events in the order each stream
        produced them, then exactly one ExitEvent carrying the BuildResult.
        The sequence is infinite for a build tool that never exits. Closing
        the generator early stops the build.

        Raises:
            RuntimeError: If the watcher has already been run
        """
        if self._started:
            raise RuntimeError("BuildWatcher instances are single-use; create a new one per invocation")
        self._started = True

        if self._stop_reason is TerminationReason.CANCELLED:
            logger.info("Build cancelled before it was started")
            yield ExitEvent(self._finish(BuildResult(
                exit_success=False,
                termination_reason=TerminationReason.CANCELLED,
            )))
            return

        self.state = WatcherState.RUNNING
        try:
            self.process = await self._spawn()
        except (OSError, ValueError) as e:
            yield ExitEvent(self._finish(self._spawn_failure(e)))
            return

        logger.info(f"Build process started with PID {self.process.pid}: {self.invocation.display()}")

        if self._stop_reason is not None and self._stop_task is None:
            # cancel() arrived while the process was being spawned
            self._stop_task = asyncio.get_running_loop().create_task(self._terminate())

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.EVENT_QUEUE_SIZE)
        readers = [
            asyncio.create_task(self._read_stream(self.process.stdout, StdoutChunk, queue)),
            asyncio.create_task(self._read_stream(self.process.stderr, StderrChunk, queue)),
        ]
        exit_watch = asyncio.create_task(self._watch_exit(queue))

        result: Optional[BuildResult] = None
        try:
            open_streams = len(readers)
            drain_deadline: Optional[float] = None
            while open_streams:
                timeout = None
                if drain_deadline is not None:
                    timeout = max(drain_deadline - loop.time(), 0)
                try:
                    item = await asyncio.wait_for(queue.get(), timeout)
                except asyncio.TimeoutError:
                    await self._stop_orphaned_helpers(readers)
                    break
                if item is _PROCESS_EXITED:
                    drain_deadline = loop.time() + self.OUTPUT_DRAIN_SECONDS
                    continue
                if item is _STREAM_CLOSED:
                    open_streams -= 1
                    continue
                yield item

            return_code = await self.process.wait()
            if self._stop_task is not None:
                await self._stop_task
            await asyncio.gather(*readers, return_exceptions=True)
            result = self._finish(self._result_for(return_code))
        finally:
            exit_watch.cancel()
            if result is None:
                await self._abandon(readers)

        yield ExitEvent(result)

    async def _spawn(self) -> asyncio.subprocess.Process:
        """Start the build process with both output streams piped."""
        env = None
        if self.invocation.env:
            env = {**os.environ, **self.invocation.env}

        return await asyncio.create_subprocess_exec(
            *self.invocation.argv(),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=self.invocation.working_directory,
            env=env,
            limit=self.invocation.output_buffer_limit_bytes,
            # Own session: terminal signals reach this process only, which
            # then stops the build tree in an orderly way.
            start_new_session=os.name == "posix",
        )

    async def _read_stream(
        self,
        stream: asyncio.StreamReader,
        chunk_type: Type[Union[StdoutChunk, StderrChunk]],
        queue: asyncio.Queue,
    ) -> None:
        """
        Forward one output stream to the event queue, line by line.

        Each stream has exactly one reader, which preserves per-stream order.
        """
        stream_name = "stdout" if chunk_type is StdoutChunk else "stderr"
        try:
            while True:
                try:
                    chunk = await stream.readline()
                except ValueError:
                    logger.error(
                        f"Build {stream_name} produced a chunk larger than "
                        f"{self.invocation.output_buffer_limit_bytes} bytes; stopping the build"
                    )
                    self._request_stop(TerminationReason.BUFFER_OVERFLOW)
                    break
                if not chunk:
                    break
                if chunk_type is StderrChunk:
                    self._capture_stderr(chunk)
                await queue.put(chunk_type(chunk))
        except OSError as e:
            handle_error(
                error=e,
                context=f"reading build {stream_name}",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )
        await queue.put(_STREAM_CLOSED)

    def _capture_stderr(self, chunk: bytes) -> None:
        """Append to the captured stderr, keeping only the most recent bytes."""
        self._stderr_tail.extend(chunk)
        overflow = len(self._stderr_tail) - self.invocation.output_buffer_limit_bytes
        if overflow > 0:
            del self._stderr_tail[:overflow]

    def _request_stop(self, reason: TerminationReason) -> None:
        """Record why the build is being stopped and start terminating it once."""
        if self.state.is_terminal or self._stop_reason is not None:
            return
        self._stop_reason = reason
        logger.info(f"Stopping build: {reason.value}")

        # Also after the build process has exited: its helpers may still run.
        if self.process is not None and self._stop_task is None:
            self._stop_task = asyncio.get_running_loop().create_task(self._terminate())

    async def _watch_exit(self, queue: asyncio.Queue) -> None:
        await self.process.wait()
        await queue.put(_PROCESS_EXITED)

    async def _stop_orphaned_helpers(self, readers) -> None:
        """Stop helpers that keep the output streams open after the build process exited."""
        logger.warning(
            f"Build process {self.process.pid} exited but its output streams are still "
            f"held open after {self.OUTPUT_DRAIN_SECONDS}s; stopping leftover helper processes"
        )
        if self._stop_task is None:
            self._stop_task = asyncio.get_running_loop().create_task(self._terminate())
        await self._stop_task
        for reader in readers:
            reader.cancel()

    async def _terminate(self) -> None:
        """
        Terminate the build process and all of its descendants.

        SIGTERM first; anything still running after the grace period is
        killed. The build runs in its own session, so its process group is
        stopped as well, which reaches helpers that outlived the build
        process. The direct child is reaped through asyncio only.
        """
        process = self.process
        if process is None:
            return

        grace = self.invocation.termination_grace_seconds
        loop = asyncio.get_running_loop()

        descendants = []
        if process.returncode is None:
            # Snapshot before signalling, while the tree is still intact.
            descendants = await loop.run_in_executor(None, collect_descendants, process.pid)
            try:
                process.terminate()
            except ProcessLookupError:
                pass
        stopping = asyncio.gather(
            loop.run_in_executor(None, stop_descendants, descendants, grace),
            loop.run_in_executor(None, stop_process_group, process.pid, grace),
        )

        if process.returncode is None:
            try:
                await asyncio.wait_for(process.wait(), timeout=grace)
            except asyncio.TimeoutError:
                logger.warning(f"Build process {process.pid} ignored termination request, killing it")
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()

        await stopping
        logger.info(f"Build process {process.pid} terminated")

    async def _abandon(self, readers) -> None:
        """Stop a build whose event sequence was closed before it finished."""
        logger.debug("Build event sequence abandoned; stopping the build")
        self._request_stop(TerminationReason.CANCELLED)
        for reader in readers:
            reader.cancel()
        await asyncio.gather(*readers, return_exceptions=True)
        if self._stop_task is not None:
            await self._stop_task
        return_code = self.process.returncode if self.process else None
        self._finish(self._result_for(return_code))

    def _result_for(self, return_code: Optional[int]) -> BuildResult:
        stderr_text = bytes(self._stderr_tail).decode("utf-8", errors="replace")

        if self._stop_reason is not None:
            return BuildResult(
                exit_success=False,
                termination_reason=self._stop_reason,
                captured_stderr=stderr_text,
                exit_code=return_code,
            )
        if return_code == 0:
            return BuildResult(exit_success=True, captured_stderr=stderr_text, exit_code=0)
        return BuildResult(
            exit_success=False,
            termination_reason=TerminationReason.NON_ZERO_EXIT,
            captured_stderr=stderr_text,
            exit_code=return_code,
        )

    def _spawn_failure(self, error: Exception) -> BuildResult:
        handle_subprocess_error(
            error,
            self.invocation.display(),
            severity=ErrorSeverity.ERROR,
            reraise=False,
            logger=logger,
        )
        return BuildResult(
            exit_success=False,
            termination_reason=TerminationReason.SPAWN_FAILURE,
            error_message=str(error),
            spawn_errno=getattr(error, "errno", None),
        )

    def _finish(self, result: BuildResult) -> BuildResult:
        """Move to the terminal state matching ``result``."""
        self.result = result
        self.state = WatcherState.COMPLETED if result.exit_success else WatcherState.FAILED
        if result.exit_success:
            logger.info("Build completed successfully")
        else:
            logger.info(
                f"Build failed: {result.termination_reason.value} (exit code {result.exit_code})"
            )
        return result


async def run_build(invocation: BuildInvocation, relay: Optional[ConsoleRelay] = None) -> BuildResult:
    """
    Run a build to completion, relaying its output to the console.

    Args:
        invocation: The build to run
        relay: ConsoleRelay receiving the output; defaults to this process's
            standard output and standard error

    Returns:
        The BuildResult of the run
    """
    watcher = BuildWatcher(invocation)
    return await relay_events(watcher.events(), relay or ConsoleRelay())


def run_build_sync(invocation: BuildInvocation, relay: Optional[ConsoleRelay] = None) -> BuildResult:
    """Blocking convenience wrapper around run_build()."""
    return asyncio.run(run_build(invocation, relay))
