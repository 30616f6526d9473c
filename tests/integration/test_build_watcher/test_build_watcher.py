"""
Integration tests for BuildWatcher using real child processes.

Small shell and Python one-liners stand in for the front-end build tool.
"""

import asyncio
import errno
import io
import os
import time

import pytest

from buildwatch.executor import BuildWatcher, ConsoleRelay, run_build, run_build_sync
from buildwatch.models import (
    BuildInvocation,
    ExitEvent,
    StderrChunk,
    StdoutChunk,
    TerminationReason,
    WatcherState,
)
from buildwatch.system.processes import collect_descendants, is_process_alive

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(os.name != "posix", reason="uses POSIX shell commands"),
]


async def _collect(watcher: BuildWatcher, timeout: float = 20.0):
    async def drain():
        return [event async for event in watcher.events()]

    return await asyncio.wait_for(drain(), timeout=timeout)


def _stdout(events) -> bytes:
    return b"".join(e.data for e in events if isinstance(e, StdoutChunk))


def _stderr(events) -> bytes:
    return b"".join(e.data for e in events if isinstance(e, StderrChunk))


class TestSuccessfulBuilds:
    """Builds that run to completion."""

    @pytest.mark.asyncio
    async def test_echo_hello(self):
        watcher = BuildWatcher(BuildInvocation(command="echo", arguments=["hello"]))
        events = await _collect(watcher)

        assert events[0] == StdoutChunk(b"hello\n")
        assert isinstance(events[-1], ExitEvent)
        assert sum(isinstance(e, ExitEvent) for e in events) == 1

        result = events[-1].result
        assert result.exit_success is True
        assert result.termination_reason is None
        assert result.exit_code == 0
        assert watcher.state is WatcherState.COMPLETED
        assert watcher.result is result

    @pytest.mark.asyncio
    async def test_stdout_order_preserved(self, test_utils):
        script = "import sys\nfor part in 'ABC':\n    print(part, flush=True)\n"
        events = await _collect(BuildWatcher(BuildInvocation(**test_utils.python_command(script))))

        chunks = [e.data for e in events if isinstance(e, StdoutChunk)]
        assert chunks == [b"A\n", b"B\n", b"C\n"]

    @pytest.mark.asyncio
    async def test_unterminated_tail_is_delivered(self):
        events = await _collect(BuildWatcher(BuildInvocation(command="printf", arguments=["no newline"])))
        assert _stdout(events) == b"no newline"

    @pytest.mark.asyncio
    async def test_warnings_on_success_reach_stderr(self):
        invocation = BuildInvocation(command="sh -c", arguments=["echo 'budget warning' >&2"])
        events = await _collect(BuildWatcher(invocation))

        assert _stderr(events) == b"budget warning\n"
        result = events[-1].result
        assert result.exit_success
        assert result.captured_stderr == "budget warning\n"

    @pytest.mark.asyncio
    async def test_working_directory_and_env(self, temp_dir):
        invocation = BuildInvocation(
            command="sh -c",
            arguments=['pwd; echo "$BUILDWATCH_MODE"'],
            working_directory=str(temp_dir),
            env={"BUILDWATCH_MODE": "production"},
        )
        events = await _collect(BuildWatcher(invocation))

        lines = _stdout(events).decode().splitlines()
        assert os.path.realpath(lines[0]) == os.path.realpath(temp_dir)
        assert lines[1] == "production"

    @pytest.mark.asyncio
    async def test_stdin_is_not_inherited(self):
        events = await _collect(BuildWatcher(BuildInvocation(command="cat")))
        assert events[-1].result.exit_success
        assert _stdout(events) == b""


class TestFailedBuilds:
    """Builds that end without success."""

    @pytest.mark.asyncio
    async def test_non_zero_exit(self):
        watcher = BuildWatcher(BuildInvocation(command="sh -c 'exit 3'"))
        events = await _collect(watcher)

        result = events[-1].result
        assert result.exit_success is False
        assert result.termination_reason is TerminationReason.NON_ZERO_EXIT
        assert result.termination_reason is TerminationReason.PROCESS_ERROR
        assert result.exit_code == 3
        assert watcher.state is WatcherState.FAILED

    @pytest.mark.asyncio
    async def test_failure_captures_stderr(self, test_utils):
        script = "import sys\nsys.stderr.write('error TS2304: Cannot find name\\n')\nsys.exit(1)\n"
        events = await _collect(BuildWatcher(BuildInvocation(**test_utils.python_command(script))))

        assert _stderr(events) == b"error TS2304: Cannot find name\n"
        result = events[-1].result
        assert result.termination_reason is TerminationReason.NON_ZERO_EXIT
        assert "error TS2304" in result.captured_stderr

    @pytest.mark.asyncio
    async def test_captured_stderr_keeps_most_recent_output(self, test_utils):
        script = (
            "import sys\n"
            "for i in range(100):\n"
            "    sys.stderr.write(f'{i:03d}' + 'x' * 96 + '\\n')\n"
            "sys.exit(2)\n"
        )
        invocation = BuildInvocation(**test_utils.python_command(script), output_buffer_limit_bytes=1024)
        events = await _collect(BuildWatcher(invocation))

        result = events[-1].result
        assert len(_stderr(events)) == 100 * 100
        assert len(result.captured_stderr) <= 1024
        assert result.captured_stderr.endswith("099" + "x" * 96 + "\n")

    @pytest.mark.asyncio
    async def test_killed_by_signal(self):
        events = await _collect(BuildWatcher(BuildInvocation(command="sh -c", arguments=["kill -TERM $$"])))

        result = events[-1].result
        assert result.termination_reason is TerminationReason.NON_ZERO_EXIT
        assert result.exit_code == -15

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        watcher = BuildWatcher(BuildInvocation(command="buildwatch-no-such-build-tool", arguments=["--watch"]))
        events = await _collect(watcher)

        assert len(events) == 1
        result = events[0].result
        assert result.termination_reason is TerminationReason.SPAWN_FAILURE
        assert result.spawn_errno == errno.ENOENT
        assert result.exit_code is None
        assert result.error_message
        assert watcher.state is WatcherState.FAILED
        assert watcher.pid is None

    @pytest.mark.asyncio
    async def test_missing_working_directory(self, temp_dir):
        invocation = BuildInvocation(command="echo", working_directory=str(temp_dir / "absent"))
        events = await _collect(BuildWatcher(invocation))
        assert events[-1].result.termination_reason is TerminationReason.SPAWN_FAILURE

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_oversized_chunk_stops_build(self, test_utils):
        script = "import sys, time\nsys.stdout.write('x' * 8192)\nsys.stdout.flush()\ntime.sleep(60)\n"
        invocation = BuildInvocation(
            **test_utils.python_command(script),
            output_buffer_limit_bytes=1024,
            termination_grace_seconds=2.0,
        )
        watcher = BuildWatcher(invocation)
        events = await _collect(watcher)

        result = events[-1].result
        assert result.exit_success is False
        assert result.termination_reason is TerminationReason.BUFFER_OVERFLOW
        assert not is_process_alive(watcher.pid)


class TestCancellation:
    """Stopping builds that would otherwise keep running."""

    @pytest.mark.asyncio
    async def test_cancel_watch_mode_build(self, test_utils):
        script = "import time\nprint('watching for changes', flush=True)\ntime.sleep(60)\n"
        watcher = BuildWatcher(BuildInvocation(**test_utils.python_command(script)))

        async def drain():
            events = []
            async for event in watcher.events():
                events.append(event)
                if isinstance(event, StdoutChunk):
                    watcher.cancel()
            return events

        events = await asyncio.wait_for(drain(), timeout=20)

        result = events[-1].result
        assert result.termination_reason is TerminationReason.CANCELLED
        assert result.cancelled
        assert watcher.state is WatcherState.FAILED
        assert not is_process_alive(watcher.pid)

    @pytest.mark.asyncio
    async def test_cancel_stops_process_tree(self):
        invocation = BuildInvocation(
            command="sh -c",
            arguments=["sleep 60 & echo started; wait"],
            termination_grace_seconds=2.0,
        )
        watcher = BuildWatcher(invocation)
        helper_pids = []

        async def drain():
            events = []
            async for event in watcher.events():
                events.append(event)
                if isinstance(event, StdoutChunk):
                    helper_pids.extend(p.pid for p in collect_descendants(watcher.pid))
                    watcher.cancel()
            return events

        events = await asyncio.wait_for(drain(), timeout=20)

        assert events[-1].result.cancelled
        assert helper_pids
        assert not any(is_process_alive(pid) for pid in helper_pids)

    @pytest.mark.asyncio
    async def test_cancel_before_start(self):
        watcher = BuildWatcher(BuildInvocation(command="echo", arguments=["never"]))
        watcher.cancel()
        events = await _collect(watcher)

        assert len(events) == 1
        assert events[0].result.termination_reason is TerminationReason.CANCELLED
        assert watcher.process is None

    @pytest.mark.asyncio
    async def test_cancel_after_completion_is_ignored(self):
        watcher = BuildWatcher(BuildInvocation(command="true"))
        await _collect(watcher)
        watcher.cancel()

        assert watcher.result.exit_success
        assert watcher.state is WatcherState.COMPLETED

    @pytest.mark.asyncio
    async def test_closing_event_sequence_stops_build(self, test_utils):
        script = "import time\nprint('watching', flush=True)\ntime.sleep(60)\n"
        watcher = BuildWatcher(BuildInvocation(**test_utils.python_command(script)))

        events = watcher.events()
        first = await asyncio.wait_for(events.__anext__(), timeout=20)
        assert first == StdoutChunk(b"watching\n")
        await asyncio.wait_for(events.aclose(), timeout=20)

        assert watcher.result.cancelled
        assert not is_process_alive(watcher.pid)


class TestLeftoverHelpers:
    """Builds whose helpers keep the output streams open after the build exits."""

    @pytest.mark.asyncio
    async def test_exited_build_with_background_helper_finishes(self):
        invocation = BuildInvocation(
            command="sh -c",
            arguments=["sleep 60 & echo $!; exit 0"],
            termination_grace_seconds=2.0,
        )
        watcher = BuildWatcher(invocation)

        start = time.monotonic()
        events = await _collect(watcher, timeout=30)
        elapsed = time.monotonic() - start

        helper_pid = int(_stdout(events).split()[0])
        result = events[-1].result
        assert elapsed < 15
        assert result.exit_success
        assert result.exit_code == 0
        assert watcher.state is WatcherState.COMPLETED
        assert not is_process_alive(helper_pid)

    @pytest.mark.asyncio
    async def test_cancel_after_build_exited_stops_helper(self):
        invocation = BuildInvocation(
            command="sh -c",
            arguments=["sleep 60 & echo $!; exit 0"],
            termination_grace_seconds=2.0,
        )
        watcher = BuildWatcher(invocation)
        watcher.OUTPUT_DRAIN_SECONDS = 30
        helper_pids = []

        async def drain():
            events = []
            async for event in watcher.events():
                events.append(event)
                if isinstance(event, StdoutChunk) and not helper_pids:
                    helper_pids.append(int(event.data.split()[0]))
                    await watcher.process.wait()
                    watcher.cancel()
            return events

        start = time.monotonic()
        events = await asyncio.wait_for(drain(), timeout=30)
        elapsed = time.monotonic() - start

        result = events[-1].result
        assert elapsed < 15
        assert result.cancelled
        assert watcher.state is WatcherState.FAILED
        assert not is_process_alive(helper_pids[0])


class TestWatcherLifecycle:
    """Single-use semantics and convenience wrappers."""

    @pytest.mark.asyncio
    async def test_events_single_use(self):
        watcher = BuildWatcher(BuildInvocation(command="true"))
        assert watcher.state is WatcherState.IDLE
        await _collect(watcher)

        with pytest.raises(RuntimeError, match="single-use"):
            await _collect(watcher)

    @pytest.mark.asyncio
    async def test_run_build_relays_output(self):
        relay = ConsoleRelay(stdout=io.BytesIO(), stderr=io.BytesIO())
        invocation = BuildInvocation(command="sh -c", arguments=["echo out; echo err >&2"])

        result = await asyncio.wait_for(run_build(invocation, relay), timeout=20)

        assert result.exit_success
        assert relay.stdout.getvalue() == b"out\n"
        assert relay.stderr.getvalue() == b"err\n"

    def test_run_build_sync(self):
        relay = ConsoleRelay(stdout=io.BytesIO(), stderr=io.BytesIO())
        result = run_build_sync(BuildInvocation(command="sh -c 'exit 4'"), relay)

        assert result.exit_code == 4
        assert result.termination_reason is TerminationReason.NON_ZERO_EXIT
