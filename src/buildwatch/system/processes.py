"""
Process tree inspection and signalling utilities.

Build tools in watch mode commonly spawn helpers (compilers, file watchers,
node workers). Stopping a build therefore means stopping the whole tree, not
just the direct child. These helpers wrap psutil for that purpose.

They never wait on the direct child of the calling process: that child is
reaped by asyncio, and reaping it here would hide its exit status.
"""

import logging
import os
import signal
import time
from typing import Iterable, List

import psutil

logger = logging.getLogger(__name__)


def collect_descendants(pid: int) -> List[psutil.Process]:
    """Snapshot all descendants of a process.

    Must be called before the parent is signalled: once the parent is gone its
    children are re-parented and can no longer be found through it.

    Args:
        pid: Process ID whose descendants are wanted.

    Returns:
        List of descendant processes, empty if the process no longer exists.
    """
    try:
        return psutil.Process(pid).children(recursive=True)
    except psutil.NoSuchProcess:
        return []
    except psutil.AccessDenied:
        logger.warning(f"Access denied listing children of PID {pid}")
        return []


def signal_processes(processes: Iterable[psutil.Process], sig: int) -> List[psutil.Process]:
    """Send a signal to each process, skipping ones that already exited.

    Args:
        processes: Processes to signal.
        sig: Signal number, e.g. ``signal.SIGTERM``.

    Returns:
        The processes the signal was delivered to.
    """
    delivered = []
    for proc in processes:
        try:
            if sig == getattr(signal, "SIGKILL", None):
                proc.kill()
            elif sig == signal.SIGTERM:
                proc.terminate()
            else:
                proc.send_signal(sig)
            delivered.append(proc)
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied sending signal {sig} to PID {proc.pid}")
    return delivered


def wait_for_processes(processes: List[psutil.Process], timeout: float) -> List[psutil.Process]:
    """Wait up to ``timeout`` seconds for processes to exit.

    Returns:
        Processes still alive when the timeout expired.
    """
    if not processes:
        return []
    _, alive = psutil.wait_procs(processes, timeout=timeout)
    return alive


def stop_descendants(descendants: List[psutil.Process], grace_seconds: float) -> None:
    """Terminate descendants gracefully, then kill the survivors.

    Args:
        descendants: Snapshot taken with collect_descendants().
        grace_seconds: Time allowed between SIGTERM and SIGKILL.
    """
    if not descendants:
        return
    signalled = signal_processes(descendants, signal.SIGTERM)
    survivors = wait_for_processes(signalled, grace_seconds)
    if survivors:
        logger.warning(f"{len(survivors)} build helper processes ignored SIGTERM, killing them")
        killed = signal_processes(survivors, getattr(signal, "SIGKILL", signal.SIGTERM))
        wait_for_processes(killed, grace_seconds)


def stop_process_group(pgid: int, grace_seconds: float) -> None:
    """Terminate every process left in a process group, then kill the survivors.

    The build is started in its own session, so its process group holds any
    helper that outlived the build process and still writes to its output.
    The group of the calling process is never signalled.

    Args:
        pgid: Process group ID, the PID of the build process.
        grace_seconds: Time allowed between SIGTERM and SIGKILL.
    """
    if os.name != "posix" or pgid == os.getpgrp():
        return
    if not _signal_group(pgid, signal.SIGTERM):
        return
    deadline = time.monotonic() + grace_seconds
    while time.monotonic() < deadline:
        if not _signal_group(pgid, 0):
            return
        time.sleep(0.05)
    logger.warning(f"Processes in group {pgid} ignored SIGTERM, killing them")
    _signal_group(pgid, signal.SIGKILL)


def _signal_group(pgid: int, sig: int) -> bool:
    try:
        os.killpg(pgid, sig)
        return True
    except ProcessLookupError:
        return False
    except PermissionError:
        logger.warning(f"Permission denied signalling process group {pgid}")
        return False


def is_process_alive(pid: int) -> bool:
    """Check whether a process exists and is not a zombie."""
    try:
        proc = psutil.Process(pid)
        return proc.is_running() and proc.status() != psutil.STATUS_ZOMBIE
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return False
