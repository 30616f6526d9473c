"""
Build execution for the buildwatch package.

This module provides the BuildWatcher process wrapper and the console relay
that forwards its output.
"""

from .build_watcher import BuildWatcher, run_build, run_build_sync
from .relay import ConsoleRelay, relay_events

__all__ = [
    "BuildWatcher",
    "run_build",
    "run_build_sync",
    "ConsoleRelay",
    "relay_events",
]
