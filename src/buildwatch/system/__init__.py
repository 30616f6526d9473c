"""
System interaction utilities.

- Build command preparation from configured profiles
- Executable lookup for pre-flight diagnostics
- Process tree discovery, signalling and liveness checks via psutil
- Process group termination for helpers that outlive the build
"""

# Commands
from .commands import build_invocation, find_executable, prepare_build_arguments

# Process trees
from .processes import (
    collect_descendants,
    is_process_alive,
    signal_processes,
    stop_descendants,
    stop_process_group,
    wait_for_processes,
)

__all__ = [
    # Commands
    "build_invocation",
    "find_executable",
    "prepare_build_arguments",
    # Process trees
    "collect_descendants",
    "is_process_alive",
    "signal_processes",
    "stop_descendants",
    "stop_process_group",
    "wait_for_processes",
]
