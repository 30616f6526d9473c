"""
Orchestration of supervised builds.

- BuildSupervisor: relays output, restarts failed builds, honours signals
- SignalHandler: SIGINT/SIGTERM delegation to active supervisors
"""

from .signal_handler import SignalHandler
from .supervisor import BuildSupervisor

__all__ = [
    "BuildSupervisor",
    "SignalHandler",
]
