"""
Data models for the build watcher.

Invocation Models:
- BuildInvocation, the immutable description of one build run

Event Models:
- StdoutChunk, StderrChunk and ExitEvent, the tagged output sequence

Result Models:
- BuildResult, TerminationReason and the WatcherState lifecycle

Configuration Models:
- WatcherSettings, BuildProfile and the aggregating AppConfig
"""

# Invocation models
from .invocation import (
    BuildInvocation,
    DEFAULT_OUTPUT_BUFFER_LIMIT,
    DEFAULT_TERMINATION_GRACE_SECONDS,
)

# Result models
from .results import BuildResult, TerminationReason, WatcherState

# Event models
from .events import ExitEvent, OutputEvent, StderrChunk, StdoutChunk

# Configuration models
from .config import AppConfig, BuildProfile, WatcherSettings

__all__ = [
    # Invocation
    "BuildInvocation",
    "DEFAULT_OUTPUT_BUFFER_LIMIT",
    "DEFAULT_TERMINATION_GRACE_SECONDS",
    # Results
    "BuildResult",
    "TerminationReason",
    "WatcherState",
    # Events
    "ExitEvent",
    "OutputEvent",
    "StderrChunk",
    "StdoutChunk",
    # Configuration
    "AppConfig",
    "BuildProfile",
    "WatcherSettings",
]
