"""
BuildWatch: supervised front-end build runner.

This package launches a front-end build tool (typically an Angular CLI build
in watch mode) as a child process, streams its output to the console as it
is produced, and reports why and how the build ended.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Invocations, output events and build results
- validation: Input validation, error handling and restart policy
- system: Argument assembly and process tree management
- executor: The BuildWatcher and console relay
- orchestration: Supervision, restarts and signal handling
- cli: Command-line interface

Usage:
    From command line:
        buildwatch -p frontend
        buildwatch -- npx ng build --watch

    Programmatically:
        from buildwatch import BuildInvocation, BuildWatcher
        watcher = BuildWatcher(BuildInvocation(command="npx ng build"))
        async for event in watcher.events():
            ...
"""

# Main interfaces
from .config import get_config, clear_config_cache, set_config_path
from .executor import BuildWatcher, ConsoleRelay, run_build, run_build_sync
from .orchestration import BuildSupervisor
from .cli import main_cli

# Model classes for external use
from .models import (
    AppConfig,
    BuildInvocation,
    BuildProfile,
    BuildResult,
    ExitEvent,
    StderrChunk,
    StdoutChunk,
    TerminationReason,
    WatcherSettings,
    WatcherState,
)

# Validation utilities
from .validation import (
    RestartPolicy,
    ValidationError,
)

# System utilities
from .system import build_invocation, prepare_build_arguments

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "BuildWatcher",
    "BuildSupervisor",
    "ConsoleRelay",
    "run_build",
    "run_build_sync",
    "main_cli",
    # Models
    "AppConfig",
    "BuildInvocation",
    "BuildProfile",
    "BuildResult",
    "ExitEvent",
    "StderrChunk",
    "StdoutChunk",
    "TerminationReason",
    "WatcherSettings",
    "WatcherState",
    # Validation
    "RestartPolicy",
    "ValidationError",
    # System utilities
    "build_invocation",
    "prepare_build_arguments",
]
