"""
Command-line interface for buildwatch.

This module provides the ``buildwatch`` entry point: it resolves a configured
build profile (or an ad-hoc command given after ``--``) into a build
invocation, runs it under a BuildSupervisor, and exits with a status that
mirrors the wrapped build tool's.
"""

import argparse
import asyncio
import errno
import logging
import shlex
import sys
import tomllib
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..models.config import WatcherSettings
from ..models.invocation import BuildInvocation
from ..models.results import BuildResult, TerminationReason
from ..orchestration import BuildSupervisor
from ..system.commands import build_invocation, find_executable
from ..validation import (
    RestartPolicy,
    ValidationError,
    handle_cli_error,
    validate_positive_integer,
    validate_profile_name,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

EXIT_USAGE_ERROR = 1
EXIT_CANNOT_EXECUTE = 126
EXIT_NOT_FOUND = 127
EXIT_CANCELLED = 130


def setup_logging(level: str) -> None:
    """Configure root logging on stderr, keeping stdout for build output."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildwatch",
        description=(
            "Run a front-end build tool, stream its output to the console and "
            "exit with its status. Run a configured profile with -p, or an "
            "ad-hoc command after '--'."
        ),
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to config.toml (defaults to conf/config.toml of the installation).",
    )
    parser.add_argument(
        "-p",
        "--profile",
        type=str,
        help="Name of the build profile to run.",
    )
    parser.add_argument(
        "--no-watch",
        action="store_true",
        help="Run a one-shot build: omit the profile's watch flag.",
    )
    parser.add_argument(
        "--buffer-limit",
        type=str,
        help="Largest single output chunk in bytes before the build is stopped.",
    )
    parser.add_argument(
        "--restart-on-failure",
        type=str,
        help="Restart a crashed build up to N times (overrides the configuration).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (overrides the configuration).",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Ad-hoc build command and its arguments, after '--'.",
    )
    return parser


def exit_code_for(result: BuildResult) -> int:
    """
    Map a build result to a process exit status.

    Returns:
        0 on success, the build tool's own status on a non-zero exit,
        128 + N when it was killed by signal N, 127/126 when it could not
        be started, 130 when cancelled and 1 on buffer overflow.
    """
    if result.exit_success:
        return 0

    reason = result.termination_reason
    if reason is TerminationReason.CANCELLED:
        return EXIT_CANCELLED
    if reason is TerminationReason.SPAWN_FAILURE:
        return EXIT_NOT_FOUND if result.spawn_errno == errno.ENOENT else EXIT_CANNOT_EXECUTE
    if reason is TerminationReason.NON_ZERO_EXIT and result.exit_code is not None:
        if result.exit_code > 0:
            return result.exit_code
        if result.exit_code < 0:
            return 128 - result.exit_code
    return 1


def _strip_separator(command: List[str]) -> List[str]:
    if command and command[0] == "--":
        return command[1:]
    return command


def _resolve_invocation(args: argparse.Namespace, command: List[str]) -> tuple:
    """
    Turn parsed arguments into a (BuildInvocation, WatcherSettings) pair.

    Raises:
        ValidationError: If arguments or configuration are invalid
    """
    buffer_limit = None
    if args.buffer_limit is not None:
        buffer_limit = validate_positive_integer(
            args.buffer_limit, min_value=1, field_name="--buffer-limit"
        )

    if args.profile:
        profile_name = validate_profile_name(args.profile, field_name="--profile argument")
        app_config = get_config()
        profile = app_config.get_profile(profile_name)
        if profile is None:
            available = ", ".join(p.name for p in app_config.profiles) or "none"
            raise ValidationError(
                f"Profile '{profile_name}' not found in configuration. Available profiles: {available}",
                field_name="--profile",
                value=profile_name,
            )
        invocation = build_invocation(
            profile,
            app_config.watcher,
            watch=False if args.no_watch else None,
            output_buffer_limit_bytes=buffer_limit,
        )
        return invocation, app_config.watcher

    settings = get_config().watcher if args.config else WatcherSettings()
    if args.no_watch:
        logger.warning("--no-watch only applies to profiles; ignoring it for an ad-hoc command")
    invocation = BuildInvocation(
        # The program word is quoted so paths containing spaces survive splitting.
        command=shlex.quote(command[0]),
        arguments=command[1:],
        output_buffer_limit_bytes=(
            buffer_limit if buffer_limit is not None else settings.output_buffer_limit_bytes
        ),
        termination_grace_seconds=settings.termination_grace_seconds,
    )
    return invocation, settings


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for buildwatch.

    Raises:
        SystemExit: Always; the status mirrors the build result.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    command = _strip_separator(args.command)

    setup_logging(args.log_level or "INFO")

    if args.profile and command:
        parser.error("use either --profile or an ad-hoc command, not both")
    if not args.profile and not command:
        parser.error("a --profile or an ad-hoc command after '--' is required")

    if args.config:
        set_config_path(args.config)

    try:
        invocation, settings = _resolve_invocation(args, command)
        if not args.log_level:
            setup_logging(settings.log_level)

        max_restarts = settings.restart_on_failure
        if args.restart_on_failure is not None:
            max_restarts = validate_positive_integer(
                args.restart_on_failure, min_value=0, field_name="--restart-on-failure"
            )
        restart_policy = RestartPolicy(
            max_restarts=max_restarts,
            delay_seconds=settings.restart_delay_seconds,
        )
    except ValidationError as e:
        handle_cli_error(error=e, context="argument validation", exit_code=EXIT_USAGE_ERROR, logger=logger)
    except (OSError, KeyError, tomllib.TOMLDecodeError) as e:
        handle_cli_error(error=e, context="configuration loading", exit_code=EXIT_USAGE_ERROR, logger=logger)

    if find_executable(invocation) is None:
        logger.warning(f"'{invocation.program}' was not found on PATH; the build may fail to start")

    logger.info(f"Running build: {invocation.display()}")
    supervisor = BuildSupervisor(invocation, restart_policy=restart_policy)
    result = asyncio.run(supervisor.run())

    exit_code = exit_code_for(result)
    if result.exit_success:
        logger.info("Build finished successfully")
    else:
        logger.error(
            f"Build finished with {result.termination_reason.value}; exiting with status {exit_code}"
        )
    sys.exit(exit_code)


if __name__ == "__main__":
    main_cli()
