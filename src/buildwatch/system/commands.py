"""
Build command preparation utilities.

This module turns configured build profiles into explicit BuildInvocation
values and checks that the build tool can be found before it is launched.
"""

import logging
import shlex
import shutil
from typing import List, Optional

from ..models.config import BuildProfile, WatcherSettings
from ..models.invocation import BuildInvocation

logger = logging.getLogger(__name__)


def prepare_build_arguments(profile: BuildProfile, watch: Optional[bool] = None) -> List[str]:
    """Assemble the ordered argument list for a build profile.

    The profile's own arguments come first, followed by the output directory,
    the base URL prefix and finally the watch flag. Values are passed to the
    build tool verbatim.

    Args:
        profile: The build profile to render.
        watch: Overrides ``profile.watch`` when not None.

    Returns:
        Ordered list of argument strings.

    Examples:
        >>> p = BuildProfile(name="web", command="ng build", output_path="/srv/www", base_href="/app/")
        >>> prepare_build_arguments(p)
        ['--output-path', '/srv/www', '--base-href', '/app/', '--watch']
    """
    arguments = list(profile.arguments)

    if profile.output_path:
        arguments.extend([profile.output_flag, profile.output_path])
    if profile.base_href:
        arguments.extend([profile.base_href_flag, profile.base_href])

    effective_watch = profile.watch if watch is None else watch
    if effective_watch:
        arguments.append(profile.watch_flag)

    return arguments


def build_invocation(
    profile: BuildProfile,
    settings: WatcherSettings,
    watch: Optional[bool] = None,
    output_buffer_limit_bytes: Optional[int] = None,
) -> BuildInvocation:
    """Create the BuildInvocation for one run of a profile.

    Args:
        profile: Configured build profile.
        settings: Global watcher settings supplying limits and timeouts.
        watch: Overrides the profile's watch flag when not None.
        output_buffer_limit_bytes: Overrides the configured ceiling when not None.

    Returns:
        A validated, immutable BuildInvocation.
    """
    invocation = BuildInvocation(
        command=profile.command,
        arguments=prepare_build_arguments(profile, watch=watch),
        output_buffer_limit_bytes=(
            output_buffer_limit_bytes
            if output_buffer_limit_bytes is not None
            else settings.output_buffer_limit_bytes
        ),
        working_directory=profile.working_directory,
        env=dict(profile.env) or None,
        termination_grace_seconds=settings.termination_grace_seconds,
    )
    logger.debug(f"Prepared invocation for profile '{profile.name}': {invocation.display()}")
    return invocation


def find_executable(invocation: BuildInvocation) -> Optional[str]:
    """Locate the invocation's program on PATH.

    Returns:
        The resolved path, or None if the program cannot be found.
    """
    program = invocation.program
    search_path = None
    if invocation.env and "PATH" in invocation.env:
        search_path = invocation.env["PATH"]

    resolved = shutil.which(program, path=search_path)
    if resolved is None:
        logger.debug(f"Executable not found for command: {shlex.quote(invocation.program)}")
    return resolved
