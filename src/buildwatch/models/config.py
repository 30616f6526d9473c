"""
Configuration data models.

This module contains the configuration structures loaded from TOML: the
global watcher settings and the named build profiles.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .invocation import DEFAULT_OUTPUT_BUFFER_LIMIT, DEFAULT_TERMINATION_GRACE_SECONDS


@dataclass
class WatcherSettings:
    """
    Global watcher behaviour, loaded from the ``[watcher]`` table of `config.toml`.
    """

    # Ceiling for a single output chunk before the build is stopped.
    output_buffer_limit_bytes: int = DEFAULT_OUTPUT_BUFFER_LIMIT
    # Time between SIGTERM and SIGKILL when stopping a build.
    termination_grace_seconds: float = DEFAULT_TERMINATION_GRACE_SECONDS
    log_level: str = "INFO"
    # Caller-side restarts after a failed build; 0 disables them.
    restart_on_failure: int = 0
    restart_delay_seconds: float = 2.0


@dataclass
class BuildProfile:
    """
    A named build invocation, loaded from `profiles.toml`.
    """

    # Unique name used to select the profile on the command line.
    name: str
    # The build tool command, e.g. "ng build" or "npx webpack".
    command: str
    # Extra arguments passed before the generated flags.
    arguments: List[str] = field(default_factory=list)
    # Directory the build tool writes into, typically a web server document root.
    output_path: Optional[str] = None
    # URL prefix the build tool uses for generated asset references.
    base_href: Optional[str] = None
    # Whether to keep the build tool resident and rebuilding on changes.
    watch: bool = True
    # Flag spellings of the wrapped build tool.
    output_flag: str = "--output-path"
    base_href_flag: str = "--base-href"
    watch_flag: str = "--watch"
    working_directory: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)
    description: str = ""


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    watcher: WatcherSettings
    profiles: List[BuildProfile]

    def get_profile(self, name: str) -> Optional[BuildProfile]:
        for profile in self.profiles:
            if profile.name == name:
                return profile
        return None
