"""
Configuration validation utilities.

This module turns raw TOML tables into validated WatcherSettings and
BuildProfile instances.
"""

import logging
from typing import Any, Dict, List

from ..models.config import BuildProfile, WatcherSettings
from ..models.invocation import DEFAULT_OUTPUT_BUFFER_LIMIT, DEFAULT_TERMINATION_GRACE_SECONDS
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_profile_name,
    validate_simple_command,
    validate_string_list,
    validate_string_mapping,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Below this the ceiling would trip on ordinary single log lines.
MIN_OUTPUT_BUFFER_LIMIT = 1024

_PROFILE_KEYS = {
    "name", "command", "arguments", "output_path", "base_href", "watch",
    "output_flag", "base_href_flag", "watch_flag", "working_directory",
    "env", "description",
}


def validate_watcher_settings(watcher_data: Dict[str, Any]) -> WatcherSettings:
    """
    Validate and create WatcherSettings from the raw ``[watcher]`` table.

    Args:
        watcher_data: Raw watcher configuration from TOML

    Returns:
        Validated WatcherSettings instance

    Raises:
        ValidationError: If validation fails
    """
    output_buffer_limit_bytes = validate_positive_integer(
        watcher_data.get("output_buffer_limit_bytes", DEFAULT_OUTPUT_BUFFER_LIMIT),
        min_value=MIN_OUTPUT_BUFFER_LIMIT,
        field_name="watcher.output_buffer_limit_bytes",
    )

    termination_grace_seconds = validate_positive_float(
        watcher_data.get("termination_grace_seconds", DEFAULT_TERMINATION_GRACE_SECONDS),
        min_value=0.0,
        max_value=300.0,
        field_name="watcher.termination_grace_seconds",
    )

    log_level = validate_enum_choice(
        watcher_data.get("log_level", "INFO"),
        choices=LOG_LEVELS,
        field_name="watcher.log_level",
        case_sensitive=False,
    )

    restart_on_failure = validate_positive_integer(
        watcher_data.get("restart_on_failure", 0),
        min_value=0,
        max_value=1000,
        field_name="watcher.restart_on_failure",
    )

    restart_delay_seconds = validate_positive_float(
        watcher_data.get("restart_delay_seconds", 2.0),
        min_value=0.0,
        max_value=3600.0,
        field_name="watcher.restart_delay_seconds",
    )

    if output_buffer_limit_bytes < DEFAULT_OUTPUT_BUFFER_LIMIT:
        logger.warning(
            f"watcher.output_buffer_limit_bytes={output_buffer_limit_bytes} is below the "
            f"default of {DEFAULT_OUTPUT_BUFFER_LIMIT}; verbose build tools may be stopped"
        )

    return WatcherSettings(
        output_buffer_limit_bytes=output_buffer_limit_bytes,
        termination_grace_seconds=termination_grace_seconds,
        log_level=log_level,
        restart_on_failure=restart_on_failure,
        restart_delay_seconds=restart_delay_seconds,
    )


def _optional_string(data: Dict[str, Any], key: str, field_name: str):
    value = data.get(key)
    if value is None:
        return None
    return validate_simple_command(value, field_name=field_name)


def validate_profile(profile_data: Dict[str, Any], existing_names: List[str]) -> BuildProfile:
    """
    Validate one ``[[profiles]]`` entry.

    Args:
        profile_data: Raw profile table
        existing_names: Names of profiles already validated

    Returns:
        Validated BuildProfile

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(profile_data, dict):
        raise ValidationError("Each profile must be a table", value=profile_data)

    name = validate_profile_name(
        profile_data.get("name", ""), existing_names=existing_names, field_name="profiles.name"
    )
    prefix = f"profiles.{name}"

    unknown = sorted(set(profile_data) - _PROFILE_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown keys in profile '{name}': {unknown}")

    watch = profile_data.get("watch", True)
    if not isinstance(watch, bool):
        raise ValidationError(f"{prefix}.watch must be a boolean", field_name=f"{prefix}.watch", value=watch)

    return BuildProfile(
        name=name,
        command=validate_simple_command(profile_data.get("command", ""), field_name=f"{prefix}.command"),
        arguments=validate_string_list(profile_data.get("arguments", []), field_name=f"{prefix}.arguments"),
        output_path=_optional_string(profile_data, "output_path", f"{prefix}.output_path"),
        base_href=_optional_string(profile_data, "base_href", f"{prefix}.base_href"),
        watch=watch,
        output_flag=validate_simple_command(
            profile_data.get("output_flag", "--output-path"), field_name=f"{prefix}.output_flag"
        ),
        base_href_flag=validate_simple_command(
            profile_data.get("base_href_flag", "--base-href"), field_name=f"{prefix}.base_href_flag"
        ),
        watch_flag=validate_simple_command(
            profile_data.get("watch_flag", "--watch"), field_name=f"{prefix}.watch_flag"
        ),
        working_directory=_optional_string(profile_data, "working_directory", f"{prefix}.working_directory"),
        env=validate_string_mapping(profile_data.get("env", {}), field_name=f"{prefix}.env"),
        description=str(profile_data.get("description", "")),
    )


def validate_profiles_config(profiles_data: List[Dict[str, Any]]) -> List[BuildProfile]:
    """
    Validate all profiles, enforcing unique names.

    Args:
        profiles_data: Raw list of profile tables

    Returns:
        Validated profiles in file order

    Raises:
        ValidationError: If any profile is invalid
    """
    if not isinstance(profiles_data, list):
        raise ValidationError("'profiles' must be an array of tables", field_name="profiles", value=profiles_data)

    profiles: List[BuildProfile] = []
    for profile_data in profiles_data:
        profiles.append(validate_profile(profile_data, [p.name for p in profiles]))

    if not profiles:
        logger.warning("No build profiles configured; only ad-hoc commands can be run")
    return profiles
