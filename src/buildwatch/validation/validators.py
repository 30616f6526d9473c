"""
Validation functions for invocations, profiles and watcher settings.
"""

import re
from typing import Any, Dict, List, Optional

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Booleans are rejected even though they are ``int`` subclasses.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_profile_name(
    name: str,
    existing_names: Optional[List[str]] = None,
    field_name: str = "profile_name"
) -> str:
    """
    Validate profile name format.

    Args:
        name: Profile name to validate
        existing_names: List of existing profile names (for uniqueness check)
        field_name: Name of the field being validated

    Returns:
        Validated profile name

    Raises:
        ValidationError: If name is invalid
    """
    if not name or not isinstance(name, str):
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=name
        )

    if not re.match(r'^[a-zA-Z0-9_-]+$', name):
        raise ValidationError(
            f"{field_name} must contain only alphanumeric characters, underscores, and hyphens: {name}",
            field_name=field_name,
            value=name
        )

    if existing_names and name in existing_names:
        raise ValidationError(
            f"{field_name} must be unique, '{name}' already exists",
            field_name=field_name,
            value=name
        )

    return name


def validate_simple_command(command: str, field_name: str = "command") -> str:
    """
    Validate that a command is a non-empty executable reference.

    Args:
        command: Command to validate
        field_name: Name of the field being validated

    Returns:
        Validated command

    Raises:
        ValidationError: If command is empty or not a string
    """
    if not isinstance(command, str) or not command.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=command
        )
    return command


def validate_string_list(values: Any, field_name: str = "values") -> List[str]:
    """
    Validate an ordered sequence of strings.

    Args:
        values: List or tuple to validate
        field_name: Name of the field being validated

    Returns:
        The values as a list of strings

    Raises:
        ValidationError: If values is not a sequence of strings
    """
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise ValidationError(
            f"{field_name} must be a list of strings",
            field_name=field_name,
            value=values
        )
    for i, item in enumerate(values):
        if not isinstance(item, str):
            raise ValidationError(
                f"{field_name} item {i} must be a string, got {type(item).__name__}",
                field_name=field_name,
                value=values
            )
    return list(values)


def validate_string_mapping(values: Any, field_name: str = "values") -> Dict[str, str]:
    """Validate a mapping of string keys to string values (e.g. environment)."""
    if not isinstance(values, dict):
        raise ValidationError(
            f"{field_name} must be a table of strings",
            field_name=field_name,
            value=values
        )
    for key, item in values.items():
        if not isinstance(key, str) or not isinstance(item, str):
            raise ValidationError(
                f"{field_name} entry {key!r} must map a string to a string",
                field_name=field_name,
                value=values
            )
    return dict(values)


def validate_enum_choice(
    value: Any,
    choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        choices: List of allowed choices
        field_name: Name of the field being validated
        case_sensitive: Whether the comparison should be case-sensitive

    Returns:
        Validated choice, spelled as in ``choices``

    Raises:
        ValidationError: If value is not in choices
    """
    str_value = str(value)

    if case_sensitive:
        if str_value not in choices:
            raise ValidationError(
                f"{field_name} must be one of {choices}, got {value}",
                field_name=field_name,
                value=value
            )
        return str_value

    lower_choices = [choice.lower() for choice in choices]
    lower_value = str_value.lower()
    if lower_value not in lower_choices:
        raise ValidationError(
            f"{field_name} must be one of {choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return choices[lower_choices.index(lower_value)]
