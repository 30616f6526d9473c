"""
Validation and error handling for the buildwatch package.

This module provides input validation and error handling with consistent
error reporting across the application.
"""

# Core exception classes and error handling
from .exceptions import (
    ErrorSeverity,
    ValidationError,
    handle_error,
    handle_config_error,
    handle_subprocess_error,
    handle_cli_error,
)

# Validation functions
from .validators import (
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_profile_name,
    validate_simple_command,
    validate_string_list,
    validate_string_mapping,
)

# Restart strategy (imports models.results, keep last)
from .strategies import RESTARTABLE_REASONS, RestartPolicy

__all__ = [
    # Core functionality
    "ErrorSeverity",
    "ValidationError",
    "handle_error",
    "handle_config_error",
    "handle_subprocess_error",
    "handle_cli_error",
    # Validators
    "validate_enum_choice",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_profile_name",
    "validate_simple_command",
    "validate_string_list",
    "validate_string_mapping",
    # Strategies
    "RESTARTABLE_REASONS",
    "RestartPolicy",
]
