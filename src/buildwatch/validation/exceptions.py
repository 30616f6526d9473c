"""
Error types and reporting helpers shared by the buildwatch modules.

Failures are logged once, at the layer that knows what was being attempted,
and then either re-raised or turned into a process exit status by the CLI.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """How loudly a handled error is reported."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


# Tracebacks are only worth printing for the two ends of the scale.
_WITH_TRACEBACK = {ErrorSeverity.DEBUG, ErrorSeverity.CRITICAL}


class ValidationError(Exception):
    """
    A build invocation, build profile or watcher setting was rejected.

    ``field_name`` and ``value`` identify the offending input so callers
    can report it without parsing the message.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log ``error`` under ``context`` and re-raise it unless told otherwise.

    Args:
        error: The exception being handled
        context: What was being done when it was raised, e.g. "reading build stdout"
        severity: ErrorSeverity member or its name, case-insensitive
        reraise: Raise ``error`` again after logging
        logger: Logger to report through; this module's logger by default
    """
    if isinstance(severity, str):
        severity = ErrorSeverity(severity.lower())
    log = getattr(logger or globals()['logger'], severity.value)
    log(f"Error in {context}: {error}", exc_info=severity in _WITH_TRACEBACK)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    handle_error(error, f"config {context}", **kwargs)


def handle_subprocess_error(error: Exception, command: str, **kwargs) -> None:
    handle_error(error, f"subprocess command '{command}'", **kwargs)


def handle_cli_error(error: Exception, context: str, exit_code: int = 1,
                     severity: ErrorSeverity = ErrorSeverity.ERROR, **kwargs) -> None:
    """Report an error that ends the command line run, then exit with ``exit_code``."""
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)
    sys.exit(exit_code)
