"""
Build invocation model.

A BuildInvocation is the explicit, immutable description of one run of an
external build tool. Nothing about the tool (its name, its output directory,
its flags) is held in module-level state; callers build a fresh invocation
for every run.
"""

import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..validation.exceptions import ValidationError
from ..validation.validators import (
    validate_positive_float,
    validate_positive_integer,
    validate_simple_command,
    validate_string_list,
    validate_string_mapping,
)

# Large enough for the progress/log chunks typical front-end build tools emit.
DEFAULT_OUTPUT_BUFFER_LIMIT = 1_024_000

DEFAULT_TERMINATION_GRACE_SECONDS = 5.0


@dataclass(frozen=True)
class BuildInvocation:
    """
    Configuration for a single build run.

    ``command`` is split with POSIX shell-word rules, so it may carry leading
    arguments (``"sh -c 'exit 3'"``). ``arguments`` are appended verbatim and
    never parsed; paths inside them are opaque strings.
    """

    command: str
    arguments: Sequence[str] = ()
    output_buffer_limit_bytes: int = DEFAULT_OUTPUT_BUFFER_LIMIT
    working_directory: Optional[str] = None
    env: Optional[Dict[str, str]] = field(default=None, hash=False)
    termination_grace_seconds: float = DEFAULT_TERMINATION_GRACE_SECONDS

    def __post_init__(self):
        validate_simple_command(self.command, field_name="command")
        try:
            program_words = shlex.split(self.command)
        except ValueError as e:
            raise ValidationError(
                f"command could not be parsed: {e}",
                field_name="command",
                value=self.command,
            )
        if not program_words:
            raise ValidationError(
                "command must name an executable",
                field_name="command",
                value=self.command,
            )

        # Normalise to a tuple so the invocation stays immutable.
        arguments = validate_string_list(self.arguments, field_name="arguments")
        object.__setattr__(self, "arguments", tuple(arguments))

        validate_positive_integer(
            self.output_buffer_limit_bytes,
            min_value=1,
            field_name="output_buffer_limit_bytes",
        )
        validate_positive_float(
            self.termination_grace_seconds,
            min_value=0.0,
            field_name="termination_grace_seconds",
        )
        if self.working_directory is not None:
            validate_simple_command(self.working_directory, field_name="working_directory")
        if self.env is not None:
            object.__setattr__(
                self, "env", validate_string_mapping(self.env, field_name="env")
            )

    @property
    def program(self) -> str:
        """The executable word of ``command``."""
        return shlex.split(self.command)[0]

    def argv(self) -> List[str]:
        """Full argument vector: the words of ``command`` followed by ``arguments``."""
        return shlex.split(self.command) + list(self.arguments)

    def display(self) -> str:
        """Shell-quoted rendering of the argument vector, for logs."""
        return shlex.join(self.argv())
