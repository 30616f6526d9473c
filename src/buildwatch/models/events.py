"""
Output events produced by a running build.

A build is observed as a sequence of tagged events: chunks from the child's
standard output and standard error, followed by exactly one ExitEvent that
carries the BuildResult. Scripted sequences of these events can stand in for
a real process in tests.
"""

from dataclasses import dataclass
from typing import Union

from .results import BuildResult


@dataclass(frozen=True)
class StdoutChunk:
    """One chunk (a line, or the unterminated tail) of standard output."""
    data: bytes

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class StderrChunk:
    """One chunk (a line, or the unterminated tail) of standard error."""
    data: bytes

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ExitEvent:
    """Terminal event of every build event sequence."""
    result: BuildResult


OutputEvent = Union[StdoutChunk, StderrChunk, ExitEvent]
