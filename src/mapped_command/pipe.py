"""Custom stdio setups for streams the output mapping does not capture."""

import enum
import subprocess
from dataclasses import dataclass
from typing import IO, Any


class PipeSetupConflictWarning(UserWarning):
    """A custom setup was given for a stream that is captured anyway.

    Capturing takes precedence: the custom setup is ignored at spawn time.
    """


class PipeKind(enum.Enum):
    PIPED = "piped"
    NULL = "null"
    INHERIT = "inherit"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class PipeSetup:
    kind: PipeKind
    target: IO[Any] | int | None = None

    @classmethod
    def redirect(cls, target: IO[Any] | int) -> "PipeSetup":
        """Connect the stream to an open file object or raw file descriptor."""
        return cls(PipeKind.REDIRECT, target)

    def popen_arg(self):
        """The value to pass as ``stdin=``/``stdout=``/``stderr=`` to ``Popen``."""
        if self.kind is PipeKind.PIPED:
            return subprocess.PIPE
        if self.kind is PipeKind.NULL:
            return subprocess.DEVNULL
        if self.kind is PipeKind.INHERIT:
            return None
        return self.target

    def __repr__(self) -> str:
        if self.kind is PipeKind.REDIRECT:
            return f"PipeSetup.redirect({self.target!r})"
        return f"PipeSetup.{self.kind.name}"


PipeSetup.PIPED = PipeSetup(PipeKind.PIPED)
PipeSetup.NULL = PipeSetup(PipeKind.NULL)
PipeSetup.INHERIT = PipeSetup(PipeKind.INHERIT)


def coerce(setup) -> PipeSetup:
    if isinstance(setup, PipeSetup):
        return setup
    return PipeSetup.redirect(setup)
