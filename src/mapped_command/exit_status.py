"""Platform-neutral exit status: a numeric code or an opaque OS-specific status."""

import os
from dataclasses import dataclass

_POSIX = os.name == "posix"


@dataclass(frozen=True)
class OpaqueOsExitStatus:
    """A termination a numeric exit code can't express (e.g. a signal).

    ``raw`` is the POSIX wait status. Platforms without such statuses never
    produce one, but the default value can still be used as an expectation.
    """

    raw: int

    @classmethod
    def target_specific_default(cls) -> "OpaqueOsExitStatus":
        return cls(0)

    @property
    def signal(self) -> int | None:
        sig = self.raw & 0x7F
        return sig or None

    @property
    def core_dumped(self) -> bool:
        return bool(self.raw & 0x80)

    def __str__(self) -> str:
        if self.signal is not None:
            suffix = " (core dumped)" if self.core_dumped else ""
            return f"signal {self.signal}{suffix}"
        return f"os-specific {self.raw:#x}"


@dataclass(frozen=True, eq=False)
class ExitStatus:
    """How a process terminated.

    Exactly one of ``code`` and ``os_specific`` is set. A status compares
    equal to an ``int`` when it is a code with that value.
    """

    code: int | None = None
    os_specific: OpaqueOsExitStatus | None = None

    def __post_init__(self):
        if (self.code is None) == (self.os_specific is None):
            raise ValueError("ExitStatus needs exactly one of code or os_specific")

    @classmethod
    def from_code(cls, code: int) -> "ExitStatus":
        return cls(code=int(code))

    @classmethod
    def from_raw(cls, raw: int) -> "ExitStatus":
        """Build from a raw wait status (``os.wait``); on Windows it is the code."""
        if not _POSIX:
            return cls(code=raw)
        if os.WIFEXITED(raw):
            return cls(code=os.WEXITSTATUS(raw))
        return cls(os_specific=OpaqueOsExitStatus(raw))

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitStatus":
        """Build from ``Popen.returncode``; ``-N`` means killed by signal N on POSIX."""
        if _POSIX and returncode < 0:
            return cls(os_specific=OpaqueOsExitStatus(-returncode))
        return cls(code=returncode)

    @classmethod
    def coerce(cls, value) -> "ExitStatus":
        if isinstance(value, ExitStatus):
            return value
        if isinstance(value, OpaqueOsExitStatus):
            return cls(os_specific=value)
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(code=value)
        raise TypeError(f"cannot use {type(value).__name__} as an exit status")

    @property
    def successful(self) -> bool:
        return self.code == 0

    def __eq__(self, other) -> bool:
        if isinstance(other, ExitStatus):
            return self.code == other.code and self.os_specific == other.os_specific
        if isinstance(other, int) and not isinstance(other, bool):
            return self.code == other
        return NotImplemented

    def __hash__(self) -> int:
        if self.code is not None:
            return hash(self.code)
        return hash(self.os_specific)

    def __str__(self) -> str:
        if self.code is not None:
            return hex(self.code)
        return str(self.os_specific)


SUCCESS = ExitStatus(code=0)
