"""Output mappings: which streams a command captures and what ``run()`` returns.

A mapping is handed to :class:`~mapped_command.command.Command` on creation.
Its ``needs_captured_*`` answers are read once at that point, so they must
depend only on the mapping's own configuration.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from mapped_command.errors import (
    CommandIoError,
    MissingCapturedOutputError,
    OutputDecodeError,
    UnexpectedExitStatus,
)
from mapped_command.spawn import ExecResult

T = TypeVar("T")


class OutputMapping(ABC, Generic[T]):
    @abstractmethod
    def needs_captured_stdout(self) -> bool: ...

    @abstractmethod
    def needs_captured_stderr(self) -> bool: ...

    @abstractmethod
    def map_output(self, result: ExecResult) -> T:
        """Turn the finished run into the command's output, or raise.

        Only called after the exit status check passed, or always if the
        check is disabled; a mapping may then reject the status itself.
        """

    def io_error(self, error: CommandIoError) -> Exception:
        """The exception raised for a spawn or wait failure."""
        return error

    def unexpected_exit_status(self, error: UnexpectedExitStatus) -> Exception:
        """The exception raised when the exit status check fails."""
        return error

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _captured(data: bytes | None, stream: str) -> bytes:
    if data is None:
        raise MissingCapturedOutputError(stream)
    return data


def _decode(data: bytes | None, stream: str, encoding: str) -> str:
    try:
        return _captured(data, stream).decode(encoding)
    except UnicodeDecodeError as e:
        raise OutputDecodeError(stream, e) from e


class _Captures(OutputMapping[T]):
    """Base for mappings with fixed capture needs."""

    capture_stdout = False
    capture_stderr = False

    def needs_captured_stdout(self) -> bool:
        return self.capture_stdout

    def needs_captured_stderr(self) -> bool:
        return self.capture_stderr


class _TextCaptures(_Captures[T]):
    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def __repr__(self) -> str:
        return f"{type(self).__name__}(encoding={self.encoding!r})"


class ReturnNothing(_Captures[None]):
    def map_output(self, result: ExecResult) -> None:
        return None


class ReturnStdout(_Captures[bytes]):
    capture_stdout = True

    def map_output(self, result: ExecResult) -> bytes:
        return _captured(result.stdout, "stdout")


class ReturnStderr(_Captures[bytes]):
    capture_stderr = True

    def map_output(self, result: ExecResult) -> bytes:
        return _captured(result.stderr, "stderr")


@dataclass(frozen=True)
class CapturedStdoutAndErr:
    stdout: bytes
    stderr: bytes


class ReturnStdoutAndErr(_Captures[CapturedStdoutAndErr]):
    capture_stdout = True
    capture_stderr = True

    def map_output(self, result: ExecResult) -> CapturedStdoutAndErr:
        return CapturedStdoutAndErr(
            stdout=_captured(result.stdout, "stdout"),
            stderr=_captured(result.stderr, "stderr"),
        )


class ReturnStdoutString(_TextCaptures[str]):
    capture_stdout = True

    def map_output(self, result: ExecResult) -> str:
        return _decode(result.stdout, "stdout", self.encoding)


class ReturnStderrString(_TextCaptures[str]):
    capture_stderr = True

    def map_output(self, result: ExecResult) -> str:
        return _decode(result.stderr, "stderr", self.encoding)


@dataclass(frozen=True)
class CapturedStdoutAndErrStrings:
    stdout: str
    stderr: str


class ReturnStdoutAndErrStrings(_TextCaptures[CapturedStdoutAndErrStrings]):
    capture_stdout = True
    capture_stderr = True

    def map_output(self, result: ExecResult) -> CapturedStdoutAndErrStrings:
        return CapturedStdoutAndErrStrings(
            stdout=_decode(result.stdout, "stdout", self.encoding),
            stderr=_decode(result.stderr, "stderr", self.encoding),
        )


class MapStdout(_Captures[T]):
    """Applies ``func`` to the captured stdout bytes."""

    capture_stdout = True

    def __init__(self, func: Callable[[bytes], T]):
        self.func = func

    def map_output(self, result: ExecResult) -> T:
        return self.func(_captured(result.stdout, "stdout"))

    def __repr__(self) -> str:
        return f"MapStdout({self.func!r})"


class MapStdoutString(_TextCaptures[T]):
    """Applies ``func`` to the decoded stdout.

    Exceptions raised by ``func`` propagate unchanged out of ``run()``.
    """

    capture_stdout = True

    def __init__(self, func: Callable[[str], T], encoding: str = "utf-8"):
        super().__init__(encoding)
        self.func = func

    def map_output(self, result: ExecResult) -> T:
        return self.func(_decode(result.stdout, "stdout", self.encoding))

    def __repr__(self) -> str:
        return f"MapStdoutString({self.func!r}, encoding={self.encoding!r})"


class MapStderrString(_TextCaptures[T]):
    capture_stderr = True

    def __init__(self, func: Callable[[str], T], encoding: str = "utf-8"):
        super().__init__(encoding)
        self.func = func

    def map_output(self, result: ExecResult) -> T:
        return self.func(_decode(result.stderr, "stderr", self.encoding))

    def __repr__(self) -> str:
        return f"MapStderrString({self.func!r}, encoding={self.encoding!r})"


def lines(text: str) -> list[str]:
    """``MapStdoutString(lines)`` returns stdout split into lines."""
    return text.splitlines()
