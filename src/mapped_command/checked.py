"""Exit status checking on top of plain ``subprocess``, without output mappings.

For callers who already build their own ``Popen`` arguments and only want a
failing exit status to become an exception::

    checked_status(["make", "install"])
    out = checked_output(["git", "rev-parse", "HEAD"]).stdout
"""

import subprocess
from dataclasses import dataclass

from mapped_command.exit_status import ExitStatus


@dataclass(frozen=True)
class Output:
    """Collected output, deliberately without the exit status."""

    stdout: bytes
    stderr: bytes

    @classmethod
    def from_completed(cls, stdout: bytes | None, stderr: bytes | None) -> "Output":
        return cls(stdout=stdout or b"", stderr=stderr or b"")


class StatusError(Exception):
    """I/O failure or unsuccessful exit status of a checked call.

    Exactly one of ``io_error`` and ``exit_status`` is set. ``output`` is
    only present for failures of the ``*_output`` variants.
    """

    def __init__(
        self,
        io_error: OSError | None = None,
        exit_status: ExitStatus | None = None,
        output: Output | None = None,
    ):
        if (io_error is None) == (exit_status is None):
            raise ValueError("StatusError needs exactly one of io_error or exit_status")
        self.io_error = io_error
        self.exit_status = exit_status
        self.output = output
        if io_error is not None:
            super().__init__(str(io_error))
            self.__cause__ = io_error
        else:
            super().__init__(_failure_message(exit_status))

    @classmethod
    def from_io(cls, error: OSError) -> "StatusError":
        return cls(io_error=error)

    @classmethod
    def failure(cls, exit_status: ExitStatus, output: Output | None = None) -> "StatusError":
        return cls(exit_status=exit_status, output=output)

    @property
    def is_failure(self) -> bool:
        return self.exit_status is not None


class StatusErrorWithOutput(StatusError):
    """Raised by the ``*_output`` variants; failures always carry the output."""

    @classmethod
    def failure(cls, exit_status: ExitStatus, output: Output) -> "StatusErrorWithOutput":
        return cls(exit_status=exit_status, output=output)


def _failure_message(exit_status: ExitStatus) -> str:
    if exit_status.code is not None:
        return f"command failed with exit status {exit_status.code}"
    return "command failed with exit status <None> possible terminated by signal"


def _check(returncode: int, error_type=StatusError, output: Output | None = None) -> None:
    exit_status = ExitStatus.from_returncode(returncode)
    if not exit_status.successful:
        raise error_type.failure(exit_status, output)


def checked_status(args, **popen_kwargs) -> None:
    """Like ``subprocess.run(args).returncode`` but raising on failure."""
    try:
        completed = subprocess.run(args, **popen_kwargs)
    except OSError as e:
        raise StatusError.from_io(e) from e
    _check(completed.returncode)


def checked_output(args, **popen_kwargs) -> Output:
    """Run with stdout and stderr captured; a failure carries the output."""
    try:
        completed = subprocess.run(
            args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, **popen_kwargs
        )
    except OSError as e:
        raise StatusErrorWithOutput.from_io(e) from e
    output = Output.from_completed(completed.stdout, completed.stderr)
    _check(completed.returncode, StatusErrorWithOutput, output)
    return output


def checked_wait(proc: subprocess.Popen) -> None:
    try:
        returncode = proc.wait()
    except OSError as e:
        raise StatusError.from_io(e) from e
    _check(returncode)


def checked_wait_with_output(proc: subprocess.Popen) -> Output:
    """``proc.communicate()`` plus a status check.

    Streams that were not piped when ``proc`` was created come back empty.
    """
    try:
        stdout, stderr = proc.communicate()
    except OSError as e:
        raise StatusErrorWithOutput.from_io(e) from e
    output = Output.from_completed(stdout, stderr)
    _check(proc.returncode, StatusErrorWithOutput, output)
    return output


def checked_try_wait(proc: subprocess.Popen) -> bool:
    """``False`` while running, ``True`` once exited successfully, raise otherwise."""
    try:
        returncode = proc.poll()
    except OSError as e:
        raise StatusError.from_io(e) from e
    if returncode is None:
        return False
    _check(returncode)
    return True
