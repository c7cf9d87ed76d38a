"""Failures of the spawn -> wait -> check -> map pipeline."""

from mapped_command.exit_status import ExitStatus


class CommandExecutionError(Exception):
    """Base class for everything the command pipeline raises."""


class CommandIoError(CommandExecutionError):
    """Spawning, waiting or pipe handling failed at the OS boundary."""

    phase = "io"

    def __init__(self, error: OSError):
        super().__init__(f"{self.phase} failed: {error}")
        self.error = error
        self.__cause__ = error


class SpawnError(CommandIoError):
    phase = "spawning the process"


class WaitError(CommandIoError):
    phase = "waiting for the process"


class UnexpectedExitStatus(CommandExecutionError):
    """The process completed, but not with the expected exit status."""

    def __init__(self, got: ExitStatus, expected: ExitStatus):
        super().__init__(f"Unexpected exit status. Got: {got}, Expected: {expected}")
        self.got = got
        self.expected = expected


class OutputDecodeError(CommandExecutionError):
    """Captured bytes could not be decoded as text."""

    def __init__(self, stream: str, error: UnicodeDecodeError):
        super().__init__(f"captured {stream} is not valid {error.encoding}: {error.reason}")
        self.stream = stream
        self.error = error
        self.__cause__ = error


class MissingCapturedOutputError(CommandExecutionError):
    """A stream the output mapping needs was not captured by the spawner."""

    def __init__(self, stream: str):
        super().__init__(f"{stream} was expected to be captured but the spawner returned none")
        self.stream = stream
