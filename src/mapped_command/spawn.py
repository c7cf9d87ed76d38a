"""The spawn seam: turning resolved options into a running child.

A :class:`Spawner` is shared between commands and never mutated once
installed. Each spawn returns a :class:`ChildHandle` owned by exactly one
:class:`~mapped_command.command.Child`.
"""

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import IO

from mapped_command import log
from mapped_command.env import EnvBuilder
from mapped_command.exit_status import SUCCESS, ExitStatus
from mapped_command.pipe import PipeSetup

OsStr = str | bytes


@dataclass(frozen=True)
class SpawnOptions:
    """Everything needed to start the process, besides the capture flags."""

    program: OsStr
    arguments: tuple[OsStr, ...] = ()
    env_builder: EnvBuilder = field(default_factory=EnvBuilder)
    working_directory_override: str | None = None
    custom_stdin_setup: PipeSetup | None = None
    custom_stdout_setup: PipeSetup | None = None
    custom_stderr_setup: PipeSetup | None = None

    def argv(self) -> list[OsStr]:
        return [self.program, *self.arguments]


@dataclass
class ExecResult:
    """Outcome of one run: the exit status plus the captured streams.

    ``stdout``/``stderr`` must be set iff the stream was requested to be
    captured when spawning, and ``None`` otherwise.
    """

    exit_status: ExitStatus = SUCCESS
    stdout: bytes | None = None
    stderr: bytes | None = None


class ChildHandle(ABC):
    """A spawned (possibly already finished) process."""

    @abstractmethod
    def wait_with_output(self) -> ExecResult:
        """Block until the process exits, draining captured pipes meanwhile.

        Raises ``OSError`` if waiting or reading failed.
        """

    def try_wait(self) -> ExitStatus | None:
        """Return the exit status if the process already exited, else ``None``."""
        raise io.UnsupportedOperation(f"{type(self).__name__} does not support try_wait")

    def take_stdin(self) -> IO[bytes] | None:
        return None

    def take_stdout(self) -> IO[bytes] | None:
        return None

    def take_stderr(self) -> IO[bytes] | None:
        return None


class Spawner(ABC):
    @abstractmethod
    def spawn(
        self, options: SpawnOptions, capture_stdout: bool, capture_stderr: bool
    ) -> ChildHandle:
        """Start a process for ``options``; raise ``OSError`` if that fails.

        A captured stream is piped for internal use only and must not be
        handed out by the ``take_*`` methods of the returned handle.
        """


class LoggingSpawner(Spawner):
    """Reports every spawn before delegating to ``inner``."""

    def __init__(self, inner: Spawner):
        self.inner = inner

    def spawn(
        self, options: SpawnOptions, capture_stdout: bool, capture_stderr: bool
    ) -> ChildHandle:
        log.command(options.argv(), cwd=options.working_directory_override)
        try:
            return self.inner.spawn(options, capture_stdout, capture_stderr)
        except OSError as e:
            log.failure(f"spawn failed: {e}")
            raise

    def __repr__(self) -> str:
        return f"LoggingSpawner({self.inner!r})"
