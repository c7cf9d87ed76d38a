"""Command builder and Child handle: spawn, wait, check status, map output.

Commands are values: every ``with_*``/``without_*`` method returns a new
``Command`` and leaves the receiver untouched, so helper functions can
build and return ready-to-run commands::

    def ls_command() -> Command[list[str]]:
        return Command("ls", MapStdoutString(lines))

    ls_command().with_argument("/tmp").run()
"""

import copy
import os
import warnings
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import IO, Generic, TypeVar

from mapped_command import mock
from mapped_command.env import EnvBuilder
from mapped_command.errors import SpawnError, UnexpectedExitStatus, WaitError
from mapped_command.exit_status import SUCCESS, ExitStatus
from mapped_command.output_mapping import OutputMapping
from mapped_command.pipe import PipeSetup, PipeSetupConflictWarning
from mapped_command.pipe import coerce as coerce_pipe_setup
from mapped_command.process import default_spawner
from mapped_command.spawn import ChildHandle, ExecResult, SpawnOptions, Spawner

T = TypeVar("T")


def _os_str(value) -> str | bytes:
    if isinstance(value, (str, bytes)):
        return value
    return os.fspath(value)


class Command(Generic[T]):
    def __init__(self, program: str | bytes | os.PathLike, output_mapping: OutputMapping[T]):
        """Create a command running ``program`` whose result is ``output_mapping``'s.

        The mapping decides, here and only here, which of stdout/stderr are
        captured. Exit status ``0`` is expected unless configured otherwise.
        """
        self._spawn_options = SpawnOptions(program=_os_str(program))
        self._expected_exit_status: ExitStatus | None = SUCCESS
        self._output_mapping = output_mapping
        self._capture_stdout = bool(output_mapping.needs_captured_stdout())
        self._capture_stderr = bool(output_mapping.needs_captured_stderr())
        self._spawner: Spawner = default_spawner()

    def _evolve(self, **options) -> "Command[T]":
        new = copy.copy(self)
        options.setdefault("env_builder", self._spawn_options.env_builder.copy())
        new._spawn_options = replace(self._spawn_options, **options)
        return new

    def _snapshot(self) -> SpawnOptions:
        return replace(self._spawn_options, env_builder=self._spawn_options.env_builder.copy())

    def _with_env(self, change: Callable[[EnvBuilder], None]) -> "Command[T]":
        env_builder = self._spawn_options.env_builder.copy()
        change(env_builder)
        return self._evolve(env_builder=env_builder)

    # -- read access -------------------------------------------------------

    @property
    def spawn_options(self) -> SpawnOptions:
        """A snapshot; changing its env builder does not affect this command."""
        return self._snapshot()

    @property
    def program(self) -> str | bytes:
        return self._spawn_options.program

    @property
    def arguments(self) -> tuple[str | bytes, ...]:
        return self._spawn_options.arguments

    @property
    def env_builder(self) -> EnvBuilder:
        """A copy; use the ``with_env_*`` methods to change the environment."""
        return self._spawn_options.env_builder.copy()

    @property
    def working_directory_override(self) -> str | bytes | None:
        return self._spawn_options.working_directory_override

    @property
    def custom_stdin_setup(self) -> PipeSetup | None:
        return self._spawn_options.custom_stdin_setup

    @property
    def custom_stdout_setup(self) -> PipeSetup | None:
        return self._spawn_options.custom_stdout_setup

    @property
    def custom_stderr_setup(self) -> PipeSetup | None:
        return self._spawn_options.custom_stderr_setup

    @property
    def expected_exit_status(self) -> ExitStatus | None:
        return self._expected_exit_status

    @property
    def spawner(self) -> Spawner:
        return self._spawner

    @property
    def will_capture_stdout(self) -> bool:
        return self._capture_stdout

    @property
    def will_capture_stderr(self) -> bool:
        return self._capture_stderr

    # -- configuration -----------------------------------------------------

    def with_argument(self, argument) -> "Command[T]":
        return self._evolve(arguments=(*self.arguments, _os_str(argument)))

    def with_arguments(self, arguments: Iterable) -> "Command[T]":
        return self._evolve(arguments=(*self.arguments, *map(_os_str, arguments)))

    def with_env_update(self, key: str, update) -> "Command[T]":
        """Set, unset (``None``/``EnvUpdate.UNSET``) or inherit one variable.

        Replaces any earlier update for ``key``.
        """
        return self._with_env(lambda env: env.insert_update(key, update))

    def with_env_updates(self, updates: Mapping | Iterable[tuple]) -> "Command[T]":
        return self._with_env(lambda env: env.extend(updates))

    def with_inherit_env(self, do_inherit: bool) -> "Command[T]":
        """Whether variables without an explicit update come from this process."""
        return self._with_env(lambda env: env.set_inherit_env(do_inherit))

    def with_working_directory_override(self, path) -> "Command[T]":
        """Run in ``path``, or in the current directory if ``path`` is ``None``."""
        return self._evolve(
            working_directory_override=None if path is None else _os_str(path)
        )

    def with_expected_exit_status(self, exit_status) -> "Command[T]":
        """Expect ``exit_status``; this (re)enables exit status checking."""
        new = self._evolve()
        new._expected_exit_status = ExitStatus.coerce(exit_status)
        return new

    def without_expected_exit_status(self) -> "Command[T]":
        new = self._evolve()
        new._expected_exit_status = None
        return new

    def with_custom_stdin_setup(self, setup) -> "Command[T]":
        return self._evolve(custom_stdin_setup=coerce_pipe_setup(setup))

    def without_custom_stdin_setup(self) -> "Command[T]":
        return self._evolve(custom_stdin_setup=None)

    def with_custom_stdout_setup(self, setup) -> "Command[T]":
        """Set up stdout; ignored if the output mapping captures stdout."""
        if self._capture_stdout:
            _warn_conflict("stdout")
        return self._evolve(custom_stdout_setup=coerce_pipe_setup(setup))

    def without_custom_stdout_setup(self) -> "Command[T]":
        return self._evolve(custom_stdout_setup=None)

    def with_custom_stderr_setup(self, setup) -> "Command[T]":
        """Set up stderr; ignored if the output mapping captures stderr."""
        if self._capture_stderr:
            _warn_conflict("stderr")
        return self._evolve(custom_stderr_setup=coerce_pipe_setup(setup))

    def without_custom_stderr_setup(self) -> "Command[T]":
        return self._evolve(custom_stderr_setup=None)

    def with_spawner(self, spawner: Spawner) -> "Command[T]":
        """Replace how the process is spawned, e.g. with a mock."""
        new = self._evolve()
        new._spawner = spawner
        return new

    def with_mock_result(
        self, func: Callable[[SpawnOptions, bool, bool], ExecResult]
    ) -> "Command[T]":
        """Short for ``with_spawner(mock.mock_result(func))``."""
        return self.with_spawner(mock.mock_result(func))

    def with_mock_result_once(
        self, func: Callable[[SpawnOptions, bool, bool], ExecResult]
    ) -> "Command[T]":
        """Short for ``with_spawner(mock.mock_result_once(func))``."""
        return self.with_spawner(mock.mock_result_once(func))

    # -- execution ---------------------------------------------------------

    def spawn(self) -> "Child[T]":
        """Start the process and return a handle to await its result.

        Captured pipes are drained while waiting, so a custom stdin pipe
        taken from the child can be written without risking a deadlock.
        """
        try:
            handle = self._spawner.spawn(
                self._snapshot(), self._capture_stdout, self._capture_stderr
            )
        except OSError as e:
            raise self._output_mapping.io_error(SpawnError(e)) from e
        return Child(handle, self._output_mapping, self._expected_exit_status)

    def run(self) -> T:
        """``spawn()`` then ``wait()``."""
        return self.spawn().wait()

    def __repr__(self) -> str:
        return (
            f"Command(spawn_options={self._spawn_options!r}, "
            f"expected_exit_status={self._expected_exit_status!r}, "
            f"output_mapping={self._output_mapping!r}, "
            f"spawner={self._spawner!r})"
        )


def _warn_conflict(stream: str) -> None:
    warnings.warn(
        f"custom {stream} setup is ignored because the output mapping captures {stream}",
        PipeSetupConflictWarning,
        stacklevel=3,
    )


class Child(Generic[T]):
    """A spawned command. ``wait()`` may only be called once."""

    def __init__(
        self,
        handle: ChildHandle,
        output_mapping: OutputMapping[T],
        expected_exit_status: ExitStatus | None,
    ):
        self._handle: ChildHandle | None = handle
        self._output_mapping = output_mapping
        self._expected_exit_status = expected_exit_status

    def _live(self) -> ChildHandle:
        if self._handle is None:
            raise RuntimeError("child was already waited on")
        return self._handle

    @property
    def expected_exit_status(self) -> ExitStatus | None:
        return self._expected_exit_status

    def wait(self) -> T:
        """Wait for exit, check the exit status, then map the output."""
        handle = self._live()
        self._handle = None
        mapping = self._output_mapping

        try:
            result = handle.wait_with_output()
        except OSError as e:
            raise mapping.io_error(WaitError(e)) from e

        expected = self._expected_exit_status
        if expected is not None and result.exit_status != expected:
            raise mapping.unexpected_exit_status(
                UnexpectedExitStatus(got=result.exit_status, expected=expected)
            )

        return mapping.map_output(result)

    def try_wait(self) -> ExitStatus | None:
        """Exit status if the process already exited, without checking it.

        Raises ``io.UnsupportedOperation`` if the spawner can't poll.
        """
        return self._live().try_wait()

    def take_stdin(self) -> IO[bytes] | None:
        return self._live().take_stdin()

    def take_stdout(self) -> IO[bytes] | None:
        """The stdout pipe, if it was set up by a custom (non-capturing) setup."""
        return self._live().take_stdout()

    def take_stderr(self) -> IO[bytes] | None:
        return self._live().take_stderr()

    def __repr__(self) -> str:
        return (
            f"Child(expected_exit_status={self._expected_exit_status!r}, "
            f"output_mapping={self._output_mapping!r}, "
            f"child={self._handle!r})"
        )
