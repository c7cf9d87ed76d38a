"""Scripted spawners for deterministic tests — no OS process is started."""

import threading
from collections.abc import Callable

from mapped_command.spawn import ChildHandle, ExecResult, SpawnOptions, Spawner

SpawnFn = Callable[[SpawnOptions, bool, bool], ChildHandle]
ResultFn = Callable[[SpawnOptions, bool, bool], ExecResult]


class MockResult(ChildHandle):
    """A child whose wait returns ``result`` or raises it if it is an ``OSError``."""

    def __init__(self, result: ExecResult | OSError):
        self.result = result

    def wait_with_output(self) -> ExecResult:
        if isinstance(self.result, OSError):
            raise self.result
        return self.result

    def try_wait(self):
        if isinstance(self.result, OSError):
            raise self.result
        return self.result.exit_status

    def __repr__(self) -> str:
        return f"MockResult({self.result!r})"


class MockResultFn(ChildHandle):
    """A child whose result is computed only when it is waited on."""

    def __init__(self, func: Callable[[], ExecResult]):
        self.func = func

    def wait_with_output(self) -> ExecResult:
        return self.func()

    def __repr__(self) -> str:
        return f"MockResultFn({self.func!r})"


class MockSpawn(Spawner):
    """Calls ``func(options, capture_stdout, capture_stderr)`` on every spawn.

    ``func`` returns the child handle, or raises ``OSError`` to make the
    spawn itself fail.
    """

    def __init__(self, func: SpawnFn):
        self.func = func

    def spawn(self, options, capture_stdout, capture_stderr) -> ChildHandle:
        return self.func(options, capture_stdout, capture_stderr)

    def __repr__(self) -> str:
        return f"MockSpawn({self.func!r})"


class MockSpawnOnce(Spawner):
    """Like :class:`MockSpawn`, but ``func`` may be used for one spawn only."""

    def __init__(self, func: SpawnFn):
        self._func: SpawnFn | None = func
        self._lock = threading.Lock()

    def spawn(self, options, capture_stdout, capture_stderr) -> ChildHandle:
        with self._lock:
            func, self._func = self._func, None
        if func is None:
            raise RuntimeError("mock spawner was already used, it only supports one spawn")
        return func(options, capture_stdout, capture_stderr)

    def __repr__(self) -> str:
        used = "used" if self._func is None else "unused"
        return f"MockSpawnOnce(<{used}>)"


def _scripted(func: ResultFn) -> SpawnFn:
    def spawn(options, capture_stdout, capture_stderr):
        try:
            result = func(options, capture_stdout, capture_stderr)
        except OSError as e:
            return MockResult(e)
        return MockResult(result)

    return spawn


def mock_result(func: ResultFn) -> MockSpawn:
    """Spawner replaying whatever ``func`` returns (or raises) on every run.

    ``func`` is called at spawn time with the resolved options and the
    capture flags. A raised ``OSError`` surfaces when the child is waited on.
    """
    return MockSpawn(_scripted(func))


def mock_result_once(func: ResultFn) -> MockSpawnOnce:
    """Single-shot variant of :func:`mock_result`."""
    return MockSpawnOnce(_scripted(func))
