"""Tests for spawn.py, pipe.py and mock.py — the spawn seam."""

import io
import subprocess

import pytest

from mapped_command.env import EnvBuilder
from mapped_command.exit_status import SUCCESS
from mapped_command.mock import MockResult, MockSpawn, mock_result, mock_result_once
from mapped_command.pipe import PipeKind, PipeSetup, coerce
from mapped_command.spawn import ChildHandle, ExecResult, LoggingSpawner, SpawnOptions


def test_exec_result_defaults():
    result = ExecResult()
    assert result.exit_status == 0
    assert result.exit_status is SUCCESS
    assert result.stdout is None
    assert result.stderr is None


def test_spawn_options_argv():
    options = SpawnOptions(program="ls", arguments=("-l", "/"))
    assert options.argv() == ["ls", "-l", "/"]
    assert options.env_builder == EnvBuilder()


def test_pipe_setup_popen_args():
    assert PipeSetup.PIPED.popen_arg() == subprocess.PIPE
    assert PipeSetup.NULL.popen_arg() == subprocess.DEVNULL
    assert PipeSetup.INHERIT.popen_arg() is None
    assert PipeSetup.redirect(3).popen_arg() == 3


def test_pipe_setup_coerce():
    assert coerce(PipeSetup.NULL) is PipeSetup.NULL
    setup = coerce(7)
    assert setup.kind is PipeKind.REDIRECT
    assert setup.target == 7


def test_child_handle_defaults():
    class Minimal(ChildHandle):
        def wait_with_output(self):
            return ExecResult()

    handle = Minimal()
    assert handle.take_stdin() is None
    assert handle.take_stdout() is None
    assert handle.take_stderr() is None
    with pytest.raises(io.UnsupportedOperation):
        handle.try_wait()


def test_mock_result_calls_back_at_spawn_time():
    calls = []

    def callback(options, capture_stdout, capture_stderr):
        calls.append((options.program, capture_stdout, capture_stderr))
        return ExecResult(stdout=b"x")

    handle = mock_result(callback).spawn(SpawnOptions("foo"), True, False)
    assert calls == [("foo", True, False)]
    assert handle.wait_with_output().stdout == b"x"


def test_mock_result_is_repeatable():
    spawner = mock_result(lambda *_: ExecResult())
    for _ in range(3):
        spawner.spawn(SpawnOptions("foo"), False, False).wait_with_output()


def test_mock_result_once_is_single_shot():
    spawner = mock_result_once(lambda *_: ExecResult())
    spawner.spawn(SpawnOptions("foo"), False, False)
    with pytest.raises(RuntimeError):
        spawner.spawn(SpawnOptions("foo"), False, False)


def test_mock_result_error_is_replayed_on_wait():
    def callback(*_):
        raise ConnectionError("random")

    handle = mock_result(callback).spawn(SpawnOptions("foo"), False, False)
    with pytest.raises(ConnectionError):
        handle.wait_with_output()


def test_logging_spawner_logs_and_delegates(capsys):
    inner = MockSpawn(lambda *_: MockResult(ExecResult()))
    spawner = LoggingSpawner(inner)
    options = SpawnOptions("echo", ("hello world",), working_directory_override="/tmp")
    handle = spawner.spawn(options, False, False)
    assert handle.wait_with_output().exit_status == 0
    out = capsys.readouterr().out
    assert "$ (cd /tmp && echo 'hello world')" in out


def test_logging_spawner_reports_failure(capsys):
    def fail(*_):
        raise OSError("no such program")

    with pytest.raises(OSError):
        LoggingSpawner(MockSpawn(fail)).spawn(SpawnOptions("nope"), False, False)
    assert "✗ spawn failed: no such program" in capsys.readouterr().out
