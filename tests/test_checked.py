"""Tests for checked.py — status checking on plain subprocess calls."""

import os
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from mapped_command.checked import (
    Output,
    StatusError,
    StatusErrorWithOutput,
    checked_output,
    checked_status,
    checked_try_wait,
    checked_wait,
    checked_wait_with_output,
)
from mapped_command.exit_status import ExitStatus, OpaqueOsExitStatus

posix_only = pytest.mark.skipif(os.name != "posix", reason="needs a POSIX shell")


def test_status_error_needs_exactly_one_variant():
    with pytest.raises(ValueError):
        StatusError()
    with pytest.raises(ValueError):
        StatusError(io_error=OSError("x"), exit_status=ExitStatus.from_code(1))


def test_failure_message():
    err = StatusError.failure(ExitStatus.from_code(2))
    assert str(err) == "command failed with exit status 2"
    assert err.is_failure
    assert err.output is None


def test_failure_message_for_signal():
    err = StatusError.failure(ExitStatus(os_specific=OpaqueOsExitStatus(9)))
    assert str(err) == "command failed with exit status <None> possible terminated by signal"


def test_io_variant_chains_cause():
    io_err = OSError("ups")
    err = StatusError.from_io(io_err)
    assert not err.is_failure
    assert err.io_error is io_err
    assert err.__cause__ is io_err


def test_with_output_is_a_status_error():
    output = Output(b"1", b"2")
    err = StatusErrorWithOutput.failure(ExitStatus.from_code(1), output)
    assert isinstance(err, StatusError)
    assert err.output == output


def test_checked_status_io_error():
    with patch("subprocess.run", side_effect=FileNotFoundError("nope")):
        with pytest.raises(StatusError) as exc_info:
            checked_status(["nope"])
    assert isinstance(exc_info.value.io_error, FileNotFoundError)


def test_checked_output_failure_carries_output():
    completed = MagicMock(returncode=2, stdout=b"\x01\x02\x03", stderr=b"\x01\x02\x03")
    with patch("subprocess.run", return_value=completed):
        with pytest.raises(StatusErrorWithOutput) as exc_info:
            checked_output(["ls", "--nononono"])
    err = exc_info.value
    assert err.exit_status == 2
    assert err.output == Output(b"\x01\x02\x03", b"\x01\x02\x03")


def test_checked_output_io_error():
    with patch("subprocess.run", side_effect=PermissionError("denied")):
        with pytest.raises(StatusErrorWithOutput) as exc_info:
            checked_output(["x"])
    assert not exc_info.value.is_failure


@posix_only
def test_checked_status_ok():
    assert checked_status(["true"]) is None


@posix_only
def test_checked_status_failure():
    with pytest.raises(StatusError) as exc_info:
        checked_status(["sh", "-c", "exit 2"])
    assert exc_info.value.exit_status == 2
    assert exc_info.value.output is None


@posix_only
def test_checked_output_ok():
    assert checked_output(["sh", "-c", "echo out; echo err >&2"]) == Output(b"out\n", b"err\n")


@posix_only
def test_checked_wait():
    checked_wait(subprocess.Popen(["true"]))
    with pytest.raises(StatusError):
        checked_wait(subprocess.Popen(["false"]))


@posix_only
def test_checked_wait_with_output():
    proc = subprocess.Popen(["sh", "-c", "echo hi; exit 1"], stdout=subprocess.PIPE)
    with pytest.raises(StatusErrorWithOutput) as exc_info:
        checked_wait_with_output(proc)
    assert exc_info.value.output == Output(b"hi\n", b"")


@posix_only
def test_checked_try_wait():
    proc = subprocess.Popen(["sh", "-c", "read line"], stdin=subprocess.PIPE)
    assert checked_try_wait(proc) is False
    proc.stdin.write(b"\n")
    proc.stdin.close()
    proc.wait()
    assert checked_try_wait(proc) is True


@posix_only
def test_checked_try_wait_failure():
    proc = subprocess.Popen(["false"])
    proc.wait()
    with pytest.raises(StatusError) as exc_info:
        checked_try_wait(proc)
    assert exc_info.value.exit_status == 1
