"""Real process backend on top of ``subprocess.Popen``."""

import subprocess
import threading
from typing import IO

from mapped_command.exit_status import ExitStatus
from mapped_command.pipe import PipeSetup
from mapped_command.spawn import ChildHandle, ExecResult, SpawnOptions, Spawner


def _stdio(setup: PipeSetup | None, capture: bool = False):
    if capture:
        return subprocess.PIPE
    if setup is None:
        return None
    return setup.popen_arg()


class _Drain(threading.Thread):
    """Reads one pipe to EOF so the child never blocks on a full buffer."""

    def __init__(self, stream: IO[bytes], name: str):
        super().__init__(name=f"mapped-command-{name}", daemon=True)
        self.stream = stream
        self.data = b""
        self.error: OSError | None = None

    def run(self) -> None:
        try:
            self.data = self.stream.read()
        except OSError as e:
            self.error = e
        finally:
            self.stream.close()


class SubprocessChild(ChildHandle):
    def __init__(self, proc: subprocess.Popen, capture_stdout: bool, capture_stderr: bool):
        self.proc = proc
        self.capture_stdout = capture_stdout
        self.capture_stderr = capture_stderr
        self._stdin = proc.stdin
        self._stdout = None if capture_stdout else proc.stdout
        self._stderr = None if capture_stderr else proc.stderr

    @property
    def pid(self) -> int:
        return self.proc.pid

    def take_stdin(self) -> IO[bytes] | None:
        stdin, self._stdin = self._stdin, None
        return stdin

    def take_stdout(self) -> IO[bytes] | None:
        stdout, self._stdout = self._stdout, None
        return stdout

    def take_stderr(self) -> IO[bytes] | None:
        stderr, self._stderr = self._stderr, None
        return stderr

    def try_wait(self) -> ExitStatus | None:
        returncode = self.proc.poll()
        if returncode is None:
            return None
        return ExitStatus.from_returncode(returncode)

    def wait_with_output(self) -> ExecResult:
        # An untaken stdin pipe is closed so the child sees EOF.
        if self._stdin is not None:
            stdin, self._stdin = self._stdin, None
            stdin.close()

        drains: dict[str, _Drain] = {}
        if self.capture_stdout:
            drains["stdout"] = _Drain(self.proc.stdout, "stdout")
        if self.capture_stderr:
            drains["stderr"] = _Drain(self.proc.stderr, "stderr")
        for drain in drains.values():
            drain.start()

        returncode = self.proc.wait()

        for untaken in (self.take_stdout(), self.take_stderr()):
            if untaken is not None:
                untaken.close()

        for drain in drains.values():
            drain.join()
        for drain in drains.values():
            if drain.error is not None:
                raise drain.error

        return ExecResult(
            exit_status=ExitStatus.from_returncode(returncode),
            stdout=drains["stdout"].data if "stdout" in drains else None,
            stderr=drains["stderr"].data if "stderr" in drains else None,
        )

    def __repr__(self) -> str:
        return f"SubprocessChild(pid={self.proc.pid})"


class SubprocessSpawner(Spawner):
    """Spawns real OS processes. Stateless, so one instance is shared."""

    def spawn(
        self, options: SpawnOptions, capture_stdout: bool, capture_stderr: bool
    ) -> SubprocessChild:
        proc = subprocess.Popen(
            options.argv(),
            env=options.env_builder.build(),
            cwd=options.working_directory_override,
            stdin=_stdio(options.custom_stdin_setup),
            stdout=_stdio(options.custom_stdout_setup, capture_stdout),
            stderr=_stdio(options.custom_stderr_setup, capture_stderr),
        )
        return SubprocessChild(proc, capture_stdout, capture_stderr)

    def __repr__(self) -> str:
        return "SubprocessSpawner()"


_DEFAULT = SubprocessSpawner()


def default_spawner() -> SubprocessSpawner:
    return _DEFAULT
