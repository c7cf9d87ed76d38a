try:
    from importlib.metadata import version

    __version__ = version("mapped-command")
except Exception:
    __version__ = "0.0.0"

from mapped_command.command import Child, Command
from mapped_command.env import EnvBuilder, EnvUpdate
from mapped_command.errors import (
    CommandExecutionError,
    CommandIoError,
    MissingCapturedOutputError,
    OutputDecodeError,
    SpawnError,
    UnexpectedExitStatus,
    WaitError,
)
from mapped_command.exit_status import ExitStatus, OpaqueOsExitStatus
from mapped_command.pipe import PipeSetup, PipeSetupConflictWarning
from mapped_command.spawn import ChildHandle, ExecResult, SpawnOptions, Spawner

__all__ = [
    "Child",
    "ChildHandle",
    "Command",
    "CommandExecutionError",
    "CommandIoError",
    "EnvBuilder",
    "EnvUpdate",
    "ExecResult",
    "ExitStatus",
    "MissingCapturedOutputError",
    "OpaqueOsExitStatus",
    "OutputDecodeError",
    "PipeSetup",
    "PipeSetupConflictWarning",
    "SpawnError",
    "SpawnOptions",
    "Spawner",
    "UnexpectedExitStatus",
    "WaitError",
    "__version__",
]
