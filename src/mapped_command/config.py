"""Parse a YAML command file into CommandConfig objects."""

import os
from dataclasses import dataclass, field

import yaml

from mapped_command.command import Command
from mapped_command.env import EnvUpdate
from mapped_command.output_mapping import (
    ReturnNothing,
    ReturnStderrString,
    ReturnStdoutAndErrStrings,
    ReturnStdoutString,
)

COMMAND_FILE = "commands.yml"
CAPTURE_MODES = {
    "none": ReturnNothing,
    "stdout": ReturnStdoutString,
    "stderr": ReturnStderrString,
    "both": ReturnStdoutAndErrStrings,
}
_UNSET = object()


class _Loader(yaml.SafeLoader):
    """Safe loader that also understands the ``!inherit`` env tag."""


_Loader.add_constructor("!inherit", lambda loader, node: EnvUpdate.INHERIT)


@dataclass
class CommandConfig:
    name: str
    program: str
    args: list[str] = field(default_factory=list)
    env: dict[str, EnvUpdate] = field(default_factory=dict)
    inherit_env: bool = True
    cwd: str | None = None
    expect: int | None = 0
    capture: str = "stdout"

    def to_command(self) -> Command:
        cmd = (
            Command(self.program, CAPTURE_MODES[self.capture]())
            .with_arguments(self.args)
            .with_inherit_env(self.inherit_env)
            .with_env_updates(self.env)
            .with_working_directory_override(self.cwd)
        )
        if self.expect is None:
            return cmd.without_expected_exit_status()
        return cmd.with_expected_exit_status(self.expect)


def _parse_env_value(name: str, key: str, value) -> EnvUpdate:
    if isinstance(value, EnvUpdate) or value is None:
        return EnvUpdate.coerce(value)
    if isinstance(value, dict):
        if value.get("inherit") is True:
            return EnvUpdate.INHERIT
        raise ValueError(f"{name}: env {key}: only {{inherit: true}} is supported")
    if isinstance(value, bool):
        raise ValueError(f"{name}: env {key}: quote booleans to pass them as strings")
    if isinstance(value, (str, int, float)):
        return EnvUpdate.set(str(value))
    raise ValueError(f"{name}: env {key}: unsupported value {value!r}")


def _parse_env(name: str, env) -> dict[str, EnvUpdate]:
    if env is None:
        return {}
    if isinstance(env, list):
        # List format ["KEY=value", "KEY"]; a bare KEY passes the current value through
        parsed = {}
        for item in env:
            k, sep, v = str(item).partition("=")
            parsed[k] = v if sep else EnvUpdate.INHERIT
        env = parsed
    if not isinstance(env, dict):
        raise ValueError(f"{name}: env must be a mapping")
    return {str(k): _parse_env_value(name, k, v) for k, v in env.items()}


def _parse_command(name: str, entry: dict, defaults: dict) -> CommandConfig:
    if not isinstance(entry, dict):
        raise ValueError(f"{name}: command entry must be a mapping")
    merged = {**defaults, **entry}

    program = merged.get("program")
    if not program:
        raise ValueError(f"{name}: program is required")

    args = merged.get("args", [])
    if isinstance(args, str):
        raise ValueError(f"{name}: args must be a list, not a string (no shell parsing)")

    capture = merged.get("capture", "stdout")
    if capture not in CAPTURE_MODES:
        raise ValueError(f"{name}: capture must be one of {', '.join(CAPTURE_MODES)}")

    expect = merged.get("expect", _UNSET)
    if expect is _UNSET:
        expect = 0
    elif expect is not None and (isinstance(expect, bool) or not isinstance(expect, int)):
        raise ValueError(f"{name}: expect must be an integer or null")

    inherit_env = merged.get("inherit_env", True)
    if not isinstance(inherit_env, bool):
        raise ValueError(f"{name}: inherit_env must be true or false")

    env = {**_parse_env(name, defaults.get("env")), **_parse_env(name, entry.get("env"))}

    return CommandConfig(
        name=name,
        program=str(program),
        args=[str(a) for a in args],
        env=env,
        inherit_env=inherit_env,
        cwd=merged.get("cwd"),
        expect=expect,
        capture=capture,
    )


def parse_commands(config_dict: dict) -> list[CommandConfig]:
    """Parse a command file dict into CommandConfig objects, in file order.

    ``x-defaults`` values apply to every command; per-command keys win,
    env updates are merged key by key.
    """
    defaults = config_dict.get("x-defaults", {}) or {}
    commands = config_dict.get("commands", {}) or {}
    return [_parse_command(name, entry, defaults) for name, entry in commands.items()]


def resolve_path(explicit: str | None = None) -> str:
    """Order: explicit path → MAPPED_COMMAND_FILE env → commands.yml."""
    if explicit:
        return explicit
    return os.environ.get("MAPPED_COMMAND_FILE") or COMMAND_FILE


def load(path: str) -> list[CommandConfig]:
    with open(path) as f:
        data = yaml.load(f, Loader=_Loader)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return parse_commands(data)


def find(configs: list[CommandConfig], name: str) -> CommandConfig:
    for cfg in configs:
        if cfg.name == name:
            return cfg
    raise KeyError(name)
