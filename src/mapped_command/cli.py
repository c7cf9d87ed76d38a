"""Click entry point — all commands."""

import sys

import click

from mapped_command import __version__, config, log
from mapped_command.command import Command
from mapped_command.env import EnvUpdate
from mapped_command.errors import CommandExecutionError, UnexpectedExitStatus
from mapped_command.output_mapping import CapturedStdoutAndErrStrings
from mapped_command.spawn import LoggingSpawner


@click.group()
@click.version_option(version=__version__, prog_name="mapped-command")
def main():
    """Run commands with checked exit status and captured, mapped output."""


def _emit(output) -> None:
    if output is None:
        return
    if isinstance(output, CapturedStdoutAndErrStrings):
        click.echo(output.stdout, nl=False)
        click.echo(output.stderr, nl=False, err=True)
    else:
        click.echo(output, nl=False)


def _execute(cmd: Command, verbose: bool, title: str) -> int:
    """Run ``cmd`` and turn the outcome into an exit code."""
    if verbose:
        cmd = cmd.with_spawner(LoggingSpawner(cmd.spawner))
        log.header(title)
    try:
        output = cmd.run()
    except UnexpectedExitStatus as e:
        log.error(str(e))
        code = e.got.code or 1
    except CommandExecutionError as e:
        log.error(str(e))
        code = 1
    else:
        _emit(output)
        code = 0
    if verbose:
        if code == 0:
            log.success(title)
        log.footer(title)
    return code


@main.command()
@click.argument("name")
@click.option("--file", "-f", "path", default=None, help="Command file (default: commands.yml)")
@click.option("--dry-run", is_flag=True, help="Show the command without running it")
@click.option("--verbose", "-v", is_flag=True, help="Log the command line before running it")
def run(name, path, dry_run, verbose):
    """Run a named command from the command file."""
    path = config.resolve_path(path)
    try:
        cfg = config.find(config.load(path), name)
    except FileNotFoundError:
        log.error(f"Command file not found: {path}")
        sys.exit(1)
    except ValueError as e:
        log.error(str(e))
        sys.exit(1)
    except KeyError:
        log.error(f"No command named {name!r} in {path}")
        sys.exit(1)

    cmd = cfg.to_command()
    if dry_run:
        log.command(cmd.spawn_options.argv(), cwd=cmd.working_directory_override)
        sys.exit(0)
    sys.exit(_execute(cmd, verbose, name))


@main.command(name="list")
@click.option("--file", "-f", "path", default=None, help="Command file (default: commands.yml)")
def list_cmd(path):
    """Show the commands defined in the command file."""
    path = config.resolve_path(path)
    try:
        configs = config.load(path)
    except FileNotFoundError:
        log.error(f"Command file not found: {path}")
        sys.exit(1)
    except ValueError as e:
        log.error(str(e))
        sys.exit(1)

    for cfg in configs:
        expect = "unchecked" if cfg.expect is None else f"expect {cfg.expect}"
        log.step(f"{cfg.name}  {cfg.program} {' '.join(cfg.args)}  ({cfg.capture}, {expect})")


def _split_assignments(pairs) -> dict[str, str]:
    updates = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--env")
        updates[key] = value
    return updates


@main.command(
    name="exec",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option("--env", "-e", "env", multiple=True, help="Set KEY=VALUE in the child env")
@click.option("--unset", multiple=True, help="Remove KEY from the child env")
@click.option("--inherit", multiple=True, help="Pass KEY through even with --no-inherit-env")
@click.option("--inherit-env/--no-inherit-env", default=True, help="Inherit this process env")
@click.option("--cwd", default=None, help="Working directory for the child")
@click.option("--expect", default=0, type=int, help="Expected exit status (default 0)")
@click.option("--no-check", is_flag=True, help="Do not check the exit status")
@click.option(
    "--capture",
    default="none",
    type=click.Choice(sorted(config.CAPTURE_MODES)),
    help="Which streams to capture and print after completion",
)
@click.option("--verbose", "-v", is_flag=True, help="Log the command line before running it")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def exec_cmd(env, unset, inherit, inherit_env, cwd, expect, no_check, capture, verbose, command):
    """Run PROGRAM [ARGS...] directly."""
    if not command:
        click.echo("Error: No command specified", err=True)
        sys.exit(1)

    program, *args = command
    cmd = (
        Command(program, config.CAPTURE_MODES[capture]())
        .with_arguments(args)
        .with_inherit_env(inherit_env)
        .with_env_updates(_split_assignments(env))
        .with_env_updates((key, EnvUpdate.UNSET) for key in unset)
        .with_env_updates((key, EnvUpdate.INHERIT) for key in inherit)
        .with_working_directory_override(cwd)
    )
    if no_check:
        cmd = cmd.without_expected_exit_status()
    else:
        cmd = cmd.with_expected_exit_status(expect)
    sys.exit(_execute(cmd, verbose, program))


if __name__ == "__main__":
    main()
