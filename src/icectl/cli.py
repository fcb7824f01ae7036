"""Typer-powered command line entry point for ``icectl``.

The CLI is a thin driver: it resolves configuration, builds one
:class:`~icectl.api.client.AdminClient`, hands the positional arguments to the
:class:`~icectl.commands.Dispatcher` and renders whatever comes back. Errors
raised anywhere below are reported here and mapped to the process exit code.
"""
from __future__ import annotations

import textwrap
from collections.abc import Mapping, Sequence
from dataclasses import is_dataclass
from pathlib import Path

import click
import typer
from rich.console import Console
from rich.markup import escape
from typer.core import TyperCommand

from . import get_version
from .api.client import AdminClient, Credentials
from .api.models import ActionResult, ServerStats
from .commands import Command, Dispatcher
from .config import AppConfig, ConfigError, load_config
from .errors import IcectlError, UnknownCommandError
from .exit_codes import ExitCode
from .logging import OperationScope, StructuredLogger
from .render import describe_action, render_result, render_usage

app = typer.Typer(
    add_completion=False,
    help=textwrap.dedent(
        """
        Icecast admin CLI.

        Query server, mount and listener statistics, move listeners between
        mounts, update stream metadata and disconnect clients or sources.
        Run without arguments to list the available commands.
        """
    ).strip(),
)

ARGS_ARGUMENT = typer.Argument(
    None,
    metavar="COMMAND [ARGS]...",
    help="Command name followed by its positional arguments.",
    show_default=False,
)
HOST_OPTION = typer.Option(
    None,
    "--host",
    "-H",
    "--url",
    help="URL of Icecast instance (default: http://127.0.0.1:8000).",
)
USER_OPTION = typer.Option(
    None,
    "--user",
    "-U",
    "--login",
    help="Admin username (default: admin).",
)
PASSWORD_OPTION = typer.Option(
    None,
    "--password",
    "-P",
    "--pass",
    help="Admin password (default: hackme).",
)
TIMEOUT_OPTION = typer.Option(
    None,
    "--timeout",
    help="Request timeout in seconds (default: 10).",
)
CONFIG_FILE_OPTION = typer.Option(
    None,
    "--config-file",
    dir_okay=False,
    help="Override the path to icectl's YAML config file.",
)
NO_COLOR_OPTION = typer.Option(
    False,
    "--no-color",
    help="Disable colors in output.",
)
JSON_OPTION = typer.Option(
    False,
    "--json",
    help="Emit results as JSON instead of tables.",
)
VERSION_OPTION = typer.Option(
    False,
    "--version",
    "-V",
    help="Show the icectl version and exit.",
)


class IcectlCommand(TyperCommand):
    """Top-level command whose usage errors exit with :attr:`ExitCode.FAILURE`."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            exc.exit_code = int(ExitCode.FAILURE)
            raise


def _make_console(no_color: bool, *, stderr: bool = False) -> Console:
    return Console(no_color=no_color, stderr=stderr, highlight=not no_color)


def _serialize(result: object) -> object:
    """Convert a command result into JSON-compatible data."""
    if isinstance(result, Command):
        return {
            "name": result.name,
            "summary": result.summary,
            "description": result.description,
            "arguments": [
                {"name": argument.name, "description": argument.description}
                for argument in result.arguments
            ],
        }
    if isinstance(result, (list, tuple)):
        return [_serialize(item) for item in result]
    if is_dataclass(result) and hasattr(result, "to_dict"):
        return result.to_dict()
    return result


def _describe(command: Command, result: object) -> str:
    """Return a one-line summary of *result* for the operations log."""
    if isinstance(result, ActionResult):
        return describe_action(result)
    if isinstance(result, ServerStats):
        return f"Reported statistics for {len(result.sources)} source(s)."
    if isinstance(result, list):
        return f"Reported {len(result)} {command.name.split('-', 1)[-1]}."
    return f"Rendered {command.name}."


def _command_error(
    op: OperationScope,
    console: Console,
    exc: IcectlError,
) -> int:
    """Report *exc* on stderr, record it, and return the failure exit code."""
    message = str(exc)
    console.print(f"[red]{escape(message)}[/red]")
    if isinstance(exc, UnknownCommandError):
        console.print("Run [bold]icectl[/bold] without arguments to list commands.")
    op.error(message, errors=[f"{type(exc).__name__}: {message}"], rc=int(ExitCode.FAILURE))
    return int(ExitCode.FAILURE)


def run(
    args: Sequence[str],
    *,
    config_file: Path | None = None,
    overrides: Mapping[str, object] | None = None,
    json_output: bool = False,
    env: Mapping[str, str] | None = None,
) -> int:
    """Execute one command and return the process exit code."""
    try:
        config = load_config(config_file=config_file, env=env, overrides=overrides)
    except ConfigError as exc:
        _make_console(True, stderr=True).print(f"Configuration error: {exc}", markup=False)
        return int(ExitCode.FAILURE)

    console = _make_console(config.no_color)
    err_console = _make_console(config.no_color, stderr=True)

    if not args:
        render_usage(console)
        return int(ExitCode.OK)

    logger = StructuredLogger(config.logs_dir)
    with logger.operation(
        args[0].lower(),
        args={"argv": list(args[1:]), "json": json_output, "user": config.user},
        target={"kind": "icecast", "host": config.host},
    ) as op:
        try:
            result, command = _dispatch(config, args, op)
        except IcectlError as exc:
            return _command_error(op, err_console, exc)

        if json_output:
            console.print_json(data=_serialize(result))
        else:
            render_result(console, command, result, host=config.host)
        op.success(
            _describe(command, result),
            changed=1 if isinstance(result, ActionResult) else 0,
        )
    return int(ExitCode.OK)


def _dispatch(
    config: AppConfig,
    args: Sequence[str],
    op: OperationScope,
) -> tuple[object, Command]:
    credentials = Credentials.from_host(config.host, config.user, config.password)
    with AdminClient(credentials, timeout=config.timeout) as client:
        dispatcher = Dispatcher(client)
        command = dispatcher.resolve(args)
        op.add_step("command.resolve", detail=command.name)
        result = dispatcher.execute(command, args[1:])
        op.add_step("command.execute", detail=command.name)
    return result, command


@app.command(cls=IcectlCommand, context_settings={"ignore_unknown_options": True})
def icectl(
    args: list[str] | None = ARGS_ARGUMENT,
    host: str | None = HOST_OPTION,
    user: str | None = USER_OPTION,
    password: str | None = PASSWORD_OPTION,
    timeout: float | None = TIMEOUT_OPTION,
    config_file: Path | None = CONFIG_FILE_OPTION,
    no_color: bool = NO_COLOR_OPTION,
    json_output: bool = JSON_OPTION,
    version: bool = VERSION_OPTION,
) -> None:
    """Icecast admin CLI."""
    if version:
        Console(no_color=no_color).print(f"icectl {get_version()}")
        raise typer.Exit(code=int(ExitCode.OK))

    overrides: dict[str, object] = {
        "host": host,
        "user": user,
        "password": password,
        "timeout": timeout,
    }
    if no_color:
        overrides["no_color"] = True

    code = run(
        args or [],
        config_file=config_file,
        overrides=overrides,
        json_output=json_output,
    )
    raise typer.Exit(code=code)


def main() -> None:
    """Console script entry point."""
    app()


__all__ = ["IcectlCommand", "app", "main", "run"]
