"""Rich console rendering for command results, usage and command help."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import cast

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .api.models import (
    ActionResult,
    Listener,
    Mount,
    OptionalText,
    ServerStats,
    SourceStats,
    is_set,
)
from .commands import COMMANDS, Command

APP_NAME = "icectl"
LABEL_WIDTH = 28
MISSING = "[dim]-[/dim]"

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

_ACTION_MESSAGES = {
    "move-clients": "Clients successfully moved from {mount} to {destination}",
    "update-meta": "Metadata successfully updated for {mount}",
    "kill-client": "Client {client_id} successfully detached from {mount}",
    "kill-source": "Source successfully detached from {mount}",
}

_OPTION_HELP = (
    ("-H, --host URL", "URL of Icecast instance (default: http://127.0.0.1:8000)"),
    ("-U, --user USERNAME", "Admin username (default: admin)"),
    ("-P, --password PASSWORD", "Admin password (default: hackme)"),
    ("--timeout SECONDS", "Request timeout (default: 10)"),
    ("--config-file PATH", "Override the path to icectl's YAML config file"),
    ("--json", "Emit results as JSON"),
    ("--no-color", "Disable colors in output"),
    ("-V, --version", "Show version"),
    ("--help", "Show this help message"),
)

_USAGE_EXAMPLES = (
    ("stats -H 127.0.0.1:10000", "Show stats for server on 127.0.0.1:10000"),
    ("kill-client -P mYsUpPaPaSs /stream3 361", "Detach client with ID 361 from /stream3"),
    (
        "list-clients -H 127.0.0.1:10000 -U super_admin -P mYsUpPaPaSs /stream3",
        "List clients on /stream3",
    ),
)


def pretty_size(value: int) -> str:
    """Return *value* bytes as a short human-readable size."""
    size = float(value)
    for unit in _SIZE_UNITS[:-1]:
        if abs(size) < 1024:
            return f"{int(size)} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} {_SIZE_UNITS[-1]}"


def pretty_num(value: int) -> str:
    """Return *value* with thousands separators."""
    return f"{value:,}".replace(",", " ")


def short_duration(seconds: int | float) -> str:
    """Return *seconds* as ``1d 2h 3m 4s`` with leading zero units dropped."""
    remaining = max(int(seconds), 0)
    parts: list[str] = []
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60)):
        amount, remaining = divmod(remaining, size)
        if amount or parts:
            parts.append(f"{amount}{unit}")
    parts.append(f"{remaining}s")
    return " ".join(parts)


def format_text(value: OptionalText) -> str:
    """Return markup for an optional text field.

    Fields the server did not send show a dim dash; fields sent empty stay empty.
    """
    if not is_set(value):
        return MISSING
    return escape(str(value))


def _since(moment: datetime | None, now: datetime | None = None) -> str:
    if moment is None:
        return "unknown"
    reference = now or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return short_duration((reference - moment).total_seconds())


def _limit(value: int) -> str:
    if value < 0:
        return "unlimited"
    return pretty_num(value)


def _row(console: Console, label: str, value: str) -> None:
    console.print(f" [bold]{label:<{LABEL_WIDTH}}[/bold] [dim]|[/dim] {value}")


def _separator(console: Console) -> None:
    console.rule(style="dim")


def render_stats(console: Console, stats: ServerStats, host: str) -> None:
    """Render the server statistics block followed by one block per source."""
    counters = stats.counters
    _separator(console)
    header = f" [bold]Icecast Server[/bold] on [bold]{escape(host)}[/bold]"
    if stats.info.id:
        header += f" [dim]({escape(str(stats.info.id))})[/dim]"
    console.print(header)
    _separator(console)

    for label, value in (
        ("Sources", counters.sources),
        ("Banned IPs", counters.banned_ips),
        ("Clients", counters.clients),
        ("Connections", counters.connections),
        ("Listeners", counters.listeners),
        ("Stats", counters.stats),
        ("Client Connections", counters.client_connections),
        ("File Connections", counters.file_connections),
        ("Listener Connections", counters.listener_connections),
        ("Stats Connections", counters.stats_connections),
        ("Source Client Connections", counters.source_client_connections),
        ("Source Relay Connections", counters.source_relay_connections),
        ("Source Total Connections", counters.source_total_connections),
    ):
        _row(console, label, pretty_num(value))
    for label, value in (
        ("Stream Bytes Read", counters.stream_bytes_read),
        ("Stream Bytes Sent", counters.stream_bytes_sent),
    ):
        _row(console, label, f"{pretty_num(value)} [dim]({pretty_size(value)})[/dim]")

    for source in stats.sources.values():
        _render_source(console, source)

    _separator(console)


def _render_source(console: Console, source: SourceStats) -> None:
    _separator(console)
    console.print(
        f" [bold yellow]{escape(source.mount)}[/bold yellow] "
        f"[dim](online: {_since(source.stream_started)})[/dim]"
    )
    _separator(console)
    _row(console, "Source IP", format_text(source.source_ip))
    _row(console, "Name", format_text(source.info.name))
    _row(console, "Genre", format_text(source.info.genre))
    _row(console, "Description", format_text(source.info.description))
    _row(console, "Type", format_text(source.info.type))
    _row(console, "URL", format_text(source.info.url))
    _row(console, "Listen URL", format_text(source.listen_url))
    _row(console, "SubType", format_text(source.info.sub_type))
    _row(console, "Public", str(source.public).lower())
    _row(console, "User-Agent", format_text(source.user_agent))
    _separator(console)
    _row(console, "Bitrate", pretty_num(source.audio.bitrate))
    _row(console, "Channels", pretty_num(source.audio.channels))
    _row(console, "SampleRate", f"{pretty_num(source.audio.sample_rate)} Hz")
    _row(console, "CodecID", pretty_num(source.audio.codec_id))
    _row(console, "RawInfo", format_text(source.audio.raw_info))
    _separator(console)
    _row(console, "Artist", format_text(source.track.artist))
    _row(console, "Title", format_text(source.track.title))
    _row(console, "Artwork", format_text(source.track.artwork))
    _row(console, "Metadata URL", format_text(source.track.metadata_url))
    _row(console, "RawInfo", format_text(source.track.raw_info))
    if source.metadata_updated is None:
        _row(console, "Metadata Updated", MISSING)
    else:
        _row(
            console,
            "Metadata Updated",
            f"{source.metadata_updated:%Y/%m/%d %H:%M:%S} "
            f"[dim]({_since(source.metadata_updated)} ago)[/dim]",
        )
    _separator(console)
    counters = source.counters
    _row(console, "Listeners", pretty_num(counters.listeners))
    _row(console, "Listener Peak", pretty_num(counters.listener_peak))
    _row(console, "Max Listeners", _limit(counters.max_listeners))
    _row(console, "Slow Listeners", pretty_num(counters.slow_listeners))
    _row(console, "Listener Connections", pretty_num(counters.listener_connections))
    _row(console, "Connected", short_duration(counters.connected))
    _row(console, "Queue Size", pretty_size(counters.queue_size))
    for label, value, suffix in (
        ("Incoming Bitrate", counters.incoming_bitrate, "/s"),
        ("Outgoing Bitrate", counters.outgoing_bitrate, "/s"),
        ("Total Bytes Read", counters.total_bytes_read, ""),
        ("Total Bytes Sent", counters.total_bytes_sent, ""),
    ):
        _row(console, label, f"{pretty_num(value)} [dim]({pretty_size(value)}{suffix})[/dim]")


def render_mounts(console: Console, mounts: Sequence[Mount]) -> None:
    """Render the mount list as a table."""
    if not mounts:
        console.print("[yellow]No mounts found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Path", style="bold", min_width=20)
    table.add_column("Listeners", justify="right")
    table.add_column("Connected", justify="right")
    table.add_column("Content-Type")
    for mount in mounts:
        table.add_row(
            escape(mount.path),
            pretty_num(mount.listeners),
            short_duration(mount.connected),
            format_text(mount.content_type),
        )
    console.print(table)


def render_listeners(console: Console, listeners: Sequence[Listener]) -> None:
    """Render listeners of one mount as a table."""
    if not listeners:
        console.print("[yellow]No listeners found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right", style="bold")
    table.add_column("IP", justify="right")
    table.add_column("Lag", justify="right")
    table.add_column("Connected", justify="right")
    table.add_column("User-Agent")
    for listener in listeners:
        table.add_row(
            str(listener.id),
            format_text(listener.ip),
            pretty_size(listener.lag),
            short_duration(listener.connected),
            format_text(listener.user_agent),
        )
    console.print(table)


def describe_action(result: ActionResult) -> str:
    """Return the confirmation sentence for a state-changing command."""
    template = _ACTION_MESSAGES.get(result.action, "{action} completed for {mount}")
    return template.format(
        action=result.action,
        mount=result.mount,
        destination=result.destination,
        client_id=result.client_id,
    )


def render_action(console: Console, result: ActionResult) -> None:
    """Render the confirmation of a state-changing command."""
    console.print(f"[green]{escape(describe_action(result))}[/green]")


def _usage_line(command: Command) -> str:
    parts = [f"[bold cyan]{APP_NAME}[/bold cyan]", f"[yellow]{command.name}[/yellow]"]
    if command.arguments:
        names = " ".join(argument.name for argument in command.arguments)
        parts.append(f"[green]{names}[/green]")
    return " ".join(parts)


def render_usage(console: Console) -> None:
    """Render the global usage listing built from the command registry."""
    console.print()
    console.print(
        f"[bold]Usage:[/bold] [bold cyan]{APP_NAME}[/bold cyan] "
        "[dim]{options}[/dim] [yellow]{command}[/yellow] [green]arguments…[/green]"
    )
    console.print()
    console.print("[bold]Commands[/bold]")
    console.print()
    commands = Table(show_header=False, box=None, padding=(0, 2))
    commands.add_column(style="yellow")
    commands.add_column(style="green")
    commands.add_column()
    for command in COMMANDS.values():
        commands.add_row(
            command.name,
            " ".join(argument.name for argument in command.arguments),
            command.summary,
        )
    console.print(commands)
    console.print()
    console.print("[bold]Options[/bold]")
    console.print()
    options = Table(show_header=False, box=None, padding=(0, 2))
    options.add_column(style="green")
    options.add_column()
    for flag, description in _OPTION_HELP:
        options.add_row(flag, description)
    console.print(options)
    console.print()
    console.print("[bold]Examples[/bold]")
    console.print()
    for example, description in _USAGE_EXAMPLES:
        console.print(f"  {APP_NAME} {escape(example)}")
        console.print(f"  [dim]{description}[/dim]")
        console.print()


def render_command_help(console: Console, command: Command) -> None:
    """Render description, usage, arguments and examples for *command*."""
    console.print()
    console.print("[bold]Description:[/bold]")
    console.print()
    console.print(f"  {command.description}")
    console.print()
    console.print("[bold]Usage:[/bold]")
    console.print()
    console.print(f"  {_usage_line(command)}")
    console.print()
    if command.arguments:
        console.print("[bold]Arguments:[/bold]")
        console.print()
        width = max(len(argument.name) for argument in command.arguments)
        for argument in command.arguments:
            console.print(
                f"  [green]{argument.name:<{width}}[/green] - {escape(argument.description)}"
            )
        console.print()
    if command.examples:
        console.print("[bold]Examples:[/bold]")
        console.print()
        for example in command.examples:
            line = f"{APP_NAME} {command.name} {example.args}".rstrip()
            console.print(f"  {escape(line)}")
            if example.description:
                console.print(f"  [dim]{escape(example.description)}[/dim]")
        console.print()


def render_result(console: Console, command: Command, result: object, *, host: str) -> None:
    """Render the value returned by *command*."""
    if command.name == "stats" and isinstance(result, ServerStats):
        render_stats(console, result, host)
    elif command.name == "list-mounts":
        render_mounts(console, list(cast(Sequence[Mount], result)))
    elif command.name == "list-clients":
        render_listeners(console, list(cast(Sequence[Listener], result)))
    elif command.name == "help" and isinstance(result, Command):
        render_command_help(console, result)
    elif isinstance(result, ActionResult):
        render_action(console, result)
    else:
        console.print(escape(str(result)))


__all__ = [
    "describe_action",
    "format_text",
    "pretty_num",
    "pretty_size",
    "render_action",
    "render_command_help",
    "render_listeners",
    "render_mounts",
    "render_result",
    "render_stats",
    "render_usage",
    "short_duration",
]
