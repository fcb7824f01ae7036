"""Command registry and dispatcher.

:data:`COMMANDS` is the single table describing every command: its name,
description, required positional arguments and usage examples. The CLI
renders usage and help from it, and :class:`Dispatcher` uses it to validate
arity before calling the admin API. Nothing here formats output.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from .api.client import AdminClient
from .api.models import TrackMeta
from .errors import ArgumentError, UnknownCommandError

Handler = Callable[[AdminClient, Sequence[str]], object]


def normalize_mount(mount: str) -> str:
    """Return *mount* with a leading slash; applying it twice changes nothing."""
    if mount.startswith("/"):
        return mount
    return f"/{mount}"


@dataclass(frozen=True)
class Argument:
    """A required positional argument of a command."""

    name: str
    description: str


@dataclass(frozen=True)
class Example:
    """An example invocation shown in command help."""

    args: str
    description: str = ""


@dataclass(frozen=True)
class Command:
    """Registry entry for one CLI command."""

    name: str
    description: str
    summary: str
    handler: Handler
    arguments: tuple[Argument, ...] = ()
    examples: tuple[Example, ...] = ()

    @property
    def required_args(self) -> int:
        """Return the number of positional arguments after the command token."""
        return len(self.arguments)


def _stats(client: AdminClient, args: Sequence[str]) -> object:
    return client.get_stats()


def _list_mounts(client: AdminClient, args: Sequence[str]) -> object:
    return client.list_mounts()


def _list_clients(client: AdminClient, args: Sequence[str]) -> object:
    return client.list_clients(normalize_mount(args[0]))


def _move_clients(client: AdminClient, args: Sequence[str]) -> object:
    return client.move_clients(normalize_mount(args[0]), normalize_mount(args[1]))


def _update_meta(client: AdminClient, args: Sequence[str]) -> object:
    return client.update_meta(
        normalize_mount(args[0]),
        TrackMeta(artist=args[1], title=args[2]),
    )


def _kill_client(client: AdminClient, args: Sequence[str]) -> object:
    mount = normalize_mount(args[0])
    client_id = parse_client_id(args[1])
    return client.kill_client(mount, client_id)


def _kill_source(client: AdminClient, args: Sequence[str]) -> object:
    return client.kill_source(normalize_mount(args[0]))


def _help(client: AdminClient, args: Sequence[str]) -> object:
    return lookup(args[0])


def parse_client_id(raw: str) -> int:
    """Parse a listener id, raising :class:`ArgumentError` when not numeric.

    Only an optional sign followed by ASCII digits is accepted.
    """
    digits = raw[1:] if raw[:1] in ("+", "-") else raw
    if not (digits.isascii() and digits.isdigit()):
        raise ArgumentError(f"client id must be a number, got '{raw}'")
    return int(raw)


_MOUNT = Argument("mount", "Mount name (with or without leading slash)")

_REGISTRY: tuple[Command, ...] = (
    Command(
        name="stats",
        summary="Show Icecast statistics",
        description="Shows internal statistics kept by the Icecast server.",
        handler=_stats,
        examples=(Example(""),),
    ),
    Command(
        name="list-mounts",
        summary="List mount points",
        description="Shows all the currently connected mountpoints.",
        handler=_list_mounts,
        examples=(Example(""),),
    ),
    Command(
        name="list-clients",
        summary="List clients",
        description="Shows all the clients currently connected to a specific mountpoint.",
        handler=_list_clients,
        arguments=(_MOUNT,),
        examples=(Example("/source1.ogg"), Example("source1.ogg")),
    ),
    Command(
        name="move-clients",
        summary="Move clients between mounts",
        description=(
            "Migrates currently connected listeners from one mountpoint to another."
        ),
        handler=_move_clients,
        arguments=(
            Argument("from-mount", "Source mount name (with or without leading slash)"),
            Argument("to-mount", "Target mount name (with or without leading slash)"),
        ),
        examples=(
            Example("/source1.ogg /source2.ogg"),
            Example("source1.aac source2.aac"),
        ),
    ),
    Command(
        name="update-meta",
        summary="Update meta for mount",
        description=(
            "Updates the metadata information for a particular mountpoint, on behalf "
            "of a source client or any external program."
        ),
        handler=_update_meta,
        arguments=(
            _MOUNT,
            Argument("artist", "Track artist name"),
            Argument("title", "Track title"),
        ),
        examples=(
            Example('/stream1 "Wretch 32" "Traktor (Brookes Brothers Remix)"'),
        ),
    ),
    Command(
        name="kill-client",
        summary="Kill client connection",
        description="Disconnects a specific listener of a currently connected mountpoint.",
        handler=_kill_client,
        arguments=(_MOUNT, Argument("client-id", "Client ID")),
        examples=(Example("/source1.ogg 457"), Example("source1.ogg 457")),
    ),
    Command(
        name="kill-source",
        summary="Kill source connection",
        description="Disconnects a specific mountpoint from the server.",
        handler=_kill_source,
        arguments=(_MOUNT,),
        examples=(Example("/source1.ogg"), Example("source1.ogg")),
    ),
    Command(
        name="help",
        summary="Show detailed info about command usage",
        description="Shows description, arguments and examples for a command.",
        handler=_help,
        arguments=(Argument("command", "Command name"),),
        examples=(Example("list-clients"),),
    ),
)

COMMANDS: Mapping[str, Command] = MappingProxyType({cmd.name: cmd for cmd in _REGISTRY})


def lookup(name: str) -> Command:
    """Return the command registered under *name* (case-insensitive)."""
    command = COMMANDS.get(name.strip().lower())
    if command is None:
        raise UnknownCommandError(name)
    return command


class Dispatcher:
    """Resolve a command token and run its handler against one client."""

    def __init__(self, client: AdminClient) -> None:
        """Bind the dispatcher to the *client* used for every call."""
        self.client = client

    def resolve(self, args: Sequence[str]) -> Command:
        """Look up and arity-check the command named by ``args[0]``."""
        if not args:
            raise ArgumentError("no command given")
        command = lookup(args[0])
        if len(args) < command.required_args + 1:
            raise ArgumentError(f"wrong number of arguments for {command.name}")
        return command

    def execute(self, command: Command, args: Sequence[str]) -> object:
        """Run an already resolved *command* with its positional *args*."""
        return command.handler(self.client, list(args))

    def dispatch(self, args: Sequence[str]) -> object:
        """Run the command named by ``args[0]`` with the remaining arguments.

        Errors raised by the admin client propagate unchanged.
        """
        return self.execute(self.resolve(args), args[1:])


__all__ = [
    "COMMANDS",
    "Argument",
    "Command",
    "Dispatcher",
    "Example",
    "lookup",
    "normalize_mount",
    "parse_client_id",
]
