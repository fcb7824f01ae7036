"""Tests for the command registry and dispatcher."""
from __future__ import annotations

import pytest
from fakes import LISTCLIENTS_XML, LISTMOUNTS_XML, FakeIcecast, iceresponse

from icectl.api.client import AdminClient
from icectl.api.models import ActionResult, Mount
from icectl.commands import COMMANDS, Command, Dispatcher, lookup, normalize_mount, parse_client_id
from icectl.errors import ArgumentError, UnknownCommandError


@pytest.fixture
def dispatcher(admin_client: AdminClient) -> Dispatcher:
    """Return a dispatcher bound to the fake server."""
    return Dispatcher(admin_client)


def test_registry_lists_every_command_once() -> None:
    """Names are unique and appear in the documented order."""
    assert list(COMMANDS) == [
        "stats",
        "list-mounts",
        "list-clients",
        "move-clients",
        "update-meta",
        "kill-client",
        "kill-source",
        "help",
    ]
    assert COMMANDS["stats"].required_args == 0
    assert COMMANDS["move-clients"].required_args == 2
    assert COMMANDS["update-meta"].required_args == 3


def test_registry_is_read_only() -> None:
    """The registry cannot be modified at runtime."""
    with pytest.raises(TypeError):
        COMMANDS["new"] = COMMANDS["stats"]  # type: ignore[index]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("stream", "/stream"), ("/stream", "/stream"), ("source1.ogg", "/source1.ogg")],
)
def test_normalize_mount_is_idempotent(raw: str, expected: str) -> None:
    """A leading slash is added once and only once."""
    assert normalize_mount(raw) == expected
    assert normalize_mount(normalize_mount(raw)) == expected


def test_lookup_is_case_insensitive() -> None:
    """Command tokens are matched without regard to case."""
    assert lookup("LIST-MOUNTS") is COMMANDS["list-mounts"]


def test_lookup_unknown_command() -> None:
    """Unknown names raise UnknownCommandError carrying the name."""
    with pytest.raises(UnknownCommandError) as excinfo:
        lookup("frobnicate")

    assert excinfo.value.name == "frobnicate"
    assert str(excinfo.value) == "unknown command 'frobnicate'"


@pytest.mark.parametrize(("raw", "expected"), [("457", 457), ("+12", 12), ("-3", -3)])
def test_parse_client_id_accepts_plain_integers(raw: str, expected: int) -> None:
    """Decimal ids with an optional sign are accepted."""
    assert parse_client_id(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", " 457 ", "1_000", "٣", "4.5", "-"])
def test_parse_client_id_rejects_non_numeric(raw: str) -> None:
    """Anything but ASCII digits is an argument error."""
    with pytest.raises(ArgumentError, match="client id must be a number"):
        parse_client_id(raw)


def test_dispatch_without_command(dispatcher: Dispatcher) -> None:
    """An empty argument list is an argument error."""
    with pytest.raises(ArgumentError, match="no command given"):
        dispatcher.dispatch([])


@pytest.mark.parametrize(
    "args",
    [
        ["list-clients"],
        ["move-clients", "/a"],
        ["update-meta", "/a", "Artist"],
        ["kill-client", "/a"],
        ["kill-source"],
        ["help"],
    ],
)
def test_missing_arguments_make_no_request(
    dispatcher: Dispatcher, fake_icecast: FakeIcecast, args: list[str]
) -> None:
    """Arity is checked before any request is sent."""
    with pytest.raises(ArgumentError, match=f"wrong number of arguments for {args[0]}"):
        dispatcher.dispatch(args)

    assert fake_icecast.requests == []


def test_unknown_command_makes_no_request(
    dispatcher: Dispatcher, fake_icecast: FakeIcecast
) -> None:
    """Unknown commands never reach the server."""
    with pytest.raises(UnknownCommandError):
        dispatcher.dispatch(["frobnicate", "x"])

    assert fake_icecast.requests == []


def test_kill_client_with_bad_id_makes_no_request(
    dispatcher: Dispatcher, fake_icecast: FakeIcecast
) -> None:
    """A non-numeric client id fails locally."""
    with pytest.raises(ArgumentError):
        dispatcher.dispatch(["kill-client", "stream1", "abc"])

    assert fake_icecast.requests == []


def test_move_clients_normalizes_both_mounts(
    dispatcher: Dispatcher, fake_icecast: FakeIcecast
) -> None:
    """Mount arguments gain a leading slash before being sent."""
    fake_icecast.route("/admin/moveclients", iceresponse("Clients moved"))

    result = dispatcher.dispatch(["move-clients", "source1", "/source2"])

    params = fake_icecast.requests[0].url.params
    assert params["mount"] == "/source1"
    assert params["destination"] == "/source2"
    assert isinstance(result, ActionResult)
    assert result.destination == "/source2"


def test_list_mounts_returns_models(dispatcher: Dispatcher, fake_icecast: FakeIcecast) -> None:
    """Handlers return typed values without formatting them."""
    fake_icecast.route("/admin/listmounts", LISTMOUNTS_XML)

    result = dispatcher.dispatch(["list-mounts"])

    assert isinstance(result, list)
    assert all(isinstance(item, Mount) for item in result)


def test_extra_arguments_are_ignored(dispatcher: Dispatcher, fake_icecast: FakeIcecast) -> None:
    """Trailing positional arguments beyond the required count are dropped."""
    fake_icecast.route("/admin/listclients", LISTCLIENTS_XML)

    dispatcher.dispatch(["list-clients", "stream1", "extra"])

    assert fake_icecast.requests[0].url.params["mount"] == "/stream1"


def test_update_meta_passes_track(dispatcher: Dispatcher, fake_icecast: FakeIcecast) -> None:
    """Artist and title are taken verbatim from the arguments."""
    fake_icecast.route("/admin/metadata", iceresponse("Metadata update successful"))

    dispatcher.dispatch(["update-meta", "stream1", "Wretch 32", "Traktor"])

    params = fake_icecast.requests[0].url.params
    assert params["mount"] == "/stream1"
    assert params["artist"] == "Wretch 32"
    assert params["title"] == "Traktor"


def test_help_returns_command_without_request(
    dispatcher: Dispatcher, fake_icecast: FakeIcecast
) -> None:
    """``help`` resolves its target locally."""
    result = dispatcher.dispatch(["help", "Kill-Client"])

    assert isinstance(result, Command)
    assert result.name == "kill-client"
    assert fake_icecast.requests == []


def test_help_for_unknown_command(dispatcher: Dispatcher) -> None:
    """``help`` with an unknown target reports the unknown name."""
    with pytest.raises(UnknownCommandError, match="unknown command 'nope'"):
        dispatcher.dispatch(["help", "nope"])
