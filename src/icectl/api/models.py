"""Typed snapshots returned by the Icecast admin API client."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from typing import Final, cast


class Unset:
    """Marker for a text field the server did not send at all.

    Distinct from ``""``, which means the server sent the field empty.
    """

    _instance: Unset | None = None

    def __new__(cls) -> Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Final = Unset()

OptionalText = str | Unset


def is_set(value: object) -> bool:
    """Return ``True`` unless *value* is the :data:`UNSET` marker."""
    return value is not UNSET


def _plain(value: object) -> object:
    if value is UNSET:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {item.name: _plain(getattr(value, item.name)) for item in fields(value)}
    if isinstance(value, dict):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class _Serializable:
    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serialisable representation (``UNSET`` becomes ``None``)."""
        return cast(dict[str, object], _plain(self))


@dataclass(frozen=True)
class ServerInfo(_Serializable):
    """Identification block of the server statistics."""

    id: OptionalText = UNSET
    admin: OptionalText = UNSET
    host: OptionalText = UNSET
    location: OptionalText = UNSET
    server_start: datetime | None = None


@dataclass(frozen=True)
class ServerCounters(_Serializable):
    """Aggregate counters kept by the server since start-up."""

    sources: int = 0
    banned_ips: int = 0
    clients: int = 0
    connections: int = 0
    listeners: int = 0
    stats: int = 0
    client_connections: int = 0
    file_connections: int = 0
    listener_connections: int = 0
    stats_connections: int = 0
    source_client_connections: int = 0
    source_relay_connections: int = 0
    source_total_connections: int = 0
    stream_bytes_read: int = 0
    stream_bytes_sent: int = 0


@dataclass(frozen=True)
class SourceInfo(_Serializable):
    """Descriptive stream information announced by the source client."""

    name: OptionalText = UNSET
    genre: OptionalText = UNSET
    description: OptionalText = UNSET
    type: OptionalText = UNSET
    url: OptionalText = UNSET
    sub_type: OptionalText = UNSET


@dataclass(frozen=True)
class AudioInfo(_Serializable):
    """Audio parameters of a stream."""

    bitrate: int = 0
    channels: int = 0
    sample_rate: int = 0
    codec_id: int = 0
    raw_info: OptionalText = UNSET


@dataclass(frozen=True)
class TrackInfo(_Serializable):
    """Metadata of the track currently playing on a mount."""

    artist: OptionalText = UNSET
    title: OptionalText = UNSET
    artwork: OptionalText = UNSET
    metadata_url: OptionalText = UNSET
    raw_info: OptionalText = UNSET


@dataclass(frozen=True)
class SourceCounters(_Serializable):
    """Live counters for a single mount."""

    listeners: int = 0
    listener_peak: int = 0
    max_listeners: int = 0
    slow_listeners: int = 0
    listener_connections: int = 0
    connected: int = 0
    queue_size: int = 0
    incoming_bitrate: int = 0
    outgoing_bitrate: int = 0
    total_bytes_read: int = 0
    total_bytes_sent: int = 0


@dataclass(frozen=True)
class SourceStats(_Serializable):
    """Snapshot of one mount point as reported by ``/admin/stats``."""

    mount: str
    stream_started: datetime | None = None
    source_ip: OptionalText = UNSET
    info: SourceInfo = field(default_factory=SourceInfo)
    listen_url: OptionalText = UNSET
    public: bool = False
    user_agent: OptionalText = UNSET
    audio: AudioInfo = field(default_factory=AudioInfo)
    track: TrackInfo = field(default_factory=TrackInfo)
    metadata_updated: datetime | None = None
    counters: SourceCounters = field(default_factory=SourceCounters)


@dataclass(frozen=True)
class ServerStats(_Serializable):
    """Full server statistics snapshot."""

    info: ServerInfo = field(default_factory=ServerInfo)
    counters: ServerCounters = field(default_factory=ServerCounters)
    sources: dict[str, SourceStats] = field(default_factory=dict)


@dataclass(frozen=True)
class Mount(_Serializable):
    """Summary row of a connected mount point."""

    path: str
    listeners: int = 0
    connected: int = 0
    content_type: OptionalText = UNSET


@dataclass(frozen=True)
class Listener(_Serializable):
    """A client connected to a mount point."""

    id: int
    ip: OptionalText = UNSET
    lag: int = 0
    connected: int = 0
    user_agent: OptionalText = UNSET


@dataclass(frozen=True)
class TrackMeta(_Serializable):
    """Track metadata pushed to a mount by ``update-meta``."""

    artist: str
    title: str


@dataclass(frozen=True)
class ActionResult(_Serializable):
    """Outcome of a state-changing admin call."""

    action: str
    mount: str
    destination: str | None = None
    client_id: int | None = None
    message: OptionalText = UNSET


__all__ = [
    "UNSET",
    "ActionResult",
    "AudioInfo",
    "Listener",
    "Mount",
    "OptionalText",
    "ServerCounters",
    "ServerInfo",
    "ServerStats",
    "SourceCounters",
    "SourceInfo",
    "SourceStats",
    "TrackInfo",
    "TrackMeta",
    "Unset",
    "is_set",
]
