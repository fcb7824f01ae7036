"""Decode Icecast admin XML payloads into :mod:`icectl.api.models` values.

Icecast mixes element casing (``Connected``, ``IP`` and ``UserAgent`` next to
``listeners`` and ``content-type``), so every lookup is case-insensitive. The
decoder maps structure only: absent text becomes :data:`UNSET`, absent numbers
become ``0`` and absent timestamps ``None``.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime
from email.utils import parsedate_to_datetime

from ..errors import APIError, ParseError
from .models import (
    UNSET,
    AudioInfo,
    Listener,
    Mount,
    OptionalText,
    ServerCounters,
    ServerInfo,
    ServerStats,
    SourceCounters,
    SourceInfo,
    SourceStats,
    TrackInfo,
    is_set,
)

KIB = 1024
KBIT = 1000
UNLIMITED = -1

_ACCESS_LOG_FORMAT = "%d/%b/%Y:%H:%M:%S %z"
_ISO_FORMATS = ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S")


def parse_document(payload: bytes | str, root_tag: str) -> ET.Element:
    """Parse *payload* and make sure its root element is *root_tag*."""
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise ParseError(f"Malformed XML in server response: {exc}") from exc
    if root.tag.lower() != root_tag:
        raise ParseError(f"Expected <{root_tag}> document, got <{root.tag}>.")
    return root


def parse_stats(payload: bytes | str) -> ServerStats:
    """Decode an ``/admin/stats`` document."""
    root = parse_document(payload, "icestats")
    sources: dict[str, SourceStats] = {}
    for element in _children(root, "source"):
        source = _parse_source(element)
        sources[source.mount] = source

    info = ServerInfo(
        id=_text(root, "server_id"),
        admin=_text(root, "admin"),
        host=_text(root, "host"),
        location=_text(root, "location"),
        server_start=_timestamp(root, "server_start_iso8601", "server_start"),
    )
    counters = ServerCounters(
        sources=_int(root, "sources"),
        banned_ips=_int(root, "banned_ips"),
        clients=_int(root, "clients"),
        connections=_int(root, "connections"),
        listeners=_int(root, "listeners"),
        stats=_int(root, "stats"),
        client_connections=_int(root, "client_connections"),
        file_connections=_int(root, "file_connections"),
        listener_connections=_int(root, "listener_connections"),
        stats_connections=_int(root, "stats_connections"),
        source_client_connections=_int(root, "source_client_connections"),
        source_relay_connections=_int(root, "source_relay_connections"),
        source_total_connections=_int(root, "source_total_connections"),
        stream_bytes_read=_int(root, "stream_kbytes_read") * KIB,
        stream_bytes_sent=_int(root, "stream_kbytes_sent") * KIB,
    )
    return ServerStats(info=info, counters=counters, sources=sources)


def parse_mounts(payload: bytes | str) -> list[Mount]:
    """Decode an ``/admin/listmounts`` document."""
    root = parse_document(payload, "icestats")
    return [
        Mount(
            path=_mount_attr(element),
            listeners=_int(element, "listeners"),
            connected=_int(element, "connected"),
            content_type=_text(element, "content-type"),
        )
        for element in _children(root, "source")
    ]


def parse_listeners(payload: bytes | str) -> list[Listener]:
    """Decode an ``/admin/listclients`` document."""
    root = parse_document(payload, "icestats")
    listeners: list[Listener] = []
    for source in _children(root, "source"):
        for element in _children(source, "listener"):
            raw_id = element.get("id")
            if raw_id is None:
                raw_id = _text(element, "id")
            listeners.append(
                Listener(
                    id=_to_int(raw_id, "listener id"),
                    ip=_text(element, "ip"),
                    lag=_int(element, "lag"),
                    connected=_int(element, "connected"),
                    user_agent=_text(element, "useragent"),
                )
            )
    return listeners


def parse_response(payload: bytes | str) -> str:
    """Decode an ``<iceresponse>`` and return the server message.

    Raises :class:`APIError` when the server reports failure.
    """
    root = parse_document(payload, "iceresponse")
    message = _text(root, "message")
    text = message if isinstance(message, str) else ""
    status = _text(root, "return")
    if not is_set(status):
        raise ParseError("Server response is missing the <return> element.")
    if status.strip() != "1":
        raise APIError(text or "Server reported failure without a message.")
    return text


def extract_error_message(payload: bytes | str) -> str | None:
    """Best-effort message lookup in an error body; ``None`` when absent."""
    try:
        root = ET.fromstring(payload)
    except ET.ParseError:
        return None
    message = _text(root, "message")
    if isinstance(message, str) and message:
        return message
    return None


def _parse_source(element: ET.Element) -> SourceStats:
    return SourceStats(
        mount=_mount_attr(element),
        stream_started=_timestamp(element, "stream_start_iso8601", "stream_start"),
        source_ip=_text(element, "source_ip"),
        info=SourceInfo(
            name=_text(element, "server_name"),
            genre=_text(element, "genre"),
            description=_text(element, "server_description"),
            type=_text(element, "server_type"),
            url=_text(element, "server_url"),
            sub_type=_text(element, "subtype"),
        ),
        listen_url=_text(element, "listenurl"),
        public=_bool(element, "public"),
        user_agent=_text(element, "user_agent"),
        audio=AudioInfo(
            bitrate=_int(element, "audio_bitrate", "bitrate"),
            channels=_int(element, "audio_channels", "channels"),
            sample_rate=_int(element, "audio_samplerate", "samplerate"),
            codec_id=_int(element, "audio_codecid"),
            raw_info=_text(element, "audio_info"),
        ),
        track=TrackInfo(
            artist=_text(element, "artist"),
            title=_text(element, "title"),
            artwork=_text(element, "artwork"),
            metadata_url=_text(element, "metadata_url"),
            raw_info=_text(element, "yp_currently_playing"),
        ),
        metadata_updated=_timestamp(element, "metadata_updated"),
        counters=SourceCounters(
            listeners=_int(element, "listeners"),
            listener_peak=_int(element, "listener_peak"),
            max_listeners=_int(element, "max_listeners"),
            slow_listeners=_int(element, "slow_listeners"),
            listener_connections=_int(element, "listener_connections"),
            connected=_int(element, "connected"),
            queue_size=_int(element, "queue_size"),
            incoming_bitrate=_int(element, "incoming_bitrate"),
            outgoing_bitrate=_int(element, "outgoing_kbitrate") * KBIT,
            total_bytes_read=_int(element, "total_bytes_read"),
            total_bytes_sent=_int(element, "total_bytes_sent"),
        ),
    )


def _children(element: ET.Element, tag: str) -> list[ET.Element]:
    return [child for child in element if child.tag.lower() == tag]


def _find(element: ET.Element, *tags: str) -> ET.Element | None:
    for tag in tags:
        for child in element:
            if child.tag.lower() == tag:
                return child
    return None


def _mount_attr(element: ET.Element) -> str:
    mount = element.get("mount")
    if not mount:
        raise ParseError("Source element is missing its mount attribute.")
    return mount


def _text(element: ET.Element, *tags: str) -> OptionalText:
    child = _find(element, *tags)
    if child is None:
        return UNSET
    return (child.text or "").strip()


def _int(element: ET.Element, *tags: str) -> int:
    value = _text(element, *tags)
    if not value:
        return 0
    if value.lower() == "unlimited":
        return UNLIMITED
    return _to_int(value, tags[0])


def _to_int(value: OptionalText, label: str) -> int:
    if not isinstance(value, str) or not value:
        raise ParseError(f"Missing integer value for {label}.")
    try:
        return int(value)
    except ValueError:
        try:
            return int(float(value))
        except (ValueError, OverflowError) as exc:
            raise ParseError(f"Invalid integer for {label}: {value!r}.") from exc


def _bool(element: ET.Element, tag: str) -> bool:
    value = _text(element, tag)
    if not value:
        return False
    lowered = value.lower()
    if lowered in {"true", "yes"}:
        return True
    if lowered in {"false", "no"}:
        return False
    return _to_int(value, tag) > 0


def _timestamp(element: ET.Element, *tags: str) -> datetime | None:
    for tag in tags:
        value = _text(element, tag)
        if not value:
            continue
        return _to_datetime(value, tag)
    return None


def _to_datetime(value: str, label: str) -> datetime:
    for fmt in (*_ISO_FORMATS, _ACCESS_LOG_FORMAT):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Invalid timestamp for {label}: {value!r}.") from exc


__all__ = [
    "UNLIMITED",
    "extract_error_message",
    "parse_document",
    "parse_listeners",
    "parse_mounts",
    "parse_response",
    "parse_stats",
]
