"""Icecast admin API client and response model."""
from __future__ import annotations

from .client import AdminClient, Credentials
from .models import (
    UNSET,
    ActionResult,
    AudioInfo,
    Listener,
    Mount,
    ServerCounters,
    ServerInfo,
    ServerStats,
    SourceCounters,
    SourceInfo,
    SourceStats,
    TrackInfo,
    TrackMeta,
    Unset,
    is_set,
)

__all__ = [
    "UNSET",
    "ActionResult",
    "AdminClient",
    "AudioInfo",
    "Credentials",
    "Listener",
    "Mount",
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
