"""Pytest configuration helpers for the test suite."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from fakes import FakeIcecast

from icectl.api.client import AdminClient, Credentials


@pytest.fixture
def fake_icecast() -> FakeIcecast:
    """Return a fresh fake server."""
    return FakeIcecast()


@pytest.fixture
def credentials() -> Credentials:
    """Return the default admin credentials."""
    return Credentials.from_host("http://127.0.0.1:8000", "admin", "hackme")


@pytest.fixture
def admin_client(fake_icecast: FakeIcecast, credentials: Credentials) -> Iterator[AdminClient]:
    """Return an :class:`AdminClient` wired to ``fake_icecast``."""
    with AdminClient(credentials, transport=fake_icecast.transport) as client:
        yield client


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop ICECTL_* variables inherited from the developer's shell."""
    for key in list(os.environ):
        if key.startswith("ICECTL_"):
            monkeypatch.delenv(key, raising=False)
