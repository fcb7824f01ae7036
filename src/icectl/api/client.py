"""HTTP client for the Icecast admin interface.

Each public method performs exactly one authenticated request and returns a
typed value from :mod:`icectl.api.models`. Transport, authentication, server
and decoding failures are raised as the matching :mod:`icectl.errors` class;
nothing is retried.

Usage::

    with AdminClient(Credentials.from_host("radio:8000", "admin", "secret")) as client:
        mounts = client.list_mounts()
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from .. import __version__
from ..errors import APIError, ArgumentError, AuthError, ServerConnectionError
from . import parser
from .models import ActionResult, Listener, Mount, ServerStats, TrackMeta

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class Credentials:
    """Admin endpoint and basic-auth credentials for one run."""

    base_url: str
    username: str
    password: str

    @classmethod
    def from_host(cls, host: str, username: str, password: str) -> Credentials:
        """Build credentials, adding ``http://`` when *host* has no scheme."""
        base_url = host.strip()
        if not base_url:
            raise ArgumentError("Server URL must not be empty.")
        if not username.strip():
            raise ArgumentError("Admin username must not be empty.")
        if "://" not in base_url:
            base_url = f"http://{base_url}"
        base_url = base_url.rstrip("/")
        try:
            httpx.URL(base_url)
        except httpx.InvalidURL as exc:
            raise ArgumentError(f"Invalid server URL {host!r}: {exc}") from exc
        return cls(base_url=base_url, username=username, password=password)


class AdminClient:
    """Blocking client for the ``/admin`` endpoints of an Icecast server."""

    def __init__(
        self,
        credentials: Credentials,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            credentials: Base URL and basic-auth pair used for every request.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests to stub the server.
        """
        self.credentials = credentials
        self.timeout = timeout
        self._http = httpx.Client(
            base_url=credentials.base_url,
            auth=httpx.BasicAuth(credentials.username, credentials.password),
            timeout=timeout,
            headers={"User-Agent": f"icectl/{__version__}"},
            transport=transport,
        )

    def __enter__(self) -> AdminClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    # ------------------------------------------------------------------
    def get_stats(self) -> ServerStats:
        """Return the full server statistics snapshot."""
        response = self._request("/admin/stats")
        return parser.parse_stats(response.content)

    def list_mounts(self) -> list[Mount]:
        """Return every currently connected mount point."""
        response = self._request("/admin/listmounts")
        return parser.parse_mounts(response.content)

    def list_clients(self, mount: str) -> list[Listener]:
        """Return the listeners connected to *mount*."""
        response = self._request("/admin/listclients", {"mount": mount})
        return parser.parse_listeners(response.content)

    def move_clients(self, from_mount: str, to_mount: str) -> ActionResult:
        """Move every listener of *from_mount* to *to_mount*."""
        response = self._request(
            "/admin/moveclients",
            {"mount": from_mount, "destination": to_mount},
        )
        return ActionResult(
            action="move-clients",
            mount=from_mount,
            destination=to_mount,
            message=parser.parse_response(response.content),
        )

    def update_meta(self, mount: str, meta: TrackMeta) -> ActionResult:
        """Replace the current track metadata of *mount*."""
        response = self._request(
            "/admin/metadata",
            {
                "mount": mount,
                "mode": "updinfo",
                "artist": meta.artist,
                "title": meta.title,
            },
        )
        return ActionResult(
            action="update-meta",
            mount=mount,
            message=parser.parse_response(response.content),
        )

    def kill_client(self, mount: str, client_id: int) -> ActionResult:
        """Disconnect the listener *client_id* from *mount*."""
        response = self._request("/admin/killclient", {"mount": mount, "id": client_id})
        return ActionResult(
            action="kill-client",
            mount=mount,
            client_id=client_id,
            message=parser.parse_response(response.content),
        )

    def kill_source(self, mount: str) -> ActionResult:
        """Disconnect the source feeding *mount*."""
        response = self._request("/admin/killsource", {"mount": mount})
        return ActionResult(
            action="kill-source",
            mount=mount,
            message=parser.parse_response(response.content),
        )

    # ------------------------------------------------------------------
    def _request(self, path: str, params: Mapping[str, Any] | None = None) -> httpx.Response:
        logger.debug("Admin request %s params=%s", path, dict(params or {}))
        try:
            response = self._http.get(path, params=params)
        except httpx.RequestError as exc:
            logger.debug("Admin request %s failed: %s", path, exc)
            raise ServerConnectionError(
                f"Cannot connect to {self.credentials.base_url}: {exc}"
            ) from exc

        logger.debug("Admin response %s status=%s", path, response.status_code)

        if response.status_code in (401, 403):
            raise AuthError(
                f"Server rejected credentials for user '{self.credentials.username}' "
                f"(HTTP {response.status_code})."
            )
        if response.is_error:
            message = parser.extract_error_message(response.content)
            if message is None:
                message = response.reason_phrase or "request failed"
            raise APIError(
                f"{message} (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        return response


__all__ = ["AdminClient", "Credentials", "DEFAULT_TIMEOUT"]
