"""icectl package bootstrap.

Exposes lightweight metadata that the CLI and the HTTP client (for its
``User-Agent`` header) rely upon.
"""
from __future__ import annotations

__all__ = ["__version__", "get_version"]

# NOTE: The version is duplicated in ``pyproject.toml`` and managed by Hatch.
__version__ = "1.0.2"


def get_version() -> str:
    """Return the current package version."""
    return __version__
