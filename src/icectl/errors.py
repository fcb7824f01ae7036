"""Error taxonomy shared by the dispatcher and the admin API client."""
from __future__ import annotations


class IcectlError(RuntimeError):
    """Base class for every error the CLI knows how to report."""


class ArgumentError(IcectlError):
    """Raised for a missing or malformed positional argument."""


class UnknownCommandError(IcectlError):
    """Raised when the command token does not match a registered command."""

    def __init__(self, name: str) -> None:
        """Record the unrecognised command *name*."""
        super().__init__(f"unknown command '{name}'")
        self.name = name


class ServerConnectionError(IcectlError):
    """Raised when no HTTP response could be obtained from the server."""


class AuthError(IcectlError):
    """Raised when the server rejects the admin credentials."""


class APIError(IcectlError):
    """Raised when the server answers with an application-level failure."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Keep the server's *message* and the HTTP *status_code* if known."""
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ParseError(IcectlError):
    """Raised when a response body cannot be decoded into the model."""


__all__ = [
    "APIError",
    "ArgumentError",
    "AuthError",
    "IcectlError",
    "ParseError",
    "ServerConnectionError",
    "UnknownCommandError",
]
