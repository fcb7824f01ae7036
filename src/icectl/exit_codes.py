"""Enumerations for CLI exit codes."""
from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes returned by the CLI.

    Every failure kind shares a single code; callers distinguish errors by
    the message printed to stderr, not by the status.
    """

    OK = 0
    FAILURE = 1
