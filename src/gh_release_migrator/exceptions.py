"""
Custom exception classes for the release migration tool.
"""

from __future__ import annotations

from typing import Any


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigurationError(MigrationError):
    """Raised when the run configuration is invalid or contradictory."""


class NotFoundError(MigrationError):
    """Raised when a requested release, tag or latest release does not exist."""


class ConflictError(MigrationError):
    """Raised when the target already has a release with the same tag."""


class TransferError(MigrationError):
    """Raised for any other non-success response from a remote host.

    ``partial`` holds whatever was accumulated before the failure, if the
    operation accumulates anything (e.g. paginated listing).
    """

    partial: list[Any]

    def __init__(self, message: str, *, partial: list[Any] | None = None) -> None:
        super().__init__(message)
        self.partial = partial if partial is not None else []
