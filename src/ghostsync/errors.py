"""Exception hierarchy for ghostsync."""

from __future__ import annotations


class GhostSyncError(Exception):
    """Base class for errors raised by ghostsync."""


class ConfigurationError(GhostSyncError, ValueError):
    """Raised when plugin options are missing or invalid."""


class ContentApiError(GhostSyncError):
    """Raised when a Content API browse call fails."""

    def __init__(
        self,
        message: str,
        *,
        resource: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.resource = resource
        self.status_code = status_code


class RemoteFileError(GhostSyncError):
    """Raised when a remote file cannot be downloaded or cached."""


class NodeOwnershipError(GhostSyncError):
    """Raised when a node descriptor already carries an owner."""
