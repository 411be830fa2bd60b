"""
LedgerSync exception hierarchy.
"""

from __future__ import annotations


class LedgerSyncError(Exception):
    """Base class for all LedgerSync errors."""


class ConfigurationError(LedgerSyncError):
    """Invalid or unsupported configuration."""


class StorageError(LedgerSyncError):
    """Transport or permission failure in a storage backend."""

    def __init__(self, message: str, location: str | None = None) -> None:
        super().__init__(message)
        self.location = location


class SnapshotValidationError(LedgerSyncError):
    """A snapshot read from (or about to be written to) a store is malformed."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class NoDataError(LedgerSyncError):
    """A save was requested but there is no working copy to save."""


class ConflictResolutionError(LedgerSyncError):
    """Conflicts could not be resolved from the resolver's answer."""


class ResolutionCancelledError(LedgerSyncError):
    """The resolver declined to resolve conflicts."""


class SyncInProgressError(LedgerSyncError):
    """An operation was refused because a save is in flight."""
