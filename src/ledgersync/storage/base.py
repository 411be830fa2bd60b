"""
LedgerSync storage backend base.

Defines the abstract interface every persistence backend implements.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ledgersync.core.models import DataFile, parse_data_file


class StorageBackend(ABC):
    """Abstract base class for the external store holding the data file.

    ``load`` returns ``None`` when nothing has been persisted yet. Transport
    and permission failures raise ``StorageError``; malformed content raises
    ``SnapshotValidationError``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name (e.g., 'file', 'memory')."""

    @abstractmethod
    async def load(self) -> DataFile | None:
        """Read and validate the persisted snapshot."""

    @abstractmethod
    async def save(self, snapshot: DataFile) -> None:
        """Validate and persist ``snapshot``, replacing the stored one."""

    async def list_partitions(self) -> list[str]:
        """Partition keys (years) present in the persisted snapshot."""
        snapshot = await self.load()
        if snapshot is None:
            return []
        return sorted(snapshot.years)

    def describe(self) -> str:
        return self.name


def validate_for_write(snapshot: DataFile) -> DataFile:
    """Re-validate a snapshot from its wire form before it is persisted.

    In-memory edits bypass pydantic validation, so this is where a broken
    working copy is caught instead of being written.
    """
    return parse_data_file(snapshot.to_wire())
