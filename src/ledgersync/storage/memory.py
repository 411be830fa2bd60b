"""
In-memory storage backend.

Useful for embedding and tests: other writers can be simulated with
``put_external`` and failures injected with ``fail_next_load`` /
``fail_next_save``.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any

from ledgersync.core.models import DataFile, parse_data_file
from ledgersync.storage.base import StorageBackend, validate_for_write


class MemoryBackend(StorageBackend):
    """Keeps the persisted snapshot as wire-form data in memory."""

    def __init__(self, initial: DataFile | None = None, latency: float = 0.0) -> None:
        self._stored: dict[str, Any] | None = initial.to_wire() if initial is not None else None
        self.latency = latency
        self.load_count = 0
        self.save_count = 0
        self.written: list[DataFile] = []
        self.fail_next_load: Exception | None = None
        self.fail_next_save: Exception | None = None

    @property
    def name(self) -> str:
        return "memory"

    @property
    def stored(self) -> DataFile | None:
        """The currently persisted snapshot (a fresh copy)."""
        return parse_data_file(copy.deepcopy(self._stored)) if self._stored is not None else None

    @property
    def stored_wire(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._stored)

    def put_external(self, snapshot: DataFile | None) -> None:
        """Replace the stored snapshot as another process would."""
        self._stored = snapshot.to_wire() if snapshot is not None else None

    async def load(self) -> DataFile | None:
        await asyncio.sleep(self.latency)
        self.load_count += 1
        if self.fail_next_load is not None:
            error, self.fail_next_load = self.fail_next_load, None
            raise error
        return self.stored

    async def save(self, snapshot: DataFile) -> None:
        validated = validate_for_write(snapshot)
        await asyncio.sleep(self.latency)
        if self.fail_next_save is not None:
            error, self.fail_next_save = self.fail_next_save, None
            raise error
        self._stored = validated.to_wire()
        self.save_count += 1
        self.written.append(validated)
