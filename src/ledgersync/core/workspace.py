"""
LedgerSync working copy.

Holds the in-memory data file the application edits between saves.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from ledgersync.core.models import DataFile, YearData


class Workspace:
    """In-memory working copy of the data file and the active year."""

    def __init__(self, data_file: DataFile | None = None, current_year: int | None = None) -> None:
        self._data_file = data_file
        self.current_year = current_year or datetime.now().year
        self.last_saved: datetime | None = None
        self.error: str | None = None

    @property
    def data_file(self) -> DataFile | None:
        return self._data_file

    @property
    def has_data(self) -> bool:
        return self._data_file is not None

    @property
    def active_partition(self) -> YearData | None:
        if self._data_file is None:
            return None
        return self._data_file.years.get(str(self.current_year))

    def snapshot(self) -> DataFile | None:
        """Return a deep copy of the working copy."""
        return self._data_file.deep_copy() if self._data_file is not None else None

    def adopt(self, snapshot: DataFile, partition_key: int | str) -> None:
        """Take ``snapshot`` as the working copy and activate a partition.

        The active partition is created empty when the snapshot has none.
        """
        data_file = snapshot.deep_copy()
        key = str(partition_key)
        if key not in data_file.years:
            data_file.years[key] = YearData()
        self._data_file = data_file
        self.current_year = int(key)

    def replace(self, snapshot: DataFile) -> None:
        """Replace the working copy, keeping the active year."""
        self.adopt(snapshot, self.current_year)

    def update(self, mutate: Callable[[DataFile], None]) -> None:
        """Apply an in-place edit to the working copy."""
        if self._data_file is None:
            self._data_file = DataFile.empty(self.current_year)
        mutate(self._data_file)

    def clear(self) -> None:
        self._data_file = None
        self.last_saved = None
        self.error = None
