"""
JSON file storage backend.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

from ledgersync.core.exceptions import StorageError
from ledgersync.core.logging import get_logger
from ledgersync.core.models import DataFile
from ledgersync.storage.base import StorageBackend, validate_for_write

logger = get_logger(__name__)


class JsonFileBackend(StorageBackend):
    """Stores the data file as UTF-8 JSON on a local (or mounted) filesystem.

    Writes go to a temporary file in the same directory which then replaces
    the target, so readers never observe a half-written file.
    """

    def __init__(self, path: Path | str, indent: int = 2) -> None:
        self.path = Path(path)
        self.indent = indent

    @property
    def name(self) -> str:
        return "file"

    def describe(self) -> str:
        return f"file:{self.path}"

    async def load(self) -> DataFile | None:
        return await asyncio.to_thread(self._read)

    async def save(self, snapshot: DataFile) -> None:
        text = validate_for_write(snapshot).to_json(indent=self.indent)
        await asyncio.to_thread(self._write, text)

    def _read(self) -> DataFile | None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("Data file does not exist yet", path=str(self.path))
            return None
        except OSError as e:
            raise StorageError(f"Cannot read {self.path}: {e}", str(self.path)) from e
        return DataFile.from_json(text)

    def _write(self, text: str) -> None:
        tmp_path: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}", str(self.path)) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
        logger.debug("Data file written", path=str(self.path), size_bytes=len(text))
