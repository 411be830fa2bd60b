"""
LedgerSync storage backends.

Provides the backend interface and a factory selecting the configured one.
"""

from __future__ import annotations

from ledgersync.core.config import StorageConfig
from ledgersync.core.exceptions import ConfigurationError
from ledgersync.storage.base import StorageBackend, validate_for_write
from ledgersync.storage.file import JsonFileBackend
from ledgersync.storage.memory import MemoryBackend


def create_backend(config: StorageConfig) -> StorageBackend:
    """Create the storage backend named by ``config.provider``."""
    if config.provider == "file":
        return JsonFileBackend(config.data_file, indent=config.indent)
    if config.provider == "memory":
        return MemoryBackend()
    raise ConfigurationError(f"Unknown storage provider: {config.provider}")


__all__ = [
    "JsonFileBackend",
    "MemoryBackend",
    "StorageBackend",
    "create_backend",
    "validate_for_write",
]
