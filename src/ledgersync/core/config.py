"""
LedgerSync configuration management.

Provides centralized configuration with validation using Pydantic.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_HOME = Path.home() / ".ledgersync"


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_enabled: bool = True
    console_enabled: bool = True
    json_format: bool = False
    log_directory: Path = Field(default_factory=lambda: DEFAULT_HOME / "logs")

    @field_validator("log_directory", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()


class StorageConfig(BaseModel):
    """Configuration for the persistence backend."""

    provider: Literal["file", "memory"] = "file"
    data_file: Path = Field(default_factory=lambda: DEFAULT_HOME / "ledger.json")
    indent: int = Field(default=2, ge=0, le=8)

    @field_validator("data_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()


class SyncConfig(BaseModel):
    """Configuration for the sync coordinator."""

    auto_save_interval_seconds: float = Field(default=300.0, gt=0)
    status_file: Path = Field(default_factory=lambda: DEFAULT_HOME / "sync_status.json")

    @field_validator("status_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()


class LedgerSyncConfig(BaseModel):
    """Main LedgerSync configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> LedgerSyncConfig:
        """Load configuration from file or create default."""
        if config_path is None:
            config_path = DEFAULT_HOME / "config.json"

        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)
            return cls.model_validate(data)

        return cls()

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = DEFAULT_HOME / "config.json"

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

    def ensure_directories(self) -> None:
        """Create all required directories."""
        if self.logging.file_enabled:
            self.logging.log_directory.mkdir(parents=True, exist_ok=True)
        self.sync.status_file.parent.mkdir(parents=True, exist_ok=True)
        if self.storage.provider == "file":
            self.storage.data_file.parent.mkdir(parents=True, exist_ok=True)


def get_default_config() -> LedgerSyncConfig:
    """Get the default configuration."""
    return LedgerSyncConfig()


def load_config(config_path: Path | None = None) -> LedgerSyncConfig:
    """Load or create configuration."""
    config = LedgerSyncConfig.load(config_path)
    config.ensure_directories()
    return config
