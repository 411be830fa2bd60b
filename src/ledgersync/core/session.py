"""
LedgerSync Session Management.

Composes configuration, logging, the storage backend, the working copy and
the sync coordinator for one application session, and keeps a report of
every load and save.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ledgersync.core.config import LedgerSyncConfig, load_config
from ledgersync.core.logging import get_logger, setup_logging
from ledgersync.core.models import DataFile
from ledgersync.core.workspace import Workspace
from ledgersync.storage import StorageBackend, create_backend
from ledgersync.sync.conflict import Resolver
from ledgersync.sync.coordinator import SaveResult, SyncCoordinator

logger = get_logger(__name__)


@dataclass
class SyncReport:
    """Record of the sync operations of one session."""

    session_id: str
    backend: str
    started_at: datetime
    ended_at: datetime | None = None
    operations: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        saves = [op for op in self.operations if op["operation"] == "save"]
        return {
            "session_id": self.session_id,
            "backend": self.backend,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "operations": self.operations,
            "errors": self.errors,
            "summary": {
                "total_operations": len(self.operations),
                "saves_written": sum(1 for op in saves if op.get("written")),
                "conflicts": sum(op.get("conflicts", 0) for op in saves),
                "total_errors": len(self.errors),
            },
        }

    def save(self, path: Path) -> None:
        """Save report to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)


class Session:
    """
    One application session syncing a ledger with its external store.

    This is the composition root: backend and resolver may be injected,
    otherwise the backend comes from the configuration.
    """

    def __init__(
        self,
        config: LedgerSyncConfig | None = None,
        backend: StorageBackend | None = None,
        resolver: Resolver | None = None,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or str(uuid.uuid4())
        self.config = config or load_config()
        self.started_at = datetime.now()

        setup_logging(self.config.logging)

        self.backend = backend or create_backend(self.config.storage)
        self.workspace = Workspace()
        self.coordinator = SyncCoordinator(
            self.backend,
            self.workspace,
            resolver=resolver,
            config=self.config.sync,
            on_auto_save=lambda result: self._record_save(result, "auto"),
            on_auto_save_error=self._record_auto_save_error,
        )

        self._report = SyncReport(
            session_id=self.id,
            backend=self.backend.describe(),
            started_at=self.started_at,
        )

        logger.info("Session started", session_id=self.id, backend=self.backend.describe())

    async def load(self, year: int | str) -> DataFile | None:
        """Load the persisted data file and activate ``year``."""
        try:
            snapshot = await self.coordinator.load_now(year)
        except Exception as e:
            self._track_error("load", e)
            raise
        self._report.operations.append(
            {
                "timestamp": datetime.now().isoformat(),
                "operation": "load",
                "year": str(year),
                "found": snapshot is not None,
                "fingerprint": (
                    self.coordinator.metadata.fingerprint if self.coordinator.metadata else None
                ),
            }
        )
        return snapshot

    async def save(self, force: bool = False) -> SaveResult:
        """Save the working copy and record the outcome."""
        try:
            result = await self.coordinator.save_now(force=force)
        except Exception as e:
            self._track_error("save", e)
            raise
        self._record_save(result, "manual")
        return result

    def mark_changed(self) -> None:
        self.coordinator.mark_changed()

    def _record_save(self, result: SaveResult, trigger: str) -> None:
        self._report.operations.append(
            {
                "timestamp": datetime.now().isoformat(),
                "operation": "save",
                "trigger": trigger,
                "status": result.status.value,
                "written": result.written,
                "fingerprint": result.fingerprint,
                "auto_merged": result.auto_merged,
                "conflicts": len(result.conflicts),
            }
        )
        if result.written:
            self.save_status()

    def _record_auto_save_error(self, error: Exception) -> None:
        self._track_error("auto_save", error)
        self.save_status()

    def _track_error(self, operation: str, error: Exception) -> None:
        self._report.errors.append(
            {
                "timestamp": datetime.now().isoformat(),
                "operation": operation,
                "error_type": type(error).__name__,
                "error": str(error),
            }
        )

    def save_status(self) -> None:
        """Persist the session report to the configured status file."""
        self._report.save(self.config.sync.status_file)

    def load_status(self) -> dict[str, Any] | None:
        """Load the last persisted status, if any."""
        return load_status(self.config.sync.status_file)

    def get_report(self) -> SyncReport:
        return self._report

    async def close(self) -> Path:
        """Stop auto-save and write the final report."""
        await self.coordinator.stop_auto_save()
        self._report.ended_at = datetime.now()
        self.save_status()
        logger.info(
            "Session closed",
            session_id=self.id,
            duration_seconds=(self._report.ended_at - self.started_at).total_seconds(),
            pending_changes=self.coordinator.has_pending_changes,
        )
        return self.config.sync.status_file

    async def __aenter__(self) -> Session:
        await self.coordinator.start_auto_save()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


def load_status(path: Path) -> dict[str, Any] | None:
    """Load a status report written by ``Session.save_status``."""
    if not path.exists():
        return None
    with open(path) as handle:
        return json.load(handle)
