"""
LedgerSync sync coordinator.

Sequences loads, explicit saves and timer-driven auto-saves of the working
copy against an external store that other processes may modify between
saves. Conflicting edits are merged three-way against the snapshot of the
last successful load or save.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any

from ledgersync.core.config import SyncConfig
from ledgersync.core.exceptions import (
    ConflictResolutionError,
    NoDataError,
    SyncInProgressError,
)
from ledgersync.core.logging import OperationLogger, get_logger
from ledgersync.core.models import DataFile, utc_timestamp
from ledgersync.core.workspace import Workspace
from ledgersync.storage.base import StorageBackend, validate_for_write
from ledgersync.sync.conflict import (
    Conflict,
    MergeOutcome,
    Resolution,
    Resolver,
    Side,
    apply_resolutions,
    request_resolution,
)
from ledgersync.sync.fingerprint import fingerprint
from ledgersync.sync.orchestrator import orchestrate

logger = get_logger(__name__)


class SyncState(Enum):
    """What the coordinator is doing right now."""

    IDLE = auto()
    LOADING = auto()
    SAVING = auto()


class SaveStatus(Enum):
    """How a save request ended."""

    SAVED = "saved"  # written without merging
    MERGED = "merged"  # external changes merged, then written
    CANCELLED = "cancelled"  # resolver cancelled, nothing written
    SKIPPED = "skipped"  # another save was in flight
    NOTHING_TO_SAVE = "nothing_to_save"


@dataclass(frozen=True)
class SyncMetadata:
    """State of the last successful load or save.

    ``base`` is the common ancestor for the next three-way merge.
    """

    fingerprint: str
    synced_at: datetime
    base: DataFile


@dataclass
class SaveResult:
    status: SaveStatus
    fingerprint: str | None = None
    saved_at: datetime | None = None
    auto_merged: int = 0
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def written(self) -> bool:
        return self.status in (SaveStatus.SAVED, SaveStatus.MERGED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "fingerprint": self.fingerprint,
            "saved_at": self.saved_at.isoformat() if self.saved_at else None,
            "auto_merged": self.auto_merged,
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
        }


class SyncCoordinator:
    """Keeps one working copy in sync with one external store.

    At most one save runs at a time; a save requested while another is in
    flight is dropped, not queued. A cancelled conflict resolution leaves
    both the store and the working copy as they were.
    """

    def __init__(
        self,
        backend: StorageBackend,
        workspace: Workspace,
        resolver: Resolver | None = None,
        config: SyncConfig | None = None,
        on_auto_save: Callable[[SaveResult], None] | None = None,
        on_auto_save_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self.backend = backend
        self.workspace = workspace
        self.resolver = resolver
        self.config = config or SyncConfig()
        self.on_auto_save = on_auto_save
        self.on_auto_save_error = on_auto_save_error
        self.last_result: SaveResult | None = None
        self._state = SyncState.IDLE
        self._pending = False
        self._revision = 0
        self._metadata: SyncMetadata | None = None
        self._auto_save_task: asyncio.Task[None] | None = None
        self._auto_save_inflight: asyncio.Future[SaveResult] | None = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_saving(self) -> bool:
        return self._state is SyncState.SAVING

    @property
    def has_pending_changes(self) -> bool:
        return self._pending

    @property
    def metadata(self) -> SyncMetadata | None:
        return self._metadata

    @property
    def auto_save_running(self) -> bool:
        return self._auto_save_task is not None and not self._auto_save_task.done()

    def mark_changed(self) -> None:
        """Flag that the working copy has unsaved edits."""
        self._pending = True
        self._revision += 1

    # ==================== Load ====================

    async def load_now(self, partition_key: int | str) -> DataFile | None:
        """Load the persisted snapshot into the working copy.

        Returns ``None`` when nothing has been persisted yet; the working copy
        is then left untouched and the next save writes it directly.
        """
        if self._state is not SyncState.IDLE:
            raise SyncInProgressError(f"Cannot load while {self._state.name.lower()}")

        self._state = SyncState.LOADING
        try:
            with OperationLogger(
                "load", logger, backend=self.backend.describe(), partition=str(partition_key)
            ):
                snapshot = await self.backend.load()
                if snapshot is None:
                    self._metadata = None
                    logger.info("Nothing persisted yet", backend=self.backend.describe())
                    return None

                digest = await asyncio.to_thread(fingerprint, snapshot)
                self._metadata = SyncMetadata(
                    fingerprint=digest,
                    synced_at=datetime.now(),
                    base=snapshot.deep_copy(),
                )
                self.workspace.adopt(snapshot, partition_key)
                self._pending = False
                self.workspace.error = None
                return snapshot
        except Exception as e:
            self.workspace.error = str(e)
            raise
        finally:
            self._state = SyncState.IDLE

    # ==================== Save ====================

    async def save_now(self, force: bool = False) -> SaveResult:
        """Save the working copy, merging external changes when needed.

        Errors from the backend, validation and resolution propagate; the
        pending flag and sync metadata are then left as they were.
        """
        if self._state is not SyncState.IDLE:
            logger.debug("Save request dropped", state=self._state.name)
            return SaveResult(SaveStatus.SKIPPED)

        if not (self._pending or force):
            return SaveResult(SaveStatus.NOTHING_TO_SAVE)

        local = self.workspace.snapshot()
        if local is None:
            raise NoDataError("No data to save")

        revision = self._revision
        self._state = SyncState.SAVING
        try:
            with OperationLogger("save", logger, backend=self.backend.describe()) as op:
                result = await self._save(local, revision)
                op.update(status=result.status.value, conflicts=len(result.conflicts))
        except Exception as e:
            self.workspace.error = str(e)
            raise
        finally:
            self._state = SyncState.IDLE

        self.last_result = result
        return result

    async def _save(self, local: DataFile, revision: int) -> SaveResult:
        external = await self.backend.load()
        metadata = self._metadata
        outcome: MergeOutcome | None = None

        if metadata is None:
            logger.info("No previous sync, writing working copy directly")
            to_write = local
        elif external is None:
            logger.warning(
                "Persisted snapshot is gone, writing working copy directly",
                backend=self.backend.describe(),
            )
            to_write = local
        else:
            external_digest = await asyncio.to_thread(fingerprint, external)
            if external_digest == metadata.fingerprint:
                to_write = local
            else:
                logger.info(
                    "Persisted snapshot changed since last sync, merging",
                    last_synced_at=metadata.synced_at.isoformat(),
                )
                outcome = await asyncio.to_thread(orchestrate, metadata.base, external, local)
                to_write = outcome.merged
                if outcome.has_conflicts:
                    resolution = await self._resolve(outcome)
                    if resolution.cancelled:
                        logger.info(
                            "Conflict resolution cancelled, nothing written",
                            conflicts=len(outcome.conflicts),
                        )
                        return SaveResult(
                            SaveStatus.CANCELLED,
                            auto_merged=outcome.auto_merged,
                            conflicts=list(outcome.conflicts),
                        )
                    to_write = apply_resolutions(outcome.merged, outcome.conflicts, resolution)

        to_write.last_modified = utc_timestamp()
        # Nothing reaches the store unless it validates and can be fingerprinted.
        validate_for_write(to_write)
        digest = await asyncio.to_thread(fingerprint, to_write)
        await self.backend.save(to_write)

        saved_at = datetime.now()
        self._metadata = SyncMetadata(
            fingerprint=digest,
            synced_at=saved_at,
            base=to_write.deep_copy(),
        )
        if outcome is not None:
            self._adopt_written(local, to_write, revision)

        if self._revision == revision:
            self._pending = False
        else:
            logger.info("Working copy edited during save, changes stay pending")
        self.workspace.last_saved = saved_at
        self.workspace.error = None

        return SaveResult(
            SaveStatus.MERGED if outcome is not None else SaveStatus.SAVED,
            fingerprint=digest,
            saved_at=saved_at,
            auto_merged=outcome.auto_merged if outcome is not None else 0,
            conflicts=list(outcome.conflicts) if outcome is not None else [],
        )

    async def _resolve(self, outcome: MergeOutcome) -> Resolution:
        if self.resolver is None:
            raise ConflictResolutionError(
                f"{len(outcome.conflicts)} conflicts need resolution but no resolver is configured"
            )
        logger.info("Waiting for conflict resolution", conflicts=len(outcome.conflicts))
        return await request_resolution(self.resolver, outcome)

    def _adopt_written(self, local: DataFile, written: DataFile, revision: int) -> None:
        """Bring the merged result into the working copy.

        Edits made while the save was suspended are replayed on top of the
        written snapshot; where they clash with it, the edit wins.
        """
        if self._revision == revision:
            self.workspace.replace(written)
            return

        current = self.workspace.snapshot()
        if current is None:
            self.workspace.replace(written)
            return
        rebased = orchestrate(local, written, current)
        snapshot = rebased.merged
        if rebased.has_conflicts:
            snapshot = apply_resolutions(
                rebased.merged, rebased.conflicts, Resolution.all(Side.LOCAL, rebased)
            )
        self.workspace.replace(snapshot)

    # ==================== Auto-save ====================

    async def start_auto_save(self) -> None:
        """Start the periodic auto-save task (no-op when already running)."""
        if self.auto_save_running:
            return
        self._auto_save_task = asyncio.create_task(
            self._auto_save_loop(), name="ledgersync-auto-save"
        )
        logger.info(
            "Auto-save started",
            interval_seconds=self.config.auto_save_interval_seconds,
        )

    async def stop_auto_save(self) -> None:
        """Cancel the auto-save task and wait for a save already in flight."""
        task, self._auto_save_task = self._auto_save_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        save, self._auto_save_inflight = self._auto_save_inflight, None
        if save is not None:
            await asyncio.wait({save})
            self._auto_save_done(save)
        logger.info("Auto-save stopped")

    async def auto_save_tick(self) -> SaveResult | None:
        """Run one auto-save tick.

        Saves only when there are pending changes and nothing is in flight.
        Failures are logged and reported to ``on_auto_save_error`` so the
        next tick retries. Cancelling the tick does not cancel the save.
        """
        if not self._pending or self._state is not SyncState.IDLE:
            return None
        save = asyncio.ensure_future(self.save_now())
        self._auto_save_inflight = save
        await asyncio.wait({save})
        if self._auto_save_inflight is not save:
            # stop_auto_save took over and reports the outcome.
            return None
        self._auto_save_inflight = None
        return self._auto_save_done(save)

    def _auto_save_done(self, save: asyncio.Future[SaveResult]) -> SaveResult | None:
        error = save.exception()
        if error is not None:
            logger.error("Auto-save failed", exc_info=error)
            if self.on_auto_save_error is not None:
                self.on_auto_save_error(error)
            return None
        result = save.result()
        if self.on_auto_save is not None:
            self.on_auto_save(result)
        return result

    async def _auto_save_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.auto_save_interval_seconds)
            await self.auto_save_tick()
