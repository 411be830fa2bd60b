"""
LedgerSync Core - configuration, logging, data model and working copy.
"""

from ledgersync.core.config import LedgerSyncConfig
from ledgersync.core.exceptions import (
    ConflictResolutionError,
    LedgerSyncError,
    NoDataError,
    SnapshotValidationError,
    StorageError,
    SyncInProgressError,
)
from ledgersync.core.logging import get_logger, setup_logging
from ledgersync.core.models import DataFile, YearData
from ledgersync.core.workspace import Workspace

__all__ = [
    "ConflictResolutionError",
    "DataFile",
    "LedgerSyncConfig",
    "LedgerSyncError",
    "NoDataError",
    "SnapshotValidationError",
    "StorageError",
    "SyncInProgressError",
    "Workspace",
    "YearData",
    "get_logger",
    "setup_logging",
]
