"""
LedgerSync sync module.

Provides content fingerprints, three-way reconciliation with conflict
surfacing, and the coordinator sequencing loads and saves.
"""

from ledgersync.sync.conflict import (
    Conflict,
    ConflictKind,
    ConflictReason,
    MergeOutcome,
    Resolution,
    Resolver,
    Side,
    apply_resolutions,
)
from ledgersync.sync.coordinator import (
    SaveResult,
    SaveStatus,
    SyncCoordinator,
    SyncMetadata,
    SyncState,
)
from ledgersync.sync.fingerprint import canonical_json, fingerprint, records_equal
from ledgersync.sync.orchestrator import orchestrate
from ledgersync.sync.reconciler import ReconcileResult, reconcile

__all__ = [
    "Conflict",
    "ConflictKind",
    "ConflictReason",
    "MergeOutcome",
    "ReconcileResult",
    "Resolution",
    "Resolver",
    "SaveResult",
    "SaveStatus",
    "Side",
    "SyncCoordinator",
    "SyncMetadata",
    "SyncState",
    "apply_resolutions",
    "canonical_json",
    "fingerprint",
    "orchestrate",
    "reconcile",
    "records_equal",
]
