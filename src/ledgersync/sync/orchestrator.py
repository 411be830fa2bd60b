"""
Three-way merge of a whole data file.
"""

from __future__ import annotations

from ledgersync.core.logging import get_logger
from ledgersync.core.models import (
    PARTITION_COLLECTIONS,
    SHARED_COLLECTIONS,
    DataFile,
    YearData,
    utc_timestamp,
)
from ledgersync.sync.conflict import ConflictKind, MergeOutcome
from ledgersync.sync.reconciler import reconcile

logger = get_logger(__name__)

_KIND_BY_COLLECTION = {kind.collection: kind for kind in ConflictKind}


def orchestrate(base: DataFile, external: DataFile, local: DataFile) -> MergeOutcome:
    """Reconcile every shared collection and every year partition.

    Conflicts are ordered shared collections first, then partitions by
    ascending year, each in declared collection order. Schema version and
    archived-year references come from ``local``.
    """
    outcome = MergeOutcome(
        merged=DataFile(
            version=local.version,
            archived_years=[ref.model_copy(deep=True) for ref in local.archived_years],
            last_modified=utc_timestamp(),
        )
    )

    for name in SHARED_COLLECTIONS:
        result = reconcile(
            getattr(base, name),
            getattr(external, name),
            getattr(local, name),
            _KIND_BY_COLLECTION[name],
        )
        setattr(outcome.merged, name, [record.model_copy(deep=True) for record in result.merged])
        outcome.conflicts.extend(result.conflicts)
        outcome.auto_merged += result.auto_merged

    years = sorted(set(base.years) | set(external.years) | set(local.years))
    for year in years:
        merged_year = YearData()
        for name in PARTITION_COLLECTIONS:
            result = reconcile(
                getattr(base.partition(year), name),
                getattr(external.partition(year), name),
                getattr(local.partition(year), name),
                _KIND_BY_COLLECTION[name],
                partition=year,
            )
            setattr(merged_year, name, [record.model_copy(deep=True) for record in result.merged])
            outcome.conflicts.extend(result.conflicts)
            outcome.auto_merged += result.auto_merged
        # Years present only in base were dropped on both sides.
        if year in external.years or year in local.years:
            outcome.merged.years[year] = merged_year

    logger.info(
        "Three-way merge finished",
        auto_merged=outcome.auto_merged,
        conflicts=len(outcome.conflicts),
        partitions=len(years),
    )
    return outcome
