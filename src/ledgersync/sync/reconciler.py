"""
Three-way reconciliation of one collection of identifiable records.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ledgersync.sync.conflict import Conflict, ConflictKind, ConflictReason
from ledgersync.sync.fingerprint import records_equal

R = TypeVar("R")


@dataclass
class ReconcileResult(Generic[R]):
    """Merged records, conflicts and the count of records merged without conflict."""

    merged: list[R] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
    auto_merged: int = 0


def record_id(record: Any) -> str:
    """Identifier of a model/dataclass record or a mapping with an ``id`` key."""
    if isinstance(record, Mapping):
        return str(record["id"])
    return str(record.id)


def record_label(record: Any, kind: ConflictKind) -> str:
    """Human-readable label: ``name``, then ``description``, then a placeholder."""
    for attr in ("name", "description"):
        value = record.get(attr) if isinstance(record, Mapping) else getattr(record, attr, None)
        if isinstance(value, str) and value:
            return value
    return f"{kind.value} (no name)"


def _index(records: Iterable[R]) -> dict[str, R]:
    return {record_id(record): record for record in records}


def reconcile(
    base: Sequence[R],
    external: Sequence[R],
    local: Sequence[R],
    kind: ConflictKind,
    partition: str | None = None,
) -> ReconcileResult[R]:
    """Merge ``external`` and ``local`` against their common ancestor ``base``.

    Ids are visited in first-seen order over base, external, local. A record
    changed incompatibly on both sides is reported as a conflict and left
    out of ``merged``. None of the inputs is modified.
    """
    base_map = _index(base)
    external_map = _index(external)
    local_map = _index(local)

    all_ids = list(dict.fromkeys([*base_map, *external_map, *local_map]))
    result: ReconcileResult[R] = ReconcileResult()

    def keep(record: R) -> None:
        result.merged.append(record)
        result.auto_merged += 1

    def accept_deletion() -> None:
        result.auto_merged += 1

    def conflict(rid: str, ext: R | None, loc: R | None, reason: ConflictReason) -> None:
        shown = loc if loc is not None else ext
        result.conflicts.append(
            Conflict(
                kind=kind,
                record_id=rid,
                label=record_label(shown, kind),
                external=ext,
                local=loc,
                reason=reason,
                partition=partition,
            )
        )

    for rid in all_ids:
        b = base_map.get(rid)
        e = external_map.get(rid)
        l = local_map.get(rid)  # noqa: E741

        if b is None:
            if e is not None and l is None:
                keep(e)
            elif e is None and l is not None:
                keep(l)
            elif records_equal(e, l):
                keep(l)
            else:
                # Same id created independently with different content.
                conflict(rid, e, l, ConflictReason.BOTH_MODIFIED)
            continue

        if e is None and l is None:
            accept_deletion()
            continue

        if e is None:
            if records_equal(b, l):
                accept_deletion()
            else:
                conflict(rid, None, l, ConflictReason.DELETE_MODIFY)
            continue

        if l is None:
            if records_equal(b, e):
                accept_deletion()
            else:
                conflict(rid, e, None, ConflictReason.DELETE_MODIFY)
            continue

        external_changed = not records_equal(b, e)
        local_changed = not records_equal(b, l)
        if external_changed and not local_changed:
            keep(e)
        elif not external_changed or records_equal(e, l):
            keep(l)
        else:
            conflict(rid, e, l, ConflictReason.BOTH_MODIFIED)

    return result
