"""
Merge conflicts and the protocol for resolving them.

A merge that cannot decide a record on its own reports a ``Conflict``.
Conflicts are handed, together with the auto-merged snapshot, to an
injected resolver which answers with a ``Resolution``: one ``Side`` per
conflict index, or a cancellation of the whole save.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from ledgersync.core.exceptions import ConflictResolutionError, ResolutionCancelledError
from ledgersync.core.logging import get_logger
from ledgersync.core.models import DataFile, Record, YearData

logger = get_logger(__name__)


class ConflictKind(Enum):
    """Collection a conflicting record belongs to."""

    ACCOUNT = "account"
    CATEGORY = "category"
    TRANSACTION_TYPE = "transaction_type"
    TRANSACTION = "transaction"
    ASSET = "asset"
    BUDGET = "budget"

    @property
    def collection(self) -> str:
        """Attribute name of the collection on ``DataFile`` / ``YearData``."""
        return _COLLECTIONS[self]

    @property
    def is_partitioned(self) -> bool:
        return self in (ConflictKind.TRANSACTION, ConflictKind.ASSET, ConflictKind.BUDGET)


_COLLECTIONS: dict[ConflictKind, str] = {
    ConflictKind.ACCOUNT: "accounts",
    ConflictKind.CATEGORY: "categories",
    ConflictKind.TRANSACTION_TYPE: "transaction_types",
    ConflictKind.TRANSACTION: "transactions",
    ConflictKind.ASSET: "manual_assets",
    ConflictKind.BUDGET: "budgets",
}


class ConflictReason(Enum):
    BOTH_MODIFIED = "both-modified"
    DELETE_MODIFY = "delete-modify"


class Side(Enum):
    """Which version of a conflicting record to keep."""

    EXTERNAL = "external"
    LOCAL = "local"


@dataclass(frozen=True)
class Conflict:
    """A record changed irreconcilably on both sides.

    ``external`` or ``local`` is ``None`` when that side deleted the record.
    ``local`` is the value a resolver should present as the current answer.
    """

    kind: ConflictKind
    record_id: str
    label: str
    external: Any
    local: Any
    reason: ConflictReason
    partition: str | None = None

    def value_for(self, side: Side) -> Any:
        return self.external if side is Side.EXTERNAL else self.local

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "partition": self.partition,
            "record_id": self.record_id,
            "label": self.label,
            "reason": self.reason.value,
            "external": _record_to_dict(self.external),
            "local": _record_to_dict(self.local),
        }


def _record_to_dict(record: Any) -> Any:
    if record is None:
        return None
    if isinstance(record, Record):
        return record.to_wire()
    return record


@dataclass
class MergeOutcome:
    """Result of one three-way merge attempt.

    ``merged`` omits every conflicted record until it is resolved.
    """

    merged: DataFile
    conflicts: list[Conflict] = field(default_factory=list)
    auto_merged: int = 0

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "auto_merged": self.auto_merged,
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
        }


@dataclass(frozen=True)
class Resolution:
    """A resolver's answer: a side per conflict index, or cancellation."""

    choices: Mapping[int, Side] = field(default_factory=dict)
    cancelled: bool = False

    @classmethod
    def choose(
        cls, choices: Mapping[int, Side | str] | Iterable[tuple[int, Side | str]]
    ) -> Resolution:
        items = choices.items() if isinstance(choices, Mapping) else choices
        return cls(choices={int(index): Side(side) for index, side in items})

    @classmethod
    def cancel(cls) -> Resolution:
        return cls(cancelled=True)

    @classmethod
    def all(cls, side: Side | str, conflicts: MergeOutcome | list[Conflict]) -> Resolution:
        """Pick the same side for every conflict."""
        items = conflicts.conflicts if isinstance(conflicts, MergeOutcome) else conflicts
        return cls(choices={index: Side(side) for index in range(len(items))})


Resolver = Callable[[MergeOutcome], Union[Resolution, Awaitable[Resolution]]]


async def request_resolution(resolver: Resolver, outcome: MergeOutcome) -> Resolution:
    """Invoke a synchronous or asynchronous resolver and check its answer type."""
    answer = resolver(outcome)
    if inspect.isawaitable(answer):
        answer = await answer
    if not isinstance(answer, Resolution):
        raise ConflictResolutionError(
            f"Resolver returned {type(answer).__name__}, expected Resolution"
        )
    return answer


def apply_resolutions(
    merged: DataFile,
    conflicts: list[Conflict],
    resolution: Resolution,
) -> DataFile:
    """Fold resolver decisions into a copy of the auto-merged snapshot.

    Every conflict needs a decision; there is no default winner. Choosing
    a side whose value is absent keeps the record deleted.
    """
    if resolution.cancelled:
        raise ResolutionCancelledError("Conflict resolution was cancelled")

    unknown = sorted(set(resolution.choices) - set(range(len(conflicts))))
    if unknown:
        raise ConflictResolutionError(f"Resolution refers to unknown conflicts: {unknown}")
    missing = [index for index in range(len(conflicts)) if index not in resolution.choices]
    if missing:
        raise ConflictResolutionError(f"No decision for conflicts: {missing}")

    result = merged.deep_copy()
    for index, conflict in enumerate(conflicts):
        side = resolution.choices[index]
        value = conflict.value_for(side)
        collection = _target_collection(result, conflict, create=value is not None)
        if collection is None:
            continue
        _put_record(collection, conflict.record_id, value)
        logger.debug(
            "Conflict resolved",
            kind=conflict.kind.value,
            record_id=conflict.record_id,
            partition=conflict.partition,
            side=side.value,
            deleted=value is None,
        )
    return result


def _target_collection(snapshot: DataFile, conflict: Conflict, create: bool) -> list[Any] | None:
    if not conflict.kind.is_partitioned:
        return getattr(snapshot, conflict.kind.collection)
    if conflict.partition is None:
        raise ConflictResolutionError(
            f"Conflict on {conflict.kind.value} {conflict.record_id!r} has no partition"
        )
    year = snapshot.years.get(conflict.partition)
    if year is None:
        if not create:
            return None
        year = snapshot.years[conflict.partition] = YearData()
    return getattr(year, conflict.kind.collection)


def _put_record(collection: list[Any], record_id: str, value: Any) -> None:
    for position, existing in enumerate(collection):
        if existing.id == record_id:
            if value is None:
                del collection[position]
            else:
                collection[position] = value.model_copy(deep=True)
            return
    if value is not None:
        collection.append(value.model_copy(deep=True))
