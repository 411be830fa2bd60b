"""
Content fingerprints and structural equality for snapshots and records.

Both work on a canonical form: models are dumped to their wire dict,
mapping keys are sorted and integral floats are written as integers, so
field order never affects equality or the digest.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from ledgersync.core.models import LedgerModel


def canonicalize(value: Any) -> Any:
    """Convert ``value`` to plain JSON data with sorted mapping keys."""
    if isinstance(value, LedgerModel):
        return canonicalize(value.to_wire())
    if isinstance(value, BaseModel):
        return canonicalize(value.model_dump(mode="json", by_alias=True, exclude_none=True))
    if is_dataclass(value) and not isinstance(value, type):
        return canonicalize(asdict(value))
    if isinstance(value, Enum):
        return canonicalize(value.value)
    if isinstance(value, Mapping):
        return {
            str(key): canonicalize(item)
            for key, item in sorted(value.items(), key=lambda kv: str(kv[0]))
        }
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((canonicalize(item) for item in value), key=canonical_json)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    raise TypeError(f"Cannot canonicalize value of type {type(value).__name__}")


def canonical_json(value: Any) -> str:
    """Compact JSON of the canonical form of ``value``."""
    return json.dumps(
        canonicalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def fingerprint(snapshot: Any) -> str:
    """SHA-256 hex digest of a snapshot's canonical JSON.

    Used to detect that the persisted snapshot changed since it was last
    read or written; not a security primitive.
    """
    return hashlib.sha256(canonical_json(snapshot).encode("utf-8")).hexdigest()


def records_equal(a: Any, b: Any) -> bool:
    """Deep structural equality of two records (``None`` means absent)."""
    if a is None or b is None:
        return a is None and b is None
    if a is b:
        return True
    # Compare serialized forms so True and 1 stay distinct.
    return canonical_json(a) == canonical_json(b)
