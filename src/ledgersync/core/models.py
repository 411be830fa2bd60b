"""
LedgerSync data models.

Defines the persisted data file: shared collections (accounts, categories,
transaction types) plus year-scoped partitions (transactions, manual
assets, budgets). Field names are snake_case in Python and camelCase on
the wire.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ledgersync.core.exceptions import SnapshotValidationError

CURRENT_SCHEMA_VERSION = "1.0.0"

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
_YEAR_KEY = re.compile(r"^\d{4}$")

# Declared orders; conflicts are reported in this order.
SHARED_COLLECTIONS: tuple[str, ...] = ("accounts", "categories", "transaction_types")
PARTITION_COLLECTIONS: tuple[str, ...] = ("transactions", "manual_assets", "budgets")


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Group(Enum):
    """Transaction group of a category."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    INVESTMENT = "investment"


class AccountType(Enum):
    """Kind of financial account."""

    CASH = "cash"
    BANK_ACCOUNT = "bank_account"
    CREDIT_CARD = "credit_card"
    INVESTMENT = "investment"
    LOAN = "loan"
    OTHER = "other"


class BudgetPeriod(Enum):
    """Period a budget covers."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class AssetType(Enum):
    """Kind of manually tracked asset or liability."""

    REAL_ESTATE = "real_estate"
    SUPERANNUATION = "superannuation"
    INVESTMENT = "investment"
    LIABILITY = "liability"
    OTHER = "other"


class LedgerModel(BaseModel):
    """Base for every persisted model.

    Unknown fields are kept so data written by a newer client survives a
    load/save round trip.
    NaN and infinity are rejected since they have no JSON form.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        allow_inf_nan=False,
        ser_json_inf_nan="constants",
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible wire form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Record(LedgerModel):
    """An identifiable entity stored in a collection."""

    id: str = Field(min_length=1)
    created_at: str | None = None
    updated_at: str | None = None


class Account(Record):
    name: str = Field(min_length=1)
    type: AccountType
    currency_id: str = Field(min_length=1)
    initial_balance: float = 0.0
    description: str | None = None
    is_active: bool = True


class Category(Record):
    name: str = Field(min_length=1)
    group: Group
    parent_id: str | None = None
    description: str | None = None


class TransactionType(Record):
    name: str = Field(min_length=1)
    category_id: str = Field(min_length=1)
    description: str | None = None


class Transaction(Record):
    date: str = Field(pattern=DATE_PATTERN)
    description: str | None = None
    amount: float = Field(gt=0)
    transaction_type_id: str = Field(min_length=1)
    from_account_id: str | None = None
    to_account_id: str | None = None
    notes: str | None = None


class Budget(Record):
    name: str | None = None
    transaction_type_id: str = Field(min_length=1)
    amount: float = Field(ge=0)
    period: BudgetPeriod
    start_date: str = Field(pattern=DATE_PATTERN)
    end_date: str = Field(pattern=DATE_PATTERN)


class AssetValueHistory(LedgerModel):
    date: str = Field(pattern=DATE_PATTERN)
    value: float
    notes: str | None = None


class ManualAsset(Record):
    name: str = Field(min_length=1)
    type: AssetType
    value: float
    currency_id: str = Field(min_length=1)
    date: str = Field(pattern=DATE_PATTERN)
    notes: str | None = None
    value_history: list[AssetValueHistory] | None = None


class YearEndSummary(LedgerModel):
    transaction_count: int = Field(ge=0)
    closing_net_worth: float
    closing_balances: dict[str, float] = Field(default_factory=dict)


class ArchivedYearReference(LedgerModel):
    year: int = Field(ge=1900, le=2100)
    file_name: str = Field(min_length=1)
    archived_date: str
    summary: YearEndSummary


def _ensure_unique_ids(records: list[Record], where: str) -> None:
    seen: set[str] = set()
    for record in records:
        if record.id in seen:
            raise ValueError(f"duplicate id {record.id!r} in {where}")
        seen.add(record.id)


class YearData(LedgerModel):
    """Partition-scoped collections for one year."""

    transactions: list[Transaction] = Field(default_factory=list)
    manual_assets: list[ManualAsset] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)

    @field_validator("transactions", "manual_assets", "budgets", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="after")
    def check_unique_ids(self) -> YearData:
        for name in PARTITION_COLLECTIONS:
            _ensure_unique_ids(getattr(self, name), name)
        return self

    def record_count(self) -> int:
        return sum(len(getattr(self, name)) for name in PARTITION_COLLECTIONS)


class DataFile(LedgerModel):
    """The complete persisted snapshot."""

    version: str = Field(default=CURRENT_SCHEMA_VERSION, min_length=1)
    years: dict[str, YearData] = Field(default_factory=dict)
    accounts: list[Account] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    transaction_types: list[TransactionType] = Field(default_factory=list)
    archived_years: list[ArchivedYearReference] = Field(default_factory=list)
    last_modified: str = Field(default_factory=utc_timestamp)

    @field_validator(
        "accounts", "categories", "transaction_types", "archived_years", mode="before"
    )
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("years", mode="before")
    @classmethod
    def normalize_years(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            normalized = {str(key): value for key, value in v.items()}
            for key in normalized:
                if not _YEAR_KEY.match(key):
                    raise ValueError(f"invalid partition key {key!r}, expected a year")
            return normalized
        return v

    @model_validator(mode="after")
    def check_unique_ids(self) -> DataFile:
        for name in SHARED_COLLECTIONS:
            _ensure_unique_ids(getattr(self, name), name)
        return self

    @classmethod
    def empty(cls, year: int | str | None = None) -> DataFile:
        """Create an empty data file, optionally with one empty partition."""
        years = {str(year): YearData()} if year is not None else {}
        return cls(years=years)

    def partition(self, key: int | str) -> YearData:
        """Return the partition for ``key`` or an empty one."""
        return self.years.get(str(key)) or YearData()

    def deep_copy(self) -> DataFile:
        return self.model_copy(deep=True)

    def record_count(self) -> int:
        shared = sum(len(getattr(self, name)) for name in SHARED_COLLECTIONS)
        return shared + sum(year.record_count() for year in self.years.values())

    def to_json(self, indent: int | None = 2) -> str:
        try:
            return json.dumps(
                self.to_wire(), indent=indent or None, ensure_ascii=False, allow_nan=False
            )
        except ValueError as e:
            raise SnapshotValidationError(f"Data file cannot be serialized: {e}") from e

    @classmethod
    def from_json(cls, text: str | bytes) -> DataFile:
        """Parse and validate a serialized data file."""
        try:
            raw = json.loads(text, parse_constant=_reject_constant)
        except ValueError as e:
            raise SnapshotValidationError(f"Data file is not valid JSON: {e}") from e
        return parse_data_file(raw)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-finite number {token} is not allowed")


def parse_data_file(raw: Any) -> DataFile:
    """Validate raw decoded JSON as a data file."""
    if not isinstance(raw, dict):
        raise SnapshotValidationError(
            f"Data file must be a JSON object, got {type(raw).__name__}"
        )
    try:
        return DataFile.model_validate(raw)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise SnapshotValidationError(
            f"Data file failed validation ({len(errors)} errors)", errors
        ) from e
