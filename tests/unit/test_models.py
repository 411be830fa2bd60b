"""
Tests for ledgersync.core.models module.
"""

import json

import pytest
from pydantic import ValidationError

from ledgersync.core.exceptions import SnapshotValidationError
from ledgersync.core.models import (
    CURRENT_SCHEMA_VERSION,
    AccountType,
    DataFile,
    Transaction,
    YearData,
    parse_data_file,
)


class TestRecords:
    """Tests for record models."""

    def test_wire_names_are_camel_case(self, factory) -> None:
        wire = factory.transaction("tx-1").to_wire()
        assert wire["transactionTypeId"] == "tt-1"
        assert wire["fromAccountId"] == "acc-1"
        assert "toAccountId" not in wire

    def test_accepts_wire_names(self) -> None:
        tx = Transaction.model_validate(
            {"id": "t", "date": "2024-02-01", "amount": 3, "transactionTypeId": "tt"}
        )
        assert tx.transaction_type_id == "tt"

    def test_enum_values(self, factory) -> None:
        account = factory.account("a", type="credit_card")
        assert account.type is AccountType.CREDIT_CARD
        assert account.to_wire()["type"] == "credit_card"

    def test_rejects_non_positive_amount(self, factory) -> None:
        with pytest.raises(ValidationError):
            factory.transaction("t", 0)

    def test_rejects_bad_date(self, factory) -> None:
        with pytest.raises(ValidationError):
            factory.transaction("t", date="15/03/2024")

    def test_rejects_empty_id(self, factory) -> None:
        with pytest.raises(ValidationError):
            factory.account("")

    def test_unknown_fields_survive(self) -> None:
        tx = Transaction.model_validate(
            {"id": "t", "date": "2024-02-01", "amount": 3, "transactionTypeId": "tt", "tags": ["x"]}
        )
        assert tx.to_wire()["tags"] == ["x"]


class TestYearData:
    """Tests for YearData."""

    def test_null_collections(self) -> None:
        year = YearData.model_validate({"transactions": None, "budgets": None})
        assert year.transactions == []
        assert year.budgets == []

    def test_duplicate_ids(self, factory) -> None:
        with pytest.raises(ValidationError, match="duplicate id"):
            factory.year(transactions=[factory.transaction("t"), factory.transaction("t")])

    def test_record_count(self, factory) -> None:
        assert factory.ledger().years["2024"].record_count() == 4


class TestDataFile:
    """Tests for DataFile."""

    def test_empty(self) -> None:
        data = DataFile.empty(2024)
        assert data.version == CURRENT_SCHEMA_VERSION
        assert list(data.years) == ["2024"]
        assert data.record_count() == 0

    def test_partition_missing_is_empty(self, factory) -> None:
        data = factory.ledger()
        assert data.partition(2024).transactions[0].id == "tx-1"
        assert data.partition("1999").record_count() == 0
        assert "1999" not in data.years

    def test_invalid_year_key(self) -> None:
        with pytest.raises(ValidationError, match="partition key"):
            DataFile.model_validate({"years": {"next": {}}})

    def test_integer_year_keys(self) -> None:
        data = DataFile.model_validate({"years": {2023: {}}})
        assert list(data.years) == ["2023"]

    def test_duplicate_shared_ids(self, factory) -> None:
        with pytest.raises(ValidationError):
            factory.data_file(accounts=[factory.account("a"), factory.account("a")])

    def test_deep_copy_is_independent(self, factory) -> None:
        data = factory.ledger()
        copy = data.deep_copy()
        copy.years["2024"].transactions[0].amount = 1.0
        assert data.years["2024"].transactions[0].amount == 100.0

    def test_json_round_trip(self, factory) -> None:
        data = factory.ledger()
        text = data.to_json()
        assert json.loads(text)["transactionTypes"][0]["id"] == "tt-1"
        assert DataFile.from_json(text) == data

    def test_from_json_invalid_json(self) -> None:
        with pytest.raises(SnapshotValidationError, match="not valid JSON"):
            DataFile.from_json("{not json")

    def test_from_json_rejects_non_finite(self) -> None:
        with pytest.raises(SnapshotValidationError, match="non-finite"):
            DataFile.from_json('{"accounts": [], "lastModified": NaN}')
        with pytest.raises(SnapshotValidationError):
            DataFile.from_json('{"years": {"2024": {"manualAssets": [{"value": Infinity}]}}}')

    def test_non_finite_edit_cannot_serialize(self, factory) -> None:
        data = factory.ledger()
        data.accounts[0].initial_balance = float("inf")
        with pytest.raises(SnapshotValidationError, match="cannot be serialized"):
            data.to_json()


class TestParseDataFile:
    """Tests for parse_data_file."""

    def test_requires_object(self) -> None:
        with pytest.raises(SnapshotValidationError, match="JSON object"):
            parse_data_file([])

    def test_collects_errors(self) -> None:
        raw = {
            "accounts": [{"id": "a"}],
            "years": {"2024": {"transactions": [{"id": "t", "amount": -1}]}},
        }
        with pytest.raises(SnapshotValidationError) as exc_info:
            parse_data_file(raw)
        errors = exc_info.value.errors
        assert len(errors) > 1
        assert any(error.startswith("accounts.0") for error in errors)
        assert any(error.startswith("years.2024.transactions.0") for error in errors)

    def test_rejects_non_finite_numbers(self, factory) -> None:
        raw = factory.ledger().to_wire()
        raw["accounts"][0]["initialBalance"] = float("nan")
        with pytest.raises(SnapshotValidationError) as exc_info:
            parse_data_file(raw)
        assert any(error.startswith("accounts.0.initialBalance") for error in exc_info.value.errors)

    def test_missing_collections_default_empty(self) -> None:
        data = parse_data_file({"version": "1.0.0"})
        assert data.accounts == []
        assert data.years == {}
