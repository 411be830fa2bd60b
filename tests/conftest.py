"""
Pytest configuration and fixtures for LedgerSync tests.
"""

import sys
import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ledgersync.core.models import (  # noqa: E402
    Account,
    AccountType,
    AssetType,
    Budget,
    BudgetPeriod,
    Category,
    DataFile,
    Group,
    ManualAsset,
    Transaction,
    TransactionType,
    YearData,
)

TIMESTAMP = "2024-01-01T00:00:00Z"


class LedgerFactory:
    """Builds valid records and data files with overridable fields."""

    def account(self, id: str, name: str = "Checking", **overrides: Any) -> Account:
        fields: dict[str, Any] = {
            "id": id,
            "name": name,
            "type": AccountType.BANK_ACCOUNT,
            "currency_id": "usd",
            "initial_balance": 0.0,
            "is_active": True,
            "created_at": TIMESTAMP,
            "updated_at": TIMESTAMP,
        }
        fields.update(overrides)
        return Account(**fields)

    def category(self, id: str, name: str = "Groceries", **overrides: Any) -> Category:
        fields: dict[str, Any] = {"id": id, "name": name, "group": Group.EXPENSE}
        fields.update(overrides)
        return Category(**fields)

    def transaction_type(self, id: str, name: str = "Supermarket", **overrides: Any) -> TransactionType:
        fields: dict[str, Any] = {"id": id, "name": name, "category_id": "cat-1"}
        fields.update(overrides)
        return TransactionType(**fields)

    def transaction(self, id: str, amount: float = 100.0, **overrides: Any) -> Transaction:
        fields: dict[str, Any] = {
            "id": id,
            "date": "2024-03-15",
            "amount": amount,
            "transaction_type_id": "tt-1",
            "from_account_id": "acc-1",
            "created_at": TIMESTAMP,
            "updated_at": TIMESTAMP,
        }
        fields.update(overrides)
        return Transaction(**fields)

    def budget(self, id: str, amount: float = 500.0, **overrides: Any) -> Budget:
        fields: dict[str, Any] = {
            "id": id,
            "transaction_type_id": "tt-1",
            "amount": amount,
            "period": BudgetPeriod.MONTHLY,
            "start_date": "2024-01-01",
            "end_date": "2024-12-31",
        }
        fields.update(overrides)
        return Budget(**fields)

    def asset(self, id: str, name: str = "House", **overrides: Any) -> ManualAsset:
        fields: dict[str, Any] = {
            "id": id,
            "name": name,
            "type": AssetType.REAL_ESTATE,
            "value": 250000.0,
            "currency_id": "usd",
            "date": "2024-01-01",
        }
        fields.update(overrides)
        return ManualAsset(**fields)

    def data_file(
        self,
        accounts: list[Account] | None = None,
        categories: list[Category] | None = None,
        transaction_types: list[TransactionType] | None = None,
        years: dict[str, YearData] | None = None,
        **overrides: Any,
    ) -> DataFile:
        return DataFile(
            accounts=accounts or [],
            categories=categories or [],
            transaction_types=transaction_types or [],
            years=years or {},
            last_modified=TIMESTAMP,
            **overrides,
        )

    def year(
        self,
        transactions: list[Transaction] | None = None,
        manual_assets: list[ManualAsset] | None = None,
        budgets: list[Budget] | None = None,
    ) -> YearData:
        return YearData(
            transactions=transactions or [],
            manual_assets=manual_assets or [],
            budgets=budgets or [],
        )

    def ledger(self) -> DataFile:
        """A small but complete data file."""
        return self.data_file(
            accounts=[self.account("acc-1"), self.account("acc-2", "Savings")],
            categories=[self.category("cat-1")],
            transaction_types=[self.transaction_type("tt-1")],
            years={
                "2024": self.year(
                    transactions=[self.transaction("tx-1"), self.transaction("tx-2", 42.5)],
                    manual_assets=[self.asset("asset-1")],
                    budgets=[self.budget("bud-1")],
                )
            },
        )


@pytest.fixture
def factory() -> LedgerFactory:
    """Factory for records and data files."""
    return LedgerFactory()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config(temp_dir: Path) -> "LedgerSyncConfig":
    """Create a sample configuration rooted in a temporary directory."""
    from ledgersync.core.config import LedgerSyncConfig

    config = LedgerSyncConfig.model_validate(
        {
            "logging": {"log_directory": str(temp_dir / "logs"), "console_enabled": False},
            "storage": {"provider": "file", "data_file": str(temp_dir / "ledger.json")},
            "sync": {
                "auto_save_interval_seconds": 300,
                "status_file": str(temp_dir / "sync_status.json"),
            },
        }
    )
    config.ensure_directories()
    return config


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")
