"""
Tests for ledgersync.core.workspace module.
"""

from ledgersync.core.workspace import Workspace


class TestWorkspace:
    """Tests for the working copy."""

    def test_empty(self) -> None:
        workspace = Workspace(current_year=2024)
        assert not workspace.has_data
        assert workspace.snapshot() is None
        assert workspace.active_partition is None

    def test_adopt_copies(self, factory) -> None:
        source = factory.ledger()
        workspace = Workspace()
        workspace.adopt(source, 2024)
        source.accounts[0].name = "Changed"
        assert workspace.data_file.accounts[0].name == "Checking"
        assert workspace.current_year == 2024

    def test_adopt_creates_partition(self, factory) -> None:
        workspace = Workspace()
        workspace.adopt(factory.ledger(), "2030")
        assert workspace.current_year == 2030
        assert "2030" in workspace.data_file.years
        assert workspace.active_partition.record_count() == 0

    def test_snapshot_is_independent(self, factory) -> None:
        workspace = Workspace()
        workspace.adopt(factory.ledger(), 2024)
        snapshot = workspace.snapshot()
        snapshot.accounts.clear()
        assert len(workspace.data_file.accounts) == 2

    def test_replace_keeps_year(self, factory) -> None:
        workspace = Workspace(current_year=2025)
        workspace.replace(factory.ledger())
        assert workspace.current_year == 2025
        assert sorted(workspace.data_file.years) == ["2024", "2025"]

    def test_update_creates_data_file(self, factory) -> None:
        workspace = Workspace(current_year=2024)
        workspace.update(lambda d: d.accounts.append(factory.account("acc-1")))
        assert workspace.has_data
        assert workspace.active_partition is not None
        assert workspace.data_file.accounts[0].id == "acc-1"

    def test_clear(self, factory) -> None:
        workspace = Workspace()
        workspace.adopt(factory.ledger(), 2024)
        workspace.error = "boom"
        workspace.clear()
        assert not workspace.has_data
        assert workspace.error is None
