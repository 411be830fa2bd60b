"""
Tests for ledgersync.storage package.
"""

import json

import pytest

from ledgersync.core.config import StorageConfig
from ledgersync.core.exceptions import SnapshotValidationError, StorageError
from ledgersync.storage import JsonFileBackend, MemoryBackend, create_backend


class TestCreateBackend:
    """Tests for the backend factory."""

    def test_file(self, temp_dir) -> None:
        backend = create_backend(StorageConfig(data_file=temp_dir / "l.json", indent=4))
        assert isinstance(backend, JsonFileBackend)
        assert backend.indent == 4
        assert backend.path == (temp_dir / "l.json").resolve()
        assert backend.describe() == f"file:{backend.path}"

    def test_memory(self) -> None:
        backend = create_backend(StorageConfig(provider="memory"))
        assert isinstance(backend, MemoryBackend)
        assert backend.describe() == "memory"


class TestMemoryBackend:
    """Tests for MemoryBackend."""

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        backend = MemoryBackend()
        assert await backend.load() is None
        assert await backend.list_partitions() == []

    @pytest.mark.asyncio
    async def test_save_and_load(self, factory) -> None:
        backend = MemoryBackend()
        await backend.save(factory.ledger())
        loaded = await backend.load()
        assert loaded == factory.ledger()
        assert backend.save_count == 1
        assert backend.load_count == 1
        assert await backend.list_partitions() == ["2024"]

    @pytest.mark.asyncio
    async def test_loads_are_independent_copies(self, factory) -> None:
        backend = MemoryBackend(factory.ledger())
        first = await backend.load()
        first.accounts.clear()
        second = await backend.load()
        assert len(second.accounts) == 2

    @pytest.mark.asyncio
    async def test_rejects_invalid_snapshot(self, factory) -> None:
        backend = MemoryBackend()
        data = factory.ledger()
        data.accounts[0].name = ""
        with pytest.raises(SnapshotValidationError):
            await backend.save(data)
        assert backend.stored is None

    @pytest.mark.asyncio
    async def test_injected_failures_fire_once(self, factory) -> None:
        backend = MemoryBackend(factory.ledger())
        backend.fail_next_save = StorageError("nope")
        with pytest.raises(StorageError):
            await backend.save(factory.ledger())
        await backend.save(factory.ledger())
        assert backend.save_count == 1


class TestJsonFileBackend:
    """Tests for JsonFileBackend."""

    @pytest.mark.asyncio
    async def test_missing_file(self, temp_dir) -> None:
        backend = JsonFileBackend(temp_dir / "ledger.json")
        assert await backend.load() is None

    @pytest.mark.asyncio
    async def test_save_and_load(self, temp_dir, factory) -> None:
        path = temp_dir / "nested" / "ledger.json"
        backend = JsonFileBackend(path)

        await backend.save(factory.ledger())

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["accounts"][0]["currencyId"] == "usd"
        assert await backend.load() == factory.ledger()
        assert [p.name for p in path.parent.iterdir()] == ["ledger.json"]

    @pytest.mark.asyncio
    async def test_compact_output(self, temp_dir, factory) -> None:
        path = temp_dir / "ledger.json"
        await JsonFileBackend(path, indent=0).save(factory.ledger())
        assert "\n" not in path.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_malformed_file(self, temp_dir) -> None:
        path = temp_dir / "ledger.json"
        path.write_text('{"years": {"soon": {}}}', encoding="utf-8")
        with pytest.raises(SnapshotValidationError):
            await JsonFileBackend(path).load()

    @pytest.mark.asyncio
    async def test_non_finite_number_in_file(self, temp_dir) -> None:
        path = temp_dir / "ledger.json"
        path.write_text(
            '{"accounts": [{"id": "a", "name": "Cash", "type": "cash", '
            '"currencyId": "AUD", "initialBalance": NaN}]}',
            encoding="utf-8",
        )
        with pytest.raises(SnapshotValidationError):
            await JsonFileBackend(path).load()

    @pytest.mark.asyncio
    async def test_unreadable_path(self, temp_dir) -> None:
        # A directory where the file should be
        path = temp_dir / "ledger.json"
        path.mkdir()
        with pytest.raises(StorageError) as exc_info:
            await JsonFileBackend(path).load()
        assert exc_info.value.location == str(path)

    @pytest.mark.asyncio
    async def test_invalid_snapshot_not_written(self, temp_dir, factory) -> None:
        path = temp_dir / "ledger.json"
        data = factory.ledger()
        data.years["2024"].transactions[0].date = "tomorrow"
        with pytest.raises(SnapshotValidationError):
            await JsonFileBackend(path).save(data)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_non_finite_snapshot_not_written(self, temp_dir, factory) -> None:
        path = temp_dir / "ledger.json"
        data = factory.ledger()
        data.years["2024"].manual_assets[0].value = float("nan")
        with pytest.raises(SnapshotValidationError):
            await JsonFileBackend(path).save(data)
        assert not path.exists()
