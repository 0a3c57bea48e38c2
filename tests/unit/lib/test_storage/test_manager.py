"""Unit tests for the storage manager."""

import pytest

from media_vault.core.config import Settings
from media_vault.lib.storage.errors import NotSupportedError
from media_vault.lib.storage.index.flat_file import FlatFileIndex
from media_vault.lib.storage.index.relational import RelationalIndex
from media_vault.lib.storage.manager import StorageManager, build_adapter
from media_vault.lib.storage.types import StorageBackend, StorageConfig


class TestBuildAdapter:
    """Tests for build_adapter."""

    def test_flat_file(self, storage_config: StorageConfig) -> None:
        adapter = build_adapter("flat-file", storage_config)
        assert adapter.backend is StorageBackend.FLAT_FILE
        assert isinstance(adapter.index, FlatFileIndex)

    async def test_relational(self, storage_config: StorageConfig, session_factory) -> None:
        adapter = build_adapter(StorageBackend.RELATIONAL, storage_config, session_factory)
        assert isinstance(adapter.index, RelationalIndex)

    def test_relational_requires_session_factory(self, storage_config: StorageConfig) -> None:
        with pytest.raises(ValueError, match="session factory"):
            build_adapter("relational", storage_config)

    def test_unknown_backend(self, storage_config: StorageConfig) -> None:
        with pytest.raises(ValueError, match="Unknown storage backend"):
            build_adapter("mongodb", storage_config)


class TestFromSettings:
    """Tests for StorageManager.from_settings."""

    async def test_defaults_to_relational(self, settings: Settings, session_factory) -> None:
        manager = StorageManager.from_settings(settings, session_factory)
        assert manager.backend is StorageBackend.RELATIONAL

    def test_falls_back_to_flat_file_without_database(self, settings: Settings) -> None:
        manager = StorageManager.from_settings(settings)
        assert manager.backend is StorageBackend.FLAT_FILE

    async def test_flat_file_setting(self, tmp_path, session_factory) -> None:
        settings = Settings(storage_backend="flat_file", storage_path=str(tmp_path), _env_file=None)
        manager = StorageManager.from_settings(settings, session_factory)
        assert manager.backend is StorageBackend.FLAT_FILE
        assert manager.current().root == tmp_path


class TestSwitch:
    """Tests for switching adapters at runtime."""

    async def test_switch_does_not_migrate(self, storage_config: StorageConfig, session_factory) -> None:
        manager = StorageManager(build_adapter("flat-file", storage_config))
        record = await manager.current().save(b"video", "v.mp4", "video/mp4", 5)

        new_adapter = manager.switch("relational", storage_config, session_factory)

        assert manager.current() is new_adapter
        assert manager.backend is StorageBackend.RELATIONAL
        assert await new_adapter.list() == []
        assert await new_adapter.index.find(record.id) is None

    async def test_handle_taken_before_switch_keeps_working(self, storage_config, session_factory) -> None:
        manager = StorageManager(build_adapter("flat-file", storage_config))
        old = manager.current()
        manager.switch("relational", storage_config, session_factory)

        record = await old.save(b"video", "v.mp4", "video/mp4", 5)
        assert (await old.get(record.id)).id == record.id

    def test_failed_switch_keeps_current(self, storage_config: StorageConfig) -> None:
        manager = StorageManager(build_adapter("flat-file", storage_config))
        current = manager.current()
        with pytest.raises(ValueError):
            manager.switch("relational", storage_config)
        assert manager.current() is current


class TestManagerImport:
    """Tests for StorageManager.import_from_flat_file."""

    async def test_requires_relational(self, storage_config: StorageConfig) -> None:
        manager = StorageManager(build_adapter("flat-file", storage_config))
        with pytest.raises(NotSupportedError):
            await manager.import_from_flat_file()

    async def test_imports_from_storage_root(self, storage_config: StorageConfig, session_factory) -> None:
        flat = build_adapter("flat-file", storage_config)
        saved = [await flat.save(b"v" * n, f"{n}.mp4", "video/mp4", n) for n in (1, 2, 3)]

        manager = StorageManager(flat)
        manager.switch("relational", storage_config, session_factory)
        result = await manager.import_from_flat_file()

        assert result.migrated_count == 3
        assert {r.id for r in await manager.current().list()} == {r.id for r in saved}
        # bytes stay where they are, so the migrated records are fetchable
        assert await manager.current().fetch(saved[1].id) == b"vv"
