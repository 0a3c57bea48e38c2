"""Storage manager: owns the active storage adapter.

The adapter is chosen from configuration at startup and may be swapped at
runtime. Swapping never migrates data; use ``import_from_flat_file`` for
that. Callers should take ``current()`` once per operation and keep using
that handle, so a concurrent switch cannot split one operation across two
backends.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from media_vault.lib.storage.adapter import StorageAdapter
from media_vault.lib.storage.errors import NotSupportedError
from media_vault.lib.storage.index.flat_file import FlatFileIndex
from media_vault.lib.storage.index.relational import RelationalIndex
from media_vault.lib.storage.migration import import_from_flat_file
from media_vault.lib.storage.paths import INDEX_FILENAME, METADATA_DIR
from media_vault.lib.storage.types import MigrationResult, StorageBackend, StorageConfig

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from media_vault.core.config import Settings


def build_adapter(
    kind: StorageBackend | str,
    config: StorageConfig,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> StorageAdapter:
    """Create a storage adapter over the requested metadata index.

    Args:
        kind: ``relational`` or ``flat-file``.
        config: Adapter configuration.
        session_factory: Required for the relational backend.

    Returns:
        A new storage adapter.

    Raises:
        ValueError: If the backend is unknown or the relational backend has
            no session factory.
    """
    try:
        backend = StorageBackend(kind)
    except ValueError:
        msg = f"Unknown storage backend: {kind!r}. Available: {[b.value for b in StorageBackend]}"
        raise ValueError(msg) from None

    if backend is StorageBackend.RELATIONAL:
        if session_factory is None:
            msg = "The relational storage backend requires a database session factory"
            raise ValueError(msg)
        return StorageAdapter(config, RelationalIndex(session_factory))
    return StorageAdapter(config, FlatFileIndex(config.root))


class StorageManager:
    """Holds the active storage adapter behind a lock-guarded reference.

    Args:
        adapter: The initial adapter.
    """

    def __init__(self, adapter: StorageAdapter) -> None:
        self._adapter = adapter
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> StorageManager:
        """Create a manager from application settings.

        The relational backend is the default. Without a session factory it
        falls back to the flat-file backend with a warning.
        """
        config = settings.to_storage_config()
        kind = StorageBackend(settings.storage_backend)
        if kind is StorageBackend.RELATIONAL and session_factory is None:
            logger.warning("No database configured for the relational backend; falling back to flat-file storage")
            kind = StorageBackend.FLAT_FILE

        logger.info(f"Using {kind} metadata index at {config.root}")
        return cls(build_adapter(kind, config, session_factory))

    def current(self) -> StorageAdapter:
        """Return the active adapter."""
        with self._lock:
            return self._adapter

    @property
    def backend(self) -> StorageBackend:
        return self.current().backend

    def switch(
        self,
        kind: StorageBackend | str,
        config: StorageConfig,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> StorageAdapter:
        """Replace the active adapter; existing data is not migrated.

        Returns:
            The new active adapter.

        Raises:
            ValueError: If the new adapter cannot be built; the old one stays active.
        """
        adapter = build_adapter(kind, config, session_factory)
        with self._lock:
            previous = self._adapter
            self._adapter = adapter
        logger.info(f"Switched storage backend from {previous.backend} to {adapter.backend}")
        return adapter

    async def import_from_flat_file(self, index_path: str | Path | None = None) -> MigrationResult:
        """Import a flat-file index into the active relational index.

        Args:
            index_path: Source ``index.json``; defaults to the one under the
                active adapter's storage root.

        Raises:
            NotSupportedError: If the active adapter is not relational.
        """
        adapter = self.current()
        if adapter.backend is not StorageBackend.RELATIONAL:
            msg = f"Importing flat-file metadata requires the relational backend, not {adapter.backend}"
            raise NotSupportedError(msg)

        source = Path(index_path) if index_path is not None else adapter.root / METADATA_DIR / INDEX_FILENAME
        return await import_from_flat_file(source, adapter.index)
