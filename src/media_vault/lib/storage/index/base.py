"""Abstract metadata index interface shared by both storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from media_vault.lib.storage.errors import NotFoundError
from media_vault.lib.storage.types import FileRecord, IndexStats, ListFilters, StorageBackend


class MetadataIndex(ABC):
    """Authoritative mapping from file id to ``FileRecord``.

    Implementations must return identical ``get``/``list``/``stats`` results
    for the same sequence of operations.
    """

    @property
    @abstractmethod
    def backend(self) -> StorageBackend:
        """Which backend this index implements."""

    @abstractmethod
    async def put(self, record: FileRecord) -> None:
        """Insert or replace a record by id; durable when this returns."""

    @abstractmethod
    async def find(self, record_id: str, *, include_inactive: bool = False) -> FileRecord | None:
        """Look up a record, returning None when absent (or inactive, unless requested)."""

    @abstractmethod
    async def contains(self, record_id: str) -> bool:
        """Whether the id is present in any state."""

    @abstractmethod
    async def remove(self, record_id: str) -> bool:
        """Remove a record; idempotent.

        Returns:
            True if an active record was removed, False if there was nothing to remove.
        """

    @abstractmethod
    async def list(self, filters: ListFilters | None = None) -> list[FileRecord]:
        """Active records, newest first, filtered and then paginated."""

    @abstractmethod
    async def stats(self) -> IndexStats:
        """Count and total size of active records."""

    async def get(self, record_id: str) -> FileRecord:
        """Return an active record.

        Raises:
            NotFoundError: If the id is unknown or inactive.
        """
        record = await self.find(record_id)
        if record is None:
            raise NotFoundError(record_id)
        return record

    async def close(self) -> None:  # noqa: B027
        """Release backend resources; the default holds none."""
