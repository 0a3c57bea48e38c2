"""Relational metadata index backed by the ``file_metadata`` table.

Every operation opens its own session from the injected session factory, so
concurrent callers never share a session. Removal is always soft.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger
from sqlalchemy import func, select, update

from media_vault.lib.storage.index.base import MetadataIndex
from media_vault.lib.storage.paths import local_day_bounds
from media_vault.lib.storage.types import (
    FileKind,
    FileRecord,
    IndexStats,
    ListFilters,
    StorageBackend,
    ensure_utc,
)
from media_vault.models.file_metadata import FileMetadata

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def record_to_row(record: FileRecord) -> FileMetadata:
    """Build an ORM row from a record (timestamps stored as UTC)."""
    return FileMetadata(
        id=record.id,
        original_name=record.original_name,
        mime_type=record.mime_type,
        size=record.size,
        upload_timestamp=ensure_utc(record.upload_timestamp),
        stored_path=record.stored_path,
        file_kind=str(record.file_kind),
        checksum=record.checksum,
        thumbnail_path=record.thumbnail_path,
        freeform_metadata=record.freeform_metadata or None,
        active=record.active,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def row_to_record(row: FileMetadata) -> FileRecord:
    """Convert an ORM row to a record."""
    return FileRecord(
        id=row.id,
        original_name=row.original_name,
        mime_type=row.mime_type,
        size=row.size,
        upload_timestamp=row.upload_timestamp,
        stored_path=row.stored_path,
        file_kind=FileKind(row.file_kind),
        checksum=row.checksum,
        thumbnail_path=row.thumbnail_path,
        freeform_metadata=row.freeform_metadata or {},
        active=row.active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class RelationalIndex(MetadataIndex):
    """Metadata index stored in a relational table.

    Args:
        session_factory: Async session factory bound to the target database.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @property
    def backend(self) -> StorageBackend:
        return StorageBackend.RELATIONAL

    async def put(self, record: FileRecord) -> None:
        async with self._session_factory() as session:
            await session.merge(record_to_row(record))
            await session.commit()
        logger.debug(f"Stored metadata row {record.id}")

    async def find(self, record_id: str, *, include_inactive: bool = False) -> FileRecord | None:
        query = select(FileMetadata).where(FileMetadata.id == record_id)
        if not include_inactive:
            query = query.where(FileMetadata.active.is_(True))
        async with self._session_factory() as session:
            result = await session.execute(query)
            row = result.scalar_one_or_none()
            return row_to_record(row) if row is not None else None

    async def contains(self, record_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(select(FileMetadata.id).where(FileMetadata.id == record_id))
            return result.scalar_one_or_none() is not None

    async def remove(self, record_id: str) -> bool:
        statement = (
            update(FileMetadata)
            .where(FileMetadata.id == record_id, FileMetadata.active.is_(True))
            .values(active=False, updated_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
            removed = result.rowcount > 0
            await session.commit()
        if removed:
            logger.info(f"Soft-deleted metadata row {record_id}")
        return removed

    async def list(self, filters: ListFilters | None = None) -> list[FileRecord]:
        filters = filters or ListFilters()
        query = select(FileMetadata).where(FileMetadata.active.is_(True))

        if filters.date is not None:
            start, end = local_day_bounds(filters.date)
            query = query.where(
                FileMetadata.upload_timestamp >= ensure_utc(start),
                FileMetadata.upload_timestamp < ensure_utc(end),
            )
        if filters.file_kind is not None:
            query = query.where(FileMetadata.file_kind == str(filters.file_kind))

        query = (
            query.order_by(FileMetadata.upload_timestamp.desc(), FileMetadata.id.desc())
            .offset(filters.offset)
            .limit(filters.limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [row_to_record(row) for row in result.scalars().all()]

    async def stats(self) -> IndexStats:
        query = (
            select(FileMetadata.file_kind, func.count(FileMetadata.id), func.coalesce(func.sum(FileMetadata.size), 0))
            .where(FileMetadata.active.is_(True))
            .group_by(FileMetadata.file_kind)
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            rows = result.all()

        by_kind = {kind: (int(count), int(total)) for kind, count, total in rows}
        images, image_bytes = by_kind.get(FileKind.IMAGE.value, (0, 0))
        videos, video_bytes = by_kind.get(FileKind.VIDEO.value, (0, 0))
        return IndexStats(
            count=images + videos,
            total_bytes=image_bytes + video_bytes,
            image_count=images,
            video_count=videos,
        )
