"""Storage adapter: the single entry point for saving and serving media.

Bytes live on the local filesystem under a date-bucketed layout::

    {root}/{yyyy}/{mm}/{dd}/{uuid}{ext}
    {root}/thumbnails/{uuid}.jpg

Metadata lives in a pluggable ``MetadataIndex``. On save, the index write is
the commit point: files written before it are cleaned up if it fails. Thumbnail
generation on save and physical cleanup on remove are best-effort steps whose
failures are logged and never surface to the caller.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiofiles
import aiofiles.os
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from media_vault.lib.storage.checksum import sha256_hexdigest, verify_checksum
from media_vault.lib.storage.errors import (
    ChecksumMismatchError,
    DecodeError,
    NotFoundError,
    NotSupportedError,
    StorageError,
    StorageIOError,
)
from media_vault.lib.storage.paths import bucket_dir, thumbnail_relpath
from media_vault.lib.storage.thumbnails import ThumbnailGenerator
from media_vault.lib.storage.types import (
    FileKind,
    FileRecord,
    IndexStats,
    ListFilters,
    StepResult,
    StorageBackend,
    StorageConfig,
    StorageInfo,
)
from media_vault.lib.storage.validators import extract_extension, validate_upload

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from media_vault.lib.storage.index.base import MetadataIndex


async def run_step(name: str, step: Awaitable[Any]) -> StepResult:
    """Await a best-effort step, capturing storage and OS failures as a result."""
    try:
        return StepResult(name=name, value=await step)
    except (StorageError, OSError) as e:
        logger.warning(f"Step '{name}' failed: {e}")
        return StepResult(name=name, error=e)


async def _write_exclusive(path: Path, content: bytes) -> None:
    await aiofiles.os.makedirs(path.parent, exist_ok=True)
    async with aiofiles.open(path, "xb") as f:
        await f.write(content)


async def _write_replace(path: Path, content: bytes) -> None:
    await aiofiles.os.makedirs(path.parent, exist_ok=True)
    async with aiofiles.open(path, "wb") as f:
        await f.write(content)


async def _unlink(path: Path) -> bool:
    """Remove a file; False when it was already gone."""
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        return False
    return True


class StorageAdapter:
    """Persists media bytes on disk and their records in a metadata index.

    Args:
        config: Storage root, thumbnail and upload limits.
        index: The metadata index backend.
        thumbnails: Thumbnail generator; defaults to one built from ``config``.
    """

    def __init__(
        self,
        config: StorageConfig,
        index: MetadataIndex,
        thumbnails: ThumbnailGenerator | None = None,
    ) -> None:
        if thumbnails is None:
            thumbnails = ThumbnailGenerator(
                config.thumbnail_width,
                config.thumbnail_height,
                config.thumbnail_quality,
            )
        self._config = config
        self._root = Path(config.root)
        self._index = index
        self._thumbnails = thumbnails

    @property
    def backend(self) -> StorageBackend:
        """Which metadata index backs this adapter."""
        return self._index.backend

    @property
    def index(self) -> MetadataIndex:
        return self._index

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for a path stored relative to the storage root."""
        return self._root / relative_path

    async def save(
        self,
        content: bytes,
        declared_name: str,
        declared_mime: str,
        declared_size: int,
        metadata: dict[str, Any] | None = None,
    ) -> FileRecord:
        """Validate, write and record an upload.

        Args:
            content: Raw file bytes.
            declared_name: Original filename from the uploader.
            declared_mime: MIME type from the uploader.
            declared_size: Size in bytes from the uploader.
            metadata: Optional freeform key-value map stored with the record.

        Returns:
            The persisted record.

        Raises:
            InvalidInputError: If the upload is rejected; nothing is written.
            StorageIOError: If the bytes cannot be written.
            StorageError: If the metadata index write fails.
        """
        mime_type = validate_upload(
            content,
            declared_name,
            declared_mime,
            declared_size,
            allowed_mime_types=self._config.allowed_mime_types,
            max_size=self._config.max_file_size,
        )

        record_id = str(uuid.uuid4())
        now = datetime.now(UTC)
        stored_path = f"{bucket_dir(now)}/{record_id}{extract_extension(declared_name)}"
        file_path = self.resolve(stored_path)

        try:
            await _write_exclusive(file_path, content)
        except OSError as e:
            msg = f"Failed to write {stored_path}: {e}"
            raise StorageIOError(msg) from e

        checksum = await asyncio.to_thread(sha256_hexdigest, content)
        file_kind = FileKind.from_mime_type(mime_type)

        thumbnail_path = None
        if file_kind == FileKind.IMAGE:
            step = await run_step("thumbnail", self._store_thumbnail(record_id, content, file_kind))
            if step.ok:
                thumbnail_path = step.value

        record = FileRecord(
            id=record_id,
            original_name=declared_name,
            mime_type=mime_type,
            size=len(content),
            upload_timestamp=now,
            stored_path=stored_path,
            file_kind=file_kind,
            checksum=checksum,
            thumbnail_path=thumbnail_path,
            freeform_metadata=dict(metadata or {}),
            active=True,
            created_at=now,
            updated_at=now,
        )

        try:
            await self._index.put(record)
        except Exception as e:
            logger.error(f"Index write failed for {record_id}, removing written files: {e}")
            await run_step("cleanup file", _unlink(file_path))
            if thumbnail_path is not None:
                await run_step("cleanup thumbnail", _unlink(self.resolve(thumbnail_path)))
            raise

        logger.info(f"Saved {record_id} ({declared_name}, {record.size} bytes) to {stored_path}")
        return record

    async def get(self, record_id: str) -> FileRecord:
        """Return the active record for an id.

        Raises:
            NotFoundError: If the id is unknown or inactive.
        """
        return await self._index.get(record_id)

    async def fetch(self, record_id: str) -> bytes:
        """Return the stored bytes of an active record.

        Raises:
            NotFoundError: If the record is absent or its bytes are missing.
            StorageIOError: If the bytes exist but cannot be read.
        """
        record = await self._index.get(record_id)
        try:
            return await self._read(record.stored_path)
        except FileNotFoundError as e:
            raise NotFoundError(record_id, f"File not found on disk: {record.stored_path}") from e
        except OSError as e:
            msg = f"Failed to read {record.stored_path}: {e}"
            raise StorageIOError(msg) from e

    async def remove(self, record_id: str) -> bool:
        """Delete the bytes and deactivate the record.

        Physical cleanup is best-effort. Returns False if the record is
        unknown or already removed, or if the index update failed.
        """
        record = await self._index.find(record_id)
        if record is None:
            logger.debug(f"Remove of unknown or inactive id {record_id}")
            return False

        steps = [await run_step("delete file", _unlink(self.resolve(record.stored_path)))]
        if record.thumbnail_path:
            steps.append(await run_step("delete thumbnail", _unlink(self.resolve(record.thumbnail_path))))

        try:
            removed = await self._index.remove(record_id)
        except (StorageError, OSError, SQLAlchemyError) as e:
            logger.error(f"Failed to remove {record_id} from metadata index: {e}")
            return False

        failed = [s.name for s in steps if not s.ok]
        if failed:
            logger.warning(f"Removed {record_id} with incomplete cleanup: {', '.join(failed)}")
        else:
            logger.info(f"Removed {record_id}")
        return removed

    async def list(self, filters: ListFilters | None = None) -> list[FileRecord]:
        """List active records, newest first."""
        return await self._index.list(filters)

    async def thumbnail(self, record_id: str) -> bytes:
        """Return thumbnail bytes for a record.

        Serves the stored thumbnail when present; otherwise regenerates one
        for images on the fly without persisting it.

        Raises:
            NotFoundError: If the record is absent or its image cannot be decoded.
            NotSupportedError: If the record is a video or its bytes are missing.
        """
        record = await self._index.get(record_id)

        if record.thumbnail_path:
            try:
                return await self._read(record.thumbnail_path)
            except OSError as e:
                logger.warning(f"Stored thumbnail for {record_id} unreadable, regenerating: {e}")

        if record.file_kind != FileKind.IMAGE:
            raise NotSupportedError(f"Thumbnails are not available for {record.file_kind} files")

        try:
            content = await self._read(record.stored_path)
        except OSError as e:
            raise NotSupportedError(f"Original bytes for {record_id} are unavailable: {e}") from e

        try:
            return await self._thumbnails.generate(content, record.file_kind)
        except DecodeError as e:
            raise NotFoundError(record_id, f"Cannot produce thumbnail for {record_id}: {e}") from e

    async def info(self) -> StorageInfo:
        """Summarize storage usage for active records."""
        stats = await self._index.stats()
        return StorageInfo(
            total_files=stats.count,
            total_size=stats.total_bytes,
            used_space=stats.total_bytes,
            available_space=self._config.available_space,
        )

    async def stats(self) -> IndexStats:
        return await self._index.stats()

    async def verify(self, record_id: str) -> bool:
        """Recompute the checksum of stored bytes and compare it to the record.

        Returns:
            True if the bytes match.

        Raises:
            NotFoundError: If the record is absent or its bytes are missing.
            ChecksumMismatchError: If the bytes no longer match.
        """
        record = await self._index.get(record_id)
        if record.checksum is None:
            logger.warning(f"Record {record_id} has no recorded checksum; skipping verification")
            return True

        try:
            return await asyncio.to_thread(
                verify_checksum, self.resolve(record.stored_path), record.checksum, record_id=record_id
            )
        except FileNotFoundError as e:
            raise NotFoundError(record_id, f"File not found on disk: {record.stored_path}") from e
        except ChecksumMismatchError:
            logger.error(f"Integrity check failed for {record_id}")
            raise

    async def close(self) -> None:
        await self._index.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _read(self, relative_path: str) -> bytes:
        async with aiofiles.open(self.resolve(relative_path), "rb") as f:
            return await f.read()

    async def _store_thumbnail(self, record_id: str, content: bytes, file_kind: FileKind) -> str:
        data = await self._thumbnails.generate(content, file_kind)
        relative_path = thumbnail_relpath(record_id)
        await _write_replace(self.resolve(relative_path), data)
        return relative_path
