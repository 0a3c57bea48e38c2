"""Flat-file JSON metadata index.

Layout under the storage root::

    metadata/index.json        global map of id -> record (source of truth)
    metadata/YYYY-MM-DD.json   per-day shard, append-only array

The global index is rewritten wholesale on every ``put``/``remove`` through a
temp file and an atomic rename. Read-modify-write cycles are serialized with
an ``asyncio.Lock``, so one ``FlatFileIndex`` instance must own a given index
file within a process. Day shards are never read back as authoritative and
are not updated on removal.
"""

from __future__ import annotations

import asyncio
import json
import re
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiofiles
import aiofiles.os
from loguru import logger
from pydantic import ValidationError

from media_vault.lib.storage.errors import IndexCorruptionError, StorageIOError
from media_vault.lib.storage.index.base import MetadataIndex
from media_vault.lib.storage.paths import INDEX_FILENAME, METADATA_DIR, local_day_bounds, shard_name
from media_vault.lib.storage.types import (
    FileKind,
    FileRecord,
    IndexStats,
    ListFilters,
    RepairResult,
    StorageBackend,
)
from media_vault.lib.storage.validators import extract_extension

if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Iterable


_CORRUPTED_NAME = re.compile(r"[\ufffd\x00-\x1f\x7f-\x9f]")


def filter_and_page(records: Iterable[FileRecord], filters: ListFilters) -> list[FileRecord]:
    """Apply active/date/kind filters, sort newest first, then paginate."""
    selected = [r for r in records if r.active]
    if filters.date is not None:
        start, end = local_day_bounds(filters.date)
        selected = [r for r in selected if start <= r.upload_timestamp < end]
    if filters.file_kind is not None:
        selected = [r for r in selected if r.file_kind == filters.file_kind]

    selected.sort(key=lambda r: (r.upload_timestamp, r.id), reverse=True)
    return selected[filters.offset : filters.offset + filters.limit]


def summarize(records: Iterable[FileRecord]) -> IndexStats:
    """Aggregate count, bytes and per-kind counts over active records."""
    count = total = images = videos = 0
    for record in records:
        if not record.active:
            continue
        count += 1
        total += record.size
        if record.file_kind == FileKind.IMAGE:
            images += 1
        else:
            videos += 1
    return IndexStats(count=count, total_bytes=total, image_count=images, video_count=videos)


class FlatFileIndex(MetadataIndex):
    """JSON-file metadata index rooted at a storage directory.

    Args:
        root: The storage root; metadata lives in ``root/metadata``.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._metadata_dir = self._root / METADATA_DIR
        self._index_path = self._metadata_dir / INDEX_FILENAME
        self._lock = asyncio.Lock()

    @property
    def backend(self) -> StorageBackend:
        return StorageBackend.FLAT_FILE

    @property
    def index_path(self) -> Path:
        """Path of the global index file."""
        return self._index_path

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    async def put(self, record: FileRecord) -> None:
        async with self._lock:
            raw = await self._load_for_update()
            raw[record.id] = record.to_json_dict()
            await self._write_json(self._index_path, raw)

            # The global index is the commit point; the shard is a secondary copy.
            try:
                await self._append_to_shard(record)
            except StorageIOError as e:
                logger.warning(f"Failed to append {record.id} to day shard: {e}")

    async def find(self, record_id: str, *, include_inactive: bool = False) -> FileRecord | None:
        raw = await self._load()
        data = raw.get(record_id)
        if data is None:
            return None
        record = self._parse(record_id, data)
        if record is None or (not record.active and not include_inactive):
            return None
        return record

    async def contains(self, record_id: str) -> bool:
        raw = await self._load()
        return record_id in raw

    async def remove(self, record_id: str) -> bool:
        async with self._lock:
            raw = await self._load_for_update()
            data = raw.pop(record_id, None)
            if data is None:
                logger.debug(f"Remove of unknown id {record_id} ignored")
                return False
            await self._write_json(self._index_path, raw)

        record = self._parse(record_id, data)
        removed = record is not None and record.active
        logger.info(f"Erased {record_id} from flat-file index")
        return removed

    async def list(self, filters: ListFilters | None = None) -> list[FileRecord]:
        return filter_and_page(await self._records(), filters or ListFilters())

    async def stats(self) -> IndexStats:
        return summarize(await self._records())

    # ------------------------------------------------------------------
    # Flat-file extras
    # ------------------------------------------------------------------

    async def shard(self, day: dt.date) -> list[FileRecord]:
        """Records appended to a day shard, in append order.

        Shards are not updated on removal, so entries may be stale.
        """
        path = self._metadata_dir / shard_name(datetime(day.year, day.month, day.day))
        data = await self._read_json(path)
        if not isinstance(data, list):
            if data is not None:
                logger.error(f"Ignoring malformed day shard {path.name}")
            return []
        records = []
        for entry in data:
            record = self._parse(str(entry.get("id", "")) if isinstance(entry, dict) else "", entry)
            if record is not None:
                records.append(record)
        return records

    async def repair_names(self) -> RepairResult:
        """Replace corrupted ``original_name`` values (U+FFFD or control characters).

        Patched names take the form ``recovered_<id8><ext>``; already-clean
        records are untouched, so repeated runs are no-ops.
        """
        result = RepairResult()
        async with self._lock:
            raw = await self._load_for_update()
            now = datetime.now(UTC)
            for record_id, data in raw.items():
                record = self._parse(record_id, data)
                if record is None:
                    result.errors.append(f"Failed to parse {record_id}")
                    continue
                if not _CORRUPTED_NAME.search(record.original_name):
                    continue
                new_name = f"recovered_{record_id[:8]}{extract_extension(record.stored_path)}"
                repaired = record.model_copy(update={"original_name": new_name, "updated_at": now})
                raw[record_id] = repaired.to_json_dict()
                result.fixed += 1
                logger.info(f"Repaired name of {record_id} -> {new_name}")

            if result.fixed:
                await self._write_json(self._index_path, raw)
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _records(self) -> list[FileRecord]:
        raw = await self._load()
        return [r for record_id, data in raw.items() if (r := self._parse(record_id, data)) is not None]

    async def _load(self) -> dict[str, Any]:
        try:
            return await self._read_index()
        except IndexCorruptionError as e:
            logger.error(f"{e}; treating index as empty")
            return {}

    async def _load_for_update(self) -> dict[str, Any]:
        """Load the index for a write cycle, setting aside an unreadable file."""
        try:
            return await self._read_index()
        except IndexCorruptionError as e:
            backup = self._index_path.with_name(f"{INDEX_FILENAME}.corrupt-{uuid.uuid4().hex[:8]}")
            logger.error(f"{e}; moving it to {backup.name} and starting empty")
            try:
                await aiofiles.os.replace(self._index_path, backup)
            except OSError as move_error:
                raise StorageIOError(f"Cannot set aside corrupt index: {move_error}") from move_error
            return {}

    async def _read_index(self) -> dict[str, Any]:
        data = await self._read_json(self._index_path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            msg = f"Metadata index {self._index_path} is not a JSON object"
            raise IndexCorruptionError(msg)
        return data

    async def _append_to_shard(self, record: FileRecord) -> None:
        path = self._metadata_dir / shard_name(record.upload_timestamp)
        try:
            entries = await self._read_json(path)
        except IndexCorruptionError as e:
            logger.warning(f"{e}; starting a fresh shard")
            entries = None
        if not isinstance(entries, list):
            entries = []
        entries.append(record.to_json_dict())
        await self._write_json(path, entries)

    @staticmethod
    def _parse(record_id: str, data: Any) -> FileRecord | None:
        if not isinstance(data, dict):
            logger.error(f"Skipping malformed index entry {record_id!r}")
            return None
        try:
            return FileRecord.model_validate({**data, "id": data.get("id") or record_id})
        except ValidationError as e:
            logger.error(f"Skipping invalid index entry {record_id!r}: {e.error_count()} validation errors")
            return None

    @staticmethod
    async def _read_json(path: Path) -> Any:
        """Read a JSON document; None when the file does not exist.

        Raises:
            IndexCorruptionError: If the file exists but cannot be read or parsed.
        """
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                text = await f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            msg = f"Cannot read metadata file {path}: {e}"
            raise IndexCorruptionError(msg) from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            msg = f"Cannot parse metadata file {path}: {e}"
            raise IndexCorruptionError(msg) from e

    @staticmethod
    async def _write_json(path: Path, data: Any) -> None:
        """Write a JSON document atomically (temp file + rename).

        Raises:
            StorageIOError: If the file cannot be written.
        """
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        payload = json.dumps(data, indent=2, ensure_ascii=False)
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
                await f.flush()
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            try:
                await aiofiles.os.remove(tmp_path)
            except OSError:
                logger.debug(f"No temp file to clean up at {tmp_path.name}")
            msg = f"Cannot write metadata file {path}: {e}"
            raise StorageIOError(msg) from e
