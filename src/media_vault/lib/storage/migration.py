"""Import records from a flat-file ``index.json`` into another metadata index.

Existing ids are skipped, so running the import again over the same source
inserts nothing new. Per-record failures are collected rather than raised.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from media_vault.lib.storage.errors import StorageError
from media_vault.lib.storage.types import FileRecord, MigrationResult

if TYPE_CHECKING:
    from media_vault.lib.storage.index.base import MetadataIndex


async def import_from_flat_file(index_path: str | Path, target: MetadataIndex) -> MigrationResult:
    """Copy every record of a flat-file index into ``target``.

    Records are inserted active, keeping their original id and timestamps.

    Args:
        index_path: Path to the source ``index.json``.
        target: The destination metadata index.

    Returns:
        Counts of migrated and skipped records plus collected error messages.
        An unreadable source yields a single error and nothing migrated.
    """
    result = MigrationResult()
    index_path = Path(index_path)

    try:
        async with aiofiles.open(index_path, encoding="utf-8") as f:
            source = json.loads(await f.read())
        if not isinstance(source, dict):
            msg = "top-level value is not an object"
            raise TypeError(msg)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
        result.errors.append(f"Failed to read JSON metadata: {e}")
        logger.error(f"Cannot import from {index_path}: {e}")
        return result

    logger.info(f"Importing {len(source)} records from {index_path}")
    for record_id, data in source.items():
        try:
            if await target.contains(record_id):
                result.skipped_count += 1
                continue
            if not isinstance(data, dict):
                msg = "entry is not an object"
                raise TypeError(msg)
            record = FileRecord.model_validate({**data, "id": record_id, "active": True})
            await target.put(record)
            result.migrated_count += 1
        except (ValidationError, TypeError, StorageError, OSError, SQLAlchemyError) as e:
            result.errors.append(f"Failed to migrate {record_id}: {e}")
            logger.warning(f"Failed to migrate {record_id}: {e}")

    logger.info(
        f"Import complete: {result.migrated_count} migrated, "
        f"{result.skipped_count} skipped, {len(result.errors)} errors"
    )
    return result
