"""Storage library — media bytes on disk, metadata in a pluggable index.

Public API:
    - ``StorageAdapter``: Save, fetch, list, remove and thumbnail media
    - ``StorageManager``: Holds the active adapter; switches backends at runtime
    - ``build_adapter``: Create an adapter for a backend name
    - ``import_from_flat_file``: Copy a flat-file index into another index
    - ``MetadataIndex``, ``FlatFileIndex``, ``RelationalIndex``: Index backends
    - ``ThumbnailGenerator`` / ``make_thumbnail``: Cover-fit JPEG thumbnails
    - ``sha256_hexdigest`` / ``sha256_file`` / ``verify_checksum``: Checksums
    - ``validate_upload``: Upload MIME/size/name guard
    - ``FileRecord``, ``ListFilters``, ``IndexStats``, ``StorageInfo``,
      ``StorageConfig``, ``MigrationResult``, ``RepairResult``: Data types
    - ``StorageError`` and subclasses: Error taxonomy
"""

from media_vault.lib.storage.adapter import StorageAdapter
from media_vault.lib.storage.checksum import sha256_file, sha256_hexdigest, verify_checksum
from media_vault.lib.storage.errors import (
    ChecksumMismatchError,
    DecodeError,
    IndexCorruptionError,
    InvalidInputError,
    NotFoundError,
    NotSupportedError,
    StorageError,
    StorageIOError,
)
from media_vault.lib.storage.index import FlatFileIndex, MetadataIndex, RelationalIndex
from media_vault.lib.storage.manager import StorageManager, build_adapter
from media_vault.lib.storage.migration import import_from_flat_file
from media_vault.lib.storage.thumbnails import ThumbnailGenerator, make_thumbnail
from media_vault.lib.storage.types import (
    FileKind,
    FileRecord,
    IndexStats,
    ListFilters,
    MigrationResult,
    RepairResult,
    StorageBackend,
    StorageConfig,
    StorageInfo,
)
from media_vault.lib.storage.validators import ALLOWED_MIME_TYPES, validate_upload

__all__ = [
    "ALLOWED_MIME_TYPES",
    "ChecksumMismatchError",
    "DecodeError",
    "FileKind",
    "FileRecord",
    "FlatFileIndex",
    "IndexCorruptionError",
    "IndexStats",
    "InvalidInputError",
    "ListFilters",
    "MetadataIndex",
    "MigrationResult",
    "NotFoundError",
    "NotSupportedError",
    "RelationalIndex",
    "RepairResult",
    "StorageAdapter",
    "StorageBackend",
    "StorageConfig",
    "StorageError",
    "StorageIOError",
    "StorageInfo",
    "StorageManager",
    "ThumbnailGenerator",
    "build_adapter",
    "import_from_flat_file",
    "make_thumbnail",
    "sha256_file",
    "sha256_hexdigest",
    "validate_upload",
    "verify_checksum",
]
