"""Data types for the storage library.

Defines the canonical ``FileRecord``, list filters, aggregate results and
the adapter configuration shared by both metadata index backends.
"""

from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from media_vault.lib.storage.validators import ALLOWED_MIME_TYPES, MAX_UPLOAD_SIZE_BYTES

DEFAULT_LIST_LIMIT = 50
DEFAULT_AVAILABLE_SPACE = 100 * 1024 * 1024 * 1024


class FileKind(enum.StrEnum):
    """Media category derived from the MIME type at save time."""

    IMAGE = "image"
    VIDEO = "video"

    @classmethod
    def from_mime_type(cls, mime_type: str) -> FileKind:
        """Return IMAGE for ``image/*`` MIME types and VIDEO for everything else."""
        return cls.IMAGE if mime_type.lower().startswith("image/") else cls.VIDEO


class StorageBackend(enum.StrEnum):
    """Metadata index implementation behind a storage adapter."""

    RELATIONAL = "relational"
    FLAT_FILE = "flat-file"


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class FileRecord(BaseModel):
    """Metadata record for one uploaded file.

    Serializes with camelCase keys. Loading also accepts the legacy keys
    ``uploadDate``, ``filePath``, ``fileType``, ``metadata`` and ``isActive``
    found in older index files.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1)
    original_name: str = Field(max_length=512)
    mime_type: str = Field(max_length=100)
    size: int = Field(ge=0)
    upload_timestamp: datetime = Field(
        validation_alias=AliasChoices("uploadTimestamp", "uploadDate", "upload_timestamp"),
    )
    stored_path: str = Field(validation_alias=AliasChoices("storedPath", "filePath", "stored_path"))
    file_kind: FileKind = Field(validation_alias=AliasChoices("fileKind", "fileType", "file_kind"))
    checksum: str | None = None
    thumbnail_path: str | None = None
    freeform_metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("freeformMetadata", "metadata", "freeform_metadata"),
    )
    active: bool = Field(default=True, validation_alias=AliasChoices("active", "isActive"))
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("freeform_metadata", mode="before")
    @classmethod
    def _none_metadata_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("upload_timestamp", "created_at", "updated_at")
    @classmethod
    def _normalize_timestamp(cls, v: datetime | None) -> datetime | None:
        return None if v is None else ensure_utc(v)

    @model_validator(mode="after")
    def _default_bookkeeping(self) -> FileRecord:
        if self.created_at is None:
            self.created_at = self.upload_timestamp
        if self.updated_at is None:
            self.updated_at = self.created_at
        return self

    def to_json_dict(self) -> dict[str, Any]:
        """Return the JSON-ready camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class ListFilters:
    """Independently optional filters for listing records.

    Attributes:
        date: Calendar day (host-local) the upload must fall on.
        file_kind: Restrict to images or videos.
        limit: Maximum records to return.
        offset: Records to skip after filtering and sorting.
    """

    date: dt.date | None = None
    file_kind: FileKind | None = None
    limit: int = DEFAULT_LIST_LIMIT
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit < 0:
            msg = "limit must be non-negative"
            raise ValueError(msg)
        if self.offset < 0:
            msg = "offset must be non-negative"
            raise ValueError(msg)


@dataclass(frozen=True)
class IndexStats:
    """Aggregate over active records."""

    count: int = 0
    total_bytes: int = 0
    image_count: int = 0
    video_count: int = 0


@dataclass(frozen=True)
class StorageInfo:
    """Storage usage summary reported by an adapter."""

    total_files: int
    total_size: int
    used_space: int
    available_space: int


@dataclass(frozen=True)
class StorageConfig:
    """Configuration for a storage adapter.

    Attributes:
        root: Storage root directory.
        thumbnail_width: Thumbnail width in pixels.
        thumbnail_height: Thumbnail height in pixels.
        thumbnail_quality: JPEG quality for thumbnails.
        max_file_size: Upload size ceiling in bytes.
        available_space: Constant reported as available space.
        allowed_mime_types: Accepted upload MIME types.
    """

    root: Path
    thumbnail_width: int = 300
    thumbnail_height: int = 300
    thumbnail_quality: int = 80
    max_file_size: int = MAX_UPLOAD_SIZE_BYTES
    available_space: int = DEFAULT_AVAILABLE_SPACE
    allowed_mime_types: frozenset[str] = ALLOWED_MIME_TYPES

    def __post_init__(self) -> None:
        if self.thumbnail_width <= 0 or self.thumbnail_height <= 0:
            msg = "thumbnail dimensions must be positive"
            raise ValueError(msg)


@dataclass
class StepResult:
    """Outcome of a best-effort step whose failure must not fail the caller."""

    name: str
    value: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class MigrationResult:
    """Outcome of importing flat-file records into the relational index."""

    migrated_count: int = 0
    skipped_count: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class RepairResult:
    """Outcome of a flat-file name repair pass."""

    fixed: int = 0
    errors: list[str] = field(default_factory=list)
