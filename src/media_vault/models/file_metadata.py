"""FileMetadata model — metadata for one stored image or video.

The bytes live on the filesystem under the storage root; this row is the
authoritative record. Deletion is soft: ``active`` flips to false and the
row is kept for history.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, CheckConstraint, DateTime, Index, String, true
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from media_vault.models.base import Base, TimestampMixin


class FileMetadata(Base, TimestampMixin):
    """A stored media file.

    Attributes:
        id: Opaque UUID string assigned at save time.
        original_name: Filename as declared by the uploader.
        mime_type: Declared MIME type.
        size: File size in bytes.
        upload_timestamp: Upload instant (UTC).
        stored_path: Path relative to the storage root.
        file_kind: "image" or "video".
        checksum: SHA256 hex digest of the content.
        thumbnail_path: Relative thumbnail path, when one was generated.
        freeform_metadata: Open key-value map supplied with the upload.
        active: False once soft-deleted.
    """

    __tablename__ = "file_metadata"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    original_name: Mapped[str] = mapped_column(String(512), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    upload_timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    stored_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_kind: Mapped[str] = mapped_column(String(10), nullable=False)
    checksum: Mapped[str | None] = mapped_column(String(64), nullable=True)
    thumbnail_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    freeform_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    __table_args__ = (
        CheckConstraint("file_kind IN ('image', 'video')", name="ck_file_metadata_kind"),
        CheckConstraint("size >= 0", name="ck_file_metadata_size"),
        Index("ix_file_metadata_upload_timestamp", "upload_timestamp"),
        Index("ix_file_metadata_file_kind", "file_kind"),
        Index("ix_file_metadata_original_name", "original_name"),
        Index("ix_file_metadata_checksum", "checksum"),
    )
