"""Initial migration: file_metadata table.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "file_metadata",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("original_name", sa.String(512), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("size", sa.BigInteger, nullable=False),
        sa.Column("upload_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("stored_path", sa.String(1024), nullable=False),
        sa.Column("file_kind", sa.String(10), nullable=False),
        sa.Column("checksum", sa.String(64), nullable=True),
        sa.Column("thumbnail_path", sa.String(1024), nullable=True),
        sa.Column("freeform_metadata", sa.JSON().with_variant(JSONB(), "postgresql"), nullable=True),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("file_kind IN ('image', 'video')", name="ck_file_metadata_kind"),
        sa.CheckConstraint("size >= 0", name="ck_file_metadata_size"),
    )
    op.create_index("ix_file_metadata_upload_timestamp", "file_metadata", ["upload_timestamp"])
    op.create_index("ix_file_metadata_file_kind", "file_metadata", ["file_kind"])
    op.create_index("ix_file_metadata_original_name", "file_metadata", ["original_name"])
    op.create_index("ix_file_metadata_checksum", "file_metadata", ["checksum"])


def downgrade() -> None:
    op.drop_index("ix_file_metadata_checksum", table_name="file_metadata")
    op.drop_index("ix_file_metadata_original_name", table_name="file_metadata")
    op.drop_index("ix_file_metadata_file_kind", table_name="file_metadata")
    op.drop_index("ix_file_metadata_upload_timestamp", table_name="file_metadata")
    op.drop_table("file_metadata")
