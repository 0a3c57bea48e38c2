"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from media_vault.models.base import Base
from media_vault.models.file_metadata import FileMetadata

__all__ = [
    "Base",
    "FileMetadata",
]
