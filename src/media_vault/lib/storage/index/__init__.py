"""Metadata index backends: the flat-file JSON index and the relational table index."""

from media_vault.lib.storage.index.base import MetadataIndex
from media_vault.lib.storage.index.flat_file import FlatFileIndex
from media_vault.lib.storage.index.relational import RelationalIndex

__all__ = [
    "FlatFileIndex",
    "MetadataIndex",
    "RelationalIndex",
]
