"""Error taxonomy for the storage core.

Every error raised across the storage boundary derives from ``StorageError``.
Where a builtin category fits, the error also subclasses it so callers that
only know the builtin (``ValueError``, ``LookupError``, ``OSError``) still
catch it.
"""


class StorageError(Exception):
    """Base class for all storage core errors."""


class InvalidInputError(StorageError, ValueError):
    """An upload violates the accepted mime type, size or name constraints."""


class NotFoundError(StorageError, LookupError):
    """An id is unknown or inactive, or its bytes are missing on disk.

    Args:
        record_id: The id that could not be resolved.
        message: Optional human-readable detail.
    """

    def __init__(self, record_id: str, message: str | None = None) -> None:
        self.record_id = record_id
        super().__init__(message or f"File not found: {record_id}")


class StorageIOError(StorageError, OSError):
    """Reading or writing bytes (or the flat-file index) failed."""


class DecodeError(StorageError):
    """Thumbnail source bytes could not be decoded as an image."""


class NotSupportedError(StorageError):
    """The requested operation does not apply to this record or backend."""


class IndexCorruptionError(StorageError):
    """A metadata store exists but cannot be read or parsed."""


class ChecksumMismatchError(StorageError):
    """Stored bytes no longer hash to the recorded checksum.

    Args:
        record_id: The record whose bytes were verified.
        expected: The recorded checksum.
        actual: The checksum of the bytes currently on disk.
    """

    def __init__(self, record_id: str, expected: str, actual: str) -> None:
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Checksum mismatch for {record_id}: expected {expected[:16]}..., got {actual[:16]}...")
