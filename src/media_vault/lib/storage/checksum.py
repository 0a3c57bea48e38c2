"""SHA256 checksums for stored media."""

import hashlib
from pathlib import Path

from loguru import logger

from media_vault.lib.storage.errors import ChecksumMismatchError

# Read buffer size for hashing large files
_CHUNK_SIZE = 1024 * 1024


def sha256_hexdigest(content: bytes) -> str:
    """Return the lowercase SHA256 hex digest of a byte buffer."""
    return hashlib.sha256(content).hexdigest()


def sha256_file(file_path: Path) -> str:
    """Return the lowercase SHA256 hex digest of a file, read in chunks."""
    sha256 = hashlib.sha256()
    with file_path.open("rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            sha256.update(chunk)
    return sha256.hexdigest()


def verify_checksum(file_path: Path, expected: str, *, record_id: str = "") -> bool:
    """Verify a stored file against its recorded checksum.

    Args:
        file_path: Path to the stored file.
        expected: The recorded hex digest.
        record_id: Record id used in the error message.

    Returns:
        True if the checksum matches.

    Raises:
        ChecksumMismatchError: If the checksum does not match.
        FileNotFoundError: If the file does not exist.
    """
    actual = sha256_file(file_path)
    if actual != expected.lower():
        raise ChecksumMismatchError(record_id or file_path.name, expected, actual)

    logger.debug(f"SHA256 verified for {file_path.name}")
    return True
