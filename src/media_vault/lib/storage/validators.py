"""Validation helpers for media uploads.

Provides the accepted MIME type allowlist, the default size ceiling and a
``validate_upload`` guard that the storage adapter applies before any byte
touches the disk.
"""

from media_vault.lib.storage.errors import InvalidInputError

# Accepted upload MIME types (images and videos only).
ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/heic",
        "video/mp4",
        "video/mov",
        "video/avi",
        "video/quicktime",
        "video/x-msvideo",
    }
)

MAX_UPLOAD_SIZE_BYTES = 500 * 1024 * 1024
MAX_ORIGINAL_NAME_LENGTH = 512


def normalize_mime_type(mime_type: str) -> str:
    """Strip parameters and lowercase a MIME type (``Image/PNG; q=1`` -> ``image/png``)."""
    return mime_type.split(";")[0].strip().lower()


def extract_extension(filename: str) -> str:
    """Extract the lowercase file extension including the dot.

    Args:
        filename: The filename to extract from.

    Returns:
        The lowercase extension (e.g., ".png") or empty string if none.
    """
    basename = filename.replace("\\", "/").rsplit("/", 1)[-1]
    dot_idx = basename.rfind(".")
    if dot_idx <= 0:
        return ""
    return basename[dot_idx:].lower()


def validate_upload(
    content: bytes,
    declared_name: str,
    declared_mime: str,
    declared_size: int,
    *,
    allowed_mime_types: frozenset[str] = ALLOWED_MIME_TYPES,
    max_size: int = MAX_UPLOAD_SIZE_BYTES,
) -> str:
    """Reject uploads outside the accepted constraints.

    Args:
        content: Raw file bytes.
        declared_name: Original filename as declared by the uploader.
        declared_mime: MIME type as declared by the uploader.
        declared_size: Size in bytes as declared by the uploader.
        allowed_mime_types: Accepted MIME types.
        max_size: Size ceiling in bytes.

    Returns:
        The normalized MIME type.

    Raises:
        InvalidInputError: If any constraint is violated.
    """
    mime_type = normalize_mime_type(declared_mime)
    if mime_type not in allowed_mime_types:
        raise InvalidInputError(f"Unsupported file type: {declared_mime}")

    if not declared_name or not declared_name.strip():
        raise InvalidInputError("Original filename must not be empty")
    if len(declared_name) > MAX_ORIGINAL_NAME_LENGTH:
        raise InvalidInputError(f"Original filename exceeds {MAX_ORIGINAL_NAME_LENGTH} characters")

    if declared_size < 0:
        raise InvalidInputError("File size must be non-negative")
    if declared_size != len(content):
        raise InvalidInputError(f"Declared size {declared_size} does not match content length {len(content)}")
    if len(content) > max_size:
        raise InvalidInputError(f"File size too large. Maximum: {max_size // (1024 * 1024)}MB")

    return mime_type
