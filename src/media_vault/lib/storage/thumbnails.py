"""Thumbnail generation for image uploads.

Thumbnails are JPEGs resized with a "cover" fit: the source is scaled and
center-cropped so the output exactly matches the target dimensions.
"""

import asyncio
import io
import struct

from PIL import Image, ImageOps, UnidentifiedImageError

from media_vault.lib.storage.errors import DecodeError, NotSupportedError
from media_vault.lib.storage.types import FileKind

DEFAULT_QUALITY = 80


def make_thumbnail(content: bytes, width: int, height: int, *, quality: int = DEFAULT_QUALITY) -> bytes:
    """Render a cover-fit JPEG thumbnail.

    Args:
        content: Encoded source image bytes.
        width: Target width in pixels.
        height: Target height in pixels.
        quality: JPEG quality (1-95).

    Returns:
        Encoded JPEG bytes of exactly ``width x height`` pixels.

    Raises:
        DecodeError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            # JPEG has no alpha channel; flatten onto white
            if img.mode in ("RGBA", "LA", "P"):
                rgba = img.convert("RGBA")
                background = Image.new("RGB", rgba.size, (255, 255, 255))
                background.paste(rgba, mask=rgba.split()[-1])
                img = background
            elif img.mode != "RGB":
                img = img.convert("RGB")

            thumb = ImageOps.fit(img, (width, height), method=Image.Resampling.LANCZOS)
    except (
        UnidentifiedImageError,
        OSError,
        ValueError,
        SyntaxError,
        EOFError,
        struct.error,
        Image.DecompressionBombError,
    ) as e:
        raise DecodeError(f"Cannot decode image: {e}") from e

    buffer = io.BytesIO()
    thumb.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


class ThumbnailGenerator:
    """Produces thumbnails for image records off the event loop.

    Args:
        width: Target width in pixels.
        height: Target height in pixels.
        quality: JPEG quality.
    """

    def __init__(self, width: int, height: int, quality: int = DEFAULT_QUALITY) -> None:
        self.width = width
        self.height = height
        self.quality = quality

    async def generate(self, content: bytes, file_kind: FileKind) -> bytes:
        """Render a thumbnail for ``content``.

        Raises:
            NotSupportedError: If ``file_kind`` is not an image.
            DecodeError: If the image bytes cannot be decoded.
        """
        if file_kind != FileKind.IMAGE:
            raise NotSupportedError(f"Thumbnails are not available for {file_kind} files")
        return await asyncio.to_thread(make_thumbnail, content, self.width, self.height, quality=self.quality)
