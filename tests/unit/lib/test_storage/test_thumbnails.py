"""Unit tests for thumbnail generation."""

import io
import struct

import pytest
from PIL import Image

from media_vault.lib.storage.errors import DecodeError, NotSupportedError
from media_vault.lib.storage.thumbnails import ThumbnailGenerator, make_thumbnail
from media_vault.lib.storage.types import FileKind


def _open(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


class TestMakeThumbnail:
    """Tests for make_thumbnail."""

    def test_output_is_exact_size_jpeg(self, image_factory) -> None:
        thumb = _open(make_thumbnail(image_factory(640, 200), 300, 300))
        assert thumb.format == "JPEG"
        assert thumb.size == (300, 300)

    def test_upscales_small_images(self, image_factory) -> None:
        thumb = _open(make_thumbnail(image_factory(10, 10), 300, 300))
        assert thumb.size == (300, 300)

    def test_non_square_target(self, image_factory) -> None:
        thumb = _open(make_thumbnail(image_factory(500, 500), 160, 90))
        assert thumb.size == (160, 90)

    def test_transparent_png_flattened(self) -> None:
        buffer = io.BytesIO()
        Image.new("RGBA", (40, 40), (0, 0, 0, 0)).save(buffer, format="PNG")
        thumb = _open(make_thumbnail(buffer.getvalue(), 20, 20))
        assert thumb.mode == "RGB"
        # fully transparent pixels become white
        assert all(channel > 240 for channel in thumb.getpixel((10, 10)))

    def test_grayscale_converted(self) -> None:
        buffer = io.BytesIO()
        Image.new("L", (40, 40), 128).save(buffer, format="PNG")
        assert _open(make_thumbnail(buffer.getvalue(), 20, 20)).mode == "RGB"

    def test_undecodable_bytes_raise(self) -> None:
        with pytest.raises(DecodeError):
            make_thumbnail(b"0123456789", 300, 300)

    @pytest.mark.parametrize("error", [SyntaxError("bad"), EOFError(), struct.error("unpack requires a buffer")])
    def test_parser_errors_raise_decode_error(self, png_bytes, monkeypatch, error) -> None:
        def fail(img):
            raise error

        monkeypatch.setattr("media_vault.lib.storage.thumbnails.ImageOps.exif_transpose", fail)
        with pytest.raises(DecodeError):
            make_thumbnail(png_bytes, 300, 300)


class TestThumbnailGenerator:
    """Tests for ThumbnailGenerator."""

    async def test_generates_for_images(self, png_bytes) -> None:
        generator = ThumbnailGenerator(120, 80, quality=70)
        thumb = _open(await generator.generate(png_bytes, FileKind.IMAGE))
        assert thumb.size == (120, 80)

    async def test_video_not_supported(self) -> None:
        generator = ThumbnailGenerator(300, 300)
        with pytest.raises(NotSupportedError):
            await generator.generate(b"\x00\x00\x00\x18ftypmp42", FileKind.VIDEO)
