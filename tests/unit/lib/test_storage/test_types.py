"""Unit tests for storage data types."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from media_vault.lib.storage.types import FileKind, FileRecord, ListFilters, StepResult, StorageConfig


def _record(**overrides) -> FileRecord:
    data = {
        "id": "11111111-1111-4111-8111-111111111111",
        "original_name": "a.png",
        "mime_type": "image/png",
        "size": 10,
        "upload_timestamp": datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC),
        "stored_path": "2026/01/02/11111111-1111-4111-8111-111111111111.png",
        "file_kind": FileKind.IMAGE,
    }
    data.update(overrides)
    return FileRecord(**data)


class TestFileKind:
    """Tests for FileKind.from_mime_type."""

    @pytest.mark.parametrize("mime", ["image/png", "image/heic", "IMAGE/JPEG"])
    def test_images(self, mime: str) -> None:
        assert FileKind.from_mime_type(mime) is FileKind.IMAGE

    @pytest.mark.parametrize("mime", ["video/mp4", "video/quicktime"])
    def test_videos(self, mime: str) -> None:
        assert FileKind.from_mime_type(mime) is FileKind.VIDEO


class TestFileRecord:
    """Tests for FileRecord validation and serialization."""

    def test_defaults(self) -> None:
        record = _record()
        assert record.active is True
        assert record.freeform_metadata == {}
        assert record.checksum is None
        assert record.created_at == record.upload_timestamp
        assert record.updated_at == record.created_at

    def test_serializes_camel_case(self) -> None:
        data = _record(checksum="ab" * 32).to_json_dict()
        assert data["originalName"] == "a.png"
        assert data["fileKind"] == "image"
        assert data["storedPath"].endswith(".png")
        assert data["uploadTimestamp"].startswith("2026-01-02T03:04:05")
        assert "original_name" not in data

    def test_round_trips_through_json_dict(self) -> None:
        record = _record(freeform_metadata={"album": "trip"})
        assert FileRecord.model_validate(record.to_json_dict()) == record

    def test_accepts_legacy_keys(self) -> None:
        record = FileRecord.model_validate(
            {
                "id": "legacy-1",
                "originalName": "old.mp4",
                "mimeType": "video/mp4",
                "size": 99,
                "uploadDate": "2024-05-01T10:00:00.000Z",
                "filePath": "2024/05/01/legacy-1.mp4",
                "fileType": "video",
                "metadata": None,
            }
        )
        assert record.file_kind is FileKind.VIDEO
        assert record.stored_path == "2024/05/01/legacy-1.mp4"
        assert record.upload_timestamp == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)
        assert record.freeform_metadata == {}

    def test_normalizes_timestamps_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        record = _record(upload_timestamp=datetime(2026, 1, 2, 5, 0, tzinfo=plus_two))
        assert record.upload_timestamp == datetime(2026, 1, 2, 3, 0, tzinfo=UTC)
        assert record.upload_timestamp.utcoffset() == timedelta(0)

    def test_naive_timestamp_taken_as_utc(self) -> None:
        record = _record(upload_timestamp=datetime(2026, 1, 2, 3, 0))
        assert record.upload_timestamp.tzinfo is not None

    def test_rejects_negative_size(self) -> None:
        with pytest.raises(ValidationError):
            _record(size=-1)

    def test_rejects_long_name(self) -> None:
        with pytest.raises(ValidationError):
            _record(original_name="x" * 513)


class TestListFilters:
    def test_defaults(self) -> None:
        filters = ListFilters()
        assert filters.limit == 50
        assert filters.offset == 0

    def test_rejects_negative_offset(self) -> None:
        with pytest.raises(ValueError, match="offset"):
            ListFilters(offset=-1)

    def test_rejects_negative_limit(self) -> None:
        with pytest.raises(ValueError, match="limit"):
            ListFilters(limit=-5)


class TestStorageConfig:
    def test_rejects_zero_thumbnail_dimension(self, tmp_path) -> None:
        with pytest.raises(ValueError, match="thumbnail"):
            StorageConfig(root=tmp_path, thumbnail_width=0)


class TestStepResult:
    def test_ok_reflects_error(self) -> None:
        assert StepResult("thumbnail", value="x").ok
        assert not StepResult("thumbnail", error=OSError("disk full")).ok
