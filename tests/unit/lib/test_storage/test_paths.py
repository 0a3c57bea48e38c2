"""Unit tests for the date-bucketed path policy."""

from datetime import UTC, date, datetime

from media_vault.lib.storage.paths import (
    bucket_dir,
    bucket_path,
    local_day_bounds,
    shard_name,
    thumbnail_relpath,
)


class TestBucketPath:
    """Tests for bucket_path and its joined forms."""

    def test_zero_pads_month_and_day(self) -> None:
        assert bucket_path(datetime(2026, 2, 7, 12, 0)) == ("2026", "02", "07")

    def test_naive_timestamp_is_taken_as_local(self) -> None:
        assert bucket_path(datetime(2025, 12, 31, 23, 59)) == ("2025", "12", "31")

    def test_aware_timestamp_uses_local_calendar(self) -> None:
        ts = datetime(2026, 6, 15, 12, 0, tzinfo=UTC)
        local = ts.astimezone()
        assert bucket_path(ts) == (f"{local.year:04d}", f"{local.month:02d}", f"{local.day:02d}")

    def test_bucket_dir_joins_with_slash(self) -> None:
        assert bucket_dir(datetime(2026, 2, 7, 9, 30)) == "2026/02/07"

    def test_shard_name_joins_with_dash(self) -> None:
        assert shard_name(datetime(2026, 2, 7, 9, 30)) == "2026-02-07.json"

    def test_thumbnail_relpath(self) -> None:
        assert thumbnail_relpath("abc") == "thumbnails/abc.jpg"


class TestLocalDayBounds:
    """Tests for local_day_bounds."""

    def test_bounds_are_half_open_and_aware(self) -> None:
        start, end = local_day_bounds(date(2026, 3, 10))
        assert start.tzinfo is not None
        assert end.tzinfo is not None
        assert start < end
        assert bucket_path(start) == ("2026", "03", "10")
        assert bucket_path(end) == ("2026", "03", "11")

    def test_local_noon_falls_inside(self) -> None:
        start, end = local_day_bounds(date(2026, 3, 10))
        noon = datetime(2026, 3, 10, 12, 0).astimezone()
        assert start <= noon < end
