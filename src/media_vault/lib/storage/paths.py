"""Date-bucketed path policy.

Uploads are stored under ``{root}/{year}/{month}/{day}/`` where the date is
the upload instant in the host-local calendar. The same segments, joined
with ``-``, name the flat-file index's per-day shard.
"""

import datetime as dt
from datetime import datetime, time

THUMBNAIL_DIR = "thumbnails"
METADATA_DIR = "metadata"
INDEX_FILENAME = "index.json"


def bucket_path(timestamp: datetime) -> tuple[str, str, str]:
    """Map an upload timestamp to ``(year, month, day)`` path segments.

    Args:
        timestamp: The upload instant. Aware values are converted to the
            host-local zone; naive values are taken as already local.

    Returns:
        Zero-padded segments, e.g. ``("2026", "02", "07")``.
    """
    local = timestamp.astimezone() if timestamp.tzinfo is not None else timestamp
    return (f"{local.year:04d}", f"{local.month:02d}", f"{local.day:02d}")


def bucket_dir(timestamp: datetime) -> str:
    """Relative bucket directory, e.g. ``2026/02/07``."""
    return "/".join(bucket_path(timestamp))


def shard_name(timestamp: datetime) -> str:
    """Per-day metadata shard filename, e.g. ``2026-02-07.json``."""
    return "-".join(bucket_path(timestamp)) + ".json"


def thumbnail_relpath(record_id: str) -> str:
    """Relative thumbnail path for a record id."""
    return f"{THUMBNAIL_DIR}/{record_id}.jpg"


def local_day_bounds(day: dt.date) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` instants covering a host-local calendar day.

    Both bounds are aware datetimes in the host-local zone so they compare
    correctly against UTC timestamps.
    """
    start = datetime.combine(day, time.min).astimezone()
    end = datetime.combine(day + dt.timedelta(days=1), time.min).astimezone()
    return start, end
