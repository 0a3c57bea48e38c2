"""Loguru logging configuration for the CLI and library callers.

Emits human-readable text to stderr by default, or one JSON object per line
when ``json_logs`` is set. Records bound with ``json_output=True`` are always
mirrored as JSON. A ``log_dir`` adds a daily-rotated file sink.
"""

import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"
_LOG_FILENAME = "media-vault.log"


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, *, json_logs: bool = False) -> None:
    """Replace all Loguru sinks.

    Args:
        log_level: Minimum level to emit (case-insensitive).
        log_dir: Optional directory for ``media-vault.log`` (rotated every
            24 hours, retained 7 days).
        json_logs: Serialize every stderr record as JSON.
    """
    level = log_level.upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_LOG_FORMAT)
        logger.add(
            sys.stderr,
            level=level,
            serialize=True,
            filter=lambda record: record["extra"].get("json_output", False),
        )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / _LOG_FILENAME,
            level=level,
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )
