# countervalues/utils/logging.py
"""
Logging configuration for the countervalues engine.

The engine only ever calls logging.getLogger(__name__); it never installs
handlers on import. Host applications that have no logging of their own
call setup_logging() once to get:
- The level and format from settings (or arguments)
- The sync id on every record, so interleaved fetch logs group by pass
- One JSON object per line when COUNTERVALUES_LOG_FORMAT=json
- httpx/httpcore request chatter kept at WARNING

Usage:
    from countervalues.utils import setup_logging

    setup_logging()
    setup_logging(level="DEBUG", log_format="json")

Log Levels:
    DEBUG   - Per-pair scheduling decisions, skipped pairs, cache rebuilds
    INFO    - Pass summaries (jobs planned, updates applied)
    WARNING - Transport retries in progress
    ERROR   - Failed historical or latest fetches
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from countervalues.config import settings
from countervalues.utils.context import get_sync_id

# Placeholder outside of a sync pass
NO_SYNC_ID = "-"

TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(sync_id)s] %(name)s: %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")

# Attributes every LogRecord has; anything else came in through `extra=`
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "sync_id"}


class SyncIdFilter(logging.Filter):
    """Stamp records with the sync id of the pass that emitted them."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.sync_id = get_sync_id() or NO_SYNC_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

        {"timestamp": "...", "level": "ERROR", "logger": "...",
         "sync_id": "3f2a9c0d1b7e", "message": "...", "extra": {...}}

    Values passed through `extra=` that JSON cannot encode are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "sync_id": getattr(record, "sync_id", NO_SYNC_ID),
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(
        level: str | int | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
        stream: TextIO | None = None,
) -> None:
    """
    Install a single stream handler on the root logger.

    Args:
        level: Level name or number. Defaults to settings.log_level.
        log_format: "text" or "json". Defaults to settings.log_format.
        suppress_noisy_loggers: Keep HTTP client loggers at WARNING.
        stream: Output stream. Defaults to stdout.

    Raises:
        ValueError: If level is not a known log level
    """
    log_level = _get_log_level(level if level is not None else settings.log_level)
    format_type = (log_format or settings.log_format).lower()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(SyncIdFilter())
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, TEXT_DATE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    if suppress_noisy_loggers:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging ready (level={logging.getLevelName(log_level)}, format={format_type})"
    )


def _get_log_level(level: str | int) -> int:
    """
    Resolve a level name ("debug", " WARN ") or number to a logging level.

    Raises:
        ValueError: If the name is unknown
    """
    if isinstance(level, int):
        return level

    name = level.strip().upper()
    if name == "WARN":
        name = "WARNING"
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(
            f"Invalid log level: '{level}'. "
            "Use one of DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    return resolved
