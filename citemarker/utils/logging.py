"""
Logging for citemarker.

Markers are written to stdout by the command line entry, so every log
handler here writes to stderr or a file. Records can carry the build
context (style, citation keys, marker kind) and are rendered either as
plain text or as single-line JSON.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Record attributes describing the marker build a record belongs to
CONTEXT_FIELDS = ("style_name", "citation_keys", "marker_kind")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, build context included when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (name, getattr(record, name))
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(payload, default=str)


def _build_handlers(formatter: logging.Formatter, log_file: Optional[str]) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the root logger.

    Arguments left as None fall back to the ``logging`` section of the
    settings.
    """
    from citemarker.config import get_settings

    config = get_settings().logging

    if config.json_format:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(format_string or config.format)

    logging.basicConfig(
        level=getattr(logging, (level or config.level).upper()),
        handlers=_build_handlers(formatter, log_file or config.file),
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext(logging.LoggerAdapter):
    """
    Logger view that stamps build context on its own records.

    Usage:
        with LogContext(logger, style_name="Default", citation_keys="a1,a2") as log:
            log.debug("Building marker")

    Only records logged through the adapter carry the context, so
    concurrent builds never see each other's keys.
    """

    def __init__(self, logger: logging.Logger, **context):
        super().__init__(logger, context)

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def __enter__(self) -> "LogContext":
        return self

    def __exit__(self, *exc_info) -> None:
        return None
