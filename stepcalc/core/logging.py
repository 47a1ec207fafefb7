"""
Structured logging configuration.

Library modules log through ``get_logger(__name__)`` and attach structured
fields as ``extra={"extra_data": {...}}``; the CLI and HTTP front end use
``get_context_logger`` to carry fixed fields such as the component name.
``setup_logging`` renders those fields as JSON or as ``key=value`` text.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from .config import Settings, settings as default_settings

# Third-party loggers kept at WARNING regardless of LOG_LEVEL
QUIET_LOGGERS = ("uvicorn.access", "uvicorn.error")


def _extra_data(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "extra_data", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, structured fields merged at top level"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(_extra_data(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text with structured fields appended as key=value"""

    def __init__(self):
        super().__init__(fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = " ".join(f"{key}={value!r}" for key, value in _extra_data(record).items())
        return f"{line} [{fields}]" if fields else line


def _handlers(settings: Settings, level: int) -> List[logging.Handler]:
    formatter = StructuredFormatter() if settings.LOG_FORMAT == "json" else TextFormatter()

    # stderr keeps CLI results on stdout clean
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.LOG_FILE:
        path = Path(settings.LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
    return handlers


def setup_logging(settings: Settings | None = None) -> None:
    """Configure the root logger from LOG_LEVEL, LOG_FORMAT and LOG_FILE"""
    settings = settings or default_settings
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, handlers=_handlers(settings, level), force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """Merges the adapter's fixed context with per-call ``extra_data``"""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        fields = {**self.extra, **kwargs.pop("extra_data", {})}
        kwargs.setdefault("extra", {})["extra_data"] = fields
        return msg, kwargs


def get_context_logger(name: str, **context) -> LoggerAdapter:
    """Logger that tags every record with ``context`` (e.g. ``component="api"``)"""
    return LoggerAdapter(get_logger(name), context)
