"""Logging setup for the emulator's command-line entry point.

:class:`~greasyspoon_emulator.message.HttpMessage` logs each captured header
snapshot at debug level as a ``{name: value}`` mapping. Every handler installed
here passes records through :class:`SensitiveDataFilter`, so credentials carried
in those headers never reach the console or the log file.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Mapping
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_MAX_BYTES = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
DEFAULT_BACKUP_COUNT = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

SENSITIVE_HEADERS = frozenset({"cookie", "set-cookie", "authorization", "proxy-authorization"})
REDACTED = "[redacted]"

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Attributes HttpMessage attaches through ``extra=``; copied into JSON output.
_CONTEXT_FIELDS = ("url", "error_kind")


def redact_headers(headers: Mapping[object, object], names: Iterable[str] = SENSITIVE_HEADERS) -> dict:
    """Return a copy of ``headers`` with the values of ``names`` replaced."""

    hidden = {name.lower() for name in names}
    return {
        key: REDACTED if isinstance(key, str) and key.lower() in hidden else value
        for key, value in headers.items()
    }


class SensitiveDataFilter(logging.Filter):
    """Redact header values passed to a log call as a mapping."""

    def __init__(self, extra_names: Iterable[str] = ()) -> None:
        super().__init__(name="")
        self.names = SENSITIVE_HEADERS | {name.lower() for name in extra_names}

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, Mapping):
            record.args = redact_headers(record.args, self.names)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, including the fetched URL when known."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, sort_keys=True)


def _console_handler(level: int) -> logging.Handler:
    # stdout is reserved for the emulated message output.
    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        markup=False,
        show_path=False,
        level=level,
    )


def _file_handler(logfile: Path | str, json_logs: bool) -> logging.Handler:
    path = Path(logfile)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=DEFAULT_MAX_BYTES,
        backupCount=DEFAULT_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(JsonFormatter() if json_logs else logging.Formatter(TEXT_FORMAT))
    return handler


def configure_logging(
    level: int = logging.INFO,
    *,
    json_logs: bool = False,
    logfile: Optional[Path | str] = None,
    redact: Iterable[str] = (),
    suppress: Optional[Iterable[str]] = None,
) -> None:
    """Install console (and optional rotating file) handlers on the root logger.

    ``redact`` names headers to hide in addition to :data:`SENSITIVE_HEADERS`.
    """

    redaction = SensitiveDataFilter(redact)
    handlers: list[logging.Handler] = [_console_handler(level)]
    if logfile:
        handlers.append(_file_handler(logfile, json_logs))
    for handler in handlers:
        handler.addFilter(redaction)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in suppress or ("urllib3", "charset_normalizer"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


__all__ = [
    "REDACTED",
    "SENSITIVE_HEADERS",
    "JsonFormatter",
    "SensitiveDataFilter",
    "configure_logging",
    "redact_headers",
]
