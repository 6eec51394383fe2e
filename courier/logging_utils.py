"""Logging setup for the courier command line."""

from __future__ import annotations

import json
import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Mapping, Optional

from rich.logging import RichHandler

DEFAULT_MAX_BYTES = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
DEFAULT_BACKUP_COUNT = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

SENSITIVE_HEADERS = {"cookie", "set-cookie", "authorization", "proxy-authorization"}
REQUEST_FIELDS = ("http_method", "url", "status_code")

_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@")


def redact_headers(headers: Mapping) -> dict:
    return {
        key: "[redacted]" if isinstance(key, str) and key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def redact_url(text: str) -> str:
    """Hide ``user:password@`` inside any URL found in ``text``."""

    return _URL_CREDENTIALS.sub(r"\g<scheme>[redacted]@", text)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, carrying request fields passed via ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
        }
        for name in REQUEST_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, sort_keys=True)


class SensitiveDataFilter(logging.Filter):
    """Strip credentials from header mappings and URLs before emitting."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, Mapping):
            record.args = redact_headers(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(redact_url(arg) if isinstance(arg, str) else arg for arg in record.args)
        if isinstance(record.msg, str):
            record.msg = redact_url(record.msg)
        url = getattr(record, "url", None)
        if isinstance(url, str):
            record.url = redact_url(url)
        return True


def configure_logging(
    level: int = logging.INFO,
    *,
    json_logs: bool = False,
    logfile: Optional[Path | str] = None,
    suppress: Optional[Iterable[str]] = None,
) -> None:
    """Send logs to a rich console and, when ``logfile`` is set, a rotating file."""

    redactor = SensitiveDataFilter()
    console = RichHandler(rich_tracebacks=True, markup=False, show_path=False, level=level)
    console.addFilter(redactor)
    handlers: list[logging.Handler] = [console]

    if logfile:
        path = Path(logfile)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=DEFAULT_MAX_BYTES,
            backupCount=DEFAULT_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.addFilter(redactor)
        file_handler.setFormatter(
            JsonFormatter() if json_logs else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # httpx/httpcore narrate every connection at DEBUG.
    for name in suppress or ("asyncio", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


__all__ = [
    "configure_logging",
    "JsonFormatter",
    "SensitiveDataFilter",
    "redact_headers",
    "redact_url",
]
