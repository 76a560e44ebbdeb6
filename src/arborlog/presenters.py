"""
Presenters: render a LogRecord to a string.

  - text:     "{timestamp} {level_name} [{logger_name}] {message}"
  - detailed: text plus call site and context key=value pairs
  - json:     one JSON object per line, for machine parsing

All built-ins substitute args into message_fmt with format_message(), so an
argument mismatch renders a [FORMAT ERROR: ...] marker instead of raising.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from arborlog.records import LogRecord, format_message

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class Presenter(ABC):
    """Base presenter. Transforms LogRecord → string."""

    def __init__(self, timezone: str = "utc"):
        if timezone not in ("utc", "local"):
            raise ValueError(f"timezone must be 'utc' or 'local', got '{timezone}'")
        self.timezone = timezone

    @abstractmethod
    def present(self, record: LogRecord) -> str: ...

    def __call__(self, record: LogRecord) -> str:
        return self.present(record)

    def _timestamp(self, record: LogRecord) -> datetime:
        return record.timestamp.astimezone() if self.timezone == "local" else record.timestamp


class TextPresenter(Presenter):
    """
    Single-line format for terminals and plain files.
    Example: 2026-02-12 14:32:05 WARNING [app.db] Slow query took 812ms
    """

    def present(self, record: LogRecord) -> str:
        ts = self._timestamp(record).strftime(TIMESTAMP_FORMAT)
        return f"{ts} {record.level_name} [{record.logger_name}] {render_message(record)}"


class DetailedPresenter(Presenter):
    """
    Text format with call site and context.
    Example: 2026-02-12 14:32:05.123456 [    INFO] [app.db] pool.py:42: Connected | host=db1 retry=2
    """

    def present(self, record: LogRecord) -> str:
        ts = self._timestamp(record).strftime(f"{TIMESTAMP_FORMAT}.%f")
        parts = [
            f"{ts} [{record.level_name:>8}] [{record.logger_name}]",
            f"{record.filename}:{record.lineno}:",
            format_message(record.message_fmt, record.args),
        ]

        extras = {**(record.context or {}), **record.extra}
        extras = {k: v for k, v in extras.items() if k != "msg" and v is not None}
        if extras:
            parts.append("| " + " ".join(f"{k}={_format_value(v)}" for k, v in extras.items()))

        return " ".join(parts)


class JsonPresenter(Presenter):
    """Structured JSON. One object per line unless pretty=True."""

    def __init__(self, timezone: str = "utc", pretty: bool = False):
        super().__init__(timezone)
        if not isinstance(pretty, bool):
            raise TypeError("JsonPresenter 'pretty' option must be a bool")
        self.pretty = pretty

    def present(self, record: LogRecord) -> str:
        obj: dict[str, Any] = {
            "timestamp": self._timestamp(record).isoformat(),
            "level": record.level_no,
            "level_name": record.level_name,
            "logger": record.logger_name,
            "source_logger": record.source_logger_name,
            "message": format_message(record.message_fmt, record.args),
            "message_fmt": record.message_fmt,
            "args": [_serialize_value(a) for a in record.args],
            "filename": record.filename,
            "lineno": record.lineno,
        }
        if record.context:
            obj["context"] = {str(k): _serialize_value(v) for k, v in record.context.items()}
        if record.extra:
            obj["extra"] = {str(k): _serialize_value(v) for k, v in record.extra.items()}
        if record.transformer_error:
            obj["transformer_error"] = record.transformer_error
        return json.dumps(obj, default=str, indent=2 if self.pretty else None)


def render_message(record: LogRecord) -> str:
    """Message text; a context-only record renders as {k=v, ...}."""
    if record.message_fmt or record.args:
        return format_message(record.message_fmt, record.args)
    if record.context:
        return "{" + ", ".join(f"{k}={v}" for k, v in record.context.items()) + "}"
    return ""


def _format_value(v: Any) -> str:
    """Format a context value for detailed display."""
    if isinstance(v, float):
        return f"{v:.4f}"
    return str(v)


def _serialize_value(v: Any) -> Any:
    """Make a value JSON-serializable."""
    if isinstance(v, (str, int, float, bool, type(None))):
        return v
    if isinstance(v, (list, tuple)):
        return [_serialize_value(i) for i in v]
    if isinstance(v, dict):
        return {str(k): _serialize_value(val) for k, val in v.items()}
    return str(v)
