"""
Log records and record construction.

A LogRecord is created once per log call, then cloned per pipeline entry.
Core fields never change; the stage fields (message, presented_message,
transformer_error, presenter_error) and `extra` are filled in by producing
new records with evolve().
"""

import dataclasses
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__)) + os.sep


@dataclass(frozen=True)
class LogRecord:
    """
    Immutable log record.

    logger_name follows the pipeline owner while a record propagates;
    source_logger_name always names the logger the call was made on.
    """
    level_no: int
    level_name: str
    logger_name: str
    source_logger_name: str
    message_fmt: str = ""
    args: tuple[Any, ...] = ()
    context: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    filename: str = "unknown"
    lineno: int = 0

    # Populated during pipeline execution
    message: str | None = None
    presented_message: str | None = None
    transformer_error: str | None = None
    presenter_error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        level_no: int,
        level_name: str,
        logger_name: str,
        message_fmt: str = "",
        args: tuple[Any, ...] = (),
        context: Mapping[str, Any] | None = None,
        filename: str = "unknown",
        lineno: int = 0,
    ) -> "LogRecord":
        """Factory with auto-timestamp. logger_name doubles as the source logger."""
        return cls(
            level_no=level_no,
            level_name=level_name,
            logger_name=logger_name,
            source_logger_name=logger_name,
            message_fmt=message_fmt,
            args=tuple(args),
            context=dict(context) if context is not None else None,
            filename=filename,
            lineno=lineno,
        )

    @property
    def arg_count(self) -> int:
        return len(self.args)

    def evolve(self, **changes: Any) -> "LogRecord":
        """Copy with some fields replaced."""
        return dataclasses.replace(self, **changes)

    def clone_for(self, owner_name: str | None) -> "LogRecord":
        """Working copy for one pipeline entry, with its own context/extra containers."""
        return dataclasses.replace(
            self,
            logger_name=owner_name if owner_name is not None else self.logger_name,
            context=_copy_nested(self.context) if self.context is not None else None,
            extra=_copy_nested(self.extra),
        )

    def formatted_message(self) -> str:
        """message_fmt with args substituted (FORMAT ERROR marker on mismatch)."""
        return format_message(self.message_fmt, self.args)


def _copy_nested(value: Any) -> Any:
    """
    Copy mappings, lists and sets at every depth; other values are shared.
    Leaves are never copied, so uncopyable values (locks, sockets) pass through.
    """
    if isinstance(value, Mapping):
        return {k: _copy_nested(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy_nested(v) for v in value]
    if isinstance(value, set):
        return set(value)
    return value


# ── Argument parsing ──────────────────────────────────────────────────

def parse_log_args(*call_args: Any) -> tuple[str, tuple[Any, ...], dict[str, Any] | None]:
    """
    Split the variadic arguments of a log call into (message_fmt, args, context).

        log.info()                              → ("", (), None)
        log.info("User %s", "jane")             → ("User %s", ("jane",), None)
        log.info({"user": "jane"}, "Login %d", 3) → ("Login %d", (3,), {"user": "jane"})
        log.info({"msg": "hi"})                 → ("hi", (), {"msg": "hi"})
        log.info(42)                            → ("42", (), None)
    """
    if not call_args:
        return "", (), None

    first, rest = call_args[0], call_args[1:]
    if isinstance(first, Mapping):
        context = dict(first)
        if not rest:
            msg = context.get("msg")
            return ("" if msg is None else str(msg)), (), context
        message_fmt, args = _parse_message(rest)
        return message_fmt, args, context

    message_fmt, args = _parse_message(call_args)
    return message_fmt, args, None


def _parse_message(values: tuple[Any, ...]) -> tuple[str, tuple[Any, ...]]:
    first, rest = values[0], values[1:]
    if isinstance(first, str):
        return first, tuple(rest)
    return str(first), tuple(rest)


def format_message(message_fmt: str, args: tuple[Any, ...] | list[Any]) -> str:
    """printf-style substitution. Never raises: mismatches get a FORMAT ERROR marker."""
    if message_fmt is None:
        return ""
    if not args:
        return message_fmt
    try:
        return message_fmt % tuple(args)
    except (TypeError, ValueError, KeyError) as exc:
        return f"{message_fmt} [FORMAT ERROR: {exc}]"


# ── Record construction ───────────────────────────────────────────────

def find_caller() -> tuple[str, int]:
    """(basename, lineno) of the first frame outside this package."""
    frame = sys._getframe(1)
    while frame is not None:
        path = os.path.abspath(frame.f_code.co_filename)
        if not path.startswith(_PACKAGE_DIR):
            return os.path.basename(path), frame.f_lineno
        frame = frame.f_back
    return "unknown", 0


def build_record(
    logger_name: str,
    level_no: int,
    level_name: str,
    call_args: tuple[Any, ...],
) -> LogRecord:
    """Parse call arguments and stamp time and call site onto a new record."""
    message_fmt, args, context = parse_log_args(*call_args)
    filename, lineno = find_caller()
    return LogRecord(
        level_no=level_no,
        level_name=level_name,
        logger_name=logger_name,
        source_logger_name=logger_name,
        message_fmt=message_fmt,
        args=args,
        context=context,
        timestamp=datetime.now(timezone.utc),
        filename=filename,
        lineno=lineno,
    )
