"""
Dispatchers: deliver a presented record to a sink.

A dispatcher is any callable (record, config) → None. These classes are the
built-in ones: console, append-only file, and an in-memory ring buffer for
inspection. Per-call config keys override the instance defaults.

Dispatchers raise freely; the pipeline processor isolates failures.
"""

import sys
import threading
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Any, Mapping, Optional, TextIO

from arborlog.levels import LogLevel
from arborlog.records import LogRecord


class Dispatcher(ABC):
    """Base dispatcher."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def dispatch(self, record: LogRecord, config: Mapping[str, Any]) -> None:
        """Deliver one record. Called after the presenter has run."""
        ...

    def __call__(self, record: LogRecord, config: Mapping[str, Any] | None = None) -> None:
        self.dispatch(record, config or {})

    def flush(self) -> None:
        """Flush any buffered output. Override in buffered dispatchers."""
        pass

    def close(self) -> None:
        """Cleanup. Override if dispatcher holds resources."""
        self.flush()


def record_text(record: LogRecord) -> str:
    """The rendered message, falling back to the raw format string."""
    if record.presented_message is not None:
        return record.presented_message
    if record.message is not None:
        return record.message
    return record.message_fmt


class ConsoleDispatcher(Dispatcher):
    """
    Writes to stdout/stderr with optional ANSI color coding.
    stream="auto" sends ERROR+ to stderr and everything else to stdout.
    """

    COLORS = {
        10: "\033[36m",      # DEBUG: cyan
        20: "\033[37m",      # INFO: white/default
        30: "\033[33m",      # WARNING: yellow
        40: "\033[31m",      # ERROR: red
        50: "\033[1;91m",    # CRITICAL: bold bright red
    }
    RESET = "\033[0m"
    STREAMS = ("auto", "stdout", "stderr")

    def __init__(self, name: str = "console", stream: str = "auto", color: bool = False):
        super().__init__(name)
        if stream not in self.STREAMS:
            raise ValueError(f"stream must be one of {self.STREAMS}, got '{stream}'")
        self.stream = stream
        self.color = color

    def dispatch(self, record: LogRecord, config: Mapping[str, Any]) -> None:
        text = record_text(record)
        if config.get("color", self.color):
            text = f"{self._get_color(record.level_no)}{text}{self.RESET}"
        print(text, file=self._select_stream(record, config.get("stream", self.stream)), flush=True)

    def _select_stream(self, record: LogRecord, stream: str) -> TextIO:
        if stream == "stdout":
            return sys.stdout
        if stream == "stderr":
            return sys.stderr
        return sys.stderr if record.level_no >= LogLevel.ERROR else sys.stdout

    def _get_color(self, level: int) -> str:
        """Get ANSI color for level, falling back to nearest lower level."""
        if level in self.COLORS:
            return self.COLORS[level]
        for threshold in sorted(self.COLORS.keys(), reverse=True):
            if level >= threshold:
                return self.COLORS[threshold]
        return ""


class FileDispatcher(Dispatcher):
    """
    Appends one line per record to a file. Opens lazily and creates parent
    directories. No rotation.
    """

    def __init__(self, path: str | Path, name: str = "file", encoding: str = "utf-8"):
        super().__init__(name)
        self.path = Path(path)
        self.encoding = encoding
        self._file: Optional[TextIO] = None
        self._lock = threading.Lock()

    def _ensure_file(self) -> TextIO:
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "a", encoding=self.encoding)
        return self._file

    def dispatch(self, record: LogRecord, config: Mapping[str, Any]) -> None:
        text = record_text(record)
        with self._lock:
            handle = self._ensure_file()
            handle.write(text + "\n")
            if config.get("flush", True):
                handle.flush()

    def flush(self) -> None:
        with self._lock:
            if self._file:
                self._file.flush()

    def close(self) -> None:
        self.flush()
        with self._lock:
            if self._file:
                self._file.close()
                self._file = None


class MemoryDispatcher(Dispatcher):
    """
    Ring buffer of the last N dispatched records.
    Does not grow unbounded; useful for tests and live inspection.
    """

    def __init__(self, name: str = "memory", capacity: int = 10000):
        super().__init__(name)
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._buffer: deque[LogRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def dispatch(self, record: LogRecord, config: Mapping[str, Any]) -> None:
        with self._lock:
            self._buffer.append(record)

    def get_recent(
        self,
        n: int = 100,
        min_level: int | None = None,
        contains: str | None = None,
    ) -> list[LogRecord]:
        """Most recent records, oldest first, optionally filtered."""
        with self._lock:
            records = list(self._buffer)

        if min_level is not None:
            records = [r for r in records if r.level_no >= min_level]
        if contains:
            records = [r for r in records if contains in record_text(r)]

        return records[-n:]

    @property
    def messages(self) -> list[str]:
        with self._lock:
            return [record_text(r) for r in self._buffer]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    @property
    def count(self) -> int:
        return len(self._buffer)
