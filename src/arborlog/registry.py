"""
LoggerRegistry: name → LoggerNode map with lazy ancestor creation.

An explicit value rather than a process-wide singleton: construct one,
hand it to whatever needs loggers, and reset() it between test cases.

    registry = LoggerRegistry(default_level="info")
    db = registry.get_or_create("app.db.pool")    # also creates "app", "app.db"
    db.parent.name                                 # → "app.db"
    registry.get_or_create("app.db.pool") is db    # → True
"""

import sys
from typing import Any, Iterator, TextIO

from arborlog import debug
from arborlog.errors import InvalidLevelError, InvalidNameError
from arborlog.levels import LevelTable, LogLevel
from arborlog.node import RESERVED_LEVEL_NAMES, ROOT_NAME, LoggerNode
from arborlog.pipeline import NodeDescriptor
from arborlog.processor import PipelineProcessor

RESERVED_PREFIX = "_"


class LoggerRegistry:
    """Owns the logger tree, the level table and the diagnostics stream."""

    def __init__(
        self,
        default_level: int | str = LogLevel.WARNING,
        error_stream: TextIO | None = None,
    ) -> None:
        self.levels = LevelTable(RESERVED_LEVEL_NAMES)
        self._default_level = self._resolve_default(default_level)
        self._error_stream = error_stream
        self.processor = PipelineProcessor(lambda: self.error_stream)
        self._nodes: dict[str, LoggerNode] = {}
        self._root = self._create_root()

    # ── Settings ──────────────────────────────────────────────────

    @property
    def default_level(self) -> int:
        """Level the root falls back to when its own level is NOTSET."""
        return self._default_level

    @default_level.setter
    def default_level(self, value: int | str) -> None:
        """Also moves the root to the new level."""
        self._default_level = self._resolve_default(value)
        self._root.level = self._default_level

    @property
    def error_stream(self) -> TextIO:
        """Diagnostics stream. Defaults to whatever sys.stderr is at write time."""
        return self._error_stream if self._error_stream is not None else sys.stderr

    @error_stream.setter
    def error_stream(self, stream: TextIO | None) -> None:
        self._error_stream = stream

    @property
    def root(self) -> LoggerNode:
        return self._root

    # ── Lookup ────────────────────────────────────────────────────

    def get_or_create(self, name: str, descriptor: NodeDescriptor | None = None) -> LoggerNode:
        """
        Return the node for `name`, creating it and any missing ancestors.

        A cached node is returned unchanged; `descriptor` only applies to a
        node created by this call.
        """
        validate_name(name)
        if name == ROOT_NAME:
            return self._root

        cached = self._nodes.get(name)
        if cached is not None:
            return cached

        segments = name.split(".")
        parent = self._root
        for depth in range(1, len(segments)):
            prefix = ".".join(segments[:depth])
            ancestor = self._nodes.get(prefix)
            if ancestor is None:
                ancestor = self._add_node(prefix, parent)
            parent = ancestor

        node = self._add_node(name, parent)
        if descriptor is not None:
            node.apply_descriptor(descriptor)
        return node

    def get(self, name: str) -> LoggerNode | None:
        """Existing node or None. Never creates."""
        return self._nodes.get(name)

    def names(self) -> list[str]:
        return sorted(self._nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[LoggerNode]:
        return iter([self._nodes[name] for name in sorted(self._nodes)])

    # ── Lifecycle ─────────────────────────────────────────────────

    def reset(self) -> None:
        """Drop every node and custom level; recreate an empty root."""
        self.close()
        self._nodes.clear()
        self.levels.clear_custom_levels()
        self._root = self._create_root()

    def flush(self) -> None:
        for dispatcher in self._attached_dispatchers():
            flush = getattr(dispatcher, "flush", None)
            if callable(flush):
                flush()

    def close(self) -> None:
        """Close every distinct dispatcher that exposes close()."""
        for dispatcher in self._attached_dispatchers():
            close = getattr(dispatcher, "close", None)
            if callable(close):
                close()

    # ── Status ────────────────────────────────────────────────────

    def status(self) -> dict[str, Any]:
        """Current tree state for display or inspection."""
        return {
            "default_level": self._default_level,
            "default_level_name": self.levels.name_of(self._default_level),
            "custom_levels": self.levels.custom,
            "loggers": {node.name: node.get_config() for node in self},
        }

    # ── Internals ─────────────────────────────────────────────────

    def _create_root(self) -> LoggerNode:
        root = LoggerNode(ROOT_NAME, self, parent=None, level=self._default_level)
        self._nodes[ROOT_NAME] = root
        return root

    def _add_node(self, name: str, parent: LoggerNode) -> LoggerNode:
        node = LoggerNode(name, self, parent=parent)
        self._nodes[name] = node
        debug.trace("created logger '%s' (parent '%s')", name, parent.name)
        return node

    def _resolve_default(self, value: int | str) -> int:
        level = self.levels.resolve(value)
        if level == LogLevel.NOTSET:
            raise InvalidLevelError("Default level cannot be NOTSET")
        return level

    def _attached_dispatchers(self) -> list[Any]:
        seen: set[int] = set()
        dispatchers = []
        for node in self._nodes.values():
            for entry in node.pipelines:
                if id(entry.dispatcher) not in seen:
                    seen.add(id(entry.dispatcher))
                    dispatchers.append(entry.dispatcher)
        return dispatchers


def validate_name(name: object) -> None:
    """Reject non-strings, empty names, empty segments and reserved names."""
    if not isinstance(name, str):
        raise InvalidNameError(f"Logger name must be a string, got {type(name).__name__}")
    if name == "":
        raise InvalidNameError("Logger name cannot be an empty string")
    if name == ROOT_NAME:
        return
    if name.startswith(RESERVED_PREFIX):
        raise InvalidNameError(
            f"Logger names starting with '{RESERVED_PREFIX}' are reserved (except '{ROOT_NAME}'): {name}"
        )
    if any(segment == "" for segment in name.split(".")):
        raise InvalidNameError(f"Logger name has an empty segment: '{name}'")
