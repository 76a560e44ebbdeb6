"""
LoggerNode: one named point in the logger hierarchy.

Usage:
    registry = LoggerRegistry()
    log = registry.get_or_create("app.db")
    log.add_pipeline(presenter=TextPresenter(), dispatcher=ConsoleDispatcher())
    log.info("Connected to %s", "primary")
    log.warn({"retry": 2}, "Slow query took %dms", 812)

The hot path is the level gate in log(): a message below the effective
level returns before any record is built.
"""

import functools
from typing import TYPE_CHECKING, Any, Mapping

from arborlog.errors import CycleDetectedError
from arborlog.levels import LogLevel
from arborlog.pipeline import NodeDescriptor, PipelineEntry
from arborlog.records import build_record

if TYPE_CHECKING:
    from arborlog.registry import LoggerRegistry

ROOT_NAME = "_root"


class LoggerNode:
    """Hierarchy entity holding level, propagate flag and its own pipelines."""

    def __init__(
        self,
        name: str,
        registry: "LoggerRegistry",
        parent: "LoggerNode | None" = None,
        level: int = LogLevel.NOTSET,
        propagate: bool = True,
    ) -> None:
        self._name = name
        self._registry = registry
        self.parent = parent
        self.level = int(level)
        self.propagate = propagate
        self.pipelines: list[PipelineEntry] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def registry(self) -> "LoggerRegistry":
        return self._registry

    @property
    def is_root(self) -> bool:
        return self._name == ROOT_NAME

    def __repr__(self) -> str:
        return (
            f"<LoggerNode {self._name!r} level={self._registry.levels.name_of(self.level)} "
            f"propagate={self.propagate} pipelines={len(self.pipelines)}>"
        )

    # ── Configuration ─────────────────────────────────────────────

    def set_level(self, level: int | str) -> None:
        """Set an explicit level (int or level name). NOTSET means inherit."""
        self.level = self._registry.levels.resolve(level)

    def set_propagate(self, propagate: bool) -> None:
        if not isinstance(propagate, bool):
            raise TypeError(f"Propagate must be a bool, got {type(propagate).__name__}")
        self.propagate = propagate

    def add_pipeline(self, entry: PipelineEntry | Mapping[str, Any] | None = None, **kwargs: Any) -> PipelineEntry:
        """
        Append a pipeline entry. Accepts a PipelineEntry, a mapping of
        PipelineEntry.create() arguments, or those arguments as keywords.
        """
        if entry is None:
            entry = PipelineEntry.create(**kwargs)
        elif isinstance(entry, Mapping):
            if kwargs:
                raise TypeError("Pass either a pipeline mapping or keyword arguments, not both")
            entry = PipelineEntry.create(**entry)
        elif not isinstance(entry, PipelineEntry):
            raise TypeError(f"Expected PipelineEntry or mapping, got {type(entry).__name__}")
        elif kwargs:
            raise TypeError("Keyword arguments are not allowed with a PipelineEntry")

        stored = entry.with_owner(self)
        self.pipelines.append(stored)
        return stored

    def remove_pipelines(self) -> list[PipelineEntry]:
        """Detach and return all of this node's own pipelines."""
        removed, self.pipelines = self.pipelines, []
        return removed

    def apply_descriptor(self, descriptor: NodeDescriptor) -> None:
        """Apply a canonical descriptor. Pipelines replace the current ones."""
        if descriptor.level is not None:
            self.level = int(descriptor.level)
        self.propagate = descriptor.propagate
        self.pipelines = [entry.with_owner(self) for entry in descriptor.pipelines]

    # ── Resolution ────────────────────────────────────────────────

    def effective_level(self) -> int:
        """
        First explicit level walking up from this node. The root falls back
        to the registry default; an orphaned non-root node falls back to INFO.
        """
        seen: set[int] = set()
        node: LoggerNode = self
        while True:
            if id(node) in seen:
                raise CycleDetectedError(self._name, node.name)
            seen.add(id(node))

            if node.level != LogLevel.NOTSET:
                return node.level
            if node.is_root:
                return self._registry.default_level
            if node.parent is None:
                return LogLevel.INFO
            node = node.parent

    def is_enabled_for(self, level: int) -> bool:
        return level >= self.effective_level()

    def get_effective_dispatch_entries(self) -> list[PipelineEntry]:
        """
        Every entry that should see a message logged here, deepest first.

        Climbs while propagation holds; the first non-propagating node still
        contributes its own entries. Owner metadata is stamped fresh.
        """
        entries: list[PipelineEntry] = []
        seen: set[int] = set()
        node: LoggerNode | None = self
        while node is not None:
            if id(node) in seen:
                raise CycleDetectedError(self._name, node.name)
            seen.add(id(node))

            entries.extend(entry.with_owner(node) for entry in node.pipelines)
            if not node.propagate:
                break
            node = node.parent
        return entries

    # ── Logging ───────────────────────────────────────────────────

    def log(self, level: int, *args: Any) -> None:
        """
        Emit a message at `level`.

        Arguments follow the record builder rules: an optional leading
        context mapping, then a printf-style format string and its args.
        """
        level = self._registry.levels.check_emittable(level)
        if level < self.effective_level():
            return

        record = build_record(
            self._name, level, self._registry.levels.name_of(level), args
        )
        self._registry.processor.process(record, self.get_effective_dispatch_entries())

    def debug(self, *args: Any) -> None:
        self.log(LogLevel.DEBUG, *args)

    def info(self, *args: Any) -> None:
        self.log(LogLevel.INFO, *args)

    def warn(self, *args: Any) -> None:
        self.log(LogLevel.WARNING, *args)

    warning = warn

    def error(self, *args: Any) -> None:
        self.log(LogLevel.ERROR, *args)

    def critical(self, *args: Any) -> None:
        self.log(LogLevel.CRITICAL, *args)

    def __getattr__(self, attr: str) -> Any:
        # Custom levels: registry.levels.set_custom_levels({"verbose": 15})
        # makes node.verbose(...) log at 15.
        if attr.startswith("_"):
            raise AttributeError(attr)
        value = self._registry.levels.custom_value(attr)
        if value is None:
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{attr}'")
        return functools.partial(self.log, value)

    # ── Introspection ─────────────────────────────────────────────

    def get_config(self) -> dict[str, Any]:
        """Snapshot of this node's configuration."""
        levels = self._registry.levels
        effective = self.effective_level()
        return {
            "name": self._name,
            "level": self.level,
            "level_name": levels.name_of(self.level),
            "effective_level": effective,
            "effective_level_name": levels.name_of(effective),
            "propagate": self.propagate,
            "parent_name": self.parent.name if self.parent is not None else None,
            "pipelines": [entry.describe() for entry in self.pipelines],
        }


# Names a custom level cannot take: node.<name>(...) must fall through to __getattr__.
RESERVED_LEVEL_NAMES = frozenset(
    name for name in dir(LoggerNode) if not name.startswith("_")
) | {"parent", "level", "propagate", "pipelines"}
