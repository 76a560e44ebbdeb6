"""
Pipeline entries and node descriptors.

A PipelineEntry is one (transformers → presenter → dispatcher) unit attached
to a logger node. Entries stored on a node carry the owner's name; the
owner's level and propagate flag are re-stamped every time entries are
collected for a log call, so they always describe the owner as it is now.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from arborlog.components import Component, callable_name
from arborlog.levels import LogLevel

if TYPE_CHECKING:
    from arborlog.node import LoggerNode
    from arborlog.records import LogRecord

DispatcherFunc = Callable[["LogRecord", Mapping[str, Any]], None]


@dataclass(frozen=True)
class PipelineEntry:
    presenter: Component
    dispatcher: DispatcherFunc
    transformers: tuple[Component, ...] = ()
    config: Mapping[str, Any] = field(default_factory=dict)
    level: int = LogLevel.NOTSET

    owner_name: str | None = None
    owner_level: int | None = None
    owner_propagate: bool | None = None

    @classmethod
    def create(
        cls,
        presenter: Any,
        dispatcher: Any,
        transformers: Iterable[Any] | None = None,
        config: Mapping[str, Any] | None = None,
        level: int = LogLevel.NOTSET,
    ) -> "PipelineEntry":
        """
        Build an entry from loosely-typed stage declarations.

        The dispatcher may be given as a Component or (callable, config) pair;
        its config is merged under the entry config (entry keys win).
        """
        if isinstance(transformers, (str, bytes)) or (
            transformers is not None and callable(transformers)
        ):
            raise TypeError("transformers must be an iterable of stages")

        dispatcher_component = Component.normalize(dispatcher)
        merged: dict[str, Any] = dict(dispatcher_component.config or {})
        if config is not None:
            if not isinstance(config, Mapping):
                raise TypeError(f"Pipeline config must be a mapping, got {type(config).__name__}")
            merged.update(config)

        if isinstance(level, bool) or not isinstance(level, int):
            raise TypeError(f"Pipeline level must be an int, got {type(level).__name__}")

        return cls(
            presenter=Component.normalize(presenter),
            dispatcher=dispatcher_component.func,
            transformers=tuple(Component.normalize(t) for t in (transformers or ())),
            config=merged,
            level=int(level),
        )

    def accepts(self, level_no: int) -> bool:
        """Per-entry threshold. NOTSET accepts everything."""
        return self.level == LogLevel.NOTSET or level_no >= self.level

    def with_owner(self, node: "LoggerNode") -> "PipelineEntry":
        """Copy stamped with the node's current name, level and propagate flag."""
        return dataclasses.replace(
            self,
            owner_name=node.name,
            owner_level=node.level,
            owner_propagate=node.propagate,
        )

    def describe(self) -> dict[str, Any]:
        return {
            "transformers": [t.describe() for t in self.transformers],
            "presenter": self.presenter.describe(),
            "dispatcher": callable_name(self.dispatcher),
            "config": dict(self.config),
            "level": self.level,
            "owner_name": self.owner_name,
            "owner_level": self.owner_level,
            "owner_propagate": self.owner_propagate,
        }


@dataclass(frozen=True)
class NodeDescriptor:
    """
    Canonical per-node configuration, already validated.

    level=None leaves the node's level untouched; pipelines replace the
    node's existing entries when applied to an existing node.
    """
    level: int | None = None
    propagate: bool = True
    pipelines: tuple[PipelineEntry, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "propagate": self.propagate,
            "pipelines": [entry.describe() for entry in self.pipelines],
        }
