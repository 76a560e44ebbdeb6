"""
Declarative configuration.

Validates a YAML/dict description of the logger tree with pydantic, resolves
component names through a ComponentCatalog, and produces canonical
NodeDescriptors that the registry applies without further checks.

Example:
    level: warning
    custom_levels:
      verbose: 15
    loggers:
      _root:
        pipelines:
          - presenter: text
            dispatcher: console
      app.db:
        level: debug
        propagate: false
        pipelines:
          - transformers: [redact]
            presenter: {type: json, pretty: false}
            dispatcher: {type: file, path: logs/db.log}
            level: info

Usage:
    registry = LoggerRegistry()
    LoggingConfig.from_yaml("logging.yaml").apply(registry)
"""

from pathlib import Path
from typing import Any, Callable, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

from arborlog.dispatchers import ConsoleDispatcher, FileDispatcher, MemoryDispatcher
from arborlog.errors import CallerError, ConfigurationError
from arborlog.levels import LevelTable, LogLevel
from arborlog.node import RESERVED_LEVEL_NAMES, ROOT_NAME
from arborlog.pipeline import NodeDescriptor, PipelineEntry
from arborlog.presenters import DetailedPresenter, JsonPresenter, TextPresenter
from arborlog.registry import LoggerRegistry, validate_name
from arborlog.transformers import AddFieldsTransformer, RedactTransformer, noop

PRESENTER = "presenter"
DISPATCHER = "dispatcher"
TRANSFORMER = "transformer"
KINDS = (PRESENTER, DISPATCHER, TRANSFORMER)


# ═══════════════════════════════════════════════════════════════════
#  Schema
# ═══════════════════════════════════════════════════════════════════

class ComponentSpec(BaseModel):
    """{type: name, **options} form of a component reference."""
    model_config = ConfigDict(extra="allow")

    type: str

    @property
    def options(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


ComponentRef = Union[str, ComponentSpec, Callable[..., Any]]


class PipelineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    presenter: ComponentRef = "text"
    dispatcher: ComponentRef = "console"
    transformers: list[ComponentRef] = Field(default_factory=list)
    config: dict[str, Any] = Field(default_factory=dict)
    level: Optional[Union[int, str]] = None


class NodeConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Optional[Union[int, str]] = None
    propagate: StrictBool = True
    pipelines: list[PipelineConfig] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    """Top-level logging configuration."""
    model_config = ConfigDict(extra="forbid")

    level: Union[int, str] = "warning"   # root default level
    custom_levels: dict[str, int] = Field(default_factory=dict)
    loggers: dict[str, NodeConfig] = Field(default_factory=dict)

    # ── Loading ───────────────────────────────────────────────────

    @classmethod
    def from_yaml(cls, path: str | Path) -> "LoggingConfig":
        """Load and validate from a YAML file."""
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read logging config '{path}': {exc}") from exc
        return cls.from_yaml_string(raw)

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "LoggingConfig":
        """Load and validate from a YAML string."""
        try:
            data = yaml.safe_load(yaml_string)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in logging config: {exc}") from exc
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "LoggingConfig":
        """Load and validate from a dict."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid logging config: {exc}") from exc

    # ── Canonicalization ──────────────────────────────────────────

    def level_table(self) -> LevelTable:
        levels = LevelTable(RESERVED_LEVEL_NAMES)
        try:
            levels.set_custom_levels(self.custom_levels)
        except CallerError as exc:
            raise ConfigurationError(str(exc)) from exc
        return levels

    def descriptors(
        self,
        levels: LevelTable | None = None,
        catalog: "ComponentCatalog | None" = None,
    ) -> dict[str, NodeDescriptor]:
        """Canonical descriptor per configured logger name."""
        levels = levels if levels is not None else self.level_table()
        catalog = catalog if catalog is not None else ComponentCatalog.default()

        result: dict[str, NodeDescriptor] = {}
        for name, node_cfg in self.loggers.items():
            try:
                validate_name(name)
                level = _resolve_optional(levels, node_cfg.level)
                if name == ROOT_NAME and level is None:
                    level = levels.resolve(self.level)
                pipelines = tuple(
                    _to_entry(pipeline_cfg, levels, catalog)
                    for pipeline_cfg in node_cfg.pipelines
                )
            except CallerError as exc:
                raise ConfigurationError(f"Logger '{name}': {exc}") from exc
            result[name] = NodeDescriptor(
                level=level, propagate=node_cfg.propagate, pipelines=pipelines
            )
        return result

    def apply(
        self,
        registry: LoggerRegistry,
        catalog: "ComponentCatalog | None" = None,
    ) -> LoggerRegistry:
        """
        Validate everything first, then configure the registry: custom
        levels, root default level, then each named logger.
        """
        levels = self.level_table()
        try:
            default_level = levels.resolve(self.level)
        except CallerError as exc:
            raise ConfigurationError(f"Root level: {exc}") from exc
        if default_level == LogLevel.NOTSET:
            raise ConfigurationError("Root level cannot be NOTSET")
        descriptors = self.descriptors(levels, catalog)

        registry.levels.set_custom_levels(self.custom_levels)
        registry.default_level = default_level
        for name, descriptor in descriptors.items():
            registry.get_or_create(name).apply_descriptor(descriptor)
        return registry


def _resolve_optional(levels: LevelTable, value: int | str | None) -> int | None:
    return None if value is None else levels.resolve(value)


def _to_entry(cfg: PipelineConfig, levels: LevelTable, catalog: "ComponentCatalog") -> PipelineEntry:
    level = _resolve_optional(levels, cfg.level)
    return PipelineEntry.create(
        presenter=catalog.build(PRESENTER, cfg.presenter),
        dispatcher=catalog.build(DISPATCHER, cfg.dispatcher),
        transformers=[catalog.build(TRANSFORMER, t) for t in cfg.transformers],
        config=cfg.config,
        level=LogLevel.NOTSET if level is None else level,
    )


# ═══════════════════════════════════════════════════════════════════
#  Component Catalog
# ═══════════════════════════════════════════════════════════════════

class ComponentCatalog:
    """
    Resolves component names from configs to concrete stage callables.
    "kind.name" → factory(**options).
    """

    def __init__(self) -> None:
        self._factories: dict[str, dict[str, Callable[..., Any]]] = {kind: {} for kind in KINDS}

    @classmethod
    def default(cls) -> "ComponentCatalog":
        """Catalog holding the built-in presenters, dispatchers and transformers."""
        catalog = cls()
        catalog.register(PRESENTER, "text", TextPresenter)
        catalog.register(PRESENTER, "detailed", DetailedPresenter)
        catalog.register(PRESENTER, "json", JsonPresenter)
        catalog.register(DISPATCHER, "console", ConsoleDispatcher)
        catalog.register(DISPATCHER, "file", FileDispatcher)
        catalog.register(DISPATCHER, "memory", MemoryDispatcher)
        catalog.register(TRANSFORMER, "noop", lambda: noop)
        catalog.register(TRANSFORMER, "redact", RedactTransformer)
        catalog.register(TRANSFORMER, "fields", AddFieldsTransformer)
        return catalog

    def register(self, kind: str, name: str, factory: Callable[..., Any]) -> None:
        """Register (or replace) a factory. Names are case-insensitive."""
        if kind not in KINDS:
            raise ValueError(f"Unknown component kind '{kind}'. Valid kinds: {', '.join(KINDS)}")
        if not callable(factory):
            raise TypeError(f"Factory for {kind} '{name}' must be callable")
        self._factories[kind][name.lower()] = factory

    def names(self, kind: str) -> list[str]:
        return sorted(self._factories[kind])

    def build(self, kind: str, ref: ComponentRef) -> Any:
        """Instantiate a component from a name, a ComponentSpec, or pass a callable through."""
        if isinstance(ref, ComponentSpec):
            name, options = ref.type, ref.options
        elif isinstance(ref, str):
            name, options = ref, {}
        elif callable(ref):
            return ref
        else:
            raise ConfigurationError(f"Invalid {kind} reference: {ref!r}")

        factory = self._factories[kind].get(name.lower())
        if factory is None:
            raise ConfigurationError(
                f"Unknown {kind} '{name}'. Available: {', '.join(self.names(kind)) or 'none'}"
            )
        try:
            return factory(**options)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid options for {kind} '{name}': {exc}") from exc
