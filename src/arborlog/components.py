"""
Pipeline stage components.

A stage (transformer or presenter) is either a bare callable taking the
record, or a callable paired with a config mapping that is passed as the
second argument. Component is that tagged pair; normalize() accepts every
shape users write in practice.

    Component.bare(add_hostname)                   → add_hostname(record)
    Component.configured(render, {"tz": "utc"})    → render(record, {"tz": "utc"})
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping


@dataclass(frozen=True)
class Component:
    """A stage callable plus an optional config. config=None marks a bare callable."""
    func: Callable[..., Any]
    config: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if not callable(self.func):
            raise TypeError(
                f"Component function must be callable, got {type(self.func).__name__}"
            )
        if self.config is not None:
            if not isinstance(self.config, Mapping):
                raise TypeError(
                    f"Component config must be a mapping, got {type(self.config).__name__}"
                )
            object.__setattr__(self, "config", MappingProxyType(dict(self.config)))

    @classmethod
    def bare(cls, func: Callable[..., Any]) -> "Component":
        return cls(func)

    @classmethod
    def configured(cls, func: Callable[..., Any], config: Mapping[str, Any]) -> "Component":
        return cls(func, config)

    @classmethod
    def normalize(cls, item: Any) -> "Component":
        """
        Accepts:
            Component                      → returned as is
            callable                       → bare
            (callable, mapping)            → configured
            {"func": callable, **config}   → configured
        """
        if isinstance(item, Component):
            return item
        if callable(item):
            return cls.bare(item)
        if isinstance(item, (tuple, list)) and len(item) == 2 and isinstance(item[1], Mapping):
            return cls.configured(item[0], item[1])
        if isinstance(item, Mapping) and "func" in item:
            config = {k: v for k, v in item.items() if k != "func"}
            return cls.configured(item["func"], config)
        raise TypeError(
            "Component must be a callable, a (callable, config) pair, "
            f"or a mapping with a 'func' key; got {type(item).__name__}"
        )

    @property
    def is_configured(self) -> bool:
        return self.config is not None

    @property
    def name(self) -> str:
        return callable_name(self.func)

    def __call__(self, record: Any) -> Any:
        if self.config is None:
            return self.func(record)
        return self.func(record, dict(self.config))

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "config": dict(self.config) if self.config is not None else None,
        }


def callable_name(func: Any) -> str:
    """Display name: function __name__, a `name` attribute, or the type name."""
    name = getattr(func, "__name__", None) or getattr(func, "name", None)
    return name if isinstance(name, str) else type(func).__name__
