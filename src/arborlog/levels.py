"""
Log levels.

Built-in levels use Python-compatible numeric values. NOTSET means
"inherit from parent"; NONE silences a logger. Custom levels slot strictly
between DEBUG and ERROR and live on a LevelTable owned by a registry.
"""

import re
from enum import IntEnum
from typing import Iterable, Mapping

from arborlog.errors import InvalidLevelError


class LogLevel(IntEnum):
    """Built-in levels."""
    NOTSET = 0       # inherit from parent
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50
    NONE = 100       # disables a logger

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Resolve level from string name, case-insensitive."""
        name_upper = name.upper()
        if name_upper == "WARN":
            return cls.WARNING
        try:
            return cls[name_upper]
        except KeyError:
            raise InvalidLevelError(
                f"Unknown log level '{name}'. "
                f"Valid levels: {', '.join(m.name for m in cls)}"
            ) from None


# Levels a message may be emitted at. NOTSET and NONE are logger settings only.
EMITTABLE_BUILTINS = frozenset(
    {LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARNING, LogLevel.ERROR, LogLevel.CRITICAL}
)

_CUSTOM_NAME = re.compile(r"^[a-z][a-z0-9_]*$")


class LevelTable:
    """
    Built-in plus custom levels for one registry.

    Custom levels are declared as lowercase identifiers mapped to integers
    strictly between DEBUG and ERROR. Declaring a new set replaces the old
    one wholesale. Names in `reserved_names` (attributes of the object the
    levels are called on) are refused.
    """

    def __init__(self, reserved_names: Iterable[str] = ()) -> None:
        self._custom: dict[str, int] = {}
        self._reserved = frozenset(reserved_names)

    # ── Custom levels ─────────────────────────────────────────────

    def set_custom_levels(self, levels: Mapping[str, int]) -> None:
        """Replace all custom levels. Validates the whole set before applying."""
        if not isinstance(levels, Mapping):
            raise InvalidLevelError(
                f"Custom levels must be a mapping, got {type(levels).__name__}"
            )

        seen: dict[int, str] = {}
        for name, value in levels.items():
            _validate_custom_name(name)
            if name in self._reserved:
                raise InvalidLevelError(
                    f"Custom level '{name}' clashes with a logger attribute of the same name"
                )
            _validate_custom_value(name, value)
            if value in seen:
                raise InvalidLevelError(
                    f"Duplicate level value {value} for levels '{seen[value]}' and '{name}'"
                )
            seen[value] = name

        self._custom = dict(levels)

    def clear_custom_levels(self) -> None:
        self._custom.clear()

    @property
    def custom(self) -> dict[str, int]:
        return dict(self._custom)

    def custom_value(self, name: str) -> int | None:
        """Value of a custom level by (case-insensitive) name, or None."""
        return self._custom.get(name.lower())

    # ── Lookup ────────────────────────────────────────────────────

    def all_levels(self) -> dict[str, int]:
        """Every level by upper-case name, built-ins first."""
        levels = {member.name: member.value for member in LogLevel}
        levels.update({name.upper(): value for name, value in self._custom.items()})
        return levels

    def name_of(self, level: int) -> str:
        """Display name for a level value. Falls back to the numeric string."""
        for member in LogLevel:
            if member.value == level:
                return member.name
        for name, value in self._custom.items():
            if value == level:
                return name.upper()
        return str(level)

    def is_known(self, level: int) -> bool:
        return level in LogLevel._value2member_map_ or level in self._custom.values()

    def resolve(self, value: int | str) -> int:
        """Convert a level name or int to a known numeric level."""
        if isinstance(value, bool):
            raise InvalidLevelError("Expected int or str for level, got bool")
        if isinstance(value, int):
            if not self.is_known(value):
                raise InvalidLevelError(
                    f"Invalid level value {value}. Valid levels: "
                    + ", ".join(f"{n}({v})" for n, v in sorted(self.all_levels().items(), key=lambda i: i[1]))
                )
            return int(value)
        if isinstance(value, str):
            custom = self.custom_value(value)
            if custom is not None:
                return custom
            return LogLevel.from_name(value).value
        raise InvalidLevelError(f"Expected int or str for level, got {type(value).__name__}")

    def check_emittable(self, level: object) -> int:
        """Validate a level passed to log(). Returns it as a plain int."""
        if isinstance(level, bool) or not isinstance(level, int):
            raise InvalidLevelError(
                f"Log level must be an int, got {type(level).__name__}"
            )
        if level in EMITTABLE_BUILTINS or level in self._custom.values():
            return int(level)
        raise InvalidLevelError(
            f"Cannot log at level {level} ({self.name_of(level)})"
        )


def _validate_custom_name(name: object) -> None:
    if not isinstance(name, str) or not name:
        raise InvalidLevelError("Custom level name must be a non-empty string")
    if name.startswith("_"):
        raise InvalidLevelError(f"Level names starting with '_' are reserved: '{name}'")
    if not _CUSTOM_NAME.match(name):
        raise InvalidLevelError(
            f"Invalid custom level name '{name}': use lowercase letters, digits and underscores"
        )
    if name.upper() in LogLevel.__members__ or name == "warn":
        raise InvalidLevelError(f"Custom level '{name}' shadows a built-in level")


def _validate_custom_value(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidLevelError(f"Custom level '{name}' must map to an int")
    if not LogLevel.DEBUG < value < LogLevel.ERROR:
        raise InvalidLevelError(
            f"Custom level '{name}' must be between {LogLevel.DEBUG + 1} and {LogLevel.ERROR - 1}"
        )
    if value in LogLevel._value2member_map_:
        raise InvalidLevelError(f"Custom level value {value} conflicts with a built-in level")
