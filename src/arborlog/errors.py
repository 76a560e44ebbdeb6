"""
Exception hierarchy.

Caller misuse (bad names, bad levels) raises synchronously. Failures inside
user-supplied pipeline stages are wrapped in StageError only to build the
diagnostic line; they never reach the caller.
"""


class ArborlogError(Exception):
    """Base class for every error raised by arborlog."""


class CallerError(ArborlogError, ValueError):
    """Misuse at a call site. Aborts only the offending call."""


class InvalidNameError(CallerError):
    """Logger name is empty, malformed, or uses the reserved prefix."""


class InvalidLevelError(CallerError):
    """Level argument has the wrong type or names no known level."""


class CycleDetectedError(ArborlogError, RuntimeError):
    """An ancestor walk revisited a node. Only possible after manual rewiring."""

    def __init__(self, start: str, repeated: str):
        self.start = start
        self.repeated = repeated
        super().__init__(
            f"Logger hierarchy cycle: walking up from '{start}' revisited '{repeated}'"
        )


class StageError(ArborlogError):
    """A transformer, presenter or dispatcher raised while processing a record."""

    def __init__(self, stage: str, owner_name: str | None, cause: BaseException | str):
        self.stage = stage
        self.owner_name = owner_name
        self.cause = cause
        # Always exactly one line.
        super().__init__(_single_line(
            f"Logging system error: {stage} in logger '{owner_name}': {describe(cause)}"
        ))


class ConfigurationError(ArborlogError, ValueError):
    """Declarative configuration could not be validated or resolved."""


def describe(cause: BaseException | str) -> str:
    """One-line description of an exception: 'TypeName: message'. Line breaks become spaces."""
    if isinstance(cause, BaseException):
        text = _single_line(str(cause))
        return f"{type(cause).__name__}: {text}" if text else type(cause).__name__
    return _single_line(str(cause))


def _single_line(text: str) -> str:
    return " ".join(part.strip() for part in text.splitlines() if part.strip())
