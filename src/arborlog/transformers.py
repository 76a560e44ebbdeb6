"""
Built-in transformers: record → record.

Transformers return a new record (LogRecord.evolve) rather than mutating
the one they receive. Returning None keeps the input unchanged.
"""

from typing import Any, Iterable, Mapping

from arborlog.records import LogRecord

REDACTED = "***REDACTED***"
SENSITIVE_KEYS = frozenset(
    {"password", "secret", "token", "access_token", "refresh_token", "ssn", "authorization"}
)


def noop(record: LogRecord) -> LogRecord:
    return record


class RedactTransformer:
    """Masks sensitive keys in context and extra, at any nesting depth."""

    def __init__(self, keys: Iterable[str] | None = None, replacement: str = REDACTED):
        self.keys = frozenset(k.lower() for k in (keys if keys is not None else SENSITIVE_KEYS))
        self.replacement = replacement

    def __call__(self, record: LogRecord) -> LogRecord:
        context = self._scrub(record.context) if record.context is not None else None
        return record.evolve(context=context, extra=self._scrub(record.extra))

    def _scrub(self, data: Mapping[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(key, str) and key.lower() in self.keys:
                cleaned[key] = self.replacement
            elif isinstance(value, Mapping):
                cleaned[key] = self._scrub(value)
            else:
                cleaned[key] = value
        return cleaned


class AddFieldsTransformer:
    """Stamps static fields (service name, environment...) into record.extra."""

    def __init__(self, **fields: Any):
        self.fields = dict(fields)

    def __call__(self, record: LogRecord) -> LogRecord:
        return record.evolve(extra={**record.extra, **self.fields})
