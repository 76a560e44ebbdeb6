"""
Pipeline processing.

Runs one log record through each collected pipeline entry, in order:

    1. clone the record for the entry (logger_name = entry owner)
    2. transformers, in declared order; the first failure stops the chain
    3. presenter; a failure substitutes a fallback rendering
    4. dispatcher; a failure is reported and the next entry proceeds

Nothing a stage does can raise out of process(). Stage failures are written
as single lines to the registry's error stream, never to a dispatcher.
"""

from typing import Callable, Iterable, TextIO

from arborlog import debug
from arborlog.errors import StageError, describe
from arborlog.pipeline import PipelineEntry
from arborlog.records import LogRecord

TRANSFORMER = "Transformer"
PRESENTER = "Presenter"
DISPATCHER = "Dispatcher"


def fallback_message(record: LogRecord, error: BaseException | str) -> str:
    """Deterministic rendering used when a presenter fails."""
    return (
        f"[PRESENTER ERROR] {record.level_name} {record.filename}:{record.lineno} - "
        f"{record.message_fmt} (logger '{record.source_logger_name}'): {describe(error)}"
    )


class PipelineProcessor:
    """Executes pipeline entries with per-stage failure isolation."""

    def __init__(self, error_stream: Callable[[], TextIO]):
        # Resolved on every report so stream swaps (e.g. test capture) are honoured.
        self._error_stream = error_stream

    def process(self, record: LogRecord, entries: Iterable[PipelineEntry]) -> None:
        for entry in entries:
            self.process_entry(record, entry)

    def process_entry(self, record: LogRecord, entry: PipelineEntry) -> LogRecord | None:
        """
        Run one entry. Returns the record as handed to the dispatcher,
        or None when the entry's own level filtered the record out.
        """
        if not entry.accepts(record.level_no):
            debug.trace(
                "entry of '%s' skipped: level %s below entry level %s",
                entry.owner_name, record.level_no, entry.level,
            )
            return None

        working = record.clone_for(entry.owner_name)
        working = self._transform(working, entry)
        working = self._present(working, entry)
        self._dispatch(working, entry)
        return working

    # ── Stages ────────────────────────────────────────────────────

    def _transform(self, record: LogRecord, entry: PipelineEntry) -> LogRecord:
        for index, transformer in enumerate(entry.transformers):
            try:
                result = transformer(record)
            except Exception as exc:
                return self._transformer_failed(record, entry, exc)

            if result is None:
                continue
            if not isinstance(result, LogRecord):
                return self._transformer_failed(
                    record,
                    entry,
                    TypeError(
                        f"transformer '{transformer.name}' returned "
                        f"{type(result).__name__}, expected LogRecord"
                    ),
                )
            record = result
            debug.trace("transformer %d '%s' applied for '%s'", index, transformer.name, entry.owner_name)
        return record

    def _transformer_failed(
        self, record: LogRecord, entry: PipelineEntry, exc: BaseException
    ) -> LogRecord:
        self.report(TRANSFORMER, entry.owner_name, exc)
        return record.evolve(transformer_error=describe(exc))

    def _present(self, record: LogRecord, entry: PipelineEntry) -> LogRecord:
        try:
            rendered = entry.presenter(record)
            if not isinstance(rendered, str):
                raise TypeError(
                    f"presenter '{entry.presenter.name}' returned "
                    f"{type(rendered).__name__}, expected str"
                )
        except Exception as exc:
            self.report(PRESENTER, entry.owner_name, exc)
            text = fallback_message(record, exc)
            return record.evolve(
                message=text, presented_message=text, presenter_error=describe(exc)
            )
        return record.evolve(message=rendered, presented_message=rendered)

    def _dispatch(self, record: LogRecord, entry: PipelineEntry) -> None:
        try:
            entry.dispatcher(record, dict(entry.config))
        except Exception as exc:
            self.report(DISPATCHER, entry.owner_name, exc)

    # ── Diagnostics ───────────────────────────────────────────────

    def report(self, stage: str, owner_name: str | None, cause: BaseException | str) -> None:
        """Write one diagnostic line for a failed stage."""
        line = str(StageError(stage, owner_name, cause))
        debug.trace("%s", line)
        try:
            stream = self._error_stream()
            stream.write(line + "\n")
            stream.flush()
        except Exception:
            # Nowhere left to report to; the log call must still return normally.
            pass
