"""
Tests for the built-in dispatchers (console, file, memory).
"""

import threading

import pytest

from arborlog.dispatchers import (
    ConsoleDispatcher,
    FileDispatcher,
    MemoryDispatcher,
    record_text,
)
from arborlog.records import LogRecord


def _make_record(level_no=20, level_name="INFO", presented="rendered", **kwargs) -> LogRecord:
    record = LogRecord.create(
        level_no=level_no, level_name=level_name, logger_name="app", message_fmt="raw", **kwargs
    )
    return record.evolve(message=presented, presented_message=presented)


# ═══════════════════════════════════════════════════════════════════
#  record_text
# ═══════════════════════════════════════════════════════════════════

class TestRecordText:
    def test_prefers_presented_message(self):
        assert record_text(_make_record()) == "rendered"

    def test_falls_back_to_format(self):
        record = LogRecord.create(level_no=20, level_name="INFO", logger_name="app", message_fmt="raw")
        assert record_text(record) == "raw"


# ═══════════════════════════════════════════════════════════════════
#  Console
# ═══════════════════════════════════════════════════════════════════

class TestConsoleDispatcher:
    def test_info_to_stdout(self, capsys):
        ConsoleDispatcher()(_make_record())
        captured = capsys.readouterr()
        assert captured.out == "rendered\n"
        assert captured.err == ""

    def test_error_to_stderr(self, capsys):
        ConsoleDispatcher()(_make_record(level_no=40, level_name="ERROR"))
        captured = capsys.readouterr()
        assert captured.err == "rendered\n"
        assert captured.out == ""

    def test_explicit_stream(self, capsys):
        ConsoleDispatcher(stream="stderr")(_make_record())
        assert capsys.readouterr().err == "rendered\n"

    def test_config_overrides_stream(self, capsys):
        ConsoleDispatcher()(_make_record(level_no=50, level_name="CRITICAL"), {"stream": "stdout"})
        assert capsys.readouterr().out == "rendered\n"

    def test_color(self, capsys):
        ConsoleDispatcher(color=True)(_make_record(level_no=30, level_name="WARNING"))
        out = capsys.readouterr().out
        assert out.startswith("\033[33m")
        assert "\033[0m" in out

    def test_custom_level_color_uses_nearest_lower(self, capsys):
        ConsoleDispatcher()(_make_record(level_no=25, level_name="NOTICE"), {"color": True})
        assert capsys.readouterr().out.startswith("\033[37m")

    def test_invalid_stream(self):
        with pytest.raises(ValueError):
            ConsoleDispatcher(stream="printer")


# ═══════════════════════════════════════════════════════════════════
#  File
# ═══════════════════════════════════════════════════════════════════

class TestFileDispatcher:
    def test_writes_lines(self, tmp_path):
        path = tmp_path / "logs" / "app.log"
        dispatcher = FileDispatcher(path)
        dispatcher(_make_record(presented="first"))
        dispatcher(_make_record(presented="second"))
        dispatcher.close()
        assert path.read_text().splitlines() == ["first", "second"]

    def test_appends_to_existing(self, tmp_path):
        path = tmp_path / "app.log"
        path.write_text("existing\n")
        dispatcher = FileDispatcher(path)
        dispatcher(_make_record())
        dispatcher.close()
        assert path.read_text() == "existing\nrendered\n"

    def test_lazy_open(self, tmp_path):
        path = tmp_path / "never.log"
        FileDispatcher(path).close()
        assert not path.exists()

    def test_reopens_after_close(self, tmp_path):
        path = tmp_path / "app.log"
        dispatcher = FileDispatcher(path)
        dispatcher(_make_record(presented="a"))
        dispatcher.close()
        dispatcher(_make_record(presented="b"))
        dispatcher.close()
        assert path.read_text().splitlines() == ["a", "b"]

    def test_without_flush(self, tmp_path):
        path = tmp_path / "app.log"
        dispatcher = FileDispatcher(path)
        dispatcher(_make_record(), {"flush": False})
        dispatcher.flush()
        assert path.read_text() == "rendered\n"
        dispatcher.close()

    def test_thread_safety(self, tmp_path):
        path = tmp_path / "threads.log"
        dispatcher = FileDispatcher(path)

        def write_batch(tag):
            for i in range(50):
                dispatcher(_make_record(presented=f"{tag}-{i}"))

        threads = [threading.Thread(target=write_batch, args=(t,)) for t in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        dispatcher.close()
        assert len(path.read_text().splitlines()) == 200


# ═══════════════════════════════════════════════════════════════════
#  Memory
# ═══════════════════════════════════════════════════════════════════

class TestMemoryDispatcher:
    def test_stores_records(self):
        memory = MemoryDispatcher()
        memory(_make_record(presented="one"))
        memory(_make_record(presented="two"))
        assert memory.count == 2
        assert memory.messages == ["one", "two"]

    def test_capacity(self):
        memory = MemoryDispatcher(capacity=3)
        for i in range(5):
            memory(_make_record(presented=str(i)))
        assert memory.messages == ["2", "3", "4"]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            MemoryDispatcher(capacity=0)

    def test_get_recent_filters(self):
        memory = MemoryDispatcher()
        memory(_make_record(presented="cache miss"))
        memory(_make_record(level_no=40, level_name="ERROR", presented="db down"))
        memory(_make_record(level_no=40, level_name="ERROR", presented="cache down"))

        assert [r.presented_message for r in memory.get_recent(min_level=40)] == ["db down", "cache down"]
        assert [r.presented_message for r in memory.get_recent(contains="cache")] == ["cache miss", "cache down"]
        assert [r.presented_message for r in memory.get_recent(n=1)] == ["cache down"]

    def test_clear(self):
        memory = MemoryDispatcher()
        memory(_make_record())
        memory.clear()
        assert memory.count == 0

    def test_name(self):
        assert MemoryDispatcher(name="inspect").name == "inspect"
