"""
Tests for LogRecord and record construction.

Covers:
- parse_log_args() argument shapes
- format_message() substitution and FORMAT ERROR markers
- LogRecord evolve / clone_for isolation
- build_record() call-site discovery
"""

import dataclasses
import threading
from datetime import datetime, timezone

import pytest

from arborlog.records import (
    LogRecord,
    build_record,
    find_caller,
    format_message,
    parse_log_args,
)


def _make_record(**kwargs) -> LogRecord:
    defaults = dict(level_no=20, level_name="INFO", logger_name="app", message_fmt="hello")
    defaults.update(kwargs)
    return LogRecord.create(**defaults)


# ═══════════════════════════════════════════════════════════════════
#  parse_log_args
# ═══════════════════════════════════════════════════════════════════

class TestParseLogArgs:
    def test_no_arguments(self):
        assert parse_log_args() == ("", (), None)

    def test_format_and_args(self):
        assert parse_log_args("User %s logged in", "jane") == ("User %s logged in", ("jane",), None)

    def test_context_then_format(self):
        fmt, args, context = parse_log_args({"user": "jane"}, "Login %d", 3)
        assert fmt == "Login %d"
        assert args == (3,)
        assert context == {"user": "jane"}

    def test_context_only(self):
        assert parse_log_args({"user": "jane"}) == ("", (), {"user": "jane"})

    def test_context_only_uses_msg_key(self):
        fmt, args, context = parse_log_args({"msg": "hi there", "id": 4})
        assert fmt == "hi there"
        assert args == ()
        assert context == {"msg": "hi there", "id": 4}

    def test_non_string_single_value(self):
        assert parse_log_args(42) == ("42", (), None)

    def test_non_string_with_extra_values_keeps_args(self):
        assert parse_log_args(42, "a", 3) == ("42", ("a", 3), None)

    def test_context_is_copied(self):
        original = {"user": "jane"}
        _, _, context = parse_log_args(original)
        context["user"] = "bob"
        assert original["user"] == "jane"


# ═══════════════════════════════════════════════════════════════════
#  format_message
# ═══════════════════════════════════════════════════════════════════

class TestFormatMessage:
    def test_substitution(self):
        assert format_message("User %s logged in", ("jane",)) == "User jane logged in"

    def test_no_args_returns_format_unchanged(self):
        assert format_message("100% done", ()) == "100% done"

    def test_too_few_args(self):
        result = format_message("%s and %s", ("one",))
        assert result.startswith("%s and %s [FORMAT ERROR: ")
        assert result.endswith("]")

    def test_type_mismatch(self):
        result = format_message("count=%d", ("many",))
        assert "[FORMAT ERROR:" in result

    def test_too_many_args(self):
        result = format_message("only %s", ("a", "b"))
        assert "[FORMAT ERROR:" in result

    def test_none_format(self):
        assert format_message(None, ("a",)) == ""


# ═══════════════════════════════════════════════════════════════════
#  LogRecord
# ═══════════════════════════════════════════════════════════════════

class TestLogRecord:
    def test_create_defaults(self):
        record = _make_record()
        assert record.source_logger_name == "app"
        assert record.args == ()
        assert record.context is None
        assert record.extra == {}
        assert record.message is None
        assert record.timestamp.tzinfo is not None

    def test_frozen(self):
        record = _make_record()
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.message = "changed"

    def test_arg_count(self):
        assert _make_record(message_fmt="%s %s", args=("a", "b")).arg_count == 2

    def test_evolve(self):
        record = _make_record()
        evolved = record.evolve(message="rendered")
        assert evolved.message == "rendered"
        assert record.message is None

    def test_clone_for_sets_owner_and_keeps_source(self):
        record = _make_record(logger_name="app.db")
        clone = record.clone_for("app")
        assert clone.logger_name == "app"
        assert clone.source_logger_name == "app.db"

    def test_clone_for_copies_context_and_extra(self):
        record = _make_record(context={"k": 1})
        clone = record.clone_for("app")
        clone.context["k"] = 2
        clone.extra["added"] = True
        assert record.context == {"k": 1}
        assert record.extra == {}

    def test_clone_for_copies_nested_containers(self):
        record = _make_record(context={"user": {"name": "jane", "roles": ["admin"]}})
        clone = record.clone_for("app")
        clone.context["user"]["name"] = "bob"
        clone.context["user"]["roles"].append("ops")
        assert record.context == {"user": {"name": "jane", "roles": ["admin"]}}

    def test_clone_for_shares_uncopyable_leaves(self):
        lock = threading.Lock()
        record = _make_record(context={"guard": {"lock": lock}})
        assert record.clone_for("app").context["guard"]["lock"] is lock

    def test_clone_for_none_owner(self):
        assert _make_record().clone_for(None).logger_name == "app"

    def test_formatted_message(self):
        record = _make_record(message_fmt="%d items", args=(3,))
        assert record.formatted_message() == "3 items"


# ═══════════════════════════════════════════════════════════════════
#  build_record
# ═══════════════════════════════════════════════════════════════════

class TestBuildRecord:
    def test_fields(self):
        before = datetime.now(timezone.utc)
        record = build_record("app.db", 30, "WARNING", ({"q": 1}, "slow %dms", 812))
        assert record.logger_name == "app.db"
        assert record.source_logger_name == "app.db"
        assert record.level_no == 30
        assert record.level_name == "WARNING"
        assert record.message_fmt == "slow %dms"
        assert record.args == (812,)
        assert record.context == {"q": 1}
        assert record.timestamp >= before

    def test_call_site_is_outside_package(self):
        record = build_record("app", 20, "INFO", ("hi",))
        assert record.filename == "test_records.py"
        assert record.lineno > 0

    def test_find_caller(self):
        filename, lineno = find_caller()
        assert filename == "test_records.py"
        assert lineno > 0
