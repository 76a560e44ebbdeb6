"""
Tests for built-in transformers and the Component stage contract.
"""

import pytest

from arborlog.components import Component, callable_name
from arborlog.dispatchers import MemoryDispatcher
from arborlog.records import LogRecord
from arborlog.transformers import (
    REDACTED,
    AddFieldsTransformer,
    RedactTransformer,
    noop,
)


def _make_record(**kwargs) -> LogRecord:
    defaults = dict(level_no=20, level_name="INFO", logger_name="app", message_fmt="m")
    defaults.update(kwargs)
    return LogRecord.create(**defaults)


# ═══════════════════════════════════════════════════════════════════
#  Component
# ═══════════════════════════════════════════════════════════════════

class TestComponent:
    def test_bare(self):
        component = Component.bare(lambda record: f"got {record}")
        assert not component.is_configured
        assert component("r") == "got r"

    def test_configured(self):
        component = Component.configured(lambda record, config: (record, config), {"k": 1})
        assert component.is_configured
        assert component("r") == ("r", {"k": 1})

    def test_config_is_read_only_and_copied_per_call(self):
        source = {"k": 1}
        component = Component.configured(lambda record, config: config, source)
        source["k"] = 2
        assert component.config["k"] == 1
        with pytest.raises(TypeError):
            component.config["k"] = 3
        received = component("r")
        received["k"] = 99
        assert component.config["k"] == 1

    def test_normalize_shapes(self):
        def render(record, config):
            return "x"

        assert Component.normalize(noop).func is noop
        assert Component.normalize((render, {"a": 1})).config == {"a": 1}
        assert Component.normalize({"func": render, "a": 1}).config == {"a": 1}
        existing = Component.bare(noop)
        assert Component.normalize(existing) is existing

    @pytest.mark.parametrize("item", ["text", 42, {"a": 1}, (noop, "config"), None])
    def test_normalize_rejects(self, item):
        with pytest.raises(TypeError):
            Component.normalize(item)

    def test_non_callable_func(self):
        with pytest.raises(TypeError):
            Component("not callable")

    def test_non_mapping_config(self):
        with pytest.raises(TypeError):
            Component(noop, ["a"])

    def test_describe(self):
        assert Component.bare(noop).describe() == {"name": "noop", "config": None}

    def test_callable_name(self):
        assert callable_name(noop) == "noop"
        assert callable_name(MemoryDispatcher(name="ring")) == "ring"
        assert callable_name(RedactTransformer()) == "RedactTransformer"


# ═══════════════════════════════════════════════════════════════════
#  Built-ins
# ═══════════════════════════════════════════════════════════════════

class TestNoop:
    def test_returns_same_record(self):
        record = _make_record()
        assert noop(record) is record


class TestRedactTransformer:
    def test_masks_default_keys(self):
        record = _make_record(context={"user": "jane", "password": "hunter2", "Token": "abc"})
        result = RedactTransformer()(record)
        assert result.context == {"user": "jane", "password": REDACTED, "Token": REDACTED}
        assert record.context["password"] == "hunter2"

    def test_nested(self):
        record = _make_record(context={"request": {"headers": {"authorization": "Bearer x"}}})
        result = RedactTransformer()(record)
        assert result.context["request"]["headers"]["authorization"] == REDACTED

    def test_extra_is_scrubbed(self):
        record = _make_record().evolve(extra={"secret": "s", "ok": 1})
        assert RedactTransformer()(record).extra == {"secret": REDACTED, "ok": 1}

    def test_custom_keys_and_replacement(self):
        record = _make_record(context={"card": "4111", "password": "p"})
        result = RedactTransformer(keys=["card"], replacement="[hidden]")(record)
        assert result.context == {"card": "[hidden]", "password": "p"}

    def test_no_context(self):
        assert RedactTransformer()(_make_record()).context is None


class TestAddFieldsTransformer:
    def test_adds_fields(self):
        record = _make_record().evolve(extra={"existing": True})
        result = AddFieldsTransformer(service="api", env="prod")(record)
        assert result.extra == {"existing": True, "service": "api", "env": "prod"}
        assert record.extra == {"existing": True}

    def test_overrides_existing_key(self):
        record = _make_record().evolve(extra={"env": "dev"})
        assert AddFieldsTransformer(env="prod")(record).extra == {"env": "prod"}
