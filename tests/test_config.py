# tests/test_config.py
"""
Tests for the configuration layer: defaults, merging and validation.
"""

import pytest

from loopguard.ast_nodes import ALL_LOOP_KINDS, LoopKind
from loopguard.config import (
    DEFAULTS, DEFAULT_MAX, GuardConfig, config, deep_merge,
)
from loopguard.errors import ConfigurationError, ErrorCodes


class TestConfigFactory:

    def test_defaults(self):
        cfg = config()
        assert cfg["max"] == 1000
        assert set(cfg["loops"]) == {
            "for", "for-in", "for-of", "while", "do-while", "for-await-of",
        }

    def test_each_call_is_independent(self):
        first = config()
        first["loops"].append("bogus")
        first["max"] = 1
        assert config()["max"] == DEFAULT_MAX
        assert "bogus" not in config()["loops"]
        assert "bogus" not in DEFAULTS["loops"]

    def test_overrides_applied(self):
        assert config({"max": 500})["max"] == 500

    def test_loops_override_replaces_list(self):
        assert config({"loops": ["while"]})["loops"] == ["while"]


class TestDeepMerge:

    def test_nested_mappings_merge(self):
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        merged = deep_merge(base, {"a": {"y": 3}})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1}

    def test_lists_replace(self):
        assert deep_merge({"l": [1, 2, 3]}, {"l": [4]}) == {"l": [4]}

    def test_inputs_not_mutated(self):
        base = {"a": {"x": 1}}
        overrides = {"a": {"x": 2}, "c": [1]}
        merged = deep_merge(base, overrides)
        merged["a"]["x"] = 99
        merged["c"].append(2)
        assert base == {"a": {"x": 1}}
        assert overrides == {"a": {"x": 2}, "c": [1]}

    def test_none_override_skipped(self):
        assert deep_merge({"max": 10}, {"max": None}) == {"max": 10}

    def test_scalar_replaces_mapping(self):
        assert deep_merge({"a": {"x": 1}}, {"a": 5}) == {"a": 5}

    def test_empty_overrides(self):
        assert deep_merge({"a": 1}, None) == {"a": 1}


class TestGuardConfig:

    def test_default(self):
        cfg = GuardConfig.coerce(None)
        assert cfg.max == 1000
        assert cfg.loops == frozenset(ALL_LOOP_KINDS)
        assert cfg.indent == 2

    def test_from_mapping(self):
        cfg = GuardConfig.from_mapping({"max": 50, "loops": ["while", "for"]})
        assert cfg.max == 50
        assert cfg.loops == {LoopKind.WHILE, LoopKind.FOR}

    def test_empty_loop_list_allowed(self):
        assert GuardConfig.from_mapping({"loops": []}).loops == frozenset()

    def test_unknown_keys_ignored(self):
        cfg = GuardConfig.from_mapping({"format": "prettier", "max": 7})
        assert cfg.max == 7

    def test_coerce_passes_instance_through(self):
        cfg = GuardConfig(max=3)
        assert GuardConfig.coerce(cfg) is cfg

    def test_to_dict_round_trip(self):
        cfg = GuardConfig.from_mapping({"loops": ["do-while", "for"]})
        assert cfg.to_dict()["loops"] == ["for", "do-while"]
        assert GuardConfig.from_mapping(cfg.to_dict()) == cfg

    @pytest.mark.parametrize("bad", [0, -1, 1.5, "100", True])
    def test_invalid_max(self, bad):
        with pytest.raises(ConfigurationError) as info:
            GuardConfig.from_mapping({"max": bad})
        assert info.value.code == ErrorCodes.INVALID_MAX
        assert info.value.key == "max"

    def test_unknown_loop_kind(self):
        with pytest.raises(ConfigurationError) as info:
            GuardConfig.from_mapping({"loops": ["for", "forever"]})
        assert info.value.code == ErrorCodes.UNKNOWN_LOOP_KIND
        assert "forever" in str(info.value)
        assert info.value.hint

    def test_loops_must_be_a_list(self):
        with pytest.raises(ConfigurationError):
            GuardConfig.from_mapping({"loops": "while"})

    def test_negative_indent(self):
        with pytest.raises(ConfigurationError):
            GuardConfig.from_mapping({"indent": -2})

    def test_invalid_instance_rejected_by_coerce(self):
        with pytest.raises(ConfigurationError):
            GuardConfig.coerce(GuardConfig(max=0))

    def test_validate_collects_all_problems(self):
        problems = GuardConfig(max=0, indent=-1).validate()
        assert {p.key for p in problems} == {"max", "indent"}

    def test_coerce_rejects_other_types(self):
        with pytest.raises(ConfigurationError):
            GuardConfig.coerce([("max", 5)])

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            GuardConfig.from_mapping({"max": 0})
