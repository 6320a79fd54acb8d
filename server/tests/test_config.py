"""
Tests for YAML configuration loading.
"""

import logging
import os

import pytest

from sdml_lint.config import (EngineConfig, config_from_dict, find_config_file, get_default_config,
                              load_config, save_config)
from sdml_lint.table import RuleTable
from sdml_lint.types import ConfigError, Severity

from helpers_rules import TYPE_NAME_CASE, TYPES_MISSING_BODIES, FUNCTION_NAME_CASE

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


class TestEngineConfig:

    def test_defaults(self):
        config = get_default_config()
        assert config.language == "sdml"
        assert config.enabled_rules == ["*"]
        assert config.threshold is Severity.INFO
        assert config.suppressions is True
        assert config.rules is None

    def test_bad_threshold_rejected(self):
        with pytest.raises(ConfigError):
            EngineConfig(severity_threshold="loud")

    def test_bad_override_names_rule(self):
        with pytest.raises(ConfigError, match="type-name-case"):
            EngineConfig(rule_severities={"type-name-case": "loud"})

    def test_build_table_applies_selection_and_overrides(self):
        defaults = RuleTable([TYPE_NAME_CASE, TYPES_MISSING_BODIES, FUNCTION_NAME_CASE])
        config = EngineConfig(enabled_rules=["type*", "function-*"],
                              rule_severities={"function-name-case": "info"})
        table = config.build_table(defaults)

        assert table.ids() == defaults.ids()
        assert table.get("function-name-case").severity is Severity.INFO
        assert table.get("types-missing-bodies").enabled

    def test_build_table_uses_configured_rules(self):
        config = EngineConfig(rules=[{"id": "only", "message": "m", "pattern": "(x) @x"}])
        assert config.build_table(RuleTable([TYPE_NAME_CASE])).ids() == ["only"]

    def test_build_table_defaults_to_bundled_rules(self):
        table = EngineConfig().build_table()
        assert "type-name-case" in table
        assert "types-missing-bodies" in table


class TestLoadConfig:

    def test_load_fixture(self):
        config = load_config(os.path.join(FIXTURES, "python", "lint.yml"))
        assert config.language == "python"
        table = config.build_table()
        assert table.ids() == ["type-name-case", "types-missing-bodies"]
        assert table.get("types-missing-bodies").capture == "type"
        assert config.source_path.endswith("lint.yml")

    def test_none_gives_defaults(self):
        assert load_config(None) == EngineConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "nope.yml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("rules: [unclosed\n")
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(str(path))

    def test_invalid_rule_reported_at_load(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("rules:\n  - id: no-pattern\n    message: m\n")
        with pytest.raises(ConfigError, match="missing: pattern"):
            load_config(str(path))

    def test_unknown_keys_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="sdml_lint.config"):
            config = config_from_dict({"language": "python", "colour": "blue"})
        assert config.language == "python"
        assert "colour" in caplog.text

    def test_non_mapping_rejected(self):
        with pytest.raises(ConfigError, match="must be a mapping"):
            config_from_dict(["language"])

    def test_save_and_reload(self, tmp_path):
        config = EngineConfig(language="python", enabled_rules=["type-*"],
                              rule_severities={"type-name-case": "error"},
                              severity_threshold="warning", suppressions=False,
                              rules=[TYPE_NAME_CASE.to_dict()])
        path = str(tmp_path / "nested" / "sdml-lint.yml")
        save_config(config, path)

        loaded = load_config(path)
        assert loaded.to_dict() == config.to_dict()


class TestFindConfigFile:

    def test_walks_up(self, tmp_path):
        (tmp_path / ".sdml-lint.yml").write_text("language: sdml\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        model = nested / "model.sdm"
        model.write_text("module m is end\n")

        assert find_config_file(str(nested)) == str(tmp_path / ".sdml-lint.yml")
        assert find_config_file(str(model)) == str(tmp_path / ".sdml-lint.yml")

    def test_preference_order(self, tmp_path):
        (tmp_path / "sdml-lint.yaml").write_text("{}\n")
        (tmp_path / ".sdml-lint.yaml").write_text("{}\n")
        assert find_config_file(str(tmp_path)) == str(tmp_path / ".sdml-lint.yaml")
