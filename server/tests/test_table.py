"""
Tests for rule records, severities and the rule table.
"""

import logging

import pytest

from sdml_lint.table import RuleTable
from sdml_lint.types import ConfigError, Rule, Severity

from helpers_rules import TYPE_NAME_CASE, TYPES_MISSING_BODIES, FUNCTION_NAME_CASE


class TestSeverity:
    """Severity parsing and ordering."""

    @pytest.mark.parametrize("value,expected", [
        ("error", Severity.ERROR),
        ("Warning", Severity.WARNING),
        ("warn", Severity.WARNING),
        ("info", Severity.INFO),
        ("off", Severity.DISABLED),
        ("none", Severity.DISABLED),
        ("", Severity.DISABLED),
        (None, Severity.DISABLED),
    ])
    def test_parse_aliases(self, value, expected):
        assert Severity.parse(value) is expected

    def test_parse_rejects_unknown(self):
        with pytest.raises(ConfigError, match="Unknown severity"):
            Severity.parse("fatal")

    def test_rank_orders_severities(self):
        assert Severity.ERROR.rank > Severity.WARNING.rank > Severity.INFO.rank > Severity.DISABLED.rank


class TestRule:
    """Rule records and their dict form."""

    def test_from_dict_defaults(self):
        rule = Rule.from_dict({"id": "r", "pattern": "(x) @x"})
        assert rule.severity is Severity.WARNING
        assert rule.language == "sdml"
        assert rule.capture is None
        assert rule.message == ""
        assert not rule.enabled

    def test_from_dict_requires_id_and_pattern(self):
        with pytest.raises(ConfigError, match="missing: pattern"):
            Rule.from_dict({"id": "r"})

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigError, match="unknown keys: pattrn"):
            Rule.from_dict({"id": "r", "pattern": "(x) @x", "pattrn": "oops"})

    def test_empty_id_rejected(self):
        with pytest.raises(ConfigError):
            Rule(id=" ", message="m", severity=Severity.INFO, pattern="(x) @x")

    @pytest.mark.parametrize("pattern", [None, 42, b"(x) @x"])
    def test_non_string_pattern_rejected(self, pattern):
        with pytest.raises(ConfigError, match="pattern must be a string"):
            Rule(id="r", message="m", severity=Severity.INFO, pattern=pattern)

    def test_string_severity_is_parsed(self):
        rule = Rule(id="r", message="m", severity="warn", pattern="(x) @x")
        assert rule.severity is Severity.WARNING

    def test_to_dict_round_trips(self):
        rule = Rule(id="r", message="m", severity=Severity.ERROR, pattern="(x) @x",
                    capture="x", language="python")
        assert Rule.from_dict(rule.to_dict()) == rule

    def test_with_severity_returns_copy(self):
        disabled = TYPE_NAME_CASE.with_severity("off")
        assert disabled.severity is Severity.DISABLED
        assert TYPE_NAME_CASE.severity is Severity.WARNING
        assert not disabled.enabled


class TestRuleTable:
    """Ordered immutable rule tables."""

    def test_keeps_order_and_lookup(self, table):
        assert table.ids() == ["type-name-case", "types-missing-bodies", "function-name-case"]
        assert table.get("function-name-case") is FUNCTION_NAME_CASE
        assert table.get("missing") is None
        assert "type-name-case" in table
        assert len(table) == 3

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ConfigError, match="Duplicate rule id 'type-name-case'"):
            RuleTable([TYPE_NAME_CASE, TYPE_NAME_CASE])

    def test_non_rule_entries_rejected(self):
        with pytest.raises(ConfigError):
            RuleTable([{"id": "r", "pattern": "(x) @x"}])

    def test_from_dicts(self):
        table = RuleTable.from_dicts([
            {"id": "a", "message": "A", "severity": "error", "pattern": "(x) @x"},
            {"id": "b", "message": "B", "pattern": "(y) @y"},
        ])
        assert table.ids() == ["a", "b"]
        assert table.get("a").severity is Severity.ERROR

    def test_from_dicts_requires_list(self):
        with pytest.raises(ConfigError, match="must be a list"):
            RuleTable.from_dicts({"id": "a"})

    def test_enabled_filters_disabled_language_and_threshold(self, table):
        assert [r.id for r in table.enabled()] == table.ids()
        assert table.enabled(language="sdml") == []
        assert [r.id for r in table.enabled(threshold=Severity.WARNING)] == [
            "type-name-case", "function-name-case"]
        assert [r.id for r in table.enabled(threshold=Severity.ERROR)] == ["function-name-case"]

    def test_with_severities_builds_new_table(self, table):
        updated = table.with_severities({"types-missing-bodies": "error"})
        assert updated is not table
        assert updated.get("types-missing-bodies").severity is Severity.ERROR
        assert table.get("types-missing-bodies").severity is Severity.INFO

    def test_with_severities_warns_on_unknown_rule(self, table, caplog):
        with caplog.at_level(logging.WARNING, logger="sdml_lint.table"):
            updated = table.with_severities({"no-such-rule": "error"})
        assert updated == table
        assert "no-such-rule" in caplog.text

    def test_select_disables_unmatched_rules(self, table):
        selected = table.select(["type-*"])
        assert selected.ids() == table.ids()
        assert [r.id for r in selected.enabled()] == ["type-name-case", "types-missing-bodies"]

    def test_select_star_is_identity(self, table):
        assert table.select(["*"]) is table

    def test_tables_compare_by_rules(self):
        assert RuleTable([TYPE_NAME_CASE]) == RuleTable([TYPE_NAME_CASE])
        assert RuleTable([TYPE_NAME_CASE]) != RuleTable([TYPES_MISSING_BODIES])
