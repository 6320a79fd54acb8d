"""
Tests for sdml-lint suppression comments.
"""

from sdml_lint.suppressions import SuppressionParser, filter_suppressed, validate_suppression_patterns
from sdml_lint.types import Diagnostic, Severity

from helpers_rules import TYPE_NAME_CASE


def _diagnostic(rule_id, line):
    return Diagnostic(rule_id=rule_id, severity=Severity.WARNING, message="m",
                      start_byte=0, end_byte=1, start_line=line, start_col=0,
                      end_line=line, end_col=1)


class TestSuppressionParser:

    def test_single_rule(self):
        parser = SuppressionParser("entity person ; sdml-lint: ignore[type-name-case]\n")
        assert parser.is_suppressed("type-name-case", 1)
        assert not parser.is_suppressed("member-name-case", 1)
        assert not parser.is_suppressed("type-name-case", 2)

    def test_multiple_rules_and_globs(self):
        parser = SuppressionParser("x ;; sdml-lint: ignore[ member-name-case, *-variant-* ]")
        assert parser.is_suppressed("member-name-case", 1)
        assert parser.is_suppressed("value-variant-name-case", 1)
        assert not parser.is_suppressed("type-name-case", 1)

    def test_uses_grammar_comment_prefix(self):
        text = "class lower:  # sdml-lint: ignore[type-name-case]\n"
        assert SuppressionParser(text, "#").is_suppressed("type-name-case", 1)
        assert not SuppressionParser(text, ";").is_suppressed("type-name-case", 1)

    def test_stats(self):
        text = "a ; sdml-lint: ignore[r1, r2]\nb\nc ; sdml-lint: ignore[r1]\n"
        stats = SuppressionParser(text).get_suppression_stats()
        assert stats == {"suppressed_lines": 2, "unique_patterns": 2, "total_suppressions": 3}


class TestFilterSuppressed:

    def test_filters_and_keeps_order(self):
        text = "one\ntwo ; sdml-lint: ignore[b]\nthree\n"
        diagnostics = [_diagnostic("a", 1), _diagnostic("b", 2), _diagnostic("a", 2), _diagnostic("b", 3)]
        kept = filter_suppressed(diagnostics, text)
        assert [(d.rule_id, d.start_line) for d in kept] == [("a", 1), ("a", 2), ("b", 3)]

    def test_no_comments_keeps_everything(self):
        diagnostics = [_diagnostic("a", 1)]
        assert filter_suppressed(diagnostics, "plain text") == diagnostics

    def test_runner_honours_suppressions(self, make_runner, request_for, python_config):
        text = "class lower:  # sdml-lint: ignore[type-name-case]\n    pass\n\nclass other:\n    pass\n"
        batch = make_runner([TYPE_NAME_CASE]).lint(request_for(text=text))
        assert [d.text for d in batch.diagnostics] == ["other"]

        python_config.suppressions = False
        batch = make_runner([TYPE_NAME_CASE], config=python_config).lint(request_for(text=text))
        assert [d.text for d in batch.diagnostics] == ["lower", "other"]


class TestValidateSuppressionPatterns:

    def test_reports_malformed_comments(self):
        text = "a ; sdml-lint: ignore[ok]\nb ; sdml-lint: ignore[\nc ; sdml-lint: ignore[ ]\n"
        assert validate_suppression_patterns(text) == [
            (2, "Unclosed suppression bracket"),
            (3, "Empty suppression pattern"),
        ]
