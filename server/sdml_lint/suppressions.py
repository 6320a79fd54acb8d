"""
Suppression comments for sdml-lint rules.

A comment of the form ``; sdml-lint: ignore[rule-id, other-*]`` (using the
grammar's own line comment prefix) drops diagnostics from matching rules
that start on the same line.
"""

import fnmatch
import re
from typing import Dict, List, Sequence, Set, Tuple

from .types import Diagnostic


class SuppressionParser:
    """Parser for sdml-lint suppression comments."""

    def __init__(self, text: str, comment_prefix: str = ";"):
        self.text = text
        self.lines = text.split('\n')
        self._pattern = re.compile(
            re.escape(comment_prefix) + r'+\s*sdml-lint:\s*ignore\s*\[\s*([^\]]*)\]',
            re.IGNORECASE,
        )
        self._parse_suppressions()

    def _parse_suppressions(self):
        """Parse all suppression comments in the text."""
        self.line_suppressions: Dict[int, Set[str]] = {}  # line_number -> {rule_patterns}

        for line_num, line in enumerate(self.lines, 1):
            patterns = self._extract_suppression_patterns(line)
            if patterns:
                self.line_suppressions[line_num] = patterns

    def _extract_suppression_patterns(self, line: str) -> Set[str]:
        """Extract suppression patterns from a line."""
        patterns = set()

        for match in self._pattern.finditer(line):
            for pattern in match.group(1).split(','):
                pattern = pattern.strip()
                if pattern:
                    patterns.add(pattern)

        return patterns

    def is_suppressed(self, rule_id: str, line_num: int) -> bool:
        """Check if a diagnostic from ``rule_id`` starting on ``line_num`` is suppressed."""
        for pattern in self.line_suppressions.get(line_num, ()):
            if rule_id == pattern or fnmatch.fnmatch(rule_id, pattern):
                return True
        return False

    def get_suppression_stats(self) -> Dict[str, int]:
        """Get statistics about suppressions in the file."""
        all_patterns = set()
        for patterns in self.line_suppressions.values():
            all_patterns.update(patterns)

        return {
            "suppressed_lines": len(self.line_suppressions),
            "unique_patterns": len(all_patterns),
            "total_suppressions": sum(len(patterns) for patterns in self.line_suppressions.values())
        }


def filter_suppressed(diagnostics: Sequence[Diagnostic], text: str,
                      comment_prefix: str = ";") -> List[Diagnostic]:
    """Filter out suppressed diagnostics, keeping order."""
    if not diagnostics:
        return list(diagnostics)

    parser = SuppressionParser(text, comment_prefix)
    if not parser.line_suppressions:
        return list(diagnostics)

    return [d for d in diagnostics if not parser.is_suppressed(d.rule_id, d.start_line)]


def validate_suppression_patterns(text: str, comment_prefix: str = ";") -> List[Tuple[int, str]]:
    """
    Validate suppression comments in text and return any errors.

    Returns:
        List of (line_number, error_message) tuples
    """
    errors = []
    marker = re.compile(re.escape(comment_prefix) + r'+\s*sdml-lint:\s*ignore\b(.*)$', re.IGNORECASE)

    for line_num, line in enumerate(text.split('\n'), 1):
        match = marker.search(line)
        if not match:
            continue
        rest = match.group(1).strip()
        if not rest.startswith('[') or ']' not in rest:
            errors.append((line_num, "Unclosed suppression bracket"))
        elif not rest[1:rest.index(']')].strip():
            errors.append((line_num, "Empty suppression pattern"))

    return errors
