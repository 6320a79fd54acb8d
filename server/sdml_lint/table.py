"""
Rule table: the ordered, immutable collection of lint rules.

A table is replaced as a whole (hot reload); it is never merged or mutated
in place, so a run that captured a table keeps seeing the same rules.
"""

import fnmatch
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .types import ConfigError, Rule, Severity

logger = logging.getLogger(__name__)


class RuleTable:
    """Ordered sequence of rules with unique ids."""

    def __init__(self, rules: Iterable[Rule] = ()):
        rules = tuple(rules)
        index: Dict[str, Rule] = {}
        for rule in rules:
            if not isinstance(rule, Rule):
                raise ConfigError(f"Rule table entries must be Rule records, got {type(rule).__name__}")
            if rule.id in index:
                raise ConfigError(f"Duplicate rule id '{rule.id}' in rule table")
            index[rule.id] = rule
        self._rules = rules
        self._index = index

    @classmethod
    def from_dicts(cls, items: Sequence[dict]) -> "RuleTable":
        if not isinstance(items, (list, tuple)):
            raise ConfigError("'rules' must be a list of rule definitions")
        return cls(Rule.from_dict(item) for item in items)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._index

    def __eq__(self, other) -> bool:
        if not isinstance(other, RuleTable):
            return NotImplemented
        return self._rules == other._rules

    def __repr__(self) -> str:
        return f"RuleTable({len(self._rules)} rules)"

    @property
    def rules(self) -> tuple:
        return self._rules

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._index.get(rule_id)

    def ids(self) -> List[str]:
        return [rule.id for rule in self._rules]

    def enabled(self, language: Optional[str] = None,
                threshold: Severity = Severity.INFO) -> List[Rule]:
        """Rules that should be evaluated, in table order.

        Disabled rules and rules below ``threshold`` are dropped here, before
        any pattern is compiled.
        """
        selected = []
        for rule in self._rules:
            if not rule.enabled:
                continue
            if language is not None and rule.language != language:
                continue
            if rule.severity.rank < threshold.rank:
                continue
            selected.append(rule)
        return selected

    def with_severities(self, overrides: Dict[str, str]) -> "RuleTable":
        """Return a new table with severity overrides applied."""
        if not overrides:
            return self
        for rule_id in overrides:
            if rule_id not in self._index:
                logger.warning(f"Severity override for unknown rule '{rule_id}' ignored")
        return RuleTable(
            rule.with_severity(overrides[rule.id]) if rule.id in overrides else rule
            for rule in self._rules
        )

    def select(self, patterns: Sequence[str]) -> "RuleTable":
        """Return a new table where rules not matching any glob are disabled.

        Definitions are kept so that the table still lists them.
        """
        patterns = list(patterns or [])
        if patterns == ["*"]:
            return self
        selected = []
        for rule in self._rules:
            if any(fnmatch.fnmatch(rule.id, pattern) for pattern in patterns):
                selected.append(rule)
            else:
                selected.append(rule.with_severity(Severity.DISABLED))
        return RuleTable(selected)

    def to_dicts(self) -> List[dict]:
        return [rule.to_dict() for rule in self._rules]
