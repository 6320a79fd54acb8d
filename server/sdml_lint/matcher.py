"""
Pattern matcher: runs one rule's tree-sitter query against a tree.

Every failure mode of a single rule (bad query syntax, unknown node type
or field, missing capture, an error while matching) is turned into a
``RuleResult`` carrying a ``RuleError`` so the caller can skip that rule and
keep going with the rest of the table.
"""

import logging
import re
import threading
from typing import Dict, List, Optional, Tuple

import tree_sitter

from .types import Capture, Match, Rule, RuleResult

logger = logging.getLogger(__name__)

# Errors tree-sitter raises while building a Query. Invalid regexes in
# #match? predicates surface as re.error.
QUERY_COMPILE_ERRORS = (tree_sitter.QueryError, ValueError, re.error)


class QueryMatcher:
    """Compiles and evaluates rule patterns.

    Compiled queries are cached by (language id, pattern). The cache is the
    only state shared between runs and is guarded by a lock; compiled queries
    themselves are never mutated once built.
    """

    def __init__(self):
        self._cache: Dict[Tuple[str, str], tree_sitter.Query] = {}
        self._lock = threading.Lock()

    def compile(self, language_id: str, language: tree_sitter.Language, pattern: str) -> tree_sitter.Query:
        """Compile ``pattern`` for ``language``, raising on invalid queries."""
        key = (language_id, pattern)
        with self._lock:
            query = self._cache.get(key)
        if query is not None:
            return query

        query = tree_sitter.Query(language, pattern)
        with self._lock:
            self._cache.setdefault(key, query)
        return query

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    @property
    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def run(self, rule: Rule, language: tree_sitter.Language, root: tree_sitter.Node,
            source: Optional[bytes] = None) -> RuleResult:
        """Evaluate ``rule`` against the subtree at ``root``."""
        try:
            query = self.compile(rule.language, language, rule.pattern)
        except QUERY_COMPILE_ERRORS as e:
            return RuleResult.failure(rule.id, "compile", f"Invalid pattern: {e}")

        names = capture_names(query)
        if not names:
            return RuleResult.failure(rule.id, "capture", "Pattern declares no captures")
        primary = rule.capture or names[0]
        if primary not in names:
            return RuleResult.failure(
                rule.id, "capture",
                f"Capture '@{primary}' not found in pattern (has: {', '.join('@' + n for n in names)})",
            )

        try:
            raw_matches = tree_sitter.QueryCursor(query).matches(root)
            matches = [_to_match(index, captures, source) for index, captures in raw_matches]
        except Exception as e:
            # A rule that blows up while matching is reported and skipped
            return RuleResult.failure(rule.id, "match", f"Query evaluation failed: {e}")

        logger.debug(f"Rule '{rule.id}' produced {len(matches)} matches")
        return RuleResult.success(rule.id, matches, primary)


def capture_names(query: tree_sitter.Query) -> List[str]:
    """Capture names in declaration order."""
    return [query.capture_name(index) for index in range(query.capture_count)]


def _to_match(pattern_index: int, captures: Dict[str, List[tree_sitter.Node]],
              source: Optional[bytes]) -> Match:
    bindings = {}
    for name, nodes in captures.items():
        if isinstance(nodes, tree_sitter.Node):
            nodes = [nodes]
        bindings[name] = [_to_capture(name, node, source) for node in nodes]
    return Match(pattern_index=pattern_index, captures=bindings)


def _to_capture(name: str, node: tree_sitter.Node, source: Optional[bytes]) -> Capture:
    return Capture(
        name=name,
        node=node,
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        start_point=(node.start_point[0] + 1, node.start_point[1]),
        end_point=(node.end_point[0] + 1, node.end_point[1]),
        text=node_text(node, source),
    )


def node_text(node: tree_sitter.Node, source: Optional[bytes] = None) -> str:
    """Copy a node's source text out of the tree."""
    if source is not None:
        raw = source[node.start_byte:node.end_byte]
    else:
        raw = node.text or b""
    return raw.decode('utf-8', errors='replace')
