"""
Spell-check collaborator.

The engine does no spell checking of its own. It finds the prose in a tree
(string literals, comments; the node types come from the grammar adapter)
and hands that text to an external checker, turning the words it reports
into ``info`` diagnostics.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence

import tree_sitter

from .matcher import node_text
from .types import Diagnostic, Severity

logger = logging.getLogger(__name__)

SPELLING_RULE_ID = "spelling"


@dataclass(frozen=True)
class TextRegion:
    """A run of prose copied out of the tree."""
    node_type: str
    start_byte: int
    end_byte: int
    start_line: int
    start_col: int
    text: str


class SpellChecker(Protocol):
    def misspelled(self, text: str) -> List[str]:
        """Return the misspelled words in ``text``."""
        ...


class AspellChecker:
    """Delegates to ``aspell list``, which echoes back unknown words."""

    def __init__(self, language: str = "en", executable: str = "aspell"):
        self.language = language
        self.executable = executable

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def misspelled(self, text: str) -> List[str]:
        result = subprocess.run(
            [self.executable, "list", f"--lang={self.language}"],
            input=text,
            capture_output=True,
            text=True,
            check=True,
        )
        words = []
        for word in result.stdout.split():
            if word not in words:
                words.append(word)
        return words


def iter_text_regions(tree: tree_sitter.Tree, node_types: Sequence[str],
                      source: Optional[bytes] = None) -> Iterator[TextRegion]:
    """Yield the textual nodes of ``tree`` in document order.

    Matching nodes are not descended into, so a string nested in a comment
    node type is reported once.
    """
    wanted = set(node_types)
    if not wanted:
        return

    cursor = tree.walk()
    while True:
        node = cursor.node
        if node.type in wanted:
            yield TextRegion(
                node_type=node.type,
                start_byte=node.start_byte,
                end_byte=node.end_byte,
                start_line=node.start_point[0] + 1,
                start_col=node.start_point[1],
                text=node_text(node, source),
            )
        elif cursor.goto_first_child():
            continue

        while not cursor.goto_next_sibling():
            if not cursor.goto_parent():
                return


def check_spelling(regions: Iterable[TextRegion], checker: SpellChecker) -> List[Diagnostic]:
    """Run ``checker`` over each region and report every occurrence of each bad word."""
    diagnostics = []
    for region in regions:
        words = checker.misspelled(region.text)
        if not words:
            continue
        for word in words:
            # Unicode-aware word boundaries; offsets are converted to bytes below
            pattern = re.compile(r'(?<!\w)' + re.escape(word) + r'(?!\w)')
            for found in pattern.finditer(region.text):
                start = len(region.text[:found.start()].encode('utf-8'))
                end = start + len(found.group().encode('utf-8'))
                diagnostics.append(_word_diagnostic(region, word, start, end))
    diagnostics.sort(key=lambda d: (d.start_byte, d.end_byte))
    return diagnostics


def _word_diagnostic(region: TextRegion, word: str, start: int, end: int) -> Diagnostic:
    prefix = region.text.encode('utf-8')[:start]
    newlines = prefix.count(b'\n')
    if newlines:
        line = region.start_line + newlines
        col = start - (prefix.rfind(b'\n') + 1)
    else:
        line = region.start_line
        col = region.start_col + start
    return Diagnostic(
        rule_id=SPELLING_RULE_ID,
        severity=Severity.INFO,
        message=f"Possible misspelling: {word}",
        start_byte=region.start_byte + start,
        end_byte=region.start_byte + end,
        start_line=line,
        start_col=col,
        end_line=line,
        end_col=col + (end - start),
        text=word,
    )
