"""
Grammar adapters for tree-sitter.

An adapter knows how to get a tree-sitter ``Language`` and ``Parser`` for
one grammar, which files belong to it, how comments start (for
suppressions) and which node types hold prose (for spell checking).
"""
import importlib
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

import tree_sitter

logger = logging.getLogger(__name__)


class LanguageAdapter(ABC):
    """Abstract base class for grammar adapters."""

    @property
    @abstractmethod
    def language_id(self) -> str:
        """Return the language identifier (e.g., 'sdml', 'python')."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> Tuple[str, ...]:
        """Return supported file extensions (e.g., ('.sdm', '.sdml'))."""
        pass

    @property
    @abstractmethod
    def comment_prefix(self) -> str:
        """Line comment introducer, used for suppression comments."""
        pass

    @property
    def text_node_types(self) -> Tuple[str, ...]:
        """Node types whose text is prose (strings, comments)."""
        return ()

    @abstractmethod
    def get_language(self) -> Optional[tree_sitter.Language]:
        """Return the tree-sitter Language, or None when the grammar is unavailable."""
        pass

    @abstractmethod
    def parse(self, text) -> Optional[tree_sitter.Tree]:
        """Parse text and return a tree-sitter tree, or None."""
        pass

    def list_files(self, paths: List[str]) -> List[str]:
        """List all files matching this adapter's extensions in the given paths."""
        found = []

        for path in paths:
            if os.path.isfile(path):
                if path.endswith(self.file_extensions):
                    found.append(path)
            elif os.path.isdir(path):
                for root, dirs, files in os.walk(path):
                    # Skip hidden and cache directories
                    dirs[:] = [d for d in dirs if not d.startswith('.') and d not in ['__pycache__', 'node_modules']]

                    for file in files:
                        if file.endswith(self.file_extensions):
                            found.append(os.path.join(root, file))

        return sorted(found)


class GrammarAdapter(LanguageAdapter):
    """Adapter over a ``tree_sitter_<name>`` grammar package."""

    def __init__(self, language_id: str, grammar_module: str, file_extensions: Tuple[str, ...],
                 comment_prefix: str, text_node_types: Tuple[str, ...] = ()):
        self._language_id = language_id
        self._grammar_module = grammar_module
        self._file_extensions = tuple(file_extensions)
        self._comment_prefix = comment_prefix
        self._text_node_types = tuple(text_node_types)
        self._language = None
        self._parser = None

    @property
    def language_id(self) -> str:
        return self._language_id

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        return self._file_extensions

    @property
    def comment_prefix(self) -> str:
        return self._comment_prefix

    @property
    def text_node_types(self) -> Tuple[str, ...]:
        return self._text_node_types

    def get_language(self) -> Optional[tree_sitter.Language]:
        if self._language is None:
            try:
                module = importlib.import_module(self._grammar_module)
                self._language = tree_sitter.Language(module.language())
                logger.debug(f"Loaded tree-sitter grammar '{self._grammar_module}'")
            except ImportError as e:
                logger.warning(f"Grammar package '{self._grammar_module}' not available: {e}")
                return None
        return self._language

    def _get_parser(self) -> Optional[tree_sitter.Parser]:
        """Get or create the tree-sitter parser."""
        if self._parser is None:
            language = self.get_language()
            if language is None:
                return None
            self._parser = tree_sitter.Parser()
            self._parser.language = language
        return self._parser

    def parse(self, text) -> Optional[tree_sitter.Tree]:
        parser = self._get_parser()
        if parser is None:
            return None

        # Handle both string and bytes input
        if isinstance(text, str):
            text_bytes = text.encode('utf-8')
        else:
            text_bytes = text

        return parser.parse(text_bytes)

    def __repr__(self) -> str:
        return f"GrammarAdapter({self._language_id!r}, {self._grammar_module!r})"


SDML_TEXT_NODE_TYPES = ("quoted_string", "string", "line_comment")
PYTHON_TEXT_NODE_TYPES = ("string_content", "comment")

default_sdml_adapter = GrammarAdapter(
    "sdml", "tree_sitter_sdml", (".sdm", ".sdml"), ";", SDML_TEXT_NODE_TYPES,
)

default_python_adapter = GrammarAdapter(
    "python", "tree_sitter_python", (".py", ".pyi"), "#", PYTHON_TEXT_NODE_TYPES,
)
