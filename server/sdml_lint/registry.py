"""
Registry for default rules and grammar adapters.

Default rules are declared as ``RULES`` lists in the modules of the
``sdml_rules`` package and collected here, in module order, into the
bundled rule table.
"""

import importlib
import logging
import os
import pkgutil
from typing import Dict, List, Optional

from .adapters import LanguageAdapter, default_python_adapter, default_sdml_adapter
from .table import RuleTable
from .types import Rule

logger = logging.getLogger(__name__)

DEFAULT_RULE_PACKAGES = ["sdml_rules"]


class Registry:
    """Central registry for default rules and adapters."""

    def __init__(self):
        self._rules: List[Rule] = []
        self._adapters: Dict[str, LanguageAdapter] = {}
        self._rule_index: Dict[str, Rule] = {}  # id -> rule

    def register_rule(self, rule: Rule) -> None:
        """Register a rule in the registry."""
        if rule.id in self._rule_index:
            # Skip duplicate registration silently to avoid import noise
            return

        self._rules.append(rule)
        self._rule_index[rule.id] = rule

    def register_adapter(self, language: str, adapter: LanguageAdapter) -> None:
        """Register a grammar adapter. Silently skips if already registered."""
        if language in self._adapters:
            return

        self._adapters[language] = adapter

    def get_adapter(self, language: str) -> Optional[LanguageAdapter]:
        """Get adapter for a language."""
        return self._adapters.get(language)

    def get_adapter_for_file(self, file_path: str) -> Optional[LanguageAdapter]:
        """Get adapter for a file based on its extension."""
        ext = os.path.splitext(file_path)[1].lower()

        for adapter in self._adapters.values():
            if ext in adapter.file_extensions:
                return adapter
        return None

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get rule by id."""
        return self._rule_index.get(rule_id)

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules."""
        return self._rules.copy()

    def get_rules_for_language(self, language: str) -> List[Rule]:
        """Get all rules written against a specific grammar."""
        return [rule for rule in self._rules if rule.language == language]

    def list_supported_languages(self) -> List[str]:
        """List all supported languages."""
        return list(self._adapters.keys())

    def discover_rules(self, entry_packages: List[str]) -> int:
        """
        Discover and register rules from packages.

        Args:
            entry_packages: List of package names to discover from

        Returns:
            Number of rules discovered and registered
        """
        initial_count = len(self._rules)

        for package_name in entry_packages:
            try:
                package = importlib.import_module(package_name)
            except ImportError as e:
                logger.warning(f"Could not import rule package {package_name}: {e}")
                continue

            self._extract_rules_from_module(package, package_name)
            if hasattr(package, '__path__'):
                for _importer, modname, _ispkg in sorted(
                    pkgutil.walk_packages(package.__path__, package.__name__ + "."),
                    key=lambda info: info[1],
                ):
                    module = importlib.import_module(modname)
                    self._extract_rules_from_module(module, modname)

        return len(self._rules) - initial_count

    def _extract_rules_from_module(self, module, module_name: str) -> None:
        """Register every Rule in a module's RULES list."""
        rules = getattr(module, 'RULES', None)
        if not isinstance(rules, list):
            return
        for rule in rules:
            if isinstance(rule, dict):
                rule = Rule.from_dict(rule)
            if not isinstance(rule, Rule):
                logger.warning(f"Skipping non-rule entry in {module_name}.RULES: {rule!r}")
                continue
            self.register_rule(rule)

    def rule_table(self) -> RuleTable:
        """The registered rules as a table, in registration order."""
        return RuleTable(self._rules)

    def clear(self) -> None:
        """Clear all registered rules and adapters (mainly for testing)."""
        self._rules.clear()
        self._adapters.clear()
        self._rule_index.clear()


# Global registry instance
_global_registry = Registry()
_defaults_loaded = False


def load_defaults() -> None:
    """Register the bundled adapters and discover the bundled rules once."""
    global _defaults_loaded
    if _defaults_loaded:
        return
    _global_registry.register_adapter(default_sdml_adapter.language_id, default_sdml_adapter)
    _global_registry.register_adapter(default_python_adapter.language_id, default_python_adapter)
    count = _global_registry.discover_rules(DEFAULT_RULE_PACKAGES)
    logger.debug(f"Discovered {count} default rules")
    _defaults_loaded = True


def register_rule(rule: Rule) -> None:
    """Register a rule in the global registry."""
    _global_registry.register_rule(rule)


def register_adapter(language: str, adapter: LanguageAdapter) -> None:
    """Register a grammar adapter in the global registry."""
    _global_registry.register_adapter(language, adapter)


def get_adapter(language: str) -> Optional[LanguageAdapter]:
    """Get adapter for a language from the global registry."""
    load_defaults()
    return _global_registry.get_adapter(language)


def get_adapter_for_file(file_path: str) -> Optional[LanguageAdapter]:
    """Get adapter for a file based on its extension from the global registry."""
    load_defaults()
    return _global_registry.get_adapter_for_file(file_path)


def get_rule(rule_id: str) -> Optional[Rule]:
    """Get a default rule by id."""
    load_defaults()
    return _global_registry.get_rule(rule_id)


def get_all_rules() -> List[Rule]:
    """Get all default rules."""
    load_defaults()
    return _global_registry.get_all_rules()


def get_rules_for_language(language: str) -> List[Rule]:
    """Get default rules written against ``language``."""
    load_defaults()
    return _global_registry.get_rules_for_language(language)


def list_supported_languages() -> List[str]:
    """List all supported languages from the global registry."""
    load_defaults()
    return _global_registry.list_supported_languages()


def default_rule_table() -> RuleTable:
    """The bundled default rule table."""
    load_defaults()
    return _global_registry.rule_table()


def discover_rules(entry_packages: List[str]) -> int:
    """Discover and register rules from additional packages."""
    return _global_registry.discover_rules(entry_packages)


def clear() -> None:
    """Clear the global registry (mainly for testing)."""
    global _defaults_loaded
    _global_registry.clear()
    _defaults_loaded = False

