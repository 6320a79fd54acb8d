"""
sdml-lint structural lint engine.

This package evaluates declarative tree-sitter query rules against a
document's syntax tree and reports the matches as diagnostics.
"""

from .types import (
    Rule, Severity, Capture, Match, Diagnostic, RuleError, RuleResult,
    RunState, LintRequest, DiagnosticBatch, DiagnosticsHost, CollectingHost,
    LintError, ConfigError, TreeAcquisitionError
)

from .table import RuleTable

from .adapters import LanguageAdapter, GrammarAdapter, default_python_adapter, default_sdml_adapter

from .matcher import QueryMatcher

from .diagnostics import build_diagnostic, build_diagnostics

from .registry import (
    register_rule, register_adapter, get_adapter, get_adapter_for_file, get_rule,
    get_all_rules, get_rules_for_language, default_rule_table, list_supported_languages, clear
)

from .config import (
    EngineConfig, load_config, get_default_config, save_config, find_config_file
)

from .runner import LintRun, LintRunner

__all__ = [
    # Types
    "Rule", "Severity", "Capture", "Match", "Diagnostic", "RuleError", "RuleResult",
    "RunState", "LintRequest", "DiagnosticBatch", "DiagnosticsHost", "CollectingHost",
    "LintError", "ConfigError", "TreeAcquisitionError",

    # Engine
    "RuleTable", "QueryMatcher", "build_diagnostic", "build_diagnostics", "LintRun", "LintRunner",
    "LanguageAdapter", "GrammarAdapter", "default_python_adapter", "default_sdml_adapter",

    # Registry
    "register_rule", "register_adapter", "get_adapter", "get_adapter_for_file", "get_rule",
    "get_all_rules", "get_rules_for_language", "default_rule_table", "list_supported_languages", "clear",

    # Config
    "EngineConfig", "load_config", "get_default_config", "save_config", "find_config_file"
]
