"""
Configuration management for the sdml-lint engine.

This module loads the YAML configuration file: the grammar to lint, the
rule table (or the bundled defaults), rule selection globs, severity
overrides and the reporting threshold.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import os

import yaml

from .types import ConfigError, DEFAULT_LANGUAGE, Severity
from .table import RuleTable

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = [".sdml-lint.yml", ".sdml-lint.yaml", "sdml-lint.yml", "sdml-lint.yaml"]

_KNOWN_KEYS = {
    "language", "rules", "enabled_rules", "rule_severities",
    "severity_threshold", "suppressions",
}


@dataclass
class EngineConfig:
    """Configuration for the lint engine."""

    # Grammar used when a document's language can't be inferred
    language: str = DEFAULT_LANGUAGE

    # Rule definitions; None means use the bundled default table
    rules: Optional[List[Dict[str, Any]]] = None

    # Rule selection (fnmatch globs over rule ids)
    enabled_rules: List[str] = field(default_factory=lambda: ["*"])

    # Rule severity overrides (rule_id -> severity)
    rule_severities: Dict[str, str] = field(default_factory=dict)

    # Rules below this severity are not evaluated
    severity_threshold: str = "info"

    # Honor "sdml-lint: ignore[...]" comments
    suppressions: bool = True

    # Where the config was read from, if anywhere
    source_path: Optional[str] = None

    def __post_init__(self):
        if self.enabled_rules is None:
            self.enabled_rules = ["*"]
        if self.rule_severities is None:
            self.rule_severities = {}
        # Fail early on bad severities
        Severity.parse(self.severity_threshold)
        for rule_id, severity in self.rule_severities.items():
            try:
                Severity.parse(severity)
            except ConfigError as e:
                raise ConfigError(f"rule_severities['{rule_id}']: {e}") from e

    @property
    def threshold(self) -> Severity:
        return Severity.parse(self.severity_threshold)

    def build_table(self, defaults: Optional[RuleTable] = None) -> RuleTable:
        """Build the effective rule table for this configuration."""
        if self.rules is not None:
            table = RuleTable.from_dicts(self.rules)
        elif defaults is not None:
            table = defaults
        else:
            from .registry import default_rule_table
            table = default_rule_table()
        return table.select(self.enabled_rules).with_severities(self.rule_severities)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "language": self.language,
            "enabled_rules": list(self.enabled_rules),
            "rule_severities": dict(self.rule_severities),
            "severity_threshold": self.severity_threshold,
            "suppressions": self.suppressions,
        }
        if self.rules is not None:
            data["rules"] = list(self.rules)
        return data


def config_from_dict(data: Dict[str, Any], source_path: Optional[str] = None) -> EngineConfig:
    """Validate a parsed config mapping and build an EngineConfig."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {', '.join(sorted(unknown))}")

    rules = data.get("rules")
    if rules is not None:
        # Validate eagerly so a bad file is reported at load time
        RuleTable.from_dicts(rules)

    return EngineConfig(
        language=data.get("language") or DEFAULT_LANGUAGE,
        rules=rules,
        enabled_rules=data.get("enabled_rules") or ["*"],
        rule_severities=data.get("rule_severities") or {},
        severity_threshold=data.get("severity_threshold") or "info",
        suppressions=bool(data.get("suppressions", True)),
        source_path=source_path,
    )


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to config file (YAML). If None, uses defaults.

    Returns:
        EngineConfig instance

    Raises:
        ConfigError: if the file exists but is not valid YAML or not a valid config
    """
    if not config_path:
        return EngineConfig()

    if not os.path.exists(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {config_path}: {e}") from e

    config = config_from_dict(data, source_path=config_path)
    logger.info(f"Loaded configuration from {config_path}")
    return config


def get_default_config() -> EngineConfig:
    """Get default configuration without loading from file."""
    return load_config(None)


def save_config(config: EngineConfig, config_path: str) -> None:
    """
    Save configuration to file.

    Args:
        config: EngineConfig to save
        config_path: Path where to save the config
    """
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)


def find_config_file(start_path: str = ".") -> Optional[str]:
    """
    Find configuration file by walking up the directory tree.

    Looks for files in this order:
    1. .sdml-lint.yml
    2. .sdml-lint.yaml
    3. sdml-lint.yml
    4. sdml-lint.yaml

    Args:
        start_path: Directory (or file) to start searching from

    Returns:
        Path to config file or None if not found
    """
    current_path = os.path.abspath(start_path)
    if os.path.isfile(current_path):
        current_path = os.path.dirname(current_path)

    while True:
        for config_name in CONFIG_FILE_NAMES:
            config_path = os.path.join(current_path, config_name)
            if os.path.exists(config_path):
                return config_path

        parent_path = os.path.dirname(current_path)
        if parent_path == current_path:
            # Reached the root directory
            break
        current_path = parent_path

    return None
