"""
Core types for the sdml-lint structural lint engine.

This module provides the shared dataclasses and enums used across the
table, matcher, diagnostic builder and runner. Everything that leaves a
lint run (diagnostics, rule errors, batches) is a plain value object that
holds no reference to the syntax tree it was derived from.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union


class LintError(Exception):
    """Base class for engine errors."""


class ConfigError(LintError):
    """Raised for malformed rule definitions or configuration files."""


class TreeAcquisitionError(LintError):
    """Raised when no syntax tree can be obtained for a document."""


class Severity(str, Enum):
    """Diagnostic severity. ``DISABLED`` marks a rule as inactive."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DISABLED = "disabled"

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Parse a severity from config, accepting the common aliases."""
        if isinstance(value, Severity):
            return value
        if value is None:
            return cls.DISABLED
        text = str(value).strip().lower()
        if text in _SEVERITY_ALIASES:
            return _SEVERITY_ALIASES[text]
        raise ConfigError(f"Unknown severity '{value}' (expected error, warning, info or disabled)")

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_ALIASES = {
    "error": Severity.ERROR,
    "warning": Severity.WARNING,
    "warn": Severity.WARNING,
    "info": Severity.INFO,
    "disabled": Severity.DISABLED,
    "off": Severity.DISABLED,
    "none": Severity.DISABLED,
    "": Severity.DISABLED,
}

_SEVERITY_RANK = {
    Severity.DISABLED: 0,
    Severity.INFO: 1,
    Severity.WARNING: 2,
    Severity.ERROR: 3,
}

DEFAULT_LANGUAGE = "sdml"

ByteRange = Tuple[int, int]  # (start_byte, end_byte) 0-based, end-exclusive
Point = Tuple[int, int]  # (line, col) line 1-based, col 0-based bytes


@dataclass(frozen=True)
class Rule:
    """A declarative lint rule.

    Attributes:
        id: Unique symbolic name (e.g. "type-name-case")
        message: Human-readable message; empty disables the rule
        severity: error, warning, info or disabled
        pattern: tree-sitter query string, passed through verbatim
        capture: Name of the primary capture; None means the first capture
            declared in the pattern
        language: Grammar the pattern is written against
    """
    id: str
    message: str
    severity: Severity
    pattern: str
    capture: Optional[str] = None
    language: str = DEFAULT_LANGUAGE

    def __post_init__(self):
        if not self.id or not str(self.id).strip():
            raise ConfigError("Rule id must be a non-empty string")
        if not isinstance(self.pattern, str):
            raise ConfigError(f"Rule '{self.id}' pattern must be a string, got {type(self.pattern).__name__}")
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, 'severity', Severity.parse(self.severity))

    @property
    def enabled(self) -> bool:
        return self.severity is not Severity.DISABLED and bool(self.message)

    def with_severity(self, severity) -> "Rule":
        return replace(self, severity=Severity.parse(severity))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "message": self.message,
            "severity": self.severity.value,
            "pattern": self.pattern,
            "language": self.language,
        }
        if self.capture:
            data["capture"] = self.capture
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        if not isinstance(data, dict):
            raise ConfigError(f"Rule definition must be a mapping, got {type(data).__name__}")
        missing = [key for key in ("id", "pattern") if key not in data]
        if missing:
            raise ConfigError(f"Rule definition {data.get('id', '?')!r} is missing: {', '.join(missing)}")
        unknown = set(data) - {"id", "message", "severity", "pattern", "capture", "language"}
        if unknown:
            raise ConfigError(f"Rule '{data['id']}' has unknown keys: {', '.join(sorted(unknown))}")
        return cls(
            id=str(data["id"]),
            message=data.get("message") or "",
            severity=Severity.parse(data.get("severity", "warning")),
            pattern=str(data["pattern"]),
            capture=data.get("capture"),
            language=data.get("language") or DEFAULT_LANGUAGE,
        )


@dataclass(frozen=True)
class Capture:
    """One named capture binding inside a match.

    ``node`` is owned by the tree and is only valid while the tree is;
    span and text are copied out at construction.
    """
    name: str
    node: Any
    start_byte: int
    end_byte: int
    start_point: Point
    end_point: Point
    text: str


@dataclass(frozen=True)
class Match:
    """A single match of a rule's pattern."""
    pattern_index: int
    captures: Dict[str, List[Capture]]

    def get(self, name: str) -> List[Capture]:
        return self.captures.get(name, [])


@dataclass(frozen=True)
class Diagnostic:
    """A reported issue. Pure value object, safe to keep after the tree is gone."""
    rule_id: str
    severity: Severity
    message: str
    start_byte: int
    end_byte: int
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    @property
    def range(self) -> Tuple[int, int, int, int]:
        return (self.start_line, self.start_col, self.end_line, self.end_col)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "start_byte": self.start_byte,
            "end_byte": self.end_byte,
            "range": {
                "startLine": self.start_line,
                "startCol": self.start_col,
                "endLine": self.end_line,
                "endCol": self.end_col,
            },
            "text": self.text,
        }


@dataclass(frozen=True)
class RuleError:
    """A rule-level failure: the rule was skipped, the run went on."""
    rule_id: str
    kind: str  # "compile", "capture" or "match"
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"rule_id": self.rule_id, "kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class RuleResult:
    """Outcome of evaluating one rule: either matches or an error."""
    rule_id: str
    matches: Tuple[Match, ...] = ()
    primary: Optional[str] = None
    error: Optional[RuleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, rule_id: str, matches, primary: str) -> "RuleResult":
        return cls(rule_id=rule_id, matches=tuple(matches), primary=primary)

    @classmethod
    def failure(cls, rule_id: str, kind: str, message: str) -> "RuleResult":
        return cls(rule_id=rule_id, error=RuleError(rule_id, kind, message))


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass(frozen=True)
class LintRequest:
    """A request to lint one version of one document.

    When ``tree`` is None the runner asks the language adapter to parse
    ``text``. ``text`` may be the raw file bytes, in which case diagnostic
    byte offsets index the file exactly as stored.
    """
    path: str
    text: Union[str, bytes]
    version: int = 0
    tree: Any = None
    language: Optional[str] = None


@dataclass(frozen=True)
class DiagnosticBatch:
    """The single report a run delivers to its host."""
    document: str
    version: int
    status: RunState
    diagnostics: Tuple[Diagnostic, ...] = ()
    rule_errors: Tuple[RuleError, ...] = ()
    error: Optional[str] = None
    rules_run: int = 0
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is RunState.FINISHED


class DiagnosticsHost(Protocol):
    """Receives exactly one batch per run."""

    def report(self, batch: DiagnosticBatch) -> None:
        ...


class CollectingHost:
    """In-memory host that keeps every batch it receives."""

    def __init__(self):
        self.batches: List[DiagnosticBatch] = []

    def report(self, batch: DiagnosticBatch) -> None:
        self.batches.append(batch)

    @property
    def last(self) -> Optional[DiagnosticBatch]:
        return self.batches[-1] if self.batches else None
