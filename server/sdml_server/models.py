from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from sdml_lint.types import ConfigError, Severity

# ---- Rule table ----

class RuleModel(BaseModel):
    id: str
    message: str = ""
    severity: Optional[str] = "warning"
    pattern: str
    capture: Optional[str] = None
    language: str = "sdml"

    @field_validator("severity")
    @classmethod
    def normalize_severity(cls, value):
        # Same aliases as the YAML config (warn, off, none, empty)
        try:
            return Severity.parse(value).value
        except ConfigError as e:
            raise ValueError(str(e))

class RuleTableModel(BaseModel):
    rules: List[RuleModel] = []

class RuleTableUpdate(BaseModel):
    """Replace the whole rule table. Omitted rules are gone afterwards."""
    rules: List[RuleModel]
    rule_severities: Dict[str, str] = {}

# ---- Linting ----

class LintRequestModel(BaseModel):
    path: str = "untitled.sdm"
    text: str
    version: int = 0
    language: Optional[str] = None

class RangeModel(BaseModel):
    startLine: int
    startCol: int
    endLine: int
    endCol: int

class DiagnosticModel(BaseModel):
    rule_id: str
    severity: Literal["error", "warning", "info"]
    message: str
    start_byte: int
    end_byte: int
    range: RangeModel
    text: str = ""

class RuleErrorModel(BaseModel):
    rule_id: str
    kind: Literal["compile", "capture", "match"]
    message: str

class LintResponse(BaseModel):
    document: str
    uri: str
    version: int
    status: Literal["finished", "failed"]
    diagnostics: List[DiagnosticModel] = []
    rule_errors: List[RuleErrorModel] = []
    error: Optional[str] = None
    rules_run: int = 0
    metrics: Dict[str, Any] = Field(default_factory=dict)
