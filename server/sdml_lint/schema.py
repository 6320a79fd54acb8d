"""
JSON schema and serialization for sdml-lint output.

This module defines the JSON contract of a diagnostic batch and of the
multi-file CLI report, plus helpers to serialize and validate them.
"""

from typing import Any, Dict, List, Sequence
from pathlib import Path

import jsonschema

from .types import DiagnosticBatch

# Current protocol version
PROTOCOL_VERSION = "1"
ENGINE_VERSION = "0.1.0"

_RANGE_SCHEMA = {
    "type": "object",
    "properties": {
        "startLine": {"type": "integer", "minimum": 1},
        "startCol": {"type": "integer", "minimum": 0},
        "endLine": {"type": "integer", "minimum": 1},
        "endCol": {"type": "integer", "minimum": 0}
    },
    "required": ["startLine", "startCol", "endLine", "endCol"],
    "additionalProperties": False,
    "description": "Line/column range (1-based lines, 0-based byte columns), end-exclusive"
}

# JSON Schema for a single Diagnostic
DIAGNOSTIC_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "rule_id": {
            "type": "string",
            "description": "Rule identifier that produced this diagnostic"
        },
        "severity": {
            "type": "string",
            "enum": ["info", "warning", "error"],
        },
        "message": {
            "type": "string",
            "description": "Rule message followed by the captured text"
        },
        "start_byte": {"type": "integer", "minimum": 0},
        "end_byte": {"type": "integer", "minimum": 0},
        "range": _RANGE_SCHEMA,
        "text": {
            "type": "string",
            "description": "Source text of the primary capture"
        }
    },
    "required": ["rule_id", "severity", "message", "start_byte", "end_byte", "range"],
    "additionalProperties": False
}

RULE_ERROR_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "rule_id": {"type": "string"},
        "kind": {"type": "string", "enum": ["compile", "capture", "match"]},
        "message": {"type": "string"}
    },
    "required": ["rule_id", "kind", "message"],
    "additionalProperties": False
}

METRICS_SCHEMA = {
    "type": "object",
    "properties": {
        "parse_ms": {"type": "number", "minimum": 0},
        "rules_ms": {"type": "number", "minimum": 0},
        "total_ms": {"type": "number", "minimum": 0}
    },
    "required": ["parse_ms", "rules_ms", "total_ms"],
    "additionalProperties": False
}

# JSON Schema for one run's batch
BATCH_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "document": {"type": "string"},
        "uri": {"type": "string"},
        "version": {"type": "integer"},
        "status": {"type": "string", "enum": ["finished", "failed"]},
        "diagnostics": {"type": "array", "items": DIAGNOSTIC_JSON_SCHEMA},
        "rule_errors": {"type": "array", "items": RULE_ERROR_JSON_SCHEMA},
        "error": {"type": ["string", "null"]},
        "rules_run": {"type": "integer", "minimum": 0},
        "metrics": METRICS_SCHEMA
    },
    "required": ["document", "version", "status", "diagnostics", "rule_errors", "rules_run", "metrics"],
    "additionalProperties": False
}

# JSON Schema for the full CLI report
REPORT_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "sdml-lint.protocol": {"type": "string"},
        "engine_version": {"type": "string"},
        "files_scanned": {"type": "integer", "minimum": 0},
        "rules_run": {"type": "integer", "minimum": 0},
        "results": {"type": "array", "items": BATCH_JSON_SCHEMA},
        "metrics": METRICS_SCHEMA
    },
    "required": ["sdml-lint.protocol", "engine_version", "files_scanned", "rules_run", "results", "metrics"],
    "additionalProperties": False
}


def path_to_uri(file_path: str) -> str:
    """File URI for a path, for editor hosts."""
    return Path(file_path).resolve().as_uri()


def batch_to_json(batch: DiagnosticBatch) -> Dict[str, Any]:
    """Convert a DiagnosticBatch to a JSON-serializable dictionary."""
    return {
        "document": batch.document,
        "uri": path_to_uri(batch.document),
        "version": batch.version,
        "status": batch.status.value,
        "diagnostics": [d.to_dict() for d in batch.diagnostics],
        "rule_errors": [e.to_dict() for e in batch.rule_errors],
        "error": batch.error,
        "rules_run": batch.rules_run,
        "metrics": {
            "parse_ms": batch.metrics.get("parse_ms", 0.0),
            "rules_ms": batch.metrics.get("rules_ms", 0.0),
            "total_ms": batch.metrics.get("total_ms", 0.0),
        },
    }


def report_to_json(batches: Sequence[DiagnosticBatch], rules_count: int,
                   metrics: Dict[str, float]) -> Dict[str, Any]:
    """Build the multi-file report emitted by the CLI."""
    return {
        "sdml-lint.protocol": PROTOCOL_VERSION,
        "engine_version": ENGINE_VERSION,
        "files_scanned": len(batches),
        "rules_run": rules_count,
        "results": [batch_to_json(b) for b in batches],
        "metrics": {
            "parse_ms": round(metrics.get("parse_ms", 0.0), 3),
            "rules_ms": round(metrics.get("rules_ms", 0.0), 3),
            "total_ms": round(metrics.get("total_ms", 0.0), 3),
        },
    }


def _validate(instance: Dict[str, Any], schema: Dict[str, Any], label: str) -> List[str]:
    validator = jsonschema.Draft7Validator(schema)
    errors = []
    for error in sorted(validator.iter_errors(instance), key=lambda e: list(e.path)):
        location = "/".join(str(p) for p in error.path) or "<root>"
        errors.append(f"{label} {location}: {error.message}")
    return errors


def validate_batch(batch_json: Dict[str, Any]) -> List[str]:
    """
    Validate a serialized batch against the schema.

    Returns:
        List of validation errors (empty if valid)
    """
    return _validate(batch_json, BATCH_JSON_SCHEMA, "Batch")


def validate_report(report: Dict[str, Any]) -> List[str]:
    """
    Validate a CLI report against the schema.

    Returns:
        List of validation errors (empty if valid)
    """
    return _validate(report, REPORT_JSON_SCHEMA, "Report")
