"""Rules: incomplete definitions."""

from sdml_lint.types import Rule, Severity


RULES = [
    Rule(
        id="types-missing-bodies",
        message="This type has no body",
        severity=Severity.INFO,
        pattern=(
            '[(entity_def !body)'
            ' (enum_def !body)'
            ' (event_def !body)'
            ' (structure_def !body)'
            ' (union_def !body)] @type'
        ),
    ),
]
