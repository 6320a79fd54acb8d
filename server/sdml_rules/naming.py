"""Rules: naming conventions.

Modules and members are lower-case, types and variants upper-case:

    module example is            ; ok
      entity person end          ; type-name-case
      structure Address is
        Street -> string         ; member-name-case
      end
    end
"""

from sdml_lint.types import Rule, Severity


RULES = [
    Rule(
        id="module-name-case",
        message="Module names may not start with upper-case",
        severity=Severity.WARNING,
        pattern='(module name: (identifier) @name (#match? @name "^[A-Z]"))',
    ),
    Rule(
        id="type-name-case",
        message="Type names may not start with lower-case",
        severity=Severity.WARNING,
        pattern=(
            '([(datatype_def name: (identifier) @name)'
            ' (entity_def name: (identifier) @name)'
            ' (enum_def name: (identifier) @name)'
            ' (event_def name: (identifier) @name)'
            ' (structure_def name: (identifier) @name)'
            ' (union_def name: (identifier) @name)]'
            ' (#match? @name "^[a-z]"))'
        ),
    ),
    Rule(
        id="member-name-case",
        message="Member names may not start with upper-case",
        severity=Severity.WARNING,
        pattern='(member_def name: (identifier) @name (#match? @name "^[A-Z]"))',
    ),
    Rule(
        id="value-variant-name-case",
        message="Value variant names may not start with lower-case",
        severity=Severity.WARNING,
        pattern='(value_variant name: (identifier) @name (#match? @name "^[a-z]"))',
    ),
    Rule(
        id="type-variant-rename-case",
        message="Type variant renames may not start with lower-case",
        severity=Severity.WARNING,
        pattern='(type_variant rename: (identifier) @name (#match? @name "^[a-z]"))',
    ),
]
