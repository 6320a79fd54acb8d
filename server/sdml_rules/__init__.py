"""
Default sdml-lint rules.

Each module in this package declares a ``RULES`` list of ``Rule`` records.
The registry collects them, module by module in name order, into the bundled
rule table. Patterns are tree-sitter queries over the SDML grammar and are
passed to tree-sitter verbatim.

To add a rule, append a record to the RULES list of the module it fits:

```python
from sdml_lint.types import Rule, Severity

RULES = [
    Rule(
        id="my-rule",
        message="Something looks off",
        severity=Severity.WARNING,
        pattern='(entity_def name: (identifier) @name (#eq? @name "Thing"))',
    ),
]
```
"""
