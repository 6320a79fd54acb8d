"""
Diagnostic builder: turns a rule match into a diagnostic value.
"""

from typing import List, Optional

from .types import Diagnostic, Match, Rule, RuleResult


def build_diagnostic(rule: Rule, match: Match, capture: str) -> Optional[Diagnostic]:
    """Build the diagnostic for one match of ``rule``.

    The span is that of the ``capture`` binding; a quantified capture that
    bound several nodes spans from the first to the last of them. Returns
    None when the capture is optional and bound nothing in this match.
    """
    bound = match.get(capture)
    if not bound:
        return None

    first = min(bound, key=lambda c: c.start_byte)
    last = max(bound, key=lambda c: c.end_byte)
    if len(bound) == 1:
        text = first.text
    else:
        text = " ".join(c.text for c in sorted(bound, key=lambda c: c.start_byte))

    return Diagnostic(
        rule_id=rule.id,
        severity=rule.severity,
        message=f"{rule.message}: {text}",
        start_byte=first.start_byte,
        end_byte=last.end_byte,
        start_line=first.start_point[0],
        start_col=first.start_point[1],
        end_line=last.end_point[0],
        end_col=last.end_point[1],
        text=text,
    )


def build_diagnostics(rule: Rule, result: RuleResult) -> List[Diagnostic]:
    """All diagnostics for a successful rule result, in match order."""
    if not result.ok:
        return []
    diagnostics = []
    for match in result.matches:
        diagnostic = build_diagnostic(rule, match, result.primary)
        if diagnostic is not None:
            diagnostics.append(diagnostic)
    return diagnostics
