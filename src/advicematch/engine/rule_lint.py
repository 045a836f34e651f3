"""
advicematch Rule Linter

Static checks over authored rule trees, run when advice is saved or a
tenant's conversation fields change. Nothing is evaluated; findings
describe how the engine will treat each node.

Catches:
- Unknown operators and wrong value shapes (always malformed at runtime)
- Weights that will be clamped or defaulted
- Empty groups (pass with zero weight, likely unfinished)
- Non-numeric values on numeric operators (can never match)
- Orphaned fields: not a known field key and not mapped by the tenant's
  concept table, typically after a question was renamed or deleted
"""
from __future__ import annotations

import math
from typing import Any, Iterable, Optional

from ..exceptions import MalformedRuleError
from ..models import (
    MAX_WEIGHT,
    MIN_WEIGHT,
    NUMERIC_OPERATORS,
    AdviceItem,
    ConceptTable,
    ConditionRule,
    FieldRef,
    IssueSeverity,
    MatchOperator,
    RuleGroup,
    RuleIssue,
    RuleNode,
    concept_of,
    is_rule_group,
)
from .condition_evaluator import check_value_shape
from .field_resolver import parse_number


# Issue codes
UNKNOWN_OPERATOR = "unknown_operator"
BAD_VALUE_SHAPE = "bad_value_shape"
NON_NUMERIC_VALUE = "non_numeric_value"
WEIGHT_CLAMPED = "weight_clamped"
WEIGHT_DEFAULTED = "weight_defaulted"
EMPTY_GROUP = "empty_group"
ORPHANED_FIELD = "orphaned_field"


def lint_rule_groups(
    groups: Iterable[RuleNode],
    known_fields: Optional[Iterable[str]] = None,
    concepts: Optional[ConceptTable] = None,
    advice_id: Optional[str] = None,
) -> list[RuleIssue]:
    """
    Lint an advice item's top-level rule groups.

    Args:
        groups: Top-level groups (paths "0", "1", ... as in traces)
        known_fields: The tenant's current field keys; None skips the
            orphan check for plain field keys
        concepts: The tenant's concept table; None skips the orphan
            check for concept handles
        advice_id: Copied onto every issue

    Returns:
        Issues in tree order
    """
    known = set(known_fields) if known_fields is not None else None
    issues: list[RuleIssue] = []
    for i, node in enumerate(groups):
        _lint_node(node, str(i), known, concepts, advice_id, issues)
    return issues


def lint_advice(
    advice: AdviceItem,
    known_fields: Optional[Iterable[str]] = None,
    concepts: Optional[ConceptTable] = None,
) -> list[RuleIssue]:
    """Lint one advice item's rule groups."""
    return lint_rule_groups(
        advice.applicable_when.rule_groups,
        known_fields=known_fields,
        concepts=concepts,
        advice_id=advice.id,
    )


def has_errors(issues: Iterable[RuleIssue]) -> bool:
    return any(issue.severity == IssueSeverity.ERROR for issue in issues)


# =============================================================================
# Tree Walk
# =============================================================================

def _lint_node(
    node: RuleNode,
    path: str,
    known: Optional[set[str]],
    concepts: Optional[ConceptTable],
    advice_id: Optional[str],
    issues: list[RuleIssue],
) -> None:
    if is_rule_group(node):
        _lint_group(node, path, known, concepts, advice_id, issues)
    else:
        _lint_rule(node, path, known, concepts, advice_id, issues)


def _lint_group(
    group: RuleGroup,
    path: str,
    known: Optional[set[str]],
    concepts: Optional[ConceptTable],
    advice_id: Optional[str],
    issues: list[RuleIssue],
) -> None:
    if group.is_empty:
        issues.append(RuleIssue(
            path=path,
            severity=IssueSeverity.WARNING,
            code=EMPTY_GROUP,
            message=f"Empty {group.logic.value} group always passes and adds no weight",
            advice_id=advice_id,
        ))
        return
    for i, child in enumerate(group.rules):
        _lint_node(child, f"{path}.{i}", known, concepts, advice_id, issues)


def _lint_rule(
    rule: ConditionRule,
    path: str,
    known: Optional[set[str]],
    concepts: Optional[ConceptTable],
    advice_id: Optional[str],
    issues: list[RuleIssue],
) -> None:
    def add(severity: IssueSeverity, code: str, message: str) -> None:
        issues.append(RuleIssue(path, severity, code, message, advice_id))

    operator: Optional[MatchOperator] = None
    try:
        operator = check_value_shape(rule)
    except MalformedRuleError as e:
        code = UNKNOWN_OPERATOR if rule.match_operator is None else BAD_VALUE_SHAPE
        add(IssueSeverity.ERROR, code, f"{rule.field_label}: {e.message}")

    if operator in NUMERIC_OPERATORS:
        values = rule.value if operator == MatchOperator.BETWEEN else (rule.value,)
        bad = [v for v in values if parse_number(v) is None]
        if bad:
            add(
                IssueSeverity.WARNING,
                NON_NUMERIC_VALUE,
                f"{rule.field_label}: {operator.value} value {bad[0]!r} is not a number; "
                f"the rule can never match",
            )

    weight_issue = _weight_issue(rule.authored_weight, rule.weight)
    if weight_issue is not None:
        code, message = weight_issue
        add(IssueSeverity.WARNING, code, f"{rule.field_label}: {message}")

    orphan = _orphan_message(rule, known, concepts)
    if orphan is not None:
        add(IssueSeverity.WARNING, ORPHANED_FIELD, orphan)


def _weight_issue(authored: Any, effective: int) -> Optional[tuple[str, str]]:
    if authored is None:
        return None
    try:
        number = float(authored) if not isinstance(authored, bool) else math.nan
    except OverflowError:
        number = math.inf if authored > 0 else -math.inf
    except (TypeError, ValueError):
        number = math.nan
    if math.isnan(number):
        return (WEIGHT_DEFAULTED, f"weight {authored!r} is not a number, using {effective}")
    if number == effective:
        return None
    if MIN_WEIGHT <= number <= MAX_WEIGHT:
        return (WEIGHT_CLAMPED, f"weight {authored!r} is not a whole number, using {effective}")
    return (WEIGHT_CLAMPED, f"weight {authored!r} is outside {MIN_WEIGHT}-{MAX_WEIGHT}, using {effective}")


def _orphan_message(
    rule: ConditionRule,
    known: Optional[set[str]],
    concepts: Optional[ConceptTable],
) -> Optional[str]:
    field = rule.field
    concept = concept_of(field)

    if concept is not None:
        if concepts is None:
            return None
        if concepts.has_concept(concept):
            return None
        fallback = field.field_id if isinstance(field, FieldRef) else None
        if fallback and (known is None or fallback in known):
            return None
        return f"{rule.field_label}: concept '{concept}' is not mapped for this tenant"

    if known is None:
        return None
    key = field.field_id if isinstance(field, FieldRef) else str(field)
    if key in known:
        return None
    if concepts is not None and concepts.has_concept(key):
        return None
    return f"{rule.field_label}: field '{key}' is not a current conversation field"
