"""
advicematch Condition Evaluator

Evaluates a single condition rule against a resolved visitor answer.

Operator semantics:
- equals / not_equals: case-sensitive string equality; not_equals is
  satisfied when the field is unresolved (absence does not imply the
  excluded value)
- includes: the rule's list contains the visitor's answer
- greater_than / less_than: numeric comparison; either side failing to
  parse is a non-match, including bucket answers such as "0-3"
- between: inclusive [min, max] numeric range

A rule that cannot be evaluated as authored (unknown operator, wrong
value shape) is not satisfied and is reported as MALFORMED in its trace.
Nothing here raises to the caller.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..exceptions import MalformedRuleError
from ..models import (
    ConceptTable,
    ConditionRule,
    ConditionTrace,
    MatchOperator,
    ResolvedValue,
    TraceOutcome,
)
from .field_resolver import parse_number, resolve_field


logger = logging.getLogger(__name__)

_RANGE_BUCKET = re.compile(r"^\s*\d+(\.\d+)?\s*-\s*\d+(\.\d+)?\s*$")


@dataclass(frozen=True)
class ConditionOutcome:
    """Verdict, weight and trace for one condition."""
    satisfied: bool
    weight: int
    trace: ConditionTrace


# =============================================================================
# Value Shapes
# =============================================================================

def scalar_text(value: Any) -> str:
    """
    String form of an authored scalar for equality checks.

    Authored JSON numbers compare through their string form, with
    integral floats written without a fraction (3.0 -> "3").
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def check_value_shape(rule: ConditionRule) -> MatchOperator:
    """
    Validate that a rule's value has the shape its operator needs.

    Returns:
        The rule's MatchOperator

    Raises:
        MalformedRuleError: If the rule cannot be evaluated as authored
    """
    operator = rule.match_operator
    if operator is None:
        raise MalformedRuleError(
            message=f"Unknown operator '{rule.operator_name}'",
            details={"field": rule.field_label, "operator": rule.operator_name},
        )

    value = rule.value
    if operator == MatchOperator.INCLUDES:
        if not isinstance(value, tuple):
            raise MalformedRuleError(
                message="includes requires a list of values",
                details={"field": rule.field_label, "value": value},
            )
        if not all(_is_scalar(v) for v in value):
            raise MalformedRuleError(
                message="includes values must be scalars",
                details={"field": rule.field_label, "value": list(value)},
            )
    elif operator == MatchOperator.BETWEEN:
        if not isinstance(value, tuple) or len(value) != 2:
            raise MalformedRuleError(
                message="between requires a [min, max] pair",
                details={"field": rule.field_label, "value": value},
            )
    elif not _is_scalar(value):
        raise MalformedRuleError(
            message=f"{operator.value} requires a single value",
            details={"field": rule.field_label, "value": value},
        )

    return operator


# =============================================================================
# Comparisons
# =============================================================================

def _numeric_failure(resolved: ResolvedValue) -> str:
    if resolved.text is not None and _RANGE_BUCKET.match(resolved.text):
        return f"range answer '{resolved.text}' is not compared numerically"
    return f"answer '{resolved.text}' is not a simple number"


def compare_values(
    operator: MatchOperator,
    resolved: ResolvedValue,
    expected: Any,
) -> tuple[bool, str]:
    """
    Compare a resolved answer with a rule value.

    Assumes the value shape was checked with ``check_value_shape``.

    Returns:
        Tuple of (satisfied, detail). detail explains non-obvious outcomes.
    """
    if not resolved.is_resolved:
        if operator == MatchOperator.NOT_EQUALS:
            return (True, "no answer to contradict")
        return (False, "no answer")

    actual = resolved.text or ""

    if operator == MatchOperator.EQUALS:
        return (actual == scalar_text(expected), "")

    if operator == MatchOperator.NOT_EQUALS:
        return (actual != scalar_text(expected), "")

    if operator == MatchOperator.INCLUDES:
        return (actual in {scalar_text(v) for v in expected}, "")

    if operator in (MatchOperator.GREATER_THAN, MatchOperator.LESS_THAN):
        if resolved.number is None:
            return (False, _numeric_failure(resolved))
        bound = parse_number(expected)
        if bound is None:
            return (False, f"rule value '{expected}' is not a simple number")
        if operator == MatchOperator.GREATER_THAN:
            return (resolved.number > bound, "")
        return (resolved.number < bound, "")

    if operator == MatchOperator.BETWEEN:
        if resolved.number is None:
            return (False, _numeric_failure(resolved))
        low, high = (parse_number(v) for v in expected)
        if low is None or high is None:
            return (False, f"range bounds {list(expected)} are not simple numbers")
        return (low <= resolved.number <= high, "")

    # check_value_shape rejects anything else
    return (False, "unsupported operator")


# =============================================================================
# Condition Evaluation
# =============================================================================

def evaluate_condition(
    rule: ConditionRule,
    resolved: ResolvedValue,
    path: str = "0",
) -> ConditionOutcome:
    """
    Evaluate one condition against an already-resolved answer.

    Args:
        rule: The condition rule
        resolved: Output of the field resolver for rule.field
        path: Dotted position of the rule in its tree, for the trace

    Returns:
        ConditionOutcome (never raises)
    """
    try:
        operator = check_value_shape(rule)
    except MalformedRuleError as e:
        logger.warning("Malformed rule at %s: %s", path, e.message)
        return ConditionOutcome(
            satisfied=False,
            weight=rule.weight,
            trace=_trace(rule, resolved, path, TraceOutcome.MALFORMED, False, e.message),
        )

    satisfied, detail = compare_values(operator, resolved, rule.value)

    if satisfied:
        outcome = TraceOutcome.MATCHED
    elif not resolved.is_resolved:
        outcome = TraceOutcome.UNRESOLVED
    else:
        outcome = TraceOutcome.FAILED

    return ConditionOutcome(
        satisfied=satisfied,
        weight=rule.weight,
        trace=_trace(rule, resolved, path, outcome, satisfied, detail),
    )


def check_rule(
    rule: ConditionRule,
    answers: Mapping[str, Any],
    concepts: Optional[ConceptTable] = None,
) -> bool:
    """
    Resolve and evaluate a single rule in one call.

    Example:
        check_rule(EQUALS("timeline", "0-3"), {"timeline": "0-3"})  # True
    """
    resolved = resolve_field(rule.field, answers, concepts)
    return evaluate_condition(rule, resolved).satisfied


def _trace(
    rule: ConditionRule,
    resolved: ResolvedValue,
    path: str,
    outcome: TraceOutcome,
    satisfied: bool,
    detail: str,
) -> ConditionTrace:
    return ConditionTrace(
        path=path,
        field=rule.field_label,
        field_key=resolved.field_key,
        operator=rule.operator_name,
        expected=rule.value,
        actual=resolved.text,
        outcome=outcome,
        satisfied=satisfied,
        weight=rule.weight,
        detail=detail,
    )
