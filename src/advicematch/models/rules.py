"""
advicematch Rule Trees

Weighted AND/OR rule trees as authored in the advice dashboard.

Key components:
- FieldRef: a field named by tenant key, by concept, or both
- ConditionRule: leaf comparison of one field against one value
- RuleGroup: AND/OR node over conditions and nested groups
- RuleNode: the tagged union ConditionRule | RuleGroup
- Helper functions: AND(), OR(), RULE(), EQUALS(), ... for building trees

Weights:
    Every condition carries an integer weight in [1, 10]. Missing or
    non-numeric weights default to 1; numbers outside the range are
    clamped. The original authored value is kept on ``authored_weight``
    so rule linting can report it.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .enums import LogicOperator, MatchOperator


MIN_WEIGHT = 1
MAX_WEIGHT = 10
DEFAULT_WEIGHT = 1

# Prefix marking a plain-string field as a concept handle ("concept:timeline")
CONCEPT_PREFIX = "concept:"


def normalize_weight(value: Any) -> int:
    """
    Coerce an authored weight into the [1, 10] integer range.

    Examples:
        normalize_weight(None) == 1
        normalize_weight("7") == 7
        normalize_weight(25) == 10
        normalize_weight(0) == 1
        normalize_weight("heavy") == 1
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_WEIGHT
    try:
        number = float(value)
    except OverflowError:
        # Integers too large for a float
        return MAX_WEIGHT if value > 0 else MIN_WEIGHT
    except (TypeError, ValueError):
        return DEFAULT_WEIGHT
    if math.isnan(number):
        return DEFAULT_WEIGHT
    if math.isinf(number):
        return MAX_WEIGHT if number > 0 else MIN_WEIGHT
    return max(MIN_WEIGHT, min(MAX_WEIGHT, int(round(number))))


# =============================================================================
# Field References
# =============================================================================

@dataclass(frozen=True)
class FieldRef:
    """
    Field reference in object form, as produced by rule recommendation.

    Attributes:
        field_id: The tenant's conversation field key (e.g. "homeType")
        concept: Stable concept handle (e.g. "property-type")
    """
    field_id: Optional[str] = None
    concept: Optional[str] = None

    @property
    def label(self) -> str:
        """Display form used in traces."""
        if self.concept and self.field_id:
            return f"{self.concept}({self.field_id})"
        if self.concept:
            return f"{CONCEPT_PREFIX}{self.concept}"
        return self.field_id or ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.field_id is not None:
            result["fieldId"] = self.field_id
        if self.concept is not None:
            result["concept"] = self.concept
        return result


FieldSpec = Union[str, FieldRef]


def field_label(spec: FieldSpec) -> str:
    """Human-readable name of a field spec."""
    if isinstance(spec, FieldRef):
        return spec.label
    return str(spec)


def concept_of(spec: FieldSpec) -> Optional[str]:
    """Return the concept handle named by a field spec, if any."""
    if isinstance(spec, FieldRef):
        return spec.concept
    if isinstance(spec, str) and spec.startswith(CONCEPT_PREFIX):
        return spec[len(CONCEPT_PREFIX):]
    return None


# =============================================================================
# Condition Rule (Leaf)
# =============================================================================

@dataclass(frozen=True)
class ConditionRule:
    """
    A leaf comparison in a rule tree.

    Unknown operator strings are kept as-is rather than rejected so the
    evaluator can report the node as malformed without failing the
    advice item's siblings.

    Attributes:
        field: Answer key, "concept:<id>" handle, or FieldRef
        operator: MatchOperator, or the raw authored string if unknown
        value: Scalar, list (includes), or [min, max] pair (between)
        weight: Relative importance, normalized to [1, 10]
    """
    field: FieldSpec
    operator: Union[MatchOperator, str]
    value: Any = None
    weight: Any = DEFAULT_WEIGHT
    authored_weight: Any = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "authored_weight", self.weight)
        object.__setattr__(self, "weight", normalize_weight(self.weight))

        known = MatchOperator.parse(self.operator)
        object.__setattr__(self, "operator", known if known is not None else str(self.operator))

        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))

    @property
    def match_operator(self) -> Optional[MatchOperator]:
        """The operator if it is one the engine knows, else None."""
        if isinstance(self.operator, MatchOperator):
            return self.operator
        return None

    @property
    def operator_name(self) -> str:
        if isinstance(self.operator, MatchOperator):
            return self.operator.value
        return self.operator

    @property
    def field_label(self) -> str:
        return field_label(self.field)

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the dashboard's authored shape."""
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {
            "field": self.field.to_dict() if isinstance(self.field, FieldRef) else self.field,
            "operator": self.operator_name,
            "value": value,
            "weight": self.weight,
        }


# =============================================================================
# Rule Group (Composable Tree)
# =============================================================================

@dataclass(frozen=True)
class RuleGroup:
    """
    An AND/OR node over conditions and nested groups.

    An empty group is satisfied and contributes zero weight.

    Examples:
        RuleGroup(logic=LogicOperator.AND, rules=[rule1, rule2])

        RuleGroup(
            logic="OR",
            rules=[rule1, RuleGroup(logic="AND", rules=[rule2, rule3])],
        )
    """
    logic: LogicOperator
    rules: tuple[RuleNode, ...] = ()

    def __post_init__(self) -> None:
        logic = self.logic
        if not isinstance(logic, LogicOperator):
            try:
                logic = LogicOperator(str(logic).upper())
            except ValueError:
                raise ValueError(f"Rule group logic must be AND or OR, got {self.logic!r}")
        object.__setattr__(self, "logic", logic)

        children = tuple(self.rules or ())
        for child in children:
            if not isinstance(child, (ConditionRule, RuleGroup)):
                raise TypeError(
                    f"Rule group children must be ConditionRule or RuleGroup, "
                    f"got {type(child).__name__}"
                )
        object.__setattr__(self, "rules", children)

    @property
    def is_empty(self) -> bool:
        return not self.rules

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the dashboard's authored shape."""
        return {
            "logic": self.logic.value,
            "rules": [child.to_dict() for child in self.rules],
        }


# Tagged union of the two node shapes. Tree walks dispatch on
# is_rule_group() / is_condition_rule() and handle both branches.
RuleNode = Union[ConditionRule, RuleGroup]


def is_rule_group(node: RuleNode) -> bool:
    return isinstance(node, RuleGroup)


def is_condition_rule(node: RuleNode) -> bool:
    return isinstance(node, ConditionRule)


# =============================================================================
# Helper Functions for Building Rule Trees
# =============================================================================

def AND(*nodes: RuleNode) -> RuleGroup:
    """
    Create an AND group.

    Example:
        group = AND(
            EQUALS("propertyType", "condo"),
            GREATER_THAN("budget", "500000", weight=3),
        )
    """
    return RuleGroup(logic=LogicOperator.AND, rules=tuple(nodes))


def OR(*nodes: RuleNode) -> RuleGroup:
    """Create an OR group."""
    return RuleGroup(logic=LogicOperator.OR, rules=tuple(nodes))


def RULE(
    field: FieldSpec,
    operator: Union[MatchOperator, str],
    value: Any = None,
    weight: Any = DEFAULT_WEIGHT,
) -> ConditionRule:
    """Create a condition rule (leaf)."""
    return ConditionRule(field=field, operator=operator, value=value, weight=weight)


def EQUALS(field: FieldSpec, value: Any, weight: Any = DEFAULT_WEIGHT) -> ConditionRule:
    return RULE(field, MatchOperator.EQUALS, value, weight)


def NOT_EQUALS(field: FieldSpec, value: Any, weight: Any = DEFAULT_WEIGHT) -> ConditionRule:
    return RULE(field, MatchOperator.NOT_EQUALS, value, weight)


def INCLUDES(field: FieldSpec, values: list[Any], weight: Any = DEFAULT_WEIGHT) -> ConditionRule:
    return RULE(field, MatchOperator.INCLUDES, list(values), weight)


def GREATER_THAN(field: FieldSpec, value: Any, weight: Any = DEFAULT_WEIGHT) -> ConditionRule:
    return RULE(field, MatchOperator.GREATER_THAN, value, weight)


def LESS_THAN(field: FieldSpec, value: Any, weight: Any = DEFAULT_WEIGHT) -> ConditionRule:
    return RULE(field, MatchOperator.LESS_THAN, value, weight)


def BETWEEN(field: FieldSpec, low: Any, high: Any, weight: Any = DEFAULT_WEIGHT) -> ConditionRule:
    """Create an inclusive range rule: low <= field <= high"""
    return RULE(field, MatchOperator.BETWEEN, [low, high], weight)


def CONCEPT(concept: str, field_id: Optional[str] = None) -> FieldRef:
    """Reference a field through its concept handle."""
    return FieldRef(field_id=field_id, concept=concept)
