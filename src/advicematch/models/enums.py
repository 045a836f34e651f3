"""
advicematch Enumerations

All enums inherit from (str, Enum) for JSON serialization compatibility.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


# =============================================================================
# Rule Operators
# =============================================================================

class MatchOperator(str, Enum):
    """Comparison operators available on a condition rule."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    INCLUDES = "includes"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    BETWEEN = "between"

    @classmethod
    def parse(cls, value: object) -> Optional[MatchOperator]:
        """Return the operator for an authored value, or None if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class LogicOperator(str, Enum):
    """How a rule group combines its children."""
    AND = "AND"
    OR = "OR"


# Operators that compare numbers rather than strings
NUMERIC_OPERATORS = frozenset({
    MatchOperator.GREATER_THAN,
    MatchOperator.LESS_THAN,
    MatchOperator.BETWEEN,
})


# =============================================================================
# Resolution and Trace
# =============================================================================

class ResolvedKind(str, Enum):
    """Shape of a visitor answer after field resolution."""
    UNRESOLVED = "unresolved"
    TEXT = "text"
    NUMBER = "number"            # text that also parsed as a number


class TraceOutcome(str, Enum):
    """Outcome of a single condition evaluation."""
    MATCHED = "matched"
    FAILED = "failed"
    UNRESOLVED = "unresolved"    # field had no answer
    MALFORMED = "malformed"      # rule could not be evaluated as authored


class ExclusionReason(str, Enum):
    """Why a candidate did not make the ranked list."""
    FLOW_MISMATCH = "flow_mismatch"
    RULE_GATE_FAILED = "rule_gate_failed"
    BELOW_THRESHOLD = "below_threshold"
    EVALUATION_ERROR = "evaluation_error"


class IssueSeverity(str, Enum):
    """Severity of a rule lint finding."""
    ERROR = "error"              # node will always evaluate as malformed
    WARNING = "warning"          # node evaluates, but not as the author likely meant
