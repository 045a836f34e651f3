"""
advicematch Models

All domain models for the advice targeting engine:

    from advicematch.models import (
        # Enums
        MatchOperator, LogicOperator, TraceOutcome, ExclusionReason,
        # Rule trees
        ConditionRule, RuleGroup, FieldRef, AND, OR, EQUALS, BETWEEN,
        # Advice
        AdviceItem, ApplicableWhen, UserSituation, Candidate,
        # Concepts
        ConceptTable, REAL_ESTATE_CONCEPTS,
        # Results
        MatchResult, RankingReport,
    )
"""
from __future__ import annotations

# =============================================================================
# Enums
# =============================================================================
from .enums import (
    NUMERIC_OPERATORS,
    ExclusionReason,
    IssueSeverity,
    LogicOperator,
    MatchOperator,
    ResolvedKind,
    TraceOutcome,
)

# =============================================================================
# Rule Trees
# =============================================================================
from .rules import (
    AND,
    BETWEEN,
    CONCEPT,
    CONCEPT_PREFIX,
    DEFAULT_WEIGHT,
    EQUALS,
    GREATER_THAN,
    INCLUDES,
    LESS_THAN,
    MAX_WEIGHT,
    MIN_WEIGHT,
    NOT_EQUALS,
    OR,
    RULE,
    ConditionRule,
    FieldRef,
    FieldSpec,
    RuleGroup,
    RuleNode,
    concept_of,
    field_label,
    is_condition_rule,
    is_rule_group,
    normalize_weight,
)

# =============================================================================
# Advice
# =============================================================================
from .advice import (
    AdviceItem,
    ApplicableWhen,
    Candidate,
    UserSituation,
    clamp_unit,
)

# =============================================================================
# Concepts
# =============================================================================
from .concepts import (
    EMPTY_CONCEPT_TABLE,
    REAL_ESTATE_CONCEPTS,
    ConceptTable,
    RealEstateConcept,
    find_concept_by_field,
    get_concept,
    normalize_value,
)

# =============================================================================
# Results
# =============================================================================
from .results import (
    ConditionTrace,
    MatchResult,
    NodeEvaluation,
    RankingReport,
    ResolvedValue,
    RuleIssue,
    match_sort_key,
    sort_matches,
)

__all__ = [
    # Enums
    "NUMERIC_OPERATORS",
    "ExclusionReason",
    "IssueSeverity",
    "LogicOperator",
    "MatchOperator",
    "ResolvedKind",
    "TraceOutcome",
    # Rule trees
    "AND",
    "BETWEEN",
    "CONCEPT",
    "CONCEPT_PREFIX",
    "DEFAULT_WEIGHT",
    "EQUALS",
    "GREATER_THAN",
    "INCLUDES",
    "LESS_THAN",
    "MAX_WEIGHT",
    "MIN_WEIGHT",
    "NOT_EQUALS",
    "OR",
    "RULE",
    "ConditionRule",
    "FieldRef",
    "FieldSpec",
    "RuleGroup",
    "RuleNode",
    "concept_of",
    "field_label",
    "is_condition_rule",
    "is_rule_group",
    "normalize_weight",
    # Advice
    "AdviceItem",
    "ApplicableWhen",
    "Candidate",
    "UserSituation",
    "clamp_unit",
    # Concepts
    "EMPTY_CONCEPT_TABLE",
    "REAL_ESTATE_CONCEPTS",
    "ConceptTable",
    "RealEstateConcept",
    "find_concept_by_field",
    "get_concept",
    "normalize_value",
    # Results
    "ConditionTrace",
    "MatchResult",
    "NodeEvaluation",
    "RankingReport",
    "ResolvedValue",
    "RuleIssue",
    "match_sort_key",
    "sort_matches",
]
