"""
advicematch - Rule-Group Targeting for Agent-Authored Advice

advicematch decides which pieces of a real estate agent's authored
advice are relevant to a chatbot visitor, before a generation step
composes the visitor's personalized timeline.

Key Features:
- Weighted AND/OR rule trees over the visitor's collected answers
- Concept handles so rules survive a tenant renaming its questions
- Conversation-flow gating (buy / sell / browse)
- Composite ranking: similarity score x weighted rule confidence
- Per-advice minimum match thresholds
- Deterministic, traceable output ("why was this shown?")

Quick Start:
    from advicematch.models import (
        AdviceItem, ApplicableWhen, UserSituation, AND, OR, EQUALS, NOT_EQUALS,
    )
    from advicematch.engine import TargetingPipeline

    advice = AdviceItem(
        id="staging-tips",
        title="Staging your home",
        applicable_when=ApplicableWhen(
            flow={"sell"},
            rule_groups=(AND(NOT_EQUALS("timeline", "0-2", weight=3)),),
        ),
    )
    situation = UserSituation(flow="sell", answers={"timeline": "6-12"})

    report = TargetingPipeline().run([(advice, 0.8)], situation)
    report.results[0].composite_score  # 0.8

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"

# =============================================================================
# Core Models (Re-exported for convenience)
# =============================================================================
from .models import (
    AND,
    BETWEEN,
    CONCEPT,
    EQUALS,
    GREATER_THAN,
    INCLUDES,
    LESS_THAN,
    NOT_EQUALS,
    OR,
    AdviceItem,
    ApplicableWhen,
    Candidate,
    ConceptTable,
    ConditionRule,
    ExclusionReason,
    FieldRef,
    LogicOperator,
    MatchOperator,
    MatchResult,
    RankingReport,
    RuleGroup,
    UserSituation,
)

# =============================================================================
# Engine
# =============================================================================
from .engine import (
    RankingAggregator,
    RuleTreeEvaluator,
    TargetingPipeline,
    lint_rule_groups,
    rank_advice,
)

# =============================================================================
# Configuration and Errors
# =============================================================================
from .config import EngineSettings, configure_logging
from .exceptions import (
    AdviceMatchError,
    AdvicePackLoadError,
    AdvicePackValidationError,
    ConceptTableError,
    MalformedRuleError,
    SchemaVersionMismatch,
)

__all__ = [
    "__version__",
    # Models
    "AND",
    "BETWEEN",
    "CONCEPT",
    "EQUALS",
    "GREATER_THAN",
    "INCLUDES",
    "LESS_THAN",
    "NOT_EQUALS",
    "OR",
    "AdviceItem",
    "ApplicableWhen",
    "Candidate",
    "ConceptTable",
    "ConditionRule",
    "ExclusionReason",
    "FieldRef",
    "LogicOperator",
    "MatchOperator",
    "MatchResult",
    "RankingReport",
    "RuleGroup",
    "UserSituation",
    # Engine
    "RankingAggregator",
    "RuleTreeEvaluator",
    "TargetingPipeline",
    "lint_rule_groups",
    "rank_advice",
    # Configuration
    "EngineSettings",
    "configure_logging",
    # Errors
    "AdviceMatchError",
    "AdvicePackLoadError",
    "AdvicePackValidationError",
    "ConceptTableError",
    "MalformedRuleError",
    "SchemaVersionMismatch",
]
