"""
advicematch Advice Models

Agent-authored advice items, the visitor's situation, and the
candidate pairs handed over by vector search.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional

from .rules import RuleGroup


def clamp_unit(value: Any, default: float = 0.0) -> float:
    """
    Coerce a score into [0.0, 1.0].

    Non-numeric and NaN values become ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except OverflowError:
        return 1.0 if value > 0 else 0.0
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return max(0.0, min(1.0, number))


# =============================================================================
# Applicability
# =============================================================================

@dataclass(frozen=True)
class ApplicableWhen:
    """
    When an advice item applies.

    Attributes:
        flow: Conversation flows the advice is written for; empty means any
        rule_groups: Top-level groups, implicitly AND-ed together
        min_match_score: Composite score threshold in [0, 1]
    """
    flow: frozenset[str] = frozenset()
    rule_groups: tuple[RuleGroup, ...] = ()
    min_match_score: float = 0.0

    def __post_init__(self) -> None:
        flow = self.flow
        if isinstance(flow, str):
            flow = (flow,) if flow else ()
        object.__setattr__(self, "flow", frozenset(flow or ()))
        object.__setattr__(self, "rule_groups", tuple(self.rule_groups or ()))
        object.__setattr__(self, "min_match_score", clamp_unit(self.min_match_score))

    @property
    def is_universal(self) -> bool:
        """Advice with no rule groups applies to everyone in its flows."""
        return not self.rule_groups

    def to_dict(self) -> dict[str, Any]:
        return {
            "flow": sorted(self.flow),
            "ruleGroups": [g.to_dict() for g in self.rule_groups],
            "minMatchScore": self.min_match_score,
        }


# =============================================================================
# Advice Item
# =============================================================================

@dataclass(frozen=True)
class AdviceItem:
    """
    A piece of agent-authored advice.

    Content identity (id, title, body, tags) is read-only for the engine.
    """
    id: str
    title: str
    body: str = ""
    tags: tuple[str, ...] = ()
    applicable_when: ApplicableWhen = field(default_factory=ApplicableWhen)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(self.tags or ()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "tags": list(self.tags),
            "applicableWhen": self.applicable_when.to_dict(),
        }


# =============================================================================
# Visitor Situation
# =============================================================================

@dataclass(frozen=True)
class UserSituation:
    """
    What the visitor has told the bot so far.

    Attributes:
        flow: Current conversation flow ("buy", "sell", "browse")
        answers: Field key -> answer text; last answer wins upstream
    """
    flow: str
    answers: dict[str, str] = field(default_factory=dict)

    def answer(self, key: str) -> Optional[str]:
        return self.answers.get(key)


# =============================================================================
# Candidate (Advice + Similarity)
# =============================================================================

@dataclass(frozen=True)
class Candidate:
    """
    An advice item paired with its semantic similarity score.

    The score comes from the vector-search collaborator and is clamped
    into [0, 1]; anything unusable becomes 0.0.
    """
    advice: AdviceItem
    similarity: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "similarity", clamp_unit(self.similarity))

    @classmethod
    def from_pair(cls, pair: Any) -> Candidate:
        """Accept a Candidate or an (AdviceItem, score) tuple."""
        if isinstance(pair, Candidate):
            return pair
        advice, similarity = pair
        return cls(advice=advice, similarity=similarity)
