"""
advicematch Result Models

What the engine hands back: resolved values, per-condition traces,
per-node scores, per-candidate match results, and the ranked report.

Every result carries enough trace data for the dashboard to explain
"why this advice was shown" (or not).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..canon import content_hash
from .advice import AdviceItem
from .enums import ExclusionReason, IssueSeverity, ResolvedKind, TraceOutcome


# =============================================================================
# Resolved Value
# =============================================================================

@dataclass(frozen=True)
class ResolvedValue:
    """
    A visitor answer after field resolution.

    Attributes:
        kind: UNRESOLVED, TEXT, or NUMBER (text that also parsed)
        text: The (normalized) answer text
        number: Parsed numeric form, when the text is a simple number
        field_key: The answer key actually consulted
    """
    kind: ResolvedKind
    text: Optional[str] = None
    number: Optional[float] = None
    field_key: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.kind != ResolvedKind.UNRESOLVED

    @classmethod
    def unresolved(cls, field_key: Optional[str] = None) -> ResolvedValue:
        return cls(kind=ResolvedKind.UNRESOLVED, field_key=field_key)


# =============================================================================
# Traces and Node Scores
# =============================================================================

@dataclass(frozen=True)
class ConditionTrace:
    """One evaluated leaf condition, for debugging and UI display."""
    path: str
    field: str
    field_key: Optional[str]
    operator: str
    expected: Any
    actual: Optional[str]
    outcome: TraceOutcome
    satisfied: bool
    weight: int
    detail: str = ""

    @property
    def summary(self) -> str:
        verdict = "PASSED" if self.satisfied else self.outcome.value.upper()
        text = f"{self.field} {self.operator} {self.expected!r}: {verdict}"
        if self.detail:
            text += f" ({self.detail})"
        return text

    def to_dict(self) -> dict[str, Any]:
        expected = list(self.expected) if isinstance(self.expected, tuple) else self.expected
        return {
            "path": self.path,
            "field": self.field,
            "fieldKey": self.field_key,
            "operator": self.operator,
            "expected": expected,
            "actual": self.actual,
            "outcome": self.outcome.value,
            "satisfied": self.satisfied,
            "weight": self.weight,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class NodeEvaluation:
    """
    Gate and weight totals for a rule-tree node.

    Attributes:
        gate: Boolean AND/OR result
        satisfied_weight: Sum of weights of satisfied leaves under the node
        total_weight: Sum of weights of all leaves under the node
        traces: Leaf traces in tree order
    """
    gate: bool
    satisfied_weight: float = 0.0
    total_weight: float = 0.0
    traces: tuple[ConditionTrace, ...] = ()

    @property
    def rule_score(self) -> float:
        """Satisfied share of the declared weight; 1.0 when nothing is weighted."""
        if self.total_weight == 0:
            return 1.0
        return self.satisfied_weight / self.total_weight


# =============================================================================
# Match Result
# =============================================================================

@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of targeting one candidate.

    Attributes:
        advice_id: Advice item ID
        included: Whether the item made the ranked list
        composite_score: similarity_score * rule_score
        rule_score: Weighted rule confidence (1.0 for universal advice)
        similarity_score: Score supplied by vector search
        trace: Leaf condition traces
        exclusion: Why the item was excluded, if it was
        reason: Human-readable explanation
        input_index: Position in the candidate batch (tie-breaker)
        universal: Item has no rule groups
        advice: The advice item itself, for the generation step
    """
    advice_id: str
    included: bool
    composite_score: float
    rule_score: float
    similarity_score: float
    trace: tuple[ConditionTrace, ...] = ()
    exclusion: Optional[ExclusionReason] = None
    reason: str = ""
    input_index: int = 0
    universal: bool = False
    advice: Optional[AdviceItem] = field(default=None, compare=False, repr=False)

    def matched_conditions(self) -> list[str]:
        return [t.summary for t in self.trace if t.satisfied]

    def failed_conditions(self) -> list[str]:
        return [t.summary for t in self.trace if not t.satisfied]

    def malformed_conditions(self) -> list[ConditionTrace]:
        return [t for t in self.trace if t.outcome == TraceOutcome.MALFORMED]

    def to_dict(self, include_trace: bool = True) -> dict[str, Any]:
        result: dict[str, Any] = {
            "adviceId": self.advice_id,
            "title": self.advice.title if self.advice is not None else None,
            "included": self.included,
            "compositeScore": self.composite_score,
            "ruleScore": self.rule_score,
            "similarityScore": self.similarity_score,
            "universal": self.universal,
            "exclusion": self.exclusion.value if self.exclusion else None,
            "reason": self.reason,
            "inputIndex": self.input_index,
        }
        if include_trace:
            result["trace"] = [t.to_dict() for t in self.trace]
        return result


def match_sort_key(result: MatchResult) -> tuple[float, int]:
    """
    Deterministic ranking order.

    Order:
    1. Highest composite score first
    2. Candidate input order (tie-breaker)
    """
    return (-result.composite_score, result.input_index)


def sort_matches(results: list[MatchResult]) -> list[MatchResult]:
    """Sort match results in stable, deterministic order."""
    return sorted(results, key=match_sort_key)


# =============================================================================
# Ranking Report
# =============================================================================

@dataclass(frozen=True)
class RankingReport:
    """
    Ranked output of one targeting request.

    Attributes:
        flow: Visitor flow the batch was evaluated for
        results: Included results, best first
        excluded: Excluded results in input order (empty unless requested)
        candidate_count: Size of the input batch
    """
    flow: str
    results: tuple[MatchResult, ...] = ()
    excluded: tuple[MatchResult, ...] = ()
    candidate_count: int = 0

    @property
    def advice(self) -> list[AdviceItem]:
        """Included advice items in ranked order."""
        return [r.advice for r in self.results if r.advice is not None]

    @property
    def advice_ids(self) -> list[str]:
        return [r.advice_id for r in self.results]

    def to_dict(self, include_trace: bool = True) -> dict[str, Any]:
        return {
            "flow": self.flow,
            "candidateCount": self.candidate_count,
            "results": [r.to_dict(include_trace) for r in self.results],
            "excluded": [r.to_dict(include_trace) for r in self.excluded],
        }

    def fingerprint(self) -> str:
        """SHA-256 over the canonical ranked output; equal for equal input."""
        return content_hash(self.to_dict(include_trace=True))


# =============================================================================
# Rule Lint
# =============================================================================

@dataclass(frozen=True)
class RuleIssue:
    """A static finding about an authored rule tree."""
    path: str
    severity: IssueSeverity
    code: str
    message: str
    advice_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "adviceId": self.advice_id,
        }
