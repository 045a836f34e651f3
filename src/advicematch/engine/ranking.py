"""
advicematch Ranking Aggregator

Combines the rule-tree score with the vector-search similarity score
for each candidate, applies thresholds and produces the ranked list.

Per candidate:
1. Flow gate (hard exclusion)
2. Rule-tree gate (hard exclusion)
3. rule_score = satisfied / total weight (1.0 for universal advice)
4. composite_score = similarity * rule_score
5. Threshold: excluded if composite_score < min_match_score
6. Sort by composite descending, ties by input order

A failure while scoring one candidate excludes that candidate only.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..models import (
    Candidate,
    ConceptTable,
    ExclusionReason,
    MatchResult,
    UserSituation,
    sort_matches,
)
from .flow_gate import flow_passes
from .rule_tree import RuleTreeEvaluator


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankingAggregator:
    """
    Scores and ranks candidates for one visitor situation.

    Usage:
        aggregator = RankingAggregator(concepts=tenant_concepts)
        ranked = aggregator.rank(candidates, situation)

        for result in ranked:
            print(result.advice_id, result.composite_score, result.reason)
    """
    concepts: Optional[ConceptTable] = None

    @property
    def evaluator(self) -> RuleTreeEvaluator:
        return RuleTreeEvaluator(concepts=self.concepts)

    # =========================================================================
    # Single Candidate
    # =========================================================================

    def score(self, candidate: Any, situation: UserSituation, index: int = 0) -> MatchResult:
        """
        Score one candidate.

        Args:
            candidate: Candidate or (AdviceItem, similarity) pair
            situation: The visitor's flow and answers
            index: Position in the batch, used as the sort tie-breaker

        Returns:
            MatchResult (never raises for a well-formed candidate)
        """
        candidate = Candidate.from_pair(candidate)
        try:
            return self._score(candidate, situation, index)
        except Exception as e:
            logger.warning(
                "Evaluation failed for advice %s: %s", candidate.advice.id, e,
                exc_info=True,
            )
            return MatchResult(
                advice_id=candidate.advice.id,
                included=False,
                composite_score=0.0,
                rule_score=0.0,
                similarity_score=candidate.similarity,
                exclusion=ExclusionReason.EVALUATION_ERROR,
                reason=f"Evaluation error: {e}",
                input_index=index,
                universal=candidate.advice.applicable_when.is_universal,
                advice=candidate.advice,
            )

    def _score(self, candidate: Candidate, situation: UserSituation, index: int) -> MatchResult:
        advice = candidate.advice
        when = advice.applicable_when
        similarity = candidate.similarity

        if not flow_passes(when.flow, situation.flow):
            flows = ", ".join(sorted(when.flow))
            logger.debug("Advice %s excluded: flow %s not in [%s]", advice.id, situation.flow, flows)
            return MatchResult(
                advice_id=advice.id,
                included=False,
                composite_score=0.0,
                rule_score=0.0,
                similarity_score=similarity,
                exclusion=ExclusionReason.FLOW_MISMATCH,
                reason=f"Flow mismatch: advice is for {flows}",
                input_index=index,
                universal=when.is_universal,
                advice=advice,
            )

        evaluation = self.evaluator.evaluate_advice(advice, situation)

        if not evaluation.gate:
            logger.debug("Advice %s excluded: rule gate failed", advice.id)
            return MatchResult(
                advice_id=advice.id,
                included=False,
                composite_score=0.0,
                rule_score=evaluation.rule_score,
                similarity_score=similarity,
                trace=evaluation.traces,
                exclusion=ExclusionReason.RULE_GATE_FAILED,
                reason="Rule conditions not met",
                input_index=index,
                universal=False,
                advice=advice,
            )

        rule_score = 1.0 if when.is_universal else evaluation.rule_score
        composite = similarity * rule_score

        if when.is_universal:
            reason = "Universal advice"
        else:
            reason = f"Rules matched with score {round(rule_score * 100)}%"

        if composite < when.min_match_score:
            logger.debug(
                "Advice %s excluded: composite %.4f below threshold %.4f",
                advice.id, composite, when.min_match_score,
            )
            return MatchResult(
                advice_id=advice.id,
                included=False,
                composite_score=composite,
                rule_score=rule_score,
                similarity_score=similarity,
                trace=evaluation.traces,
                exclusion=ExclusionReason.BELOW_THRESHOLD,
                reason="Match score below threshold",
                input_index=index,
                universal=when.is_universal,
                advice=advice,
            )

        return MatchResult(
            advice_id=advice.id,
            included=True,
            composite_score=composite,
            rule_score=rule_score,
            similarity_score=similarity,
            trace=evaluation.traces,
            reason=reason,
            input_index=index,
            universal=when.is_universal,
            advice=advice,
        )

    # =========================================================================
    # Batch
    # =========================================================================

    def rank_all(self, candidates: Iterable[Any], situation: UserSituation) -> list[MatchResult]:
        """
        Score every candidate.

        Included results come first in ranked order, followed by the
        excluded ones in input order.
        """
        results = [
            self.score(candidate, situation, index)
            for index, candidate in enumerate(candidates)
        ]
        included = sort_matches([r for r in results if r.included])
        excluded = [r for r in results if not r.included]
        return included + excluded

    def rank(self, candidates: Iterable[Any], situation: UserSituation) -> list[MatchResult]:
        """Ranked included results, best first."""
        return [r for r in self.rank_all(candidates, situation) if r.included]
