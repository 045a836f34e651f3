"""
advicematch Targeting Pipeline

Runs one targeting request end to end: score every candidate, merge,
sort, truncate and report.

Candidate scoring is independent per candidate, so with
``max_workers > 1`` it fans out over a thread pool. Merging and sorting
always happen on the calling thread, so the report is identical to the
sequential path.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, Optional, Sequence

from ..canon import content_hash_short
from ..config import EngineSettings
from ..models import (
    Candidate,
    ConceptTable,
    MatchResult,
    RankingReport,
    UserSituation,
    sort_matches,
)
from .ranking import RankingAggregator


logger = logging.getLogger(__name__)


class TargetingPipeline:
    """
    Candidate batch in, ranked report out.

    Usage:
        pipeline = TargetingPipeline(EngineSettings(max_workers=4))
        report = pipeline.run(candidates, situation, concepts=tenant_concepts)

        for advice in report.advice:
            compose_timeline_step(advice)
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    def run(
        self,
        candidates: Iterable[Any],
        situation: UserSituation,
        concepts: Optional[ConceptTable] = None,
        include_excluded: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> RankingReport:
        """
        Rank a batch of candidates for one visitor.

        Args:
            candidates: Candidates or (AdviceItem, similarity) pairs
            situation: The visitor's flow and answers
            concepts: Tenant concept table for this call
            include_excluded: Override settings.include_excluded
            limit: Override settings.result_limit

        Returns:
            RankingReport with included results best first

        Raises:
            ValueError: If limit is negative
        """
        started = time.monotonic()
        batch = [Candidate.from_pair(c) for c in candidates]
        if include_excluded is None:
            include_excluded = self.settings.include_excluded
        if limit is None:
            limit = self.settings.result_limit
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be 0 or more, got {limit}")

        aggregator = RankingAggregator(concepts=concepts)
        scored = self._score_all(aggregator, batch, situation)

        included = sort_matches([r for r in scored if r.included])
        if limit is not None:
            included = included[:limit]
        excluded = [r for r in scored if not r.included]

        report = RankingReport(
            flow=situation.flow,
            results=tuple(included),
            excluded=tuple(excluded) if include_excluded else (),
            candidate_count=len(batch),
        )

        logger.info(
            "Ranked %d candidates for flow %s: %d included, %d excluded",
            len(batch), situation.flow, len(included), len(excluded),
            extra={
                "flow": situation.flow,
                "candidate_count": len(batch),
                "included_count": len(included),
                "excluded_count": len(excluded),
                "report_hash_short": content_hash_short(report.to_dict(include_trace=True)),
                "duration_ms": round((time.monotonic() - started) * 1000, 3),
            },
        )
        return report

    def _score_all(
        self,
        aggregator: RankingAggregator,
        batch: Sequence[Candidate],
        situation: UserSituation,
    ) -> list[MatchResult]:
        workers = self.settings.max_workers
        if workers <= 1 or len(batch) <= 1:
            return [aggregator.score(c, situation, i) for i, c in enumerate(batch)]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(aggregator.score, c, situation, i)
                for i, c in enumerate(batch)
            ]
            # Collected in submission order
            return [f.result() for f in futures]


def rank_advice(
    candidates: Iterable[Any],
    situation: UserSituation,
    concepts: Optional[ConceptTable] = None,
    limit: Optional[int] = None,
) -> list[MatchResult]:
    """
    Rank candidates with default settings.

    Example:
        ranked = rank_advice(
            [(advice, 0.82), (other, 0.74)],
            UserSituation(flow="sell", answers={"timeline": "6-12"}),
        )
    """
    report = TargetingPipeline().run(candidates, situation, concepts=concepts, limit=limit)
    return list(report.results)
