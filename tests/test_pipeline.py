"""
Tests for advicematch Targeting Pipeline

Tests cover:
- Report contents for a mixed batch
- Empty batches
- Result limits and excluded-result reporting
- Parallel and sequential runs producing identical reports
- Report fingerprint determinism
"""
import pytest

from advicematch.config import EngineSettings
from advicematch.engine.pipeline import TargetingPipeline, rank_advice
from advicematch.models import AND, EQUALS, GREATER_THAN, NOT_EQUALS, OR, ExclusionReason

from tests.conftest import make_advice, make_situation


def _batch():
    return [
        (make_advice("staging", flow=["sell"], rule_groups=[AND(NOT_EQUALS("timeline", "0-3", weight=3))]), 0.8),
        (make_advice("mortgage", flow=["buy"]), 0.95),
        (make_advice("pricing", rule_groups=[OR(
            EQUALS("timeline", "6-12", weight=3),
            GREATER_THAN("budget", 1000000, weight=1),
        )]), 0.9),
        (make_advice("overview"), 0.4),
        (make_advice("luxury", rule_groups=[AND(GREATER_THAN("budget", 1000000))]), 0.99),
        (make_advice("strict", min_match_score=0.9), 0.5),
    ]


@pytest.fixture
def situation():
    return make_situation("sell", timeline="6-12", budget="450000")


class TestTargetingPipeline:
    """Tests for TargetingPipeline.run."""

    def test_mixed_batch(self, situation):
        """Test ranking, exclusion and counts on a mixed batch."""
        report = TargetingPipeline().run(_batch(), situation)
        assert report.flow == "sell"
        assert report.candidate_count == 6
        assert report.advice_ids == ["staging", "pricing", "overview"]
        assert report.results[1].composite_score == pytest.approx(0.675)
        assert report.excluded == ()

    def test_include_excluded(self, situation):
        """Test that excluded results are reported in input order when asked."""
        report = TargetingPipeline().run(_batch(), situation, include_excluded=True)
        assert [(r.advice_id, r.exclusion) for r in report.excluded] == [
            ("mortgage", ExclusionReason.FLOW_MISMATCH),
            ("luxury", ExclusionReason.RULE_GATE_FAILED),
            ("strict", ExclusionReason.BELOW_THRESHOLD),
        ]

    def test_settings_include_excluded(self, situation):
        """Test that settings supply the include_excluded default."""
        pipeline = TargetingPipeline(EngineSettings(include_excluded=True))
        assert len(pipeline.run(_batch(), situation).excluded) == 3

    def test_limit(self, situation):
        """Test that limit truncates after sorting."""
        report = TargetingPipeline().run(_batch(), situation, limit=2)
        assert report.advice_ids == ["staging", "pricing"]

    def test_settings_limit(self, situation):
        """Test that settings supply the limit default."""
        report = TargetingPipeline(EngineSettings(result_limit=1)).run(_batch(), situation)
        assert report.advice_ids == ["staging"]

    def test_empty_batch(self, situation):
        """Test that an empty batch gives an empty report."""
        report = TargetingPipeline().run([], situation)
        assert report.results == ()
        assert report.candidate_count == 0

    def test_report_advice(self, situation):
        """Test that the report exposes the ranked advice items."""
        report = TargetingPipeline().run(_batch(), situation)
        assert [a.id for a in report.advice] == ["staging", "pricing", "overview"]

    def test_parallel_matches_sequential(self, situation):
        """Test that fanning out over threads does not change the report."""
        batch = _batch() * 5
        sequential = TargetingPipeline(EngineSettings(max_workers=1)).run(batch, situation, include_excluded=True)
        parallel = TargetingPipeline(EngineSettings(max_workers=4)).run(batch, situation, include_excluded=True)
        assert parallel == sequential
        assert parallel.fingerprint() == sequential.fingerprint()

    def test_fingerprint_stable(self, situation):
        """Test that identical input gives identical fingerprints."""
        first = TargetingPipeline().run(_batch(), situation).fingerprint()
        second = TargetingPipeline().run(_batch(), situation).fingerprint()
        assert first == second
        assert len(first) == 64

    def test_fingerprint_changes_with_answers(self, situation):
        """Test that a different situation changes the fingerprint."""
        first = TargetingPipeline().run(_batch(), situation).fingerprint()
        other = TargetingPipeline().run(_batch(), make_situation("sell", timeline="0-3")).fingerprint()
        assert first != other

    def test_logs_summary(self, situation, caplog):
        """Test that each run logs a summary line."""
        with caplog.at_level("INFO", logger="advicematch"):
            report = TargetingPipeline().run(_batch(), situation)
        summary = [r for r in caplog.records if "Ranked 6 candidates" in r.getMessage()]
        assert len(summary) == 1
        assert summary[0].report_hash_short == report.fingerprint()[:12]

    def test_negative_limit_rejected(self, situation):
        """Test that a negative limit is an error, not a slice."""
        with pytest.raises(ValueError):
            TargetingPipeline().run(_batch(), situation, limit=-1)

    def test_report_to_dict(self, situation):
        """Test report serialization keys."""
        data = TargetingPipeline().run(_batch(), situation).to_dict(include_trace=False)
        assert data["flow"] == "sell"
        assert data["candidateCount"] == 6
        first = data["results"][0]
        assert first["adviceId"] == "staging"
        assert "trace" not in first


class TestRankAdvice:
    """Tests for the rank_advice convenience function."""

    def test_rank_advice(self, situation):
        """Test ranking with default settings."""
        ranked = rank_advice(_batch(), situation)
        assert [r.advice_id for r in ranked] == ["staging", "pricing", "overview"]

    def test_rank_advice_limit(self, situation):
        """Test rank_advice with a limit."""
        assert len(rank_advice(_batch(), situation, limit=1)) == 1
