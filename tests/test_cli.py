"""
Tests for advicematch CLI

Tests cover:
- rank: text and JSON output, similarity files, limits
- lint: findings and exit codes
- fields: referenced fields and their answer keys
- Error reporting for bad packs
"""
import json
import logging

import pytest

from advicematch.cli import main

from tests.conftest import SAMPLE_PACK_YAML


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setenv("ADVICEMATCH_LOG_LEVEL", "ERROR")
    yield
    root = logging.getLogger("advicematch")
    for handler in list(root.handlers):
        if getattr(handler, "_advicematch_handler", False):
            root.removeHandler(handler)
    root.setLevel(logging.NOTSET)


@pytest.fixture
def pack_file(tmp_path):
    path = tmp_path / "pack.yaml"
    path.write_text(SAMPLE_PACK_YAML, encoding="utf-8")
    return path


@pytest.fixture
def situation_file(tmp_path):
    path = tmp_path / "situation.json"
    path.write_text(json.dumps({
        "flow": "sell",
        "answers": {"timeToSell": "asap", "sellingReason": "relocating"},
    }), encoding="utf-8")
    return path


@pytest.fixture
def similarity_file(tmp_path):
    path = tmp_path / "scores.json"
    path.write_text(json.dumps([
        {"adviceId": "staging", "similarity": 0.9},
        {"adviceId": "quick-sale", "similarity": 0.8},
        {"adviceId": "market-overview", "similarity": 0.3},
    ]), encoding="utf-8")
    return path


class TestRankCommand:
    """Tests for advicematch rank."""

    def test_rank_json(self, pack_file, situation_file, similarity_file, capsys):
        """Test JSON ranking output."""
        code = main(["rank", str(pack_file), str(situation_file), "--similarity", str(similarity_file), "--json"])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        ids = [r["adviceId"] for r in data["results"]]
        # asap -> 0-3: staging's not_equals fails, quick-sale matches fully
        assert ids == ["quick-sale", "market-overview"]
        assert data["results"][0]["compositeScore"] == pytest.approx(0.8)

    def test_rank_text_with_excluded(self, pack_file, situation_file, similarity_file, capsys):
        """Test the text report."""
        code = main([
            "rank", str(pack_file), str(situation_file),
            "--similarity", str(similarity_file), "--include-excluded",
        ])
        assert code == 0
        out = capsys.readouterr().out
        assert "FLOW: sell" in out
        assert "quick-sale" in out
        assert "EXCLUDED" in out
        assert "rule_gate_failed" in out

    def test_rank_default_similarity_and_limit(self, pack_file, situation_file, capsys):
        """Test ranking without a similarity file."""
        code = main(["rank", str(pack_file), str(situation_file), "--limit", "1", "--json", "--no-trace"])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert [r["adviceId"] for r in data["results"]] == ["quick-sale"]
        assert "trace" not in data["results"][0]

    def test_rank_parallel(self, pack_file, situation_file, capsys):
        """Test ranking with worker threads."""
        assert main(["rank", str(pack_file), str(situation_file), "--workers", "3", "--json"]) == 0
        assert json.loads(capsys.readouterr().out)["candidateCount"] == 3


class TestLintCommand:
    """Tests for advicematch lint."""

    def test_lint_clean_pack(self, pack_file, capsys):
        """Test linting the sample pack against its own fields."""
        assert main(["lint", str(pack_file)]) == 0
        assert "0 issue(s) in 3 advice item(s)" in capsys.readouterr().out

    def test_lint_orphaned_field(self, pack_file, capsys):
        """Test that a renamed question shows up as an orphaned field."""
        assert main(["lint", str(pack_file), "--fields", "timeToSell,homeType", "--json"]) == 0
        issues = json.loads(capsys.readouterr().out)
        assert [(i["adviceId"], i["code"]) for i in issues] == [("quick-sale", "orphaned_field")]

    def test_lint_errors_exit_code(self, tmp_path, capsys):
        """Test that error findings return exit code 1."""
        path = tmp_path / "bad.yaml"
        path.write_text(
            "advice:\n"
            "  - id: a1\n"
            "    title: A\n"
            "    applicableWhen:\n"
            "      ruleGroups:\n"
            "        - logic: AND\n"
            "          rules:\n"
            "            - {field: timeline, operator: fuzzy, value: soon}\n",
            encoding="utf-8",
        )
        assert main(["lint", str(path)]) == 1
        assert "unknown_operator" in capsys.readouterr().out


class TestFieldsCommand:
    """Tests for advicematch fields."""

    def test_fields_json(self, pack_file, capsys):
        """Test listing referenced fields with their answer keys."""
        assert main(["fields", str(pack_file), "--json"]) == 0
        rows = json.loads(capsys.readouterr().out)
        assert rows == [
            {"field": "concept:timeline", "concept": "timeline", "answerKey": "timeToSell"},
            {"field": "timeline(timeToSell)", "concept": "timeline", "answerKey": "timeToSell"},
            {"field": "sellingReason", "concept": None, "answerKey": "sellingReason"},
        ]


class TestErrors:
    """Tests for CLI error handling."""

    def test_no_command(self, capsys):
        """Test that no subcommand prints help and fails."""
        assert main([]) == 1

    def test_invalid_pack(self, tmp_path, situation_file, capsys):
        """Test that pack errors are reported as JSON on stderr."""
        path = tmp_path / "bad.yaml"
        path.write_text("advice:\n  - id: a1\n", encoding="utf-8")
        assert main(["rank", str(path), str(situation_file)]) == 2
        error = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert error["code"] == "AM_PACK_VALIDATION_ERROR"

    def test_malformed_score_entry(self, pack_file, situation_file, tmp_path, capsys):
        """Test that a non-object score entry is a clean error."""
        scores = tmp_path / "scores.json"
        scores.write_text(json.dumps([{"adviceId": "staging", "similarity": 0.9}, 0.5]), encoding="utf-8")
        assert main(["rank", str(pack_file), str(situation_file), "--similarity", str(scores)]) == 2
        assert "score entry 1 is not an object" in capsys.readouterr().err

    def test_negative_limit_rejected(self, pack_file, situation_file, capsys):
        """Test that --limit must not be negative."""
        with pytest.raises(SystemExit) as exc_info:
            main(["rank", str(pack_file), str(situation_file), "--limit", "-1"])
        assert exc_info.value.code == 2
        assert "must be 0 or more" in capsys.readouterr().err

    def test_missing_situation(self, pack_file, tmp_path, capsys):
        """Test that a missing situation file exits with 2."""
        assert main(["rank", str(pack_file), str(tmp_path / "nope.json")]) == 2
