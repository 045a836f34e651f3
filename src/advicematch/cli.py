"""
advicematch CLI

Command-line interface for ranking, linting and inspecting advice packs.

Usage:
    advicematch rank pack.yaml situation.json --similarity scores.json
    advicematch lint pack.yaml --fields timeline,homeType
    advicematch fields pack.yaml
"""
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import Any, Optional

import yaml

from .config import EngineSettings, configure_logging
from .engine import TargetingPipeline, collect_field_specs, has_errors, lint_advice
from .exceptions import AdviceMatchError
from .models import Candidate, FieldRef, concept_of, field_label
from .packs import AdvicePack, load_advice_pack, read_document, situation_from_dict


# =============================================================================
# Input Helpers
# =============================================================================

def _load_similarities(path: Optional[str]) -> dict[str, Any]:
    """
    Read similarity scores as {adviceId: score}.

    Accepts a mapping, or a list of {adviceId, similarity} objects as
    returned by vector search.
    """
    if not path:
        return {}
    data = read_document(path)
    if isinstance(data, dict):
        return dict(data)
    if data is None:
        return {}
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a mapping or a list of score entries")
    scores: dict[str, Any] = {}
    for position, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"{path}: score entry {position} is not an object")
        advice_id = entry.get("adviceId", entry.get("id"))
        scores[str(advice_id)] = entry.get("similarity", entry.get("score"))
    return scores


def _build_candidates(
    pack: AdvicePack,
    similarities: dict[str, Any],
    default_similarity: float,
) -> list[Candidate]:
    """Pair each advice item with its score, in pack order."""
    return [
        Candidate(advice=item, similarity=similarities.get(item.id, default_similarity))
        for item in pack.advice
    ]


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more: {number}")
    return number


# =============================================================================
# Commands
# =============================================================================

def cmd_rank(args: argparse.Namespace) -> int:
    """Rank a pack's advice for one visitor situation."""
    pack = load_advice_pack(args.pack)
    situation = situation_from_dict(read_document(args.situation))
    candidates = _build_candidates(
        pack,
        _load_similarities(args.similarity),
        args.default_similarity,
    )

    settings = EngineSettings.from_env()
    if args.workers is not None:
        settings = replace(settings, max_workers=max(1, args.workers))

    report = TargetingPipeline(settings).run(
        candidates,
        situation,
        concepts=pack.concepts,
        include_excluded=True if args.include_excluded else None,
        limit=args.limit,
    )

    if args.json:
        _print_json(report.to_dict(include_trace=not args.no_trace))
        return 0

    print(f"FLOW: {report.flow}  CANDIDATES: {report.candidate_count}")
    print("=" * 60)
    if not report.results:
        print("No applicable advice.")
    for rank, result in enumerate(report.results, start=1):
        print(
            f"{rank:>3}. {result.advice_id:<24} composite={result.composite_score:.3f} "
            f"rules={result.rule_score:.3f} similarity={result.similarity_score:.3f}"
        )
        print(f"     {result.reason}")
        if not args.no_trace:
            for trace in result.trace:
                print(f"       - {trace.summary}")

    if report.excluded:
        print()
        print("EXCLUDED")
        print("-" * 60)
        for result in report.excluded:
            print(f"     {result.advice_id:<24} {result.exclusion.value}: {result.reason}")
    return 0


def cmd_lint(args: argparse.Namespace) -> int:
    """Lint every advice item's rule groups."""
    pack = load_advice_pack(args.pack)
    if args.fields is not None:
        known: Optional[list[str]] = [f.strip() for f in args.fields.split(",") if f.strip()]
    elif pack.known_fields:
        known = list(pack.known_fields)
    else:
        known = None

    issues = []
    for item in pack.advice:
        issues.extend(lint_advice(item, known_fields=known, concepts=pack.concepts))

    if args.json:
        _print_json([issue.to_dict() for issue in issues])
    else:
        for issue in issues:
            print(f"{issue.severity.value.upper():<8} {issue.advice_id}@{issue.path} [{issue.code}] {issue.message}")
        print(f"{len(issues)} issue(s) in {len(pack.advice)} advice item(s)")

    return 1 if has_errors(issues) else 0


def cmd_fields(args: argparse.Namespace) -> int:
    """List the answer fields a pack's rules depend on."""
    pack = load_advice_pack(args.pack)
    specs: dict[str, Any] = {}
    for item in pack.advice:
        for spec in collect_field_specs(item.applicable_when.rule_groups):
            specs.setdefault(field_label(spec), spec)

    rows = []
    for label, spec in specs.items():
        concept = concept_of(spec)
        if concept is not None:
            key = pack.concepts.field_for(concept)
            if key is None and isinstance(spec, FieldRef):
                key = spec.field_id
        else:
            key = spec.field_id if isinstance(spec, FieldRef) else spec
        rows.append({"field": label, "concept": concept, "answerKey": key})

    if args.json:
        _print_json(rows)
        return 0

    for row in rows:
        target = row["answerKey"] or "(unmapped)"
        print(f"{row['field']:<32} -> {target}")
    return 0


# =============================================================================
# Entry Point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Advice targeting and ranking CLI",
        prog="advicematch",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Rank command
    rank_parser = subparsers.add_parser("rank", help="Rank advice for a visitor situation")
    rank_parser.add_argument("pack", help="Advice pack (YAML or JSON)")
    rank_parser.add_argument("situation", help="Situation file with flow and answers")
    rank_parser.add_argument("--similarity", help="Similarity scores by advice ID")
    rank_parser.add_argument(
        "--default-similarity",
        type=float,
        default=1.0,
        help="Score for advice without a similarity entry (default: 1.0)",
    )
    rank_parser.add_argument("--limit", type=_non_negative_int, default=None, help="Max results")
    rank_parser.add_argument("--workers", type=int, default=None, help="Evaluation threads")
    rank_parser.add_argument("--include-excluded", action="store_true", help="Show excluded advice")
    rank_parser.add_argument("--no-trace", action="store_true", help="Omit condition traces")
    rank_parser.add_argument("--json", action="store_true", help="JSON output")
    rank_parser.set_defaults(func=cmd_rank)

    # Lint command
    lint_parser = subparsers.add_parser("lint", help="Check authored rules")
    lint_parser.add_argument("pack", help="Advice pack (YAML or JSON)")
    lint_parser.add_argument("--fields", help="Comma-separated current field keys")
    lint_parser.add_argument("--json", action="store_true", help="JSON output")
    lint_parser.set_defaults(func=cmd_lint)

    # Fields command
    fields_parser = subparsers.add_parser("fields", help="List fields referenced by rules")
    fields_parser.add_argument("pack", help="Advice pack (YAML or JSON)")
    fields_parser.add_argument("--json", action="store_true", help="JSON output")
    fields_parser.set_defaults(func=cmd_fields)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(EngineSettings.from_env())

    try:
        return args.func(args)
    except AdviceMatchError as e:
        print(json.dumps(e.to_dict(), default=str), file=sys.stderr)
        return 2
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
