"""
advicematch Engine

Rule targeting and ranking for candidate advice.

Services:
- resolve_field: Resolve rule fields against visitor answers
- evaluate_condition: Evaluate one weighted condition
- RuleTreeEvaluator: Evaluate AND/OR rule trees
- flow_passes: Flow gate
- RankingAggregator: Combine rule and similarity scores, threshold, sort
- TargetingPipeline: Run a whole candidate batch into a RankingReport
- lint_rule_groups: Static checks over authored rule trees

Usage:
    from advicematch.engine import (
        TargetingPipeline,
        RankingAggregator,
        RuleTreeEvaluator,
        lint_rule_groups,
    )
"""
from __future__ import annotations

from .field_resolver import (
    candidate_keys,
    parse_number,
    resolve_field,
)
from .condition_evaluator import (
    ConditionOutcome,
    check_rule,
    check_value_shape,
    compare_values,
    evaluate_condition,
    scalar_text,
)
from .rule_tree import (
    RuleTreeEvaluator,
    collect_field_specs,
    collect_fields,
    combine,
    evaluate_node,
    evaluate_rule_groups,
    iter_conditions,
)
from .flow_gate import flow_passes
from .ranking import RankingAggregator
from .pipeline import TargetingPipeline, rank_advice
from .rule_lint import (
    has_errors,
    lint_advice,
    lint_rule_groups,
)

__all__ = [
    # Field resolution
    "candidate_keys",
    "parse_number",
    "resolve_field",
    # Conditions
    "ConditionOutcome",
    "check_rule",
    "check_value_shape",
    "compare_values",
    "evaluate_condition",
    "scalar_text",
    # Rule trees
    "RuleTreeEvaluator",
    "collect_field_specs",
    "collect_fields",
    "combine",
    "evaluate_node",
    "evaluate_rule_groups",
    "iter_conditions",
    # Ranking
    "flow_passes",
    "RankingAggregator",
    "TargetingPipeline",
    "rank_advice",
    # Lint
    "has_errors",
    "lint_advice",
    "lint_rule_groups",
]
