"""
advicematch Rule-Tree Evaluator

Recursively evaluates weighted AND/OR rule trees.

Key features:
- Boolean gate per node (AND: all children, OR: any child)
- Every child is visited even after the gate is decided, so weights
  reflect all declared conditions, not just the ones reached
- Empty groups pass with zero weight
- Top-level groups of an advice item are AND-ed under a virtual root
- Stable tree-order traces addressed by dotted path ("0.1.2")
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from ..models import (
    AdviceItem,
    ConceptTable,
    ConditionRule,
    FieldSpec,
    LogicOperator,
    NodeEvaluation,
    RuleGroup,
    RuleNode,
    UserSituation,
    field_label,
    is_condition_rule,
    is_rule_group,
)
from .condition_evaluator import evaluate_condition
from .field_resolver import resolve_field


# =============================================================================
# Node Evaluation
# =============================================================================

def evaluate_node(
    node: RuleNode,
    answers: Mapping[str, Any],
    concepts: Optional[ConceptTable] = None,
    path: str = "0",
) -> NodeEvaluation:
    """
    Evaluate a condition or group.

    Args:
        node: ConditionRule or RuleGroup
        answers: Visitor answers
        concepts: Tenant concept table for this call
        path: Dotted position of the node, used in traces

    Returns:
        NodeEvaluation with gate, weights and leaf traces
    """
    if is_rule_group(node):
        return _evaluate_group(node, answers, concepts, path)
    if is_condition_rule(node):
        return _evaluate_leaf(node, answers, concepts, path)
    raise TypeError(f"Not a rule node: {type(node).__name__}")


def _evaluate_leaf(
    rule: ConditionRule,
    answers: Mapping[str, Any],
    concepts: Optional[ConceptTable],
    path: str,
) -> NodeEvaluation:
    resolved = resolve_field(rule.field, answers, concepts)
    outcome = evaluate_condition(rule, resolved, path)
    return NodeEvaluation(
        gate=outcome.satisfied,
        satisfied_weight=float(outcome.weight) if outcome.satisfied else 0.0,
        total_weight=float(outcome.weight),
        traces=(outcome.trace,),
    )


def _evaluate_group(
    group: RuleGroup,
    answers: Mapping[str, Any],
    concepts: Optional[ConceptTable],
    path: str,
) -> NodeEvaluation:
    if group.is_empty:
        return NodeEvaluation(gate=True)

    children = [
        evaluate_node(child, answers, concepts, f"{path}.{i}")
        for i, child in enumerate(group.rules)
    ]
    return combine(group.logic, children)


def combine(logic: LogicOperator, children: list[NodeEvaluation]) -> NodeEvaluation:
    """
    Combine child evaluations under AND/OR.

    Weights are summed the same way for both operators; only the gate
    differs. No children means the group passes with zero weight.
    """
    if not children:
        return NodeEvaluation(gate=True)

    gates = [c.gate for c in children]
    gate = all(gates) if logic == LogicOperator.AND else any(gates)

    traces = tuple(t for c in children for t in c.traces)
    return NodeEvaluation(
        gate=gate,
        satisfied_weight=sum(c.satisfied_weight for c in children),
        total_weight=sum(c.total_weight for c in children),
        traces=traces,
    )


def evaluate_rule_groups(
    groups: Iterable[RuleGroup],
    answers: Mapping[str, Any],
    concepts: Optional[ConceptTable] = None,
) -> NodeEvaluation:
    """
    Evaluate an advice item's top-level groups as one virtual AND root.

    Child paths are the group indices ("0", "1", ...), so a leaf at
    ``"1.0"`` is the first rule of the second top-level group.
    """
    children = [
        evaluate_node(group, answers, concepts, str(i))
        for i, group in enumerate(groups)
    ]
    return combine(LogicOperator.AND, children)


# =============================================================================
# Tree Inspection
# =============================================================================

def iter_conditions(
    nodes: Iterable[RuleNode],
    prefix: str = "",
) -> Iterable[tuple[str, ConditionRule]]:
    """Yield (path, rule) for every leaf, in tree order."""
    for i, node in enumerate(nodes):
        path = f"{prefix}.{i}" if prefix else str(i)
        if is_rule_group(node):
            yield from iter_conditions(node.rules, path)
        else:
            yield path, node


def collect_fields(groups: Iterable[RuleNode]) -> list[str]:
    """
    Every field referenced by a set of rule trees, first-seen order.

    Useful for telling the conversation which answers still matter.
    """
    seen: dict[str, None] = {}
    for _, rule in iter_conditions(groups):
        seen.setdefault(field_label(rule.field), None)
    return list(seen)


def collect_field_specs(groups: Iterable[RuleNode]) -> list[FieldSpec]:
    """Like collect_fields, but returns the raw field specs."""
    seen: dict[str, FieldSpec] = {}
    for _, rule in iter_conditions(groups):
        seen.setdefault(field_label(rule.field), rule.field)
    return list(seen.values())


# =============================================================================
# Rule-Tree Evaluator
# =============================================================================

@dataclass(frozen=True)
class RuleTreeEvaluator:
    """
    Evaluates rule trees for one tenant.

    Holds nothing but the tenant's concept table, so one instance can be
    shared across threads evaluating different candidates.

    Usage:
        evaluator = RuleTreeEvaluator(concepts=tenant_concepts)
        result = evaluator.evaluate(group, situation)

        if result.gate:
            print(f"matched {result.rule_score:.0%} of declared weight")
    """
    concepts: Optional[ConceptTable] = None

    def evaluate(self, node: RuleNode, situation: UserSituation) -> NodeEvaluation:
        """Evaluate a single node against the visitor's answers."""
        return evaluate_node(node, situation.answers, self.concepts)

    def evaluate_advice(self, advice: AdviceItem, situation: UserSituation) -> NodeEvaluation:
        """
        Evaluate an advice item's rule groups.

        Universal advice (no groups) passes with zero weight; callers
        treat its rule score as 1.0.
        """
        return evaluate_rule_groups(
            advice.applicable_when.rule_groups,
            situation.answers,
            self.concepts,
        )
