"""
Pytest configuration and fixtures for advicematch tests.

Provides helper factories and common fixtures matching actual model definitions.
"""
import pytest

from advicematch.models import (
    AdviceItem,
    ApplicableWhen,
    Candidate,
    ConceptTable,
    ConditionRule,
    LogicOperator,
    RuleGroup,
    UserSituation,
)


# =============================================================================
# Factory Helpers
# =============================================================================

def make_rule(field="timeline", operator="equals", value="0-3", weight=1) -> ConditionRule:
    """Create a ConditionRule with sensible defaults."""
    return ConditionRule(field=field, operator=operator, value=value, weight=weight)


def make_group(*rules, logic="AND") -> RuleGroup:
    """Create a RuleGroup over the given nodes."""
    return RuleGroup(logic=LogicOperator(logic), rules=tuple(rules))


def make_advice(
    advice_id: str = "ADV-001",
    title: str = None,
    flow=(),
    rule_groups=(),
    min_match_score: float = 0.0,
    body: str = "",
    tags=(),
) -> AdviceItem:
    """Create an AdviceItem with required fields."""
    return AdviceItem(
        id=advice_id,
        title=title or f"Advice {advice_id}",
        body=body,
        tags=tuple(tags),
        applicable_when=ApplicableWhen(
            flow=frozenset(flow),
            rule_groups=tuple(rule_groups),
            min_match_score=min_match_score,
        ),
    )


def make_situation(flow: str = "sell", **answers) -> UserSituation:
    """Create a UserSituation; keyword arguments become answers."""
    return UserSituation(flow=flow, answers=dict(answers))


def make_candidate(advice: AdviceItem, similarity: float = 1.0) -> Candidate:
    """Pair an advice item with a similarity score."""
    return Candidate(advice=advice, similarity=similarity)


def make_concepts(mappings=None, normalizations=None) -> ConceptTable:
    """Create a tenant ConceptTable."""
    return ConceptTable(mappings=dict(mappings or {}), normalizations=dict(normalizations or {}))


# =============================================================================
# Common Fixtures
# =============================================================================

@pytest.fixture
def seller_situation():
    """A seller on a medium timeline with a condo."""
    return make_situation(
        flow="sell",
        timeline="6-12",
        propertyType="condo",
        budget="450000",
    )


@pytest.fixture
def tenant_concepts():
    """A tenant that renamed its timeline and property-type questions."""
    return make_concepts(
        mappings={"timeline": "timeToSell", "property-type": "homeType"},
        normalizations={"timeline": {"asap": "0-3", "no rush": "12+"}},
    )


SAMPLE_PACK_YAML = """
schema_version: "1.0.0"
tenant: agent-jane
concepts:
  fields: [timeToSell, homeType, sellingReason]
  normalizations:
    timeline:
      yesterday: "0-3"
advice:
  - id: staging
    title: Stage before listing
    body: Declutter and stage the main rooms.
    tags: [selling, prep]
    applicableWhen:
      flow: [sell]
      ruleGroups:
        - logic: AND
          rules:
            - field: concept:timeline
              operator: not_equals
              value: "0-3"
              weight: 3
  - id: quick-sale
    title: Pricing for a quick sale
    applicableWhen:
      flow: [sell]
      minMatchScore: 0.5
      ruleGroups:
        - logic: or
          rules:
            - field: {concept: timeline, fieldId: timeToSell}
              operator: equals
              value: "0-3"
              weight: 5
            - logic: AND
              rules:
                - field: sellingReason
                  operator: includes
                  value: [relocating, downsizing]
                  weight: 2
  - id: market-overview
    title: Local market overview
"""
