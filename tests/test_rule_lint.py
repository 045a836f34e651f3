"""
Tests for advicematch Rule Linter

Tests cover:
- Unknown operators and value shapes
- Weight clamping / defaulting findings
- Empty groups
- Non-numeric values on numeric operators
- Orphaned fields after a tenant renames questions
"""
from advicematch.engine.rule_lint import (
    BAD_VALUE_SHAPE,
    EMPTY_GROUP,
    NON_NUMERIC_VALUE,
    ORPHANED_FIELD,
    UNKNOWN_OPERATOR,
    WEIGHT_CLAMPED,
    WEIGHT_DEFAULTED,
    has_errors,
    lint_advice,
    lint_rule_groups,
)
from advicematch.models import AND, BETWEEN, CONCEPT, EQUALS, GREATER_THAN, OR, IssueSeverity, RuleGroup

from tests.conftest import make_advice, make_concepts, make_rule


def _codes(issues):
    return [(i.path, i.code) for i in issues]


class TestRuleLint:
    """Tests for lint_rule_groups."""

    def test_clean_tree(self):
        """Test that a well-formed tree has no findings."""
        groups = [AND(EQUALS("timeline", "0-3", weight=3), BETWEEN("beds", 1, 3))]
        assert lint_rule_groups(groups) == []

    def test_unknown_operator(self):
        """Test that unknown operators are errors."""
        issues = lint_rule_groups([AND(make_rule("timeline", "starts_with", "0"))])
        assert _codes(issues) == [("0.0", UNKNOWN_OPERATOR)]
        assert issues[0].severity == IssueSeverity.ERROR
        assert has_errors(issues) is True

    def test_bad_value_shape(self):
        """Test that includes without a list is an error."""
        issues = lint_rule_groups([OR(EQUALS("a", "1"), make_rule("b", "includes", "x"))])
        assert _codes(issues) == [("0.1", BAD_VALUE_SHAPE)]

    def test_non_numeric_value(self):
        """Test that numeric operators with text values are flagged."""
        issues = lint_rule_groups([AND(GREATER_THAN("timeline", "0-3"))])
        assert _codes(issues) == [("0.0", NON_NUMERIC_VALUE)]
        assert has_errors(issues) is False

    def test_weight_clamped(self):
        """Test that out-of-range weights are reported."""
        issues = lint_rule_groups([AND(EQUALS("a", "1", weight=25))])
        assert _codes(issues) == [("0.0", WEIGHT_CLAMPED)]
        assert "using 10" in issues[0].message

    def test_huge_weight_clamped(self):
        """Test that a weight too large for a float is reported as clamped."""
        issues = lint_rule_groups([AND(EQUALS("a", "1", weight=10 ** 400))])
        assert _codes(issues) == [("0.0", WEIGHT_CLAMPED)]
        assert "using 10" in issues[0].message

    def test_weight_defaulted(self):
        """Test that non-numeric weights are reported."""
        issues = lint_rule_groups([AND(EQUALS("a", "1", weight="heavy"))])
        assert _codes(issues) == [("0.0", WEIGHT_DEFAULTED)]

    def test_missing_weight_is_fine(self):
        """Test that an absent weight is not a finding."""
        assert lint_rule_groups([AND(EQUALS("a", "1", weight=None))]) == []

    def test_empty_group(self):
        """Test that empty groups are warnings."""
        issues = lint_rule_groups([AND(EQUALS("a", "1"), RuleGroup(logic="OR"))])
        assert _codes(issues) == [("0.1", EMPTY_GROUP)]

    def test_orphaned_field(self):
        """Test that fields missing from the tenant's fields are flagged."""
        groups = [AND(EQUALS("timeline", "0-3"), EQUALS("homeType", "condo"))]
        issues = lint_rule_groups(groups, known_fields=["homeType"])
        assert _codes(issues) == [("0.0", ORPHANED_FIELD)]

    def test_field_mapped_through_concept_not_orphaned(self):
        """Test that a bare concept id mapped for the tenant is not orphaned."""
        concepts = make_concepts({"timeline": "timeToSell"})
        groups = [AND(EQUALS("timeline", "0-3"))]
        assert lint_rule_groups(groups, known_fields=["timeToSell"], concepts=concepts) == []

    def test_unmapped_concept(self):
        """Test that concept handles the tenant lacks are flagged."""
        concepts = make_concepts({"timeline": "timeToSell"})
        groups = [AND(EQUALS("concept:budget", "1"), EQUALS(CONCEPT("timeline"), "0-3"))]
        issues = lint_rule_groups(groups, concepts=concepts)
        assert _codes(issues) == [("0.0", ORPHANED_FIELD)]

    def test_concept_with_known_fallback(self):
        """Test that an unmapped concept with a live fieldId is fine."""
        groups = [AND(EQUALS(CONCEPT("budget", "price"), "1"))]
        issues = lint_rule_groups(groups, known_fields=["price"], concepts=make_concepts())
        assert issues == []

    def test_lint_advice_sets_id(self):
        """Test that lint_advice tags issues with the advice ID."""
        advice = make_advice("ADV-9", rule_groups=[AND(make_rule("a", "nope", "1"))])
        issues = lint_advice(advice)
        assert issues[0].advice_id == "ADV-9"
        assert issues[0].to_dict()["adviceId"] == "ADV-9"
