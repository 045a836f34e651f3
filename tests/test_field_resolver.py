"""
Tests for advicematch Field Resolver

Tests cover:
- Numeric token parsing (and the tokens that must not parse)
- Direct answer-key lookup
- Concept handle indirection and value normalization
- Unresolved fields (missing, blank, unmapped)
"""
import math

import pytest

from advicematch.engine.field_resolver import candidate_keys, parse_number, resolve_field
from advicematch.models import CONCEPT, FieldRef, ResolvedKind

from tests.conftest import make_concepts


# =============================================================================
# Numeric Parsing Tests
# =============================================================================

class TestParseNumber:
    """Tests for parse_number function."""

    @pytest.mark.parametrize("token,expected", [
        ("450000", 450000.0),
        ("  42 ", 42.0),
        ("$1,250,000", 1250000.0),
        ("~300", 300.0),
        ("3.5", 3.5),
        ("-5", -5.0),
        (7, 7.0),
        (2.25, 2.25),
    ])
    def test_simple_numbers_parse(self, token, expected):
        """Test that simple numeric tokens parse, leading noise stripped."""
        assert parse_number(token) == expected

    @pytest.mark.parametrize("token", [
        "0-3",
        "12+",
        "5k",
        "1,23",
        "about 300 sqft",
        "",
        "condo",
        None,
        True,
        ["3"],
    ])
    def test_composite_tokens_do_not_parse(self, token):
        """Test that bucket labels and non-numbers return None."""
        assert parse_number(token) is None

    def test_non_finite_floats_rejected(self):
        """Test that NaN and infinity are not numbers for comparison."""
        assert parse_number(math.nan) is None
        assert parse_number(math.inf) is None

    def test_huge_integers_become_infinite(self):
        """Test that integers too large for a float parse as signed infinity."""
        assert parse_number(10 ** 400) == math.inf
        assert parse_number(-(10 ** 400)) == -math.inf


# =============================================================================
# Direct Lookup Tests
# =============================================================================

class TestDirectLookup:
    """Tests for plain answer-key resolution."""

    def test_text_answer(self):
        """Test resolving a text answer."""
        resolved = resolve_field("propertyType", {"propertyType": "condo"})
        assert resolved.kind == ResolvedKind.TEXT
        assert resolved.text == "condo"
        assert resolved.number is None
        assert resolved.field_key == "propertyType"

    def test_numeric_answer(self):
        """Test that numeric text also carries its number."""
        resolved = resolve_field("budget", {"budget": "$450,000"})
        assert resolved.kind == ResolvedKind.NUMBER
        assert resolved.text == "$450,000"
        assert resolved.number == 450000.0

    def test_non_string_answer_is_stringified(self):
        """Test that integer answers resolve as text and number."""
        resolved = resolve_field("bedrooms", {"bedrooms": 3})
        assert resolved.text == "3"
        assert resolved.number == 3.0

    def test_answer_text_kept_as_given(self):
        """Test that surrounding whitespace is kept for comparison."""
        resolved = resolve_field("timeline", {"timeline": "  6-12 "})
        assert resolved.text == "  6-12 "

    def test_padded_numeric_answer_parses(self):
        """Test that padding does not stop numeric parsing."""
        resolved = resolve_field("budget", {"budget": " 450000 "})
        assert resolved.kind == ResolvedKind.NUMBER
        assert resolved.number == 450000.0

    def test_bucket_answer_is_text(self):
        """Test that a range bucket resolves as text only."""
        resolved = resolve_field("timeline", {"timeline": "0-3"})
        assert resolved.kind == ResolvedKind.TEXT
        assert resolved.number is None

    def test_missing_key_unresolved(self):
        """Test that a missing answer is unresolved, not an error."""
        resolved = resolve_field("timeline", {})
        assert resolved.kind == ResolvedKind.UNRESOLVED
        assert resolved.is_resolved is False
        assert resolved.field_key == "timeline"

    @pytest.mark.parametrize("blank", ["", "   ", None])
    def test_blank_answer_unresolved(self, blank):
        """Test that blank answers count as missing."""
        resolved = resolve_field("timeline", {"timeline": blank})
        assert resolved.is_resolved is False


# =============================================================================
# Concept Resolution Tests
# =============================================================================

class TestConceptResolution:
    """Tests for concept handle indirection."""

    def test_concept_prefix_maps_to_tenant_field(self, tenant_concepts):
        """Test that concept:timeline reads the tenant's timeToSell answer."""
        resolved = resolve_field("concept:timeline", {"timeToSell": "6-12"}, tenant_concepts)
        assert resolved.text == "6-12"
        assert resolved.field_key == "timeToSell"

    def test_concept_value_normalized(self, tenant_concepts):
        """Test that free-form answers normalize through the concept."""
        resolved = resolve_field("concept:timeline", {"timeToSell": "ASAP"}, tenant_concepts)
        assert resolved.text == "0-3"

    def test_padded_answer_still_normalized(self, tenant_concepts):
        """Test that concept normalization ignores surrounding whitespace."""
        resolved = resolve_field("concept:timeline", {"timeToSell": " asap "}, tenant_concepts)
        assert resolved.text == "0-3"

    def test_unmapped_concept_unresolved(self, tenant_concepts):
        """Test that a concept the tenant lacks is unresolved."""
        resolved = resolve_field("concept:budget", {"budget": "500000"}, tenant_concepts)
        assert resolved.is_resolved is False
        assert resolved.field_key is None

    def test_concept_without_table_unresolved(self):
        """Test that concept handles need a concept table."""
        resolved = resolve_field("concept:timeline", {"timeline": "0-3"})
        assert resolved.is_resolved is False

    def test_field_ref_prefers_concept(self, tenant_concepts):
        """Test that a FieldRef resolves through its concept first."""
        field = CONCEPT("timeline", field_id="oldTimelineKey")
        answers = {"timeToSell": "3-6", "oldTimelineKey": "12+"}
        resolved = resolve_field(field, answers, tenant_concepts)
        assert resolved.text == "3-6"

    def test_field_ref_falls_back_to_field_id(self):
        """Test that an unmapped concept falls back to fieldId without normalizing."""
        field = FieldRef(field_id="whenMove", concept="timeline")
        table = make_concepts(normalizations={"timeline": {"asap": "0-3"}})
        resolved = resolve_field(field, {"whenMove": "asap"}, table)
        assert resolved.text == "asap"
        assert resolved.field_key == "whenMove"

    def test_plain_key_uses_direct_answer_first(self, tenant_concepts):
        """Test that a plain key answered directly is not normalized."""
        resolved = resolve_field("timeline", {"timeline": "asap"}, tenant_concepts)
        assert resolved.text == "asap"

    def test_plain_key_that_is_a_concept_id(self, tenant_concepts):
        """Test that a bare concept id reaches the tenant's field."""
        resolved = resolve_field("timeline", {"timeToSell": "no rush"}, tenant_concepts)
        assert resolved.text == "12+"
        assert resolved.field_key == "timeToSell"

    def test_candidate_keys_order(self, tenant_concepts):
        """Test candidate key order for each field shape."""
        assert candidate_keys("concept:timeline", tenant_concepts) == [("timeToSell", "timeline")]
        assert candidate_keys(CONCEPT("timeline", "whenMove"), tenant_concepts) == [
            ("timeToSell", "timeline"),
            ("whenMove", None),
        ]
        assert candidate_keys("budget", tenant_concepts) == [("budget", None)]
