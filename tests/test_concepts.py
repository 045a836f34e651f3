"""
Tests for advicematch Concepts

Tests cover:
- Catalogue lookup by alias and by question text
- Value normalization
- Building a tenant ConceptTable from its field keys
"""
from advicematch.models import (
    REAL_ESTATE_CONCEPTS,
    ConceptTable,
    find_concept_by_field,
    get_concept,
    normalize_value,
)


class TestCatalogue:
    """Tests for the built-in concept catalogue."""

    def test_concept_ids_unique(self):
        """Test that every catalogue concept has a unique handle."""
        ids = [c.concept for c in REAL_ESTATE_CONCEPTS]
        assert len(ids) == len(set(ids))

    def test_get_concept(self):
        """Test lookup by concept handle."""
        assert get_concept("timeline").label == "Timeline"
        assert get_concept("square-footage") is None

    def test_find_by_alias_case_insensitive(self):
        """Test that field keys match aliases regardless of case."""
        assert find_concept_by_field("HomeType").concept == "property-type"
        assert find_concept_by_field("timetosell").concept == "timeline"

    def test_find_by_question_text(self):
        """Test the question-text fallback."""
        found = find_concept_by_field("q7", question_text="How quickly do you need to move?")
        assert found.concept == "timeline"

    def test_find_unknown(self):
        """Test that unrelated fields map to nothing."""
        assert find_concept_by_field("favoriteColor") is None

    def test_normalize_value(self):
        """Test catalogue normalization of free-form answers."""
        timeline = get_concept("timeline")
        assert normalize_value(timeline, "ASAP") == "0-3"
        assert normalize_value(timeline, "6-12") == "6-12"


class TestConceptTable:
    """Tests for ConceptTable."""

    def test_from_catalogue(self):
        """Test auto-mapping a tenant's field keys."""
        table = ConceptTable.from_catalogue(["homeType", "timeToSell", "favoriteColor"])
        assert table.field_for("property-type") == "homeType"
        assert table.field_for("timeline") == "timeToSell"
        assert table.has_concept("budget") is False
        assert table.normalize("timeline", "asap") == "0-3"

    def test_first_field_wins(self):
        """Test that the first field matching a concept keeps it."""
        table = ConceptTable.from_catalogue(["timeToSell", "timeToBuy"])
        assert table.field_for("timeline") == "timeToSell"

    def test_without_normalizations(self):
        """Test building a mapping-only table."""
        table = ConceptTable.from_catalogue(["timeToSell"], include_normalizations=False)
        assert table.normalize("timeline", "asap") == "asap"

    def test_concepts_for_field(self):
        """Test reverse lookup."""
        table = ConceptTable(mappings={"timeline": "when", "urgency": "when", "budget": "price"})
        assert table.concepts_for_field("when") == ["timeline", "urgency"]

    def test_normalize_unknown_concept(self):
        """Test that unknown concepts leave values unchanged."""
        assert ConceptTable().normalize("timeline", "soon") == "soon"
