"""
advicematch Concepts

Concepts are stable, business-agnostic handles ("property-type",
"timeline") that indirect to whatever a tenant named the matching
conversation field ("homeType", "timeToSell"). Rules authored against a
concept survive a tenant renaming its questions.

Key components:
- RealEstateConcept: catalogue entry (aliases, value normalizations)
- REAL_ESTATE_CONCEPTS: built-in catalogue
- ConceptTable: one tenant's concept -> field key mapping, passed into
  every resolution call (never held globally)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Literal, Mapping, Optional


ValueType = Literal["categorical", "numeric", "text"]


@dataclass(frozen=True)
class RealEstateConcept:
    """A catalogue concept and the field names it usually appears under."""
    concept: str
    label: str
    description: str
    aliases: tuple[str, ...]
    value_type: ValueType
    common_values: tuple[str, ...] = ()
    value_normalizations: Mapping[str, str] = field(default_factory=dict)
    examples: tuple[str, ...] = ()


REAL_ESTATE_CONCEPTS: tuple[RealEstateConcept, ...] = (
    RealEstateConcept(
        concept="property-type",
        label="Property Type",
        description="The type of property (house, condo, townhouse, etc.)",
        aliases=("propertyType", "property", "homeType", "home", "dwelling", "propertyKind", "propKind"),
        value_type="categorical",
        common_values=("single-family house", "condo", "townhouse", "multi-family"),
        value_normalizations={
            "house": "single-family house",
            "home": "single-family house",
            "single family": "single-family house",
            "sfh": "single-family house",
            "apartment": "condo",
            "apt": "condo",
            "condominium": "condo",
            "townhome": "townhouse",
            "duplex": "multi-family",
            "triplex": "multi-family",
        },
        examples=("What type of property", "What kind of home", "Property type", "Type of dwelling"),
    ),
    RealEstateConcept(
        concept="timeline",
        label="Timeline",
        description="How quickly the user wants to buy/sell (urgency)",
        aliases=("timeline", "timeframe", "when", "urgency", "timing", "timeToSell", "timeToBuy"),
        value_type="categorical",
        common_values=("0-3", "3-6", "6-12", "12+"),
        value_normalizations={
            "urgent": "0-3",
            "asap": "0-3",
            "quick": "0-3",
            "immediately": "0-3",
            "soon": "3-6",
            "within 6 months": "3-6",
            "flexible": "6-12",
            "no rush": "12+",
            "not urgent": "12+",
        },
        examples=("When do you want to", "How quickly", "What is your timeline", "Timeframe"),
    ),
    RealEstateConcept(
        concept="selling-reason",
        label="Selling Reason",
        description="Why the user wants to sell their property",
        aliases=("sellingReason", "reason", "why", "motivation", "sellReason", "whySelling"),
        value_type="categorical",
        common_values=("upsizing", "downsizing", "relocating", "investment"),
        value_normalizations={
            "moving up": "upsizing",
            "bigger home": "upsizing",
            "growing family": "upsizing",
            "moving down": "downsizing",
            "smaller home": "downsizing",
            "empty nest": "downsizing",
            "relocation": "relocating",
            "moving": "relocating",
            "job transfer": "relocating",
            "investing": "investment",
            "flip": "investment",
        },
        examples=("Why are you selling", "What is your reason", "Selling motivation"),
    ),
    RealEstateConcept(
        concept="buying-reason",
        label="Buying Reason",
        description="Why the user wants to buy a property",
        aliases=("buyingReason", "reason", "why", "motivation", "buyReason", "whyBuying"),
        value_type="categorical",
        common_values=("first-home", "upgrade", "downsize", "investment"),
        value_normalizations={
            "first time": "first-home",
            "first home": "first-home",
            "first-time buyer": "first-home",
            "moving up": "upgrade",
            "bigger": "upgrade",
            "moving down": "downsize",
            "smaller": "downsize",
            "investing": "investment",
            "rental": "investment",
        },
        examples=("Why are you buying", "What is your reason", "Buying motivation"),
    ),
    RealEstateConcept(
        concept="budget",
        label="Budget",
        description="The user's price range or budget",
        aliases=("budget", "price", "priceRange", "affordability", "maxPrice", "budgetRange"),
        value_type="numeric",
        examples=("What is your budget", "Price range", "How much can you afford"),
    ),
    RealEstateConcept(
        concept="location",
        label="Location",
        description="Geographic location or area preference",
        aliases=("location", "area", "neighborhood", "city", "region", "where"),
        value_type="text",
        examples=("Where are you looking", "What area", "Location preference"),
    ),
    RealEstateConcept(
        concept="property-age",
        label="Property Age",
        description="How old the property is",
        aliases=("propertyAge", "age", "yearBuilt", "homeAge", "houseAge"),
        value_type="categorical",
        common_values=("0-10", "10-20", "20-30", "30+"),
        value_normalizations={
            "new": "0-10",
            "newer": "0-10",
            "recent": "10-20",
            "older": "30+",
            "historic": "30+",
        },
        examples=("How old is your home", "Property age", "Year built"),
    ),
    RealEstateConcept(
        concept="bedrooms",
        label="Bedrooms",
        description="Number of bedrooms",
        aliases=("bedrooms", "beds", "bedroomCount", "bedroom"),
        value_type="numeric",
        common_values=("1", "2", "3", "4", "5+"),
        examples=("How many bedrooms", "Number of beds"),
    ),
    RealEstateConcept(
        concept="renovations",
        label="Renovations",
        description="Renovations or updates needed/wanted",
        aliases=("renovations", "updates", "improvements", "renovated", "remodel"),
        value_type="categorical",
        common_values=("kitchen", "bathroom", "kitchen and bathroom", "none"),
        value_normalizations={
            "kitchen update": "kitchen",
            "bath update": "bathroom",
            "both": "kitchen and bathroom",
            "no updates": "none",
            "move-in ready": "none",
        },
        examples=("What renovations", "Updates needed", "Improvements"),
    ),
)


def get_concept(
    concept: str,
    catalogue: Iterable[RealEstateConcept] = REAL_ESTATE_CONCEPTS,
) -> Optional[RealEstateConcept]:
    """Look up a catalogue entry by its concept handle."""
    for entry in catalogue:
        if entry.concept == concept:
            return entry
    return None


def find_concept_by_field(
    field_id: str,
    question_text: Optional[str] = None,
    catalogue: Iterable[RealEstateConcept] = REAL_ESTATE_CONCEPTS,
) -> Optional[RealEstateConcept]:
    """
    Find the concept a tenant field most likely represents.

    Tries a case-insensitive alias match on the field key first, then
    looks for a catalogue example phrase inside the question text.
    """
    entries = tuple(catalogue)
    lowered = field_id.lower()
    for entry in entries:
        if any(alias.lower() == lowered for alias in entry.aliases):
            return entry

    if question_text:
        question = question_text.lower()
        for entry in entries:
            if any(example.lower() in question for example in entry.examples):
                return entry

    return None


def normalize_value(concept: RealEstateConcept, value: str) -> str:
    """Map a free-form answer onto the concept's standard value."""
    return concept.value_normalizations.get(value.strip().lower(), value)


# =============================================================================
# Concept Table (per tenant)
# =============================================================================

@dataclass(frozen=True)
class ConceptTable:
    """
    One tenant's concept -> field key mapping.

    Attributes:
        mappings: concept handle -> tenant answer key
        normalizations: concept handle -> {lowercased answer: standard value}
    """
    mappings: Mapping[str, str] = field(default_factory=dict)
    normalizations: Mapping[str, Mapping[str, str]] = field(default_factory=dict)

    def field_for(self, concept: str) -> Optional[str]:
        """Tenant field key for a concept, or None if the tenant lacks it."""
        return self.mappings.get(concept)

    def has_concept(self, concept: str) -> bool:
        return concept in self.mappings

    def concepts_for_field(self, field_key: str) -> list[str]:
        """Every concept mapped onto a field key, in sorted order."""
        return sorted(c for c, key in self.mappings.items() if key == field_key)

    def normalize(self, concept: str, value: str) -> str:
        """Apply the concept's value normalizations, if any."""
        table = self.normalizations.get(concept)
        if not table:
            return value
        return table.get(value.strip().lower(), value)

    @classmethod
    def from_catalogue(
        cls,
        field_keys: Iterable[str],
        question_texts: Optional[Mapping[str, str]] = None,
        catalogue: Iterable[RealEstateConcept] = REAL_ESTATE_CONCEPTS,
        include_normalizations: bool = True,
    ) -> ConceptTable:
        """
        Build a tenant table by matching field keys against the catalogue.

        The first field key that matches a concept wins; later fields
        matching the same concept are ignored so the mapping stays a
        function of the input order.

        Example:
            table = ConceptTable.from_catalogue(["homeType", "timeToSell"])
            table.field_for("property-type")  # "homeType"
        """
        entries = tuple(catalogue)
        questions = question_texts or {}
        mappings: dict[str, str] = {}
        normalizations: dict[str, dict[str, str]] = {}

        for key in field_keys:
            entry = find_concept_by_field(key, questions.get(key), entries)
            if entry is None or entry.concept in mappings:
                continue
            mappings[entry.concept] = key
            if include_normalizations and entry.value_normalizations:
                normalizations[entry.concept] = dict(entry.value_normalizations)

        return cls(mappings=mappings, normalizations=normalizations)


EMPTY_CONCEPT_TABLE = ConceptTable()
