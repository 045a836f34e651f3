"""
advicematch Field Resolver

The single normalization boundary between free-form visitor answers and
the condition evaluator.

Key features:
- Direct answer-key lookup
- Concept handle indirection through a per-call ConceptTable
- Concept value normalization ("asap" -> "0-3")
- Opportunistic numeric parsing of simple numeric tokens
- Missing or blank answers resolve to UNRESOLVED, never an error
"""
from __future__ import annotations

import math
import re
from typing import Any, Mapping, Optional

from ..models import (
    EMPTY_CONCEPT_TABLE,
    ConceptTable,
    FieldRef,
    FieldSpec,
    ResolvedKind,
    ResolvedValue,
    concept_of,
)


# =============================================================================
# Numeric Parsing
# =============================================================================

_LEADING_NOISE = re.compile(r"^[^0-9+\-.]+")
_GROUPED_NUMBER = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")
_PLAIN_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a simple numeric token.

    Leading non-numeric characters (currency signs, "~", words) are
    stripped and "1,234,567" grouping is accepted. Anything else left
    over makes the token non-numeric, so bucket labels such as "0-3",
    "12+" or "5k" return None instead of a guessed bound.

    Examples:
        parse_number("450000") == 450000.0
        parse_number("$1,250,000") == 1250000.0
        parse_number("0-3") is None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        return None

    text = _LEADING_NOISE.sub("", value.strip())
    if _GROUPED_NUMBER.match(text):
        text = text.replace(",", "")
    if not _PLAIN_NUMBER.match(text):
        return None
    return float(text)


def _answer_text(raw: Any) -> Optional[str]:
    """Answer as text, or None when there is nothing to compare."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return "true" if raw else "false"
    text = str(raw)
    # Blank check only; equality compares the answer as given
    return text if text.strip() else None


# =============================================================================
# Field Resolution
# =============================================================================

def candidate_keys(
    field: FieldSpec,
    concepts: Optional[ConceptTable] = None,
) -> list[tuple[str, Optional[str]]]:
    """
    Answer keys to try for a field, in order, with the concept each came through.

    - "homeType"                 -> [("homeType", None), (mapped, "homeType")?]
    - "concept:property-type"    -> [(mapped, "property-type")]
    - FieldRef(concept, fieldId) -> [(mapped, concept), (fieldId, None)]
    """
    table = concepts or EMPTY_CONCEPT_TABLE
    keys: list[tuple[str, Optional[str]]] = []

    concept = concept_of(field)
    if concept is not None:
        mapped = table.field_for(concept)
        if mapped:
            keys.append((mapped, concept))
        if isinstance(field, FieldRef) and field.field_id:
            keys.append((field.field_id, None))
        return keys

    if isinstance(field, FieldRef):
        # FieldRef with only a field_id
        if field.field_id:
            keys.append((field.field_id, None))
        return keys

    key = str(field)
    if key:
        keys.append((key, None))
        # A bare concept id used as a field name
        mapped = table.field_for(key)
        if mapped and mapped != key:
            keys.append((mapped, key))
    return keys


def resolve_field(
    field: FieldSpec,
    answers: Mapping[str, Any],
    concepts: Optional[ConceptTable] = None,
) -> ResolvedValue:
    """
    Resolve a rule field against the visitor's answers.

    Args:
        field: Answer key, "concept:<id>" handle, or FieldRef
        answers: The visitor's answers (field key -> answer text)
        concepts: The tenant's concept table for this call

    Returns:
        ResolvedValue; UNRESOLVED when no candidate key has an answer.
    """
    table = concepts or EMPTY_CONCEPT_TABLE
    keys = candidate_keys(field, table)

    for key, via_concept in keys:
        text = _answer_text(answers.get(key))
        if text is None:
            continue
        if via_concept is not None:
            text = table.normalize(via_concept, text)
        number = parse_number(text)
        return ResolvedValue(
            kind=ResolvedKind.NUMBER if number is not None else ResolvedKind.TEXT,
            text=text,
            number=number,
            field_key=key,
        )

    return ResolvedValue.unresolved(field_key=keys[0][0] if keys else None)
