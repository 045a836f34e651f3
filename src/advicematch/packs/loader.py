"""
advicematch Advice Pack Loader

Loads and validates advice packs from YAML or JSON files.

Converts Pydantic schema models to advicematch domain models.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..exceptions import (
    AdvicePackLoadError,
    AdvicePackValidationError,
    ConceptTableError,
    SchemaVersionMismatch,
)
from ..models import (
    REAL_ESTATE_CONCEPTS,
    AdviceItem,
    ApplicableWhen,
    ConceptTable,
    ConditionRule,
    FieldRef,
    RuleGroup,
    RuleNode,
    UserSituation,
)
from .schema import (
    SCHEMA_VERSION,
    AdviceItemSchema,
    AdvicePackSchema,
    ConceptTableSchema,
    ConditionRuleSchema,
    FieldRefSchema,
    RuleGroupSchema,
    UserSituationSchema,
    check_schema_version,
    validate_advice_pack,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Loaded Pack
# =============================================================================

@dataclass(frozen=True)
class AdvicePack:
    """
    One tenant's advice, ready for the engine.

    Attributes:
        advice: Advice items in authoring order
        concepts: Tenant concept table (empty if the pack has none)
        known_fields: Tenant field keys declared in the pack
        tenant: Tenant identifier, if given
        schema_version: Pack schema version
    """
    advice: tuple[AdviceItem, ...] = ()
    concepts: ConceptTable = field(default_factory=ConceptTable)
    known_fields: tuple[str, ...] = ()
    tenant: Optional[str] = None
    schema_version: str = SCHEMA_VERSION

    def get_advice(self, advice_id: str) -> Optional[AdviceItem]:
        for item in self.advice:
            if item.id == advice_id:
                return item
        return None

    @property
    def advice_ids(self) -> list[str]:
        return [item.id for item in self.advice]


# =============================================================================
# Schema to Model Converters
# =============================================================================

def _convert_field(schema: Union[str, FieldRefSchema]) -> Union[str, FieldRef]:
    if isinstance(schema, FieldRefSchema):
        return FieldRef(field_id=schema.field_id, concept=schema.concept)
    return schema


def _convert_rule(schema: ConditionRuleSchema) -> ConditionRule:
    """Convert ConditionRuleSchema to ConditionRule model."""
    return ConditionRule(
        field=_convert_field(schema.field),
        operator=schema.operator,
        value=schema.value,
        weight=schema.weight,
    )


def _convert_node(schema: Union[RuleGroupSchema, ConditionRuleSchema]) -> RuleNode:
    if isinstance(schema, RuleGroupSchema):
        return _convert_group(schema)
    return _convert_rule(schema)


def _convert_group(schema: RuleGroupSchema) -> RuleGroup:
    """Convert RuleGroupSchema to RuleGroup model (recursive)."""
    return RuleGroup(
        logic=schema.logic,
        rules=tuple(_convert_node(child) for child in schema.rules),
    )


def _convert_advice(schema: AdviceItemSchema) -> AdviceItem:
    """Convert AdviceItemSchema to AdviceItem model."""
    when = schema.applicable_when
    return AdviceItem(
        id=schema.id,
        title=schema.title,
        body=schema.body,
        tags=tuple(schema.tags),
        applicable_when=ApplicableWhen(
            flow=frozenset(when.flow),
            rule_groups=tuple(_convert_group(g) for g in when.rule_groups),
            min_match_score=when.min_match_score,
        ),
    )


def _convert_concepts(schema: ConceptTableSchema) -> ConceptTable:
    """Build a ConceptTable: catalogue matches first, explicit mappings win."""
    base = ConceptTable.from_catalogue(
        schema.fields,
        question_texts=schema.questions,
        catalogue=REAL_ESTATE_CONCEPTS,
        include_normalizations=schema.use_catalogue_normalizations,
    )
    mappings = dict(base.mappings)
    mappings.update(schema.mappings)

    normalizations: dict[str, dict[str, str]] = {
        concept: dict(table) for concept, table in base.normalizations.items()
    }
    for concept, table in schema.normalizations.items():
        merged = normalizations.setdefault(concept, {})
        merged.update({answer.lower(): value for answer, value in table.items()})

    return ConceptTable(mappings=mappings, normalizations=normalizations)


def _convert_advice_pack(schema: AdvicePackSchema) -> AdvicePack:
    """Convert AdvicePackSchema to AdvicePack."""
    concepts = _convert_concepts(schema.concepts) if schema.concepts else ConceptTable()
    known_fields = tuple(schema.concepts.fields) if schema.concepts else ()
    return AdvicePack(
        advice=tuple(_convert_advice(a) for a in schema.advice),
        concepts=concepts,
        known_fields=known_fields,
        tenant=schema.tenant,
        schema_version=schema.schema_version,
    )


# =============================================================================
# Dict Converters (for callers that already hold parsed JSON)
# =============================================================================

def rule_group_from_dict(data: dict[str, Any]) -> RuleGroup:
    """
    Build a RuleGroup from the dashboard's JSON shape.

    Raises:
        AdvicePackValidationError: If the structure is invalid
    """
    try:
        schema = RuleGroupSchema.model_validate(data)
    except ValidationError as e:
        raise AdvicePackValidationError(
            message=f"Rule group validation failed: {e.error_count()} errors",
            details={"errors": e.errors(include_url=False)},
        )
    return _convert_group(schema)


def advice_from_dict(data: dict[str, Any]) -> AdviceItem:
    """
    Build an AdviceItem from the dashboard's JSON shape.

    Raises:
        AdvicePackValidationError: If the structure is invalid
    """
    try:
        schema = AdviceItemSchema.model_validate(data)
    except ValidationError as e:
        raise AdvicePackValidationError(
            message=f"Advice validation failed: {e.error_count()} errors",
            details={"errors": e.errors(include_url=False)},
            advice_id=data.get("id") if isinstance(data, dict) else None,
        )
    return _convert_advice(schema)


def concept_table_from_dict(data: dict[str, Any]) -> ConceptTable:
    """
    Build a ConceptTable from a mapping document.

    Raises:
        ConceptTableError: If the document is invalid
    """
    try:
        schema = ConceptTableSchema.model_validate(data)
    except ValidationError as e:
        raise ConceptTableError(
            message=f"Concept table validation failed: {e.error_count()} errors",
            details={"errors": e.errors(include_url=False)},
        )
    return _convert_concepts(schema)


def situation_from_dict(data: dict[str, Any]) -> UserSituation:
    """
    Build a UserSituation from {flow, answers}.

    Raises:
        AdvicePackValidationError: If the structure is invalid
    """
    try:
        schema = UserSituationSchema.model_validate(data)
    except ValidationError as e:
        raise AdvicePackValidationError(
            message=f"Situation validation failed: {e.error_count()} errors",
            details={"errors": e.errors(include_url=False)},
        )
    return UserSituation(flow=schema.flow, answers=dict(schema.answers))


# =============================================================================
# File Reading
# =============================================================================

def read_document(path: Union[str, Path]) -> Any:
    """Load data from a YAML or JSON file."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() in {".yaml", ".yml"}:
            return yaml.safe_load(f)
        elif path.suffix.lower() == ".json":
            return json.load(f)
        else:
            # Try YAML first, then JSON
            content = f.read()
            try:
                return yaml.safe_load(content)
            except yaml.YAMLError:
                return json.loads(content)


# =============================================================================
# Advice Pack Loader
# =============================================================================

class AdvicePackLoader:
    """
    Loads advice packs from YAML or JSON files.

    Usage:
        loader = AdvicePackLoader()
        pack = loader.load("packs/jane_doe.yaml")
        report = TargetingPipeline().run(candidates, situation, concepts=pack.concepts)
    """

    def __init__(self, strict_version: bool = True):
        """
        Initialize the loader.

        Args:
            strict_version: If True, reject packs with incompatible schema versions
        """
        self.strict_version = strict_version
        self._packs: dict[str, AdvicePack] = {}

    def load(self, path: Union[str, Path]) -> AdvicePack:
        """
        Load an advice pack from a file.

        Args:
            path: Path to YAML or JSON file

        Returns:
            Loaded AdvicePack

        Raises:
            AdvicePackLoadError: If file cannot be read
            AdvicePackValidationError: If validation fails
            SchemaVersionMismatch: If schema version incompatible
        """
        path = Path(path)

        try:
            data = read_document(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise AdvicePackLoadError(
                message=f"Failed to load advice pack: {e}",
                details={"path": str(path), "error": str(e)},
            )

        pack = self.load_data(data, source=str(path))
        self._packs[str(path)] = pack
        logger.debug("Loaded advice pack %s with %d items", path, len(pack.advice))
        return pack

    def load_data(self, data: Any, source: str = "") -> AdvicePack:
        """Validate and convert an already-parsed pack document."""
        if not isinstance(data, dict):
            raise AdvicePackLoadError(
                message="Advice pack must be a mapping at the top level",
                details={"path": source, "type": type(data).__name__},
            )

        if self.strict_version and not check_schema_version(data):
            pack_version = data.get("schema_version", "unknown")
            raise SchemaVersionMismatch(
                message=f"Schema version mismatch: pack has {pack_version}, expected {SCHEMA_VERSION}",
                details={
                    "pack_version": pack_version,
                    "expected_version": SCHEMA_VERSION,
                },
            )

        try:
            schema = validate_advice_pack(data)
        except ValidationError as e:
            raise AdvicePackValidationError(
                message=f"Advice pack validation failed: {e.error_count()} errors",
                details={"errors": e.errors(include_url=False), "path": source},
            )

        return _convert_advice_pack(schema)

    def get_pack(self, path: Union[str, Path]) -> Optional[AdvicePack]:
        """Get a previously loaded pack by its path."""
        return self._packs.get(str(Path(path)))

    def list_packs(self) -> list[str]:
        return list(self._packs.keys())


# =============================================================================
# Convenience Functions
# =============================================================================

def load_advice_pack(path: Union[str, Path]) -> AdvicePack:
    """
    Load an advice pack from a file.

    Convenience function that creates a temporary loader.
    """
    loader = AdvicePackLoader()
    return loader.load(path)


def load_advice_pack_from_string(
    content: str,
    format: str = "yaml",
) -> AdvicePack:
    """
    Load an advice pack from a string.

    Args:
        content: YAML or JSON string
        format: "yaml" or "json"

    Returns:
        Loaded AdvicePack
    """
    try:
        if format.lower() == "json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (ValueError, yaml.YAMLError) as e:
        raise AdvicePackLoadError(
            message=f"Failed to parse advice pack: {e}",
            details={"format": format, "error": str(e)},
        )
    return AdvicePackLoader().load_data(data)


def load_concept_table(path: Union[str, Path]) -> ConceptTable:
    """
    Load a tenant concept table from a YAML or JSON file.

    Raises:
        ConceptTableError: If the file cannot be read or is invalid
    """
    try:
        data = read_document(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConceptTableError(
            message=f"Failed to load concept table: {e}",
            details={"path": str(path), "error": str(e)},
        )
    if not isinstance(data, dict):
        raise ConceptTableError(
            message="Concept table must be a mapping at the top level",
            details={"path": str(path)},
        )
    return concept_table_from_dict(data)
