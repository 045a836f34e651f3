"""
advicematch Advice Pack Schemas

Pydantic models for validating advice pack YAML/JSON files.

An advice pack holds one tenant's authored advice items (with their
``applicableWhen`` targeting rules, in the dashboard's JSON shape) and,
optionally, the tenant's concept table. Keys are accepted in the
dashboard's camelCase or in snake_case.

Schema versioning:
- schema_version field tracks breaking changes
- Loaders check the major version

Operators are kept as free strings: an unknown operator is an authoring
mistake the engine reports per rule, not a reason to reject the pack.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    Discriminator,
    Field,
    Tag,
    field_validator,
    model_validator,
)


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"


LogicValue = Literal["AND", "OR"]


# =============================================================================
# Rule Schemas
# =============================================================================

class FieldRefSchema(BaseModel):
    """Schema for a field given in object form: {fieldId, concept}."""
    field_id: Optional[str] = Field(None, alias="fieldId", description="Tenant field key")
    concept: Optional[str] = Field(None, description="Concept handle")

    @model_validator(mode="after")
    def validate_reference(self) -> "FieldRefSchema":
        if not self.field_id and not self.concept:
            raise ValueError("Field reference needs 'fieldId' or 'concept'")
        return self

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }


class ConditionRuleSchema(BaseModel):
    """Schema for a condition rule (leaf comparison)."""
    field: Union[str, FieldRefSchema] = Field(..., description="Answer key, 'concept:<id>', or {fieldId, concept}")
    operator: str = Field(..., description="equals, not_equals, includes, greater_than, less_than, between")
    value: Any = Field(None, description="Scalar, list (includes) or [min, max] (between)")
    weight: Any = Field(None, description="Relative importance 1-10; clamped by the engine")
    id: Optional[str] = Field(None, description="Dashboard row ID")

    @field_validator("field")
    @classmethod
    def validate_field(cls, v: Union[str, FieldRefSchema]) -> Union[str, FieldRefSchema]:
        if isinstance(v, str) and not v.strip():
            raise ValueError("Rule field must not be empty")
        return v

    model_config = {
        "extra": "forbid",
    }


class RuleGroupSchema(BaseModel):
    """
    Schema for an AND/OR group.

    Children are discriminated by shape: objects with ``logic`` are
    groups, everything else is a condition rule.
    """
    logic: LogicValue = Field(..., description="AND or OR")
    rules: list[RuleNodeSchema] = Field(default_factory=list, description="Conditions and nested groups")
    id: Optional[str] = Field(None, description="Dashboard group ID")

    @field_validator("logic", mode="before")
    @classmethod
    def normalize_logic(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    model_config = {
        "extra": "forbid",
    }


def _node_kind(value: Any) -> str:
    if isinstance(value, dict):
        return "group" if "logic" in value else "rule"
    if isinstance(value, RuleGroupSchema):
        return "group"
    return "rule"


RuleNodeSchema = Annotated[
    Union[
        Annotated[RuleGroupSchema, Tag("group")],
        Annotated[ConditionRuleSchema, Tag("rule")],
    ],
    Discriminator(_node_kind),
]

RuleGroupSchema.model_rebuild()


# =============================================================================
# Advice Schemas
# =============================================================================

class ApplicableWhenSchema(BaseModel):
    """Schema for an advice item's targeting block."""
    flow: list[str] = Field(default_factory=list, description="Flows the advice applies to; empty = any")
    rule_groups: list[RuleGroupSchema] = Field(
        default_factory=list,
        alias="ruleGroups",
        description="Top-level groups, AND-ed together",
    )
    min_match_score: float = Field(
        0.0,
        alias="minMatchScore",
        ge=0.0,
        le=1.0,
        description="Composite score threshold",
    )

    @field_validator("flow", mode="before")
    @classmethod
    def coerce_flow(cls, v: Any) -> Any:
        # A single flow may be written as a plain string
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("min_match_score", mode="before")
    @classmethod
    def default_threshold(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }


class AdviceItemSchema(BaseModel):
    """Schema for one authored advice item."""
    id: str = Field(..., min_length=1, description="Unique advice ID")
    title: str = Field(..., description="Advice title")
    body: str = Field("", description="Advice text")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")
    applicable_when: ApplicableWhenSchema = Field(
        default_factory=ApplicableWhenSchema,
        alias="applicableWhen",
        description="Targeting rules; absent = universal",
    )

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }


# =============================================================================
# Concept Table Schema
# =============================================================================

class ConceptTableSchema(BaseModel):
    """
    Schema for a tenant's concept table.

    ``fields`` lists the tenant's conversation field keys; they are
    matched against the built-in catalogue and explicit ``mappings``
    override the result.
    """
    fields: list[str] = Field(default_factory=list, description="Tenant field keys to auto-map")
    questions: dict[str, str] = Field(default_factory=dict, description="Field key -> question text")
    mappings: dict[str, str] = Field(default_factory=dict, description="Concept -> field key")
    normalizations: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Concept -> {answer: standard value}",
    )
    use_catalogue_normalizations: bool = Field(
        True,
        alias="useCatalogueNormalizations",
        description="Apply the catalogue's value normalizations for mapped concepts",
    )

    @field_validator("mappings")
    @classmethod
    def validate_mappings(cls, v: dict[str, str]) -> dict[str, str]:
        for concept, key in v.items():
            if not concept.strip() or not key.strip():
                raise ValueError("Concept mappings need a non-empty concept and field key")
        return v

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }


# =============================================================================
# Advice Pack Schema
# =============================================================================

class AdvicePackSchema(BaseModel):
    """Root schema for an advice pack file."""
    schema_version: str = Field(SCHEMA_VERSION, description="Pack schema version")
    tenant: Optional[str] = Field(None, description="Tenant (agent) identifier")
    concepts: Optional[ConceptTableSchema] = Field(None, description="Tenant concept table")
    advice: list[AdviceItemSchema] = Field(default_factory=list, description="Advice items in authoring order")

    @field_validator("schema_version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> Any:
        # YAML reads an unquoted 1.0 as a float
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("advice")
    @classmethod
    def validate_unique_ids(cls, v: list[AdviceItemSchema]) -> list[AdviceItemSchema]:
        seen: set[str] = set()
        for item in v:
            if item.id in seen:
                raise ValueError(f"Duplicate advice ID: '{item.id}'")
            seen.add(item.id)
        return v

    model_config = {
        "extra": "forbid",
    }


# =============================================================================
# Visitor Input Schemas
# =============================================================================

class UserSituationSchema(BaseModel):
    """Schema for a visitor situation file: {flow, answers}."""
    flow: str = Field(..., min_length=1, description="Current conversation flow")
    answers: dict[str, Any] = Field(default_factory=dict, description="Field key -> answer")


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_advice_pack(data: dict[str, Any]) -> AdvicePackSchema:
    """
    Validate an advice pack dictionary against the schema.

    Args:
        data: Dictionary loaded from YAML/JSON

    Returns:
        Validated AdvicePackSchema

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return AdvicePackSchema.model_validate(data)


def check_schema_version(data: dict[str, Any]) -> bool:
    """
    Check if an advice pack's schema version is compatible.

    Only the major version has to match.
    """
    pack_version = str(data.get("schema_version", SCHEMA_VERSION))
    pack_major = pack_version.split(".")[0]
    current_major = SCHEMA_VERSION.split(".")[0]
    return pack_major == current_major
