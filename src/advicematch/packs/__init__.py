"""
advicematch Advice Packs

Schema validation and loading for advice packs.

Advice packs are YAML or JSON files holding one tenant's authored
advice items (with their targeting rules) and, optionally, the tenant's
concept table.

Usage:
    from advicematch.packs import load_advice_pack, AdvicePackLoader

    # Load a single pack
    pack = load_advice_pack("path/to/jane_doe.yaml")

    # Use a loader for multiple packs
    loader = AdvicePackLoader()
    pack1 = loader.load("path/to/agent_a.yaml")
    pack2 = loader.load("path/to/agent_b.json")
"""
from __future__ import annotations

from .loader import (
    AdvicePack,
    AdvicePackLoader,
    advice_from_dict,
    concept_table_from_dict,
    load_advice_pack,
    load_advice_pack_from_string,
    load_concept_table,
    read_document,
    rule_group_from_dict,
    situation_from_dict,
)
from .schema import (
    SCHEMA_VERSION,
    AdviceItemSchema,
    AdvicePackSchema,
    ApplicableWhenSchema,
    ConceptTableSchema,
    ConditionRuleSchema,
    FieldRefSchema,
    RuleGroupSchema,
    UserSituationSchema,
    check_schema_version,
    validate_advice_pack,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Loader
    "AdvicePack",
    "AdvicePackLoader",
    "load_advice_pack",
    "load_advice_pack_from_string",
    "load_concept_table",
    "read_document",
    # Dict converters
    "advice_from_dict",
    "concept_table_from_dict",
    "rule_group_from_dict",
    "situation_from_dict",
    # Validation
    "validate_advice_pack",
    "check_schema_version",
    # Schemas (for advanced usage)
    "AdvicePackSchema",
    "AdviceItemSchema",
    "ApplicableWhenSchema",
    "ConceptTableSchema",
    "ConditionRuleSchema",
    "FieldRefSchema",
    "RuleGroupSchema",
    "UserSituationSchema",
]
