"""
advicematch Exception Hierarchy

Errors raised by the authoring side of advicematch (pack loading,
concept tables, schema validation). The targeting engine itself never
lets these escape: malformed authored data is reported as a non-match
plus a trace entry.

Exception codes follow the pattern: AM_<CATEGORY>_<SPECIFIC>
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class AdviceMatchError(Exception):
    """
    Base exception for all advicematch errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (AM_*)
        details: Additional context about the error
        advice_id: Associated advice item ID if applicable
    """
    message: str
    code: str = "AM_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    advice_id: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.advice_id:
            parts.append(f"(advice: {self.advice_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/CLI output."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.advice_id:
            result["advice_id"] = self.advice_id
        return result


# =============================================================================
# Advice Pack Errors
# =============================================================================

@dataclass
class AdvicePackLoadError(AdviceMatchError):
    """Failed to read an advice pack file."""
    code: str = "AM_PACK_LOAD_ERROR"


@dataclass
class AdvicePackValidationError(AdviceMatchError):
    """Advice pack failed schema validation."""
    code: str = "AM_PACK_VALIDATION_ERROR"


@dataclass
class SchemaVersionMismatch(AdviceMatchError):
    """Advice pack schema version is not supported."""
    code: str = "AM_SCHEMA_VERSION_MISMATCH"


# =============================================================================
# Concept Errors
# =============================================================================

@dataclass
class ConceptTableError(AdviceMatchError):
    """Concept mapping table is invalid."""
    code: str = "AM_CONCEPT_TABLE_ERROR"


# =============================================================================
# Rule Errors
# =============================================================================

@dataclass
class MalformedRuleError(AdviceMatchError):
    """
    A condition rule cannot be evaluated as authored.

    Raised and caught inside the condition evaluator; it only ever
    surfaces as a ``malformed`` trace entry.
    """
    code: str = "AM_MALFORMED_RULE"
