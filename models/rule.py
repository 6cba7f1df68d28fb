"""
Rule schemas for keyword-driven dependency rules.

A rule selects its target part when its logic holds against the current
context tokens:
    include_terms  every term present (AND)
    exclude_terms  no term present
    or_groups      each group has at least one member present
"""

from typing import Optional

from pydantic import ConfigDict, Field

from models.base import BaseSchema
from models.matching import MatchResult
from models.part import Part
from utils.text_utils import normalize_text


class RuleLogic(BaseSchema):
    """Parsed form of a rule expression such as "(CAB/CAN) STD [TT BT]"."""

    # raw_expression is kept verbatim for display
    model_config = ConfigDict(str_strip_whitespace=False)

    include_terms: list[str] = Field(default_factory=list)
    exclude_terms: list[str] = Field(default_factory=list)
    or_groups: list[list[str]] = Field(default_factory=list)
    raw_expression: str = ""

    @property
    def is_empty(self) -> bool:
        """An empty expression is vacuously true and always fires."""
        return not (self.include_terms or self.exclude_terms or self.or_groups)

    @property
    def all_terms(self) -> list[str]:
        """Every term in include, OR-group, exclude order."""
        terms = list(self.include_terms)
        for group in self.or_groups:
            terms.extend(group)
        terms.extend(self.exclude_terms)
        return terms

    def is_satisfied_by(self, context: set[str]) -> bool:
        """Evaluate the logic against a set of uppercase context tokens."""
        if not all(normalize_text(term) in context for term in self.include_terms):
            return False
        if any(normalize_text(term) in context for term in self.exclude_terms):
            return False
        return all(
            any(normalize_text(term) in context for term in group)
            for group in self.or_groups
        )


class Rule(BaseSchema):
    """A dependency rule targeting exactly one part."""

    id: str = Field(..., min_length=1)
    target_part_id: str = Field(..., min_length=1)
    logic: RuleLogic = Field(default_factory=RuleLogic)
    is_active: bool = True


# ===================
# API SCHEMAS
# ===================

class ParseExpressionRequest(BaseSchema):
    """Parse a raw rule expression."""
    raw: Optional[str] = None


class SerializeLogicRequest(BaseSchema):
    """Rebuild an expression string from parsed logic."""
    logic: RuleLogic


class SerializeLogicResponse(BaseSchema):
    expression: str


class GenerateRulesRequest(BaseSchema):
    """Derive rules for a freshly imported catalog."""
    parts: list[Part]
    logic_by_part: dict[str, str] = Field(
        default_factory=dict,
        description="Explicit logic column per part id"
    )
    existing_rules: list[Rule] = Field(default_factory=list)


class GenerateRulesResponse(BaseSchema):
    rules: list[Rule]
    created: int


class PromoteMatchRequest(BaseSchema):
    """Turn a reviewed match into a permanent rule."""
    match: MatchResult
    parts: list[Part]
    rules: list[Rule] = Field(default_factory=list)
    part_number: Optional[str] = Field(
        None,
        description="Manual override of the suggested part number"
    )
