"""
Configuration schemas: resolver output, selection validation and the
request bodies of the configuration endpoints.
"""

from typing import Optional

from pydantic import Field

from models.base import BaseSchema
from models.part import Part
from models.rule import Rule


class ResolutionResult(BaseSchema):
    """
    Output of one Selection Resolver run.

    implied_ids keeps firing order. converged is False when the pass bound
    was reached while the last pass was still firing rules, meaning deeper
    chains may have been left unresolved.
    """

    implied_ids: list[str] = Field(default_factory=list)
    passes: int = 0
    converged: bool = True

    @property
    def implied_set(self) -> set[str]:
        return set(self.implied_ids)


class GroupStatus(BaseSchema):
    """Selection state of one reference-designator group."""

    group: str
    is_mandatory: bool
    selected_ids: list[str] = Field(default_factory=list)
    implied_ids: list[str] = Field(default_factory=list)
    min_select_preference: int

    @property
    def needs_confirmation(self) -> bool:
        return bool(self.implied_ids) and not self.selected_ids


class SelectionValidation(BaseSchema):
    """Readiness of a selection for manifest generation."""

    is_valid: bool
    progress: int = Field(..., ge=0, le=100, description="Percent of mandatory groups resolved")
    total_mandatory_groups: int
    missing_mandatory: int
    pending_confirmation: int
    groups: list[GroupStatus] = Field(default_factory=list)


# ===================
# API SCHEMAS
# ===================

class ResolveRequest(BaseSchema):
    """Catalog snapshot plus the user's confirmed part ids."""
    parts: list[Part]
    rules: list[Rule]
    confirmed_ids: list[str] = Field(default_factory=list)


class ToggleRequest(BaseSchema):
    parts: list[Part]
    selected_ids: list[str] = Field(default_factory=list)
    part_id: str


class SelectionResponse(BaseSchema):
    selected_ids: list[str]


class ValidateRequest(BaseSchema):
    parts: list[Part]
    rules: list[Rule] = Field(default_factory=list)
    selected_ids: list[str] = Field(default_factory=list)
    implied_ids: Optional[list[str]] = Field(
        None,
        description="Resolver output; recomputed from rules when omitted"
    )


class ManifestRequest(BaseSchema):
    parts: list[Part]
    selected_ids: list[str] = Field(default_factory=list)


class ManifestResponse(BaseSchema):
    parts: list[Part]
    total: int
