"""
Knowledge schemas.

The knowledge table records confirmed (category, selection) -> part number
associations per machine model. It is read by the matcher and written only
by an explicit commit after human review.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from models.base import BaseSchema


KNOWLEDGE_EXPORT_VERSION = "2.0"


class LearningMapping(BaseSchema):
    """A reviewed option-to-part association ready to be committed."""

    category: str
    selection: str
    part_number: str = Field(..., min_length=1)


class KnowledgeEntry(BaseSchema):
    """A committed association with its confirmation history."""

    category: str
    selection: str
    part_number: str = Field(..., min_length=1)
    confirmed_count: int = Field(default=1, ge=1)
    last_used: Optional[datetime] = None

    @field_validator("part_number")
    @classmethod
    def part_number_uppercase(cls, v: str) -> str:
        """Part numbers are stored uppercase."""
        return v.upper().strip()


KnowledgeTable = dict[str, list[KnowledgeEntry]]


class KnowledgeExport(BaseSchema):
    """Portable knowledge document exchanged between installations."""

    knowledge_base: KnowledgeTable = Field(default_factory=dict)
    glossary: dict[str, str] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None
    version: str = KNOWLEDGE_EXPORT_VERSION
    model_name: Optional[str] = Field(
        None,
        description="Set when the document holds a single model"
    )


# ===================
# API SCHEMAS
# ===================

class CommitRequest(BaseSchema):
    """Commit reviewed mappings for one machine model."""
    model_name: str
    mappings: list[LearningMapping]


class CommitResponse(BaseSchema):
    model_name: str
    committed: int
    total_entries: int


class KnowledgeImportResponse(BaseSchema):
    version: str
    models: int
    imported_entries: int
    glossary_terms: int


class KnowledgeBaselineResponse(BaseSchema):
    models: int
    entries: int
