"""
Catalog import response schemas.
"""

from pydantic import Field

from models.base import BaseSchema
from models.part import Part
from models.rule import Rule


class CatalogRowErrorResponse(BaseSchema):
    """One row-level problem found during import."""
    row: int
    field: str
    error: str


class CatalogImportResponse(BaseSchema):
    """Parts, derived rules and row errors of one catalog upload."""
    parts: list[Part]
    rules: list[Rule] = Field(default_factory=list)
    rules_created: int = 0
    logic_by_part: dict[str, str] = Field(default_factory=dict)
    errors: list[CatalogRowErrorResponse] = Field(default_factory=list)
