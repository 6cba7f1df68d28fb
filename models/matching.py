"""
Matching schemas for reconciling extracted order options with the catalog.

An extraction provider hands over (category, selection, quantity?) triples
read from a scanned order. The matcher answers each with the best catalog
part, a score in [0, 1] and a confidence band.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from models.base import BaseSchema
from models.knowledge import KnowledgeTable
from models.part import Part


GENERIC_MODEL = "Generic"


class ConfidenceLevel(str, Enum):
    """Discrete band derived from a continuous match score."""
    AUTO_VERIFIED = "AUTO_VERIFIED"   # score >= 0.9
    REVIEW_NEEDED = "REVIEW_NEEDED"   # 0.5 <= score < 0.9
    UNCERTAIN = "UNCERTAIN"           # score < 0.5, no reliable match


class MatchSource(str, Enum):
    """Which signal produced the winning score."""
    PART_NUMBER = "PART_NUMBER"   # Literal part number in the option text
    LEARNED = "LEARNED"           # Previously confirmed mapping
    BASELINE = "BASELINE"         # Reference mapping shared by all models
    SEMANTIC = "SEMANTIC"         # Strong token overlap
    PARTIAL = "PARTIAL"           # Weak token overlap
    NONE = "NONE"


class MatchQuery(BaseSchema):
    """One extracted order option."""

    category: str = Field(default="", description="Option name / category")
    selection: str = Field(default="", description="Chosen option text")
    quantity: Optional[str] = Field(None, description="Quantity as printed")

    @property
    def text(self) -> str:
        return f"{self.category} {self.selection}".upper()


class MatchResult(BaseSchema):
    """Best catalog match for one extracted option."""

    category: str
    selection: str
    quantity: Optional[str] = None
    matched_part_id: Optional[str] = None
    matched_part_number: Optional[str] = None
    confidence_score: float = Field(default=0.0, ge=0, le=1)
    confidence_level: ConfidenceLevel = ConfidenceLevel.UNCERTAIN
    source: MatchSource = MatchSource.NONE

    @property
    def is_match(self) -> bool:
        """True when the score reaches at least the review band."""
        return self.confidence_level != ConfidenceLevel.UNCERTAIN


class ExtractedOrder(BaseSchema):
    """Options extracted from one page of a scanned order."""

    model_name: str = GENERIC_MODEL
    options: list[MatchQuery] = Field(default_factory=list)


class ReconciliationResult(BaseSchema):
    """Outcome of matching a whole order against the catalog."""

    model_name: str = GENERIC_MODEL
    results: list[MatchResult] = Field(default_factory=list)
    auto_selected_ids: list[str] = Field(default_factory=list)

    @property
    def auto_verified_count(self) -> int:
        return sum(
            1 for r in self.results
            if r.confidence_level == ConfidenceLevel.AUTO_VERIFIED
        )


# ===================
# API SCHEMAS
# ===================

class MatchRequest(BaseSchema):
    """Match one option against a catalog snapshot."""
    parts: list[Part]
    query: MatchQuery
    glossary: Optional[dict[str, str]] = None
    knowledge: Optional[KnowledgeTable] = None
    model_name: Optional[str] = None
    baseline: Optional[KnowledgeTable] = None


class BulkMatchRequest(BaseSchema):
    """Match many options against a catalog snapshot."""
    parts: list[Part]
    queries: list[MatchQuery]
    glossary: Optional[dict[str, str]] = None
    knowledge: Optional[KnowledgeTable] = None
    model_name: Optional[str] = None
    baseline: Optional[KnowledgeTable] = None


class ReconcileRequest(BaseSchema):
    """Reconcile every page of an extracted order."""
    parts: list[Part]
    pages: list[ExtractedOrder]
    glossary: Optional[dict[str, str]] = None
    baseline: Optional[KnowledgeTable] = Field(
        None,
        description="Reference mappings; the stored baseline when omitted"
    )
    use_stored_knowledge: bool = True
