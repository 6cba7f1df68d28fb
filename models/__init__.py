"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.part import (
    DEFAULT_GROUP,
    DEFAULT_SELECT_PREFERENCE,
    FunctionalCode,
    Part,
)
from models.knowledge import (
    KNOWLEDGE_EXPORT_VERSION,
    CommitRequest,
    CommitResponse,
    KnowledgeEntry,
    KnowledgeExport,
    KnowledgeImportResponse,
    KnowledgeBaselineResponse,
    KnowledgeTable,
    LearningMapping,
)
from models.matching import (
    GENERIC_MODEL,
    BulkMatchRequest,
    ConfidenceLevel,
    ExtractedOrder,
    MatchQuery,
    MatchRequest,
    MatchResult,
    MatchSource,
    ReconcileRequest,
    ReconciliationResult,
)
from models.rule import (
    GenerateRulesRequest,
    GenerateRulesResponse,
    ParseExpressionRequest,
    PromoteMatchRequest,
    Rule,
    RuleLogic,
    SerializeLogicRequest,
    SerializeLogicResponse,
)
from models.configuration import (
    GroupStatus,
    ManifestRequest,
    ManifestResponse,
    ResolutionResult,
    ResolveRequest,
    SelectionResponse,
    SelectionValidation,
    ToggleRequest,
    ValidateRequest,
)
from models.catalog import CatalogImportResponse, CatalogRowErrorResponse

__all__ = [
    # Base
    "BaseSchema",
    # Part
    "DEFAULT_GROUP",
    "DEFAULT_SELECT_PREFERENCE",
    "FunctionalCode",
    "Part",
    # Knowledge
    "KNOWLEDGE_EXPORT_VERSION",
    "CommitRequest",
    "CommitResponse",
    "KnowledgeEntry",
    "KnowledgeExport",
    "KnowledgeImportResponse",
    "KnowledgeBaselineResponse",
    "KnowledgeTable",
    "LearningMapping",
    # Matching
    "GENERIC_MODEL",
    "BulkMatchRequest",
    "ConfidenceLevel",
    "ExtractedOrder",
    "MatchQuery",
    "MatchRequest",
    "MatchResult",
    "MatchSource",
    "ReconcileRequest",
    "ReconciliationResult",
    # Rule
    "GenerateRulesRequest",
    "GenerateRulesResponse",
    "ParseExpressionRequest",
    "PromoteMatchRequest",
    "Rule",
    "RuleLogic",
    "SerializeLogicRequest",
    "SerializeLogicResponse",
    # Configuration
    "GroupStatus",
    "ManifestRequest",
    "ManifestResponse",
    "ResolutionResult",
    "ResolveRequest",
    "SelectionResponse",
    "SelectionValidation",
    "ToggleRequest",
    "ValidateRequest",
    # Catalog
    "CatalogImportResponse",
    "CatalogRowErrorResponse",
]
