"""
Custom exceptions module.

Every error carries a stable code and renders to the standard API error
envelope via AppError.to_dict().
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,

    # Catalog
    PartNotFoundError,
    CatalogParseError,
    CatalogMissingColumnsError,

    # Rules
    RulePromotionError,

    # Knowledge
    KnowledgeImportError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",

    # Catalog
    "PartNotFoundError",
    "CatalogParseError",
    "CatalogMissingColumnsError",

    # Rules
    "RulePromotionError",

    # Knowledge
    "KnowledgeImportError",
]
