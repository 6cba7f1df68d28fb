"""
Custom exception classes for the application.

The rule engine itself never raises: malformed expressions, dangling rule
targets and empty queries all produce well-defined values. These errors
belong to the boundaries around it (catalog import, knowledge exchange,
rule promotion, API).
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PART_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


# ===================
# CATALOG ERRORS
# ===================

class PartNotFoundError(NotFoundError):
    """Part not found in the catalog snapshot."""

    def __init__(self, identifier: str):
        super().__init__(
            resource="Part",
            identifier=identifier,
            code="PART_NOT_FOUND"
        )


class CatalogParseError(ValidationError):
    """Catalog file could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="CATALOG_PARSE_ERROR",
            message=message,
            details=details
        )


class CatalogMissingColumnsError(ValidationError):
    """Catalog sheet lacks required columns."""

    def __init__(self, missing: list[str], found: list[str]):
        super().__init__(
            code="CATALOG_MISSING_COLUMNS",
            message=f"Missing required columns: {', '.join(missing)}",
            details={"missing": missing, "found": found}
        )


# ===================
# RULE ERRORS
# ===================

class RulePromotionError(ValidationError):
    """A reviewed match cannot be turned into a rule."""

    def __init__(self, category: str, selection: str):
        super().__init__(
            code="RULE_PROMOTION_FAILED",
            message="No part number identified for this match",
            details={"category": category, "selection": selection}
        )


# ===================
# KNOWLEDGE ERRORS
# ===================

class KnowledgeImportError(ValidationError):
    """Knowledge export document is malformed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="KNOWLEDGE_IMPORT_ERROR",
            message=message,
            details=details
        )
