"""
Configuration API routes.

Stateless: every request carries the catalog snapshot it works on.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.configuration import (
    ResolutionResult,
    ResolveRequest,
    ToggleRequest,
    SelectionResponse,
    SelectionValidation,
    ValidateRequest,
    ManifestRequest,
    ManifestResponse,
)
from services.selection_resolver_service import get_selection_resolver_service
from services.configuration_service import get_configuration_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/resolve", response_model=ResolutionResult)
async def resolve_selection(data: ResolveRequest):
    """
    Compute the parts implied by the confirmed selection.

    converged is False when rule chaining hit the pass limit.
    """
    try:
        return get_selection_resolver_service().resolve_detailed(
            data.parts, data.rules, data.confirmed_ids
        )
    except Exception as e:
        return handle_error(e)


@router.post("/toggle", response_model=SelectionResponse)
async def toggle_selection(data: ToggleRequest):
    """Select or deselect one part, keeping mandatory groups single-choice."""
    try:
        selected = get_configuration_service().toggle_selection(
            data.parts, data.selected_ids, data.part_id
        )
        # Keep catalog order for a stable response
        ordered = [p.id for p in data.parts if p.id in selected]
        ordered.extend(sorted(selected - set(ordered)))
        return SelectionResponse(selected_ids=ordered)
    except Exception as e:
        return handle_error(e)


@router.post("/validate", response_model=SelectionValidation)
async def validate_selection(data: ValidateRequest):
    """
    Check whether the selection is ready for manifest generation.

    Resolver suggestions are recomputed from the rules when the request
    does not carry them.
    """
    try:
        implied = data.implied_ids
        if implied is None:
            implied = get_selection_resolver_service().resolve(
                data.parts, data.rules, data.selected_ids
            )
        return get_configuration_service().validate_selection(
            data.parts, data.selected_ids, implied
        )
    except Exception as e:
        return handle_error(e)


@router.post("/manifest", response_model=ManifestResponse)
async def build_manifest(data: ManifestRequest):
    """Final bill of materials for the confirmed selection."""
    try:
        parts = get_configuration_service().build_manifest(data.parts, data.selected_ids)
        return ManifestResponse(parts=parts, total=len(parts))
    except Exception as e:
        return handle_error(e)
