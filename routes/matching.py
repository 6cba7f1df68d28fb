"""
Matching API routes.

Match extracted order options against a catalog snapshot. Prior knowledge
comes from the request, or from the knowledge store for reconciliation.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.matching import (
    MatchResult,
    MatchRequest,
    BulkMatchRequest,
    ReconcileRequest,
    ReconciliationResult,
)
from services.confidence_matcher_service import get_confidence_matcher_service
from services.knowledge_service import get_knowledge_service
from services.order_reconciliation_service import get_order_reconciliation_service
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

@router.post("/match", response_model=MatchResult)
async def match_option(data: MatchRequest):
    """Best catalog part for one extracted option."""
    try:
        return get_confidence_matcher_service().match(
            data.parts,
            data.query,
            glossary=data.glossary,
            knowledge=data.knowledge,
            model_name=data.model_name,
            baseline=data.baseline,
        )
    except Exception as e:
        return handle_error(e)


@router.post("/match-bulk", response_model=list[MatchResult])
async def match_options(data: BulkMatchRequest):
    """Best catalog part for each extracted option, in request order."""
    try:
        return get_confidence_matcher_service().match_all(
            data.parts,
            data.queries,
            glossary=data.glossary,
            knowledge=data.knowledge,
            model_name=data.model_name,
            baseline=data.baseline,
        )
    except Exception as e:
        return handle_error(e)


@router.post("/reconcile", response_model=ReconciliationResult)
async def reconcile_order(data: ReconcileRequest):
    """
    Match every option of an extracted order.

    Returns matches sorted by confidence and the parts to pre-select.
    """
    try:
        knowledge = None
        glossary = data.glossary
        baseline = data.baseline
        if data.use_stored_knowledge:
            store = get_knowledge_service()
            knowledge = store.get_table()
            if glossary is None:
                glossary = store.get_glossary()
            if baseline is None:
                baseline = store.get_baseline()

        return get_order_reconciliation_service().reconcile(
            data.parts,
            data.pages,
            knowledge=knowledge,
            glossary=glossary,
            baseline=baseline,
        )
    except Exception as e:
        return handle_error(e)
