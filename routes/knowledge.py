"""
Knowledge API routes.

Read the learned option-to-part mappings, commit reviewed matches, and
exchange the whole store as a portable JSON document.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse
import structlog

from models.knowledge import (
    KnowledgeEntry,
    KnowledgeExport,
    CommitRequest,
    CommitResponse,
    KnowledgeImportResponse,
    KnowledgeBaselineResponse,
)
from services.knowledge_service import get_knowledge_service
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

@router.get("", response_model=dict[str, list[KnowledgeEntry]])
async def get_knowledge(
    model_name: Optional[str] = Query(None, description="Only this machine model")
):
    """Learned mappings keyed by machine model."""
    try:
        service = get_knowledge_service()
        if model_name:
            return {model_name: service.get_entries(model_name)}
        return service.get_table()
    except Exception as e:
        return handle_error(e)


@router.post("/commit", response_model=CommitResponse)
async def commit_mappings(data: CommitRequest):
    """
    Record reviewed mappings for a machine model.

    Mappings for the generic model are ignored.
    """
    try:
        service = get_knowledge_service()
        committed = service.commit(data.model_name, data.mappings)
        return CommitResponse(
            model_name=data.model_name,
            committed=committed,
            total_entries=len(service.get_entries(data.model_name)),
        )
    except Exception as e:
        return handle_error(e)


@router.get("/export", response_model=KnowledgeExport)
async def export_knowledge(
    model_name: Optional[str] = Query(None, description="Export a single machine model")
):
    """Whole knowledge store and glossary, or one model's entries, as a portable document."""
    try:
        return get_knowledge_service().export_brain(model_name=model_name)
    except Exception as e:
        return handle_error(e)


@router.post("/import", response_model=KnowledgeImportResponse)
async def import_knowledge(payload: Any = Body(...)):
    """
    Merge an exported knowledge document.

    Raises:
        422: Malformed document
    """
    try:
        document = get_knowledge_service().import_brain(payload)
        return KnowledgeImportResponse(
            version=document.version,
            models=len(document.knowledge_base),
            imported_entries=sum(len(e) for e in document.knowledge_base.values()),
            glossary_terms=len(document.glossary),
        )
    except Exception as e:
        return handle_error(e)


@router.get("/baseline", response_model=dict[str, list[KnowledgeEntry]])
async def get_baseline():
    """Reference mappings matched across every model."""
    try:
        return get_knowledge_service().get_baseline()
    except Exception as e:
        return handle_error(e)


@router.post("/baseline", response_model=KnowledgeBaselineResponse)
async def load_baseline(payload: Any = Body(...)):
    """
    Replace the reference mappings used during reconciliation.

    Accepts an exported knowledge document or a bare table.

    Raises:
        422: Malformed document
    """
    try:
        table = get_knowledge_service().load_baseline(payload)
        return KnowledgeBaselineResponse(
            models=len(table),
            entries=sum(len(e) for e in table.values()),
        )
    except Exception as e:
        return handle_error(e)
