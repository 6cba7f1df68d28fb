"""
Catalog API routes.

Upload a master parts list and get back strict part records plus the rules
derived from its logic column and remarks.
"""

from io import BytesIO

from fastapi import APIRouter, UploadFile, File, Query
from fastapi.responses import JSONResponse
import structlog

from models.catalog import CatalogImportResponse, CatalogRowErrorResponse
from parsers.catalog_parser import parse_catalog_file
from services.rule_parser_service import get_rule_parser_service
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
# UPLOAD ROUTES
# ===================

@router.post("/import", response_model=CatalogImportResponse)
async def import_catalog(
    file: UploadFile = File(..., description="Parts list (.xlsx or .csv)"),
    generate_rules: bool = Query(True, description="Derive rules for optional and mandatory parts")
):
    """
    Import a master parts list.

    Rows with an unknown functional code are imported as baseline and
    reported in errors.

    Raises:
        422: File unreadable or Part_Number column missing
    """
    try:
        contents = await file.read()
        parse_result = parse_catalog_file(BytesIO(contents), filename=file.filename)

        if parse_result.errors:
            logger.warning(
                "catalog_import_row_errors",
                filename=file.filename,
                count=len(parse_result.errors)
            )

        rules = []
        created = 0
        if generate_rules:
            rules, created = get_rule_parser_service().generate_rules(
                parse_result.parts,
                logic_by_part=parse_result.logic_by_part,
            )

        logger.info(
            "catalog_imported",
            filename=file.filename,
            parts=len(parse_result.parts),
            rules_created=created
        )

        return CatalogImportResponse(
            parts=parse_result.parts,
            rules=rules,
            rules_created=created,
            logic_by_part=parse_result.logic_by_part,
            errors=[
                CatalogRowErrorResponse(row=e.row, field=e.field, error=e.error)
                for e in parse_result.errors
            ],
        )
    except Exception as e:
        return handle_error(e)
