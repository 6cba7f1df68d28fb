"""
Rule API routes.

Parse and serialize rule expressions, derive rules for an imported
catalog, and promote reviewed order matches into permanent rules.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.rule import (
    Rule,
    RuleLogic,
    ParseExpressionRequest,
    SerializeLogicRequest,
    SerializeLogicResponse,
    GenerateRulesRequest,
    GenerateRulesResponse,
    PromoteMatchRequest,
)
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
    # Unexpected error
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

@router.post("/parse", response_model=RuleLogic)
async def parse_expression(data: ParseExpressionRequest):
    """
    Parse a raw rule expression such as "(CAB/CAN) STD [TT BT]".

    Never fails: malformed brackets degrade to include terms.
    """
    try:
        return get_rule_parser_service().parse(data.raw)
    except Exception as e:
        return handle_error(e)


@router.post("/serialize", response_model=SerializeLogicResponse)
async def serialize_logic(data: SerializeLogicRequest):
    """Rebuild an expression string from parsed logic."""
    try:
        expression = get_rule_parser_service().serialize(data.logic)
        return SerializeLogicResponse(expression=expression)
    except Exception as e:
        return handle_error(e)


@router.post("/generate", response_model=GenerateRulesResponse)
async def generate_rules(data: GenerateRulesRequest):
    """
    Derive rules for optional and mandatory parts.

    Explicit logic strings win over keywords found in remarks.
    """
    try:
        rules, created = get_rule_parser_service().generate_rules(
            data.parts,
            logic_by_part=data.logic_by_part,
            existing_rules=data.existing_rules,
        )
        return GenerateRulesResponse(rules=rules, created=created)
    except Exception as e:
        return handle_error(e)


@router.post("/promote", response_model=Rule)
async def promote_match(data: PromoteMatchRequest):
    """
    Turn a reviewed order match into a permanent rule.

    The caller stores the returned rule, replacing any rule with the same
    target.

    Raises:
        404: Part number not in the catalog
        422: No part number available
    """
    try:
        rule, _ = get_rule_parser_service().promote_match_to_rule(
            data.match,
            data.parts,
            data.rules,
            part_number=data.part_number,
        )
        return rule
    except Exception as e:
        return handle_error(e)
