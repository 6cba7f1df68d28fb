"""
Order reconciliation service for matching a whole extracted order.

An order arrives as one ExtractedOrder per scanned page. The machine model
is taken from the first page naming one; every option of every page is
matched against a single shared index.
"""

from typing import Optional

import structlog

from config import settings
from models.knowledge import KnowledgeTable
from models.matching import (
    GENERIC_MODEL,
    ExtractedOrder,
    ReconciliationResult,
)
from models.part import Part
from services.confidence_matcher_service import (
    ConfidenceMatcherService,
    get_confidence_matcher_service,
)
from services.part_index_service import PartIndex

logger = structlog.get_logger(__name__)


class OrderReconciliationService:
    """Reconciles extracted orders with the catalog."""

    def __init__(
        self,
        matcher: Optional[ConfidenceMatcherService] = None,
        auto_select_floor: Optional[float] = None,
    ):
        self.matcher = matcher or get_confidence_matcher_service()
        self.auto_select_floor = (
            auto_select_floor
            if auto_select_floor is not None
            else settings.auto_select_floor
        )

    def detect_model(self, pages: list[ExtractedOrder]) -> str:
        """First model name other than the generic placeholder."""
        for page in pages:
            name = (page.model_name or "").strip()
            if name and name != GENERIC_MODEL:
                return name
        return GENERIC_MODEL

    def reconcile(
        self,
        parts: list[Part],
        pages: list[ExtractedOrder],
        knowledge: Optional[KnowledgeTable] = None,
        glossary: Optional[dict[str, str]] = None,
        baseline: Optional[KnowledgeTable] = None,
    ) -> ReconciliationResult:
        """
        Match every option of an order.

        Args:
            parts: Catalog snapshot
            pages: Extracted pages of one order
            knowledge: Committed mappings keyed by model name
            glossary: Abbreviation expansions
            baseline: Reference mappings checked across every model

        Returns:
            ReconciliationResult with matches sorted by confidence (highest
            first) and the parts confident enough to pre-select
        """
        model_name = self.detect_model(pages)
        queries = [option for page in pages for option in page.options]

        index = PartIndex(parts, glossary=glossary)
        results = self.matcher.match_all(
            index,
            queries,
            knowledge=knowledge,
            model_name=model_name,
            baseline=baseline,
        )
        results.sort(key=lambda r: r.confidence_score, reverse=True)

        auto_selected = []
        for result in results:
            if (
                result.matched_part_id
                and result.confidence_score > self.auto_select_floor
                and result.matched_part_id not in auto_selected
            ):
                auto_selected.append(result.matched_part_id)

        logger.info(
            "order_reconciled",
            model_name=model_name,
            pages=len(pages),
            options=len(queries),
            auto_selected=len(auto_selected)
        )

        return ReconciliationResult(
            model_name=model_name,
            results=results,
            auto_selected_ids=auto_selected,
        )


# Singleton instance
_order_reconciliation_service: Optional[OrderReconciliationService] = None


def get_order_reconciliation_service() -> OrderReconciliationService:
    """Get or create OrderReconciliationService instance."""
    global _order_reconciliation_service
    if _order_reconciliation_service is None:
        _order_reconciliation_service = OrderReconciliationService()
    return _order_reconciliation_service
