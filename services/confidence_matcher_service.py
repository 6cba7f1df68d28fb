"""
Confidence matcher service — scores extracted order options against the catalog.

Each candidate part is scored by the strongest of four signals:

    part number   the literal part number appears in "<CATEGORY> <SELECTION>"
    knowledge     a committed mapping links this (category, selection) to
                  the candidate's part number for the current model
    baseline      a reference table links it, whatever the model
    overlap       |query ∩ candidate| / |query| over matching tokens, plus a
                  bonus when the candidate's ref_des names the category

Part number and knowledge hits rank above any overlap internally (boosts
above 1.0) and are clamped to 1.0 in the result. They do not depend on
tokens, so short option text such as ("A/C", "NO") can still match. The
highest score wins; on ties the first part in catalog order is kept.

Bands:
    score >= 0.9   AUTO_VERIFIED
    score >= 0.5   REVIEW_NEEDED
    otherwise      UNCERTAIN (best candidate still reported for audit)
"""

from typing import Optional, Union

import structlog

from config import settings
from models.knowledge import KnowledgeEntry, KnowledgeTable
from models.matching import (
    ConfidenceLevel,
    MatchQuery,
    MatchResult,
    MatchSource,
)
from models.part import Part
from services.part_index_service import IndexedPart, PartIndex
from utils.text_utils import normalize_text, tokenize

logger = structlog.get_logger(__name__)


SEMANTIC_THRESHOLD = 0.7
PARTIAL_THRESHOLD = 0.3

PartsOrIndex = Union[list[Part], PartIndex]


class ConfidenceMatcherService:
    """
    Matches order options to catalog parts.

    Stateless apart from the scoring configuration; the knowledge table is
    only read.
    """

    def __init__(
        self,
        auto_verified_threshold: Optional[float] = None,
        review_threshold: Optional[float] = None,
        refdes_bonus: Optional[float] = None,
        part_number_boost: Optional[float] = None,
        knowledge_boost: Optional[float] = None,
    ):
        self.auto_verified_threshold = (
            auto_verified_threshold
            if auto_verified_threshold is not None
            else settings.match_auto_verified_threshold
        )
        self.review_threshold = (
            review_threshold
            if review_threshold is not None
            else settings.match_review_threshold
        )
        self.refdes_bonus = (
            refdes_bonus if refdes_bonus is not None else settings.match_refdes_bonus
        )
        self.part_number_boost = part_number_boost or settings.match_part_number_boost
        self.knowledge_boost = knowledge_boost or settings.match_knowledge_boost

    # ===================
    # PUBLIC API
    # ===================

    def match(
        self,
        parts: PartsOrIndex,
        query: MatchQuery,
        glossary: Optional[dict[str, str]] = None,
        knowledge: Optional[KnowledgeTable] = None,
        model_name: Optional[str] = None,
        baseline: Optional[KnowledgeTable] = None,
    ) -> MatchResult:
        """
        Find the best catalog part for one extracted option.

        Args:
            parts: Catalog parts, or a prebuilt PartIndex (its glossary wins)
            query: Extracted (category, selection, quantity)
            glossary: Abbreviation expansions applied to parts and query
            knowledge: Committed mappings keyed by model name
            model_name: Machine model selecting the knowledge partition
            baseline: Reference mappings checked across every model

        Returns:
            MatchResult with score in [0, 1]
        """
        index = self._as_index(parts, glossary)
        return self._match_one(index, query, knowledge, model_name, baseline)

    def match_all(
        self,
        parts: PartsOrIndex,
        queries: list[MatchQuery],
        glossary: Optional[dict[str, str]] = None,
        knowledge: Optional[KnowledgeTable] = None,
        model_name: Optional[str] = None,
        baseline: Optional[KnowledgeTable] = None,
    ) -> list[MatchResult]:
        """Match every query against one shared index, preserving order."""
        index = self._as_index(parts, glossary)
        results = [
            self._match_one(index, query, knowledge, model_name, baseline)
            for query in queries
        ]

        logger.info(
            "options_matched",
            queries=len(queries),
            parts=len(index),
            auto_verified=sum(
                1 for r in results
                if r.confidence_level == ConfidenceLevel.AUTO_VERIFIED
            ),
            model_name=model_name
        )

        return results

    def confidence_level(self, score: float) -> ConfidenceLevel:
        """Map a score onto its confidence band."""
        if score >= self.auto_verified_threshold:
            return ConfidenceLevel.AUTO_VERIFIED
        if score >= self.review_threshold:
            return ConfidenceLevel.REVIEW_NEEDED
        return ConfidenceLevel.UNCERTAIN

    # ===================
    # SCORING
    # ===================

    def _as_index(
        self,
        parts: PartsOrIndex,
        glossary: Optional[dict[str, str]],
    ) -> PartIndex:
        if isinstance(parts, PartIndex):
            return parts
        return PartIndex(parts, glossary=glossary)

    def _match_one(
        self,
        index: PartIndex,
        query: MatchQuery,
        knowledge: Optional[KnowledgeTable],
        model_name: Optional[str],
        baseline: Optional[KnowledgeTable] = None,
    ) -> MatchResult:
        result = MatchResult(
            category=query.category,
            selection=query.selection,
            quantity=query.quantity,
        )

        query_tokens = index.query_tokens(query.text)
        if not query_tokens:
            logger.debug("match_query_empty", category=query.category, selection=query.selection)

        query_text = normalize_text(query.text)
        # Designators are short (AC, HYD) so category tokens keep every fragment
        category_tokens = tokenize(query.category, min_length=1, stop_words=frozenset())
        known_numbers = self._known_part_numbers(query, knowledge, model_name)
        baseline_numbers = self._baseline_part_numbers(query, baseline)

        best: Optional[IndexedPart] = None
        best_score = 0.0
        best_source = MatchSource.NONE

        for entry in index:
            score, source = self._score(
                entry,
                query_tokens,
                query_text,
                category_tokens,
                known_numbers,
                baseline_numbers,
            )
            if score > best_score:
                best, best_score, best_source = entry, score, source

        if best is None:
            return result

        score = min(best_score, 1.0)
        result.matched_part_id = best.part.id
        result.matched_part_number = best.part.part_number
        result.confidence_score = score
        result.confidence_level = self.confidence_level(score)
        result.source = best_source
        return result

    def _score(
        self,
        entry: IndexedPart,
        query_tokens: frozenset[str],
        query_text: str,
        category_tokens: frozenset[str],
        known_numbers: set[str],
        baseline_numbers: frozenset[str] = frozenset(),
    ) -> tuple[float, MatchSource]:
        """Strongest signal for one candidate, boosts not yet clamped."""
        score = 0.0
        source = MatchSource.NONE

        if entry.part_number and entry.part_number in query_text:
            score, source = self.part_number_boost, MatchSource.PART_NUMBER

        if entry.part_number and entry.part_number in known_numbers:
            if self.knowledge_boost > score:
                score, source = self.knowledge_boost, MatchSource.LEARNED

        if entry.part_number and entry.part_number in baseline_numbers:
            if self.knowledge_boost > score:
                score, source = self.knowledge_boost, MatchSource.BASELINE

        # Without query tokens only the part number and knowledge signals count
        if not query_tokens:
            return score, source

        overlap = len(query_tokens & entry.tokens) / len(query_tokens)
        if entry.ref_des and entry.ref_des in category_tokens:
            overlap += self.refdes_bonus
        overlap = min(overlap, 1.0)

        if overlap > score:
            score = overlap
            if overlap > SEMANTIC_THRESHOLD:
                source = MatchSource.SEMANTIC
            elif overlap > PARTIAL_THRESHOLD:
                source = MatchSource.PARTIAL
            else:
                source = MatchSource.NONE

        return score, source

    def _known_part_numbers(
        self,
        query: MatchQuery,
        knowledge: Optional[KnowledgeTable],
        model_name: Optional[str],
    ) -> set[str]:
        """Part numbers previously confirmed for this exact option text."""
        if not knowledge or not model_name:
            return set()
        return _confirmed_numbers(query, knowledge.get(model_name, []))

    def _baseline_part_numbers(
        self,
        query: MatchQuery,
        baseline: Optional[KnowledgeTable],
    ) -> frozenset[str]:
        """Part numbers the reference table links to this option, any model."""
        if not baseline:
            return frozenset()
        entries = [entry for model_entries in baseline.values() for entry in model_entries]
        return frozenset(_confirmed_numbers(query, entries))


def _confirmed_numbers(query: MatchQuery, entries: list[KnowledgeEntry]) -> set[str]:
    category = normalize_text(query.category).strip()
    selection = normalize_text(query.selection).strip()
    return {
        normalize_text(entry.part_number).strip()
        for entry in entries
        if normalize_text(entry.category).strip() == category
        and normalize_text(entry.selection).strip() == selection
    }


# Singleton instance
_confidence_matcher_service: Optional[ConfidenceMatcherService] = None


def get_confidence_matcher_service() -> ConfidenceMatcherService:
    """Get or create ConfidenceMatcherService instance."""
    global _confidence_matcher_service
    if _confidence_matcher_service is None:
        _confidence_matcher_service = ConfidenceMatcherService()
    return _confidence_matcher_service


def match(
    parts: PartsOrIndex,
    query: MatchQuery,
    glossary: Optional[dict[str, str]] = None,
    knowledge: Optional[KnowledgeTable] = None,
    model_name: Optional[str] = None,
    baseline: Optional[KnowledgeTable] = None,
) -> MatchResult:
    """Best catalog match for one extracted option."""
    return get_confidence_matcher_service().match(
        parts,
        query,
        glossary=glossary,
        knowledge=knowledge,
        model_name=model_name,
        baseline=baseline,
    )


def match_all(
    parts: PartsOrIndex,
    queries: list[MatchQuery],
    glossary: Optional[dict[str, str]] = None,
    knowledge: Optional[KnowledgeTable] = None,
    model_name: Optional[str] = None,
    baseline: Optional[KnowledgeTable] = None,
) -> list[MatchResult]:
    """Best catalog match for each extracted option, in input order."""
    return get_confidence_matcher_service().match_all(
        parts,
        queries,
        glossary=glossary,
        knowledge=knowledge,
        model_name=model_name,
        baseline=baseline,
    )
