"""
Knowledge service for confirmed option-to-part mappings per machine model.

The table is append-only from the matcher's point of view: it is read as a
snapshot during matching and written only through commit() after a human
has reviewed the matches.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from exceptions import KnowledgeImportError
from models.knowledge import (
    KnowledgeEntry,
    KnowledgeExport,
    KnowledgeTable,
    LearningMapping,
)
from models.matching import GENERIC_MODEL

logger = structlog.get_logger(__name__)

_TABLE_ADAPTER = TypeAdapter(KnowledgeTable)


def _key(text: str) -> str:
    return (text or "").strip().upper()


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps from imported documents as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class KnowledgeService:
    """
    In-memory knowledge store.

    Each model maps to a list of entries unique by (category, selection).
    """

    def __init__(
        self,
        table: Optional[KnowledgeTable] = None,
        glossary: Optional[dict[str, str]] = None,
    ):
        self._table: KnowledgeTable = {}
        self._glossary: dict[str, str] = dict(glossary or {})
        self._baseline: KnowledgeTable = {}
        if table:
            self._merge(table)

    def get_table(self) -> KnowledgeTable:
        """Snapshot of the table for read-only use by the matcher."""
        return {
            model: [entry.model_copy() for entry in entries]
            for model, entries in self._table.items()
        }

    def get_glossary(self) -> dict[str, str]:
        return dict(self._glossary)

    def get_entries(self, model_name: str) -> list[KnowledgeEntry]:
        return [entry.model_copy() for entry in self._table.get(model_name, [])]

    def commit(self, model_name: str, mappings: list[LearningMapping]) -> int:
        """
        Record reviewed mappings for a model.

        An existing (category, selection) entry is re-pointed to the new part
        number and its confirmation count incremented. The generic model is
        never learned.

        Args:
            model_name: Machine model the order belongs to
            mappings: Reviewed associations

        Returns:
            Number of mappings committed
        """
        if not model_name or model_name == GENERIC_MODEL:
            logger.info("knowledge_commit_skipped", model_name=model_name, reason="generic_model")
            return 0

        now = datetime.now(timezone.utc)
        entries = self._table.setdefault(model_name, [])
        committed = 0

        for mapping in mappings:
            existing = self._find(entries, mapping.category, mapping.selection)
            if existing is not None:
                existing.part_number = mapping.part_number
                existing.confirmed_count += 1
                existing.last_used = now
            else:
                entries.append(KnowledgeEntry(
                    category=mapping.category,
                    selection=mapping.selection,
                    part_number=mapping.part_number,
                    confirmed_count=1,
                    last_used=now,
                ))
            committed += 1

        logger.info(
            "knowledge_committed",
            model_name=model_name,
            committed=committed,
            total_entries=len(entries)
        )

        return committed

    def export_brain(
        self,
        glossary: Optional[dict[str, str]] = None,
        model_name: Optional[str] = None,
    ) -> KnowledgeExport:
        """
        Portable document holding the table and the glossary.

        The stored glossary is used unless one is given. With model_name
        only that model's entries are exported, without the stored glossary.
        """
        if model_name:
            return KnowledgeExport(
                knowledge_base={model_name: self.get_entries(model_name)},
                glossary=dict(glossary or {}),
                timestamp=datetime.now(timezone.utc),
                model_name=model_name,
            )

        return KnowledgeExport(
            knowledge_base=self.get_table(),
            glossary=dict(glossary if glossary is not None else self._glossary),
            timestamp=datetime.now(timezone.utc),
        )

    def import_brain(self, payload: Any) -> KnowledgeExport:
        """
        Merge an exported document into the table.

        Imported entries for an existing (category, selection) replace the
        part number and keep the higher confirmation count. Glossary terms
        are added, overwriting existing abbreviations.

        Raises:
            KnowledgeImportError: Payload is not a valid knowledge document
        """
        if isinstance(payload, KnowledgeExport):
            document = payload
        else:
            if not isinstance(payload, dict):
                raise KnowledgeImportError("Knowledge document must be a JSON object")
            try:
                document = KnowledgeExport.model_validate(payload)
            except PydanticValidationError as e:
                raise KnowledgeImportError(
                    "Invalid knowledge document",
                    details={"errors": e.errors(include_url=False, include_context=False)}
                )

        self._merge(document.knowledge_base)
        self._glossary.update(document.glossary)

        logger.info(
            "knowledge_imported",
            models=len(document.knowledge_base),
            version=document.version,
            glossary_terms=len(document.glossary)
        )

        return document

    def get_baseline(self) -> KnowledgeTable:
        """Reference mappings matched across every model."""
        return {
            model: [entry.model_copy() for entry in entries]
            for model, entries in self._baseline.items()
        }

    def load_baseline(self, payload: Any) -> KnowledgeTable:
        """
        Replace the reference table.

        Accepts an exported knowledge document or a bare table keyed by
        model name. The stored per-model knowledge is left untouched.

        Raises:
            KnowledgeImportError: Payload is not a valid knowledge table
        """
        if isinstance(payload, KnowledgeExport):
            table = payload.knowledge_base
        else:
            if not isinstance(payload, dict):
                raise KnowledgeImportError("Baseline document must be a JSON object")
            try:
                if "knowledge_base" in payload:
                    table = KnowledgeExport.model_validate(payload).knowledge_base
                else:
                    table = _TABLE_ADAPTER.validate_python(payload)
            except PydanticValidationError as e:
                raise KnowledgeImportError(
                    "Invalid baseline document",
                    details={"errors": e.errors(include_url=False, include_context=False)}
                )

        self._baseline = {
            model: [entry.model_copy() for entry in entries]
            for model, entries in table.items()
        }

        logger.info(
            "knowledge_baseline_loaded",
            models=len(self._baseline),
            entries=sum(len(e) for e in self._baseline.values())
        )

        return self.get_baseline()

    def clear(self) -> None:
        self._table = {}
        self._glossary = {}
        self._baseline = {}

    def _merge(self, table: KnowledgeTable) -> None:
        for model_name, incoming in table.items():
            if not model_name or model_name == GENERIC_MODEL:
                continue
            entries = self._table.setdefault(model_name, [])
            for entry in incoming:
                existing = self._find(entries, entry.category, entry.selection)
                if existing is None:
                    entries.append(entry.model_copy())
                    continue
                existing.part_number = entry.part_number
                existing.confirmed_count = max(existing.confirmed_count, entry.confirmed_count)
                if entry.last_used and (
                    existing.last_used is None
                    or _as_utc(entry.last_used) > _as_utc(existing.last_used)
                ):
                    existing.last_used = entry.last_used

    @staticmethod
    def _find(
        entries: list[KnowledgeEntry],
        category: str,
        selection: str,
    ) -> Optional[KnowledgeEntry]:
        for entry in entries:
            if _key(entry.category) == _key(category) and _key(entry.selection) == _key(selection):
                return entry
        return None


# Singleton instance
_knowledge_service: Optional[KnowledgeService] = None


def get_knowledge_service() -> KnowledgeService:
    """Get or create KnowledgeService instance."""
    global _knowledge_service
    if _knowledge_service is None:
        _knowledge_service = KnowledgeService()
    return _knowledge_service
