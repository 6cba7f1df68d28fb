"""
Part index service - tokenized lookup over the full catalog.

Each indexed entry keeps the part together with its (optionally
glossary-expanded) matching tokens, its uppercase part number and its
uppercase reference designator, so the matcher can scan the catalog once
per query without re-tokenizing.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

import structlog

from config import settings
from models.part import Part
from utils.text_utils import expand_glossary, normalize_text, tokenize

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IndexedPart:
    """One catalog part prepared for matching."""
    part: Part
    tokens: frozenset[str]
    part_number: str
    ref_des: str


class PartIndex:
    """
    Immutable index built from a catalog snapshot.

    Iteration order is catalog order, which the matcher relies on for its
    first-seen tie-break.
    """

    def __init__(
        self,
        parts: list[Part],
        glossary: Optional[dict[str, str]] = None,
        min_token_length: Optional[int] = None,
    ):
        self.glossary = dict(glossary or {})
        self.min_token_length = min_token_length or settings.min_token_length
        self._entries = tuple(self._index_part(part) for part in parts)

        logger.debug(
            "part_index_built",
            parts=len(self._entries),
            glossary_terms=len(self.glossary)
        )

    def _index_part(self, part: Part) -> IndexedPart:
        source = expand_glossary(part.index_text, self.glossary)
        return IndexedPart(
            part=part,
            tokens=tokenize(source, min_length=self.min_token_length),
            part_number=normalize_text(part.part_number).strip(),
            ref_des=normalize_text(part.ref_des).strip(),
        )

    def __iter__(self) -> Iterator[IndexedPart]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def query_tokens(self, text: str) -> frozenset[str]:
        """Tokenize query text with the same rules and glossary as the index."""
        return tokenize(
            expand_glossary(text, self.glossary),
            min_length=self.min_token_length,
        )

    def find_by_part_number(self, part_number: str) -> Optional[Part]:
        """First part whose number equals the given one, ignoring case."""
        wanted = normalize_text(part_number).strip()
        if not wanted:
            return None
        for entry in self._entries:
            if entry.part_number == wanted:
                return entry.part
        return None


def build_part_index(
    parts: list[Part],
    glossary: Optional[dict[str, str]] = None,
) -> PartIndex:
    """Build a PartIndex with the configured token length."""
    return PartIndex(parts, glossary=glossary)
