"""
Text utilities for tokenizing catalog and order text.

Two tokenizers share one normalization:
- tokenize(): matching tokens (length > 2, stop words removed)
- tokenize_context(): resolver context tokens (every fragment kept, so
  short engineering keywords such as AC or TT can drive rules)
"""

import re
import unicodedata
from typing import Optional


STOP_WORDS = frozenset({
    "WITH", "AND", "THE", "FOR", "NON", "NONE", "SELECTED", "UNIT", "OPTIONS",
})

MIN_TOKEN_LENGTH = 3

DEFAULT_GLOSSARY = {
    "CAB": "CABIN ASSEMBLY",
    "HYD": "HYDRAULIC",
    "ENG": "ENGINE",
    "AC": "AIR CONDITIONING",
    "STD": "STANDARD",
    "W/": "WITH",
    "W/O": "WITHOUT",
    "ASSY": "ASSEMBLY",
    "OPT": "OPTIONAL",
    "CAN": "CANOPY",
}

# Whitespace, comma, period, slash, parentheses, brackets
_MATCH_SEPARATORS = re.compile(r"[\s,./()\[\]]+")

# Context tokens also break on underscores and plus signs
_CONTEXT_SEPARATORS = re.compile(r"[\s,._+/()\[\]]+")


def normalize_text(text: Optional[str]) -> str:
    """
    Normalize text for token comparison.

    - "Cabina Hidráulica" → "CABINA HIDRAULICA"
    - None → ""

    Args:
        text: Raw text (may have accents, mixed case)

    Returns:
        Uppercase string with accent marks removed
    """
    if not text:
        return ""

    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize("NFD", str(text))

    # Remove accent marks (combining characters in Unicode category 'Mn')
    ascii_text = "".join(
        c for c in normalized
        if unicodedata.category(c) != "Mn"
    )

    return ascii_text.upper()


def token_list(
    text: Optional[str],
    min_length: int = MIN_TOKEN_LENGTH,
    stop_words: frozenset[str] = STOP_WORDS,
) -> list[str]:
    """Matching tokens in first-occurrence order, without duplicates."""
    tokens: list[str] = []
    for token in _MATCH_SEPARATORS.split(normalize_text(text)):
        if len(token) >= min_length and token not in stop_words and token not in tokens:
            tokens.append(token)
    return tokens


def tokenize(
    text: Optional[str],
    min_length: int = MIN_TOKEN_LENGTH,
    stop_words: frozenset[str] = STOP_WORDS,
) -> frozenset[str]:
    """
    Split text into a de-duplicated set of matching tokens.

    Args:
        text: Concatenated attribute or query text
        min_length: Shortest token kept
        stop_words: Uppercase words to drop

    Returns:
        Frozen set of uppercase tokens
    """
    return frozenset(
        token
        for token in _MATCH_SEPARATORS.split(normalize_text(text))
        if len(token) >= min_length and token not in stop_words
    )


def tokenize_context(text: Optional[str]) -> frozenset[str]:
    """Split text into resolver context tokens (no length floor, no stop words)."""
    return frozenset(
        token
        for token in _CONTEXT_SEPARATORS.split(normalize_text(text))
        if token
    )


def expand_glossary(text: Optional[str], glossary: Optional[dict[str, str]]) -> str:
    """
    Append the full phrase of every abbreviation found in the text.

    Each abbreviation is checked against the original text only, so the
    result does not depend on glossary order.

    - "HYD PUMP", {"HYD": "HYDRAULIC"} → "HYD PUMP HYDRAULIC"

    Args:
        text: Source text
        glossary: Abbreviation → full phrase

    Returns:
        Normalized source text followed by the matched expansions
    """
    source = normalize_text(text)
    if not glossary:
        return source

    expansions = []
    for abbr, full in glossary.items():
        key = normalize_text(abbr).strip()
        if key and key in source:
            expansions.append(normalize_text(full))

    if not expansions:
        return source
    return " ".join([source, *expansions])
