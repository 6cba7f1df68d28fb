"""
Rule parser service — compact engineering rule expressions.

Grammar (no nesting):
    (a/b/c)   one OR group, "/"-separated
    [a b]     exclusion terms, whitespace-separated
    a b       anything else is an AND include term

Example:
    "(CAB/CAN) STD [TT BT]" →
        or_groups=[["CAB", "CAN"]], include_terms=["STD"],
        exclude_terms=["TT", "BT"]

Hand-entered rule text is often sloppy, so parsing never fails: stray or
unmatched bracket characters are dropped and whatever they enclosed is
kept as plain include terms.
"""

import re
from typing import Optional
from uuid import uuid4

import structlog

from exceptions import PartNotFoundError, RulePromotionError
from models.matching import MatchResult
from models.part import Part, FunctionalCode
from models.rule import Rule, RuleLogic
from utils.text_utils import normalize_text, token_list

logger = structlog.get_logger(__name__)


# Brackets may not contain other brackets
_OR_GROUP = re.compile(r"\(([^()\[\]]*)\)")
_EXCLUSION = re.compile(r"\[([^()\[\]]*)\]")
_STRAY_BRACKETS = re.compile(r"[()\[\]]")

# Keywords recognized in remarks when a part has no explicit logic
RULE_KEYWORDS = (
    "CAB", "ENGINE", "CANOPY", "OIL", "FUEL", "FLUID", "HYDRAULIC",
    "AIR", "PRESSURE", "HEATER", "LIGHT", "AC", "STD",
)
_KEYWORD_SEPARATORS = re.compile(r"[\s,._+/]+")


class RuleParserService:
    """
    Parses, serializes and derives dependency rules.

    Stateless: every method works on the snapshot it is given.
    """

    def parse(self, raw: Optional[str]) -> RuleLogic:
        """
        Parse a raw rule expression.

        Args:
            raw: Expression such as "(CAB/CAN) STD [TT BT]"; None is
                 treated as the empty expression

        Returns:
            RuleLogic with raw_expression preserved verbatim
        """
        source = raw or ""
        spans: list[tuple[int, int, str, list[str]]] = []

        for found in _OR_GROUP.finditer(source):
            group = [
                normalize_text(term).strip()
                for term in found.group(1).split("/")
                if term.strip()
            ]
            spans.append((found.start(), found.end(), "or", group))

        for found in _EXCLUSION.finditer(source):
            terms = [normalize_text(term) for term in found.group(1).split()]
            spans.append((found.start(), found.end(), "exclude", terms))

        spans.sort(key=lambda span: span[0])

        # Blank out bracketed spans, leaving the remainder in place
        chars = list(source)
        for start, end, _, _ in spans:
            chars[start:end] = " " * (end - start)
        remainder = "".join(chars)

        malformed = bool(_STRAY_BRACKETS.search(remainder))
        if malformed:
            logger.debug("rule_expression_unbalanced", raw=source)
        remainder = _STRAY_BRACKETS.sub(" ", remainder)

        include_terms = [normalize_text(term) for term in remainder.split()]
        or_groups = []
        exclude_terms = []
        for _, _, kind, terms in spans:
            if kind == "or":
                if terms:
                    or_groups.append(terms)
            else:
                exclude_terms.extend(terms)

        return RuleLogic(
            include_terms=include_terms,
            exclude_terms=exclude_terms,
            or_groups=or_groups,
            raw_expression=source,
        )

    def serialize(self, logic: RuleLogic) -> str:
        """
        Rebuild an expression from parsed logic.

        The result parses back into equivalent logic; whitespace of the
        original raw_expression is not reproduced.
        """
        pieces = list(logic.include_terms)
        pieces.extend(
            "(" + "/".join(group) + ")"
            for group in logic.or_groups
            if group
        )
        if logic.exclude_terms:
            pieces.append("[" + " ".join(logic.exclude_terms) + "]")
        return " ".join(pieces)

    def keyword_logic(self, part: Part) -> Optional[RuleLogic]:
        """
        Derive include-only logic from the keywords named in a part's remarks.

        Returns:
            RuleLogic, or None when no keyword appears
        """
        metadata = normalize_text(f"{part.remarks} {part.std_remarks}")
        words = [w for w in _KEYWORD_SEPARATORS.split(metadata) if len(w) > 1]

        matched = []
        for word in words:
            if word in RULE_KEYWORDS and word not in matched:
                matched.append(word)

        if not matched:
            return None
        return RuleLogic(
            include_terms=matched,
            raw_expression=" ".join(matched),
        )

    def generate_rules(
        self,
        parts: list[Part],
        logic_by_part: Optional[dict[str, str]] = None,
        existing_rules: Optional[list[Rule]] = None,
    ) -> tuple[list[Rule], int]:
        """
        Derive rules for every optional or mandatory part of an import.

        An explicit logic string wins; otherwise remarks keywords are used.
        A part that already has a rule gets its logic refreshed instead of a
        second rule.

        Args:
            parts: Imported catalog parts
            logic_by_part: Explicit logic column keyed by part id
            existing_rules: Rules already configured

        Returns:
            Tuple of (updated rule list, number of new rules)
        """
        logic_by_part = logic_by_part or {}
        rules = [rule.model_copy(deep=True) for rule in (existing_rules or [])]
        index_by_target = {}
        for position, rule in enumerate(rules):
            index_by_target.setdefault(rule.target_part_id, position)

        created = 0
        for part in parts:
            if part.functional_code not in (FunctionalCode.OPTIONAL, FunctionalCode.MANDATORY):
                continue

            explicit = (logic_by_part.get(part.id) or "").strip()
            if explicit:
                logic = self.parse(explicit)
            else:
                logic = self.keyword_logic(part)

            if logic is None:
                continue

            if part.id in index_by_target:
                rules[index_by_target[part.id]].logic = logic
            else:
                index_by_target[part.id] = len(rules)
                rules.append(Rule(
                    id=f"rule-{uuid4().hex[:12]}",
                    target_part_id=part.id,
                    logic=logic,
                ))
                created += 1

        logger.info(
            "rules_generated",
            parts=len(parts),
            created=created,
            total=len(rules)
        )

        return rules, created

    def promote_match_to_rule(
        self,
        match: MatchResult,
        parts: list[Part],
        rules: list[Rule],
        part_number: Optional[str] = None,
    ) -> tuple[Rule, list[Rule]]:
        """
        Turn a reviewed order match into a permanent dependency rule.

        The rule's include terms are the matching tokens of the option text.
        Any existing rule for the same part is replaced.

        Args:
            match: Reviewed match
            parts: Catalog snapshot
            rules: Current rules
            part_number: Manual override of the suggested part number

        Returns:
            Tuple of (new rule, updated rule list)

        Raises:
            RulePromotionError: No part number available
            PartNotFoundError: Part number not in the catalog
        """
        final_pn = (part_number or match.matched_part_number or "").strip()
        if not final_pn:
            raise RulePromotionError(match.category, match.selection)

        part = next(
            (p for p in parts if p.part_number.upper() == final_pn.upper()),
            None
        )
        if part is None:
            raise PartNotFoundError(final_pn)

        raw = f"{match.category} {match.selection}".upper()
        include_terms = token_list(raw)

        rule = Rule(
            id=f"rule-promo-{uuid4().hex[:12]}",
            target_part_id=part.id,
            logic=RuleLogic(include_terms=include_terms, raw_expression=raw),
        )
        updated = [r for r in rules if r.target_part_id != part.id] + [rule]

        logger.info(
            "match_promoted_to_rule",
            part_number=part.part_number,
            part_id=part.id,
            terms=include_terms
        )

        return rule, updated


# Singleton instance
_rule_parser_service: Optional[RuleParserService] = None


def get_rule_parser_service() -> RuleParserService:
    """Get or create RuleParserService instance."""
    global _rule_parser_service
    if _rule_parser_service is None:
        _rule_parser_service = RuleParserService()
    return _rule_parser_service


def parse(raw: Optional[str]) -> RuleLogic:
    """Parse a raw rule expression into structured logic."""
    return get_rule_parser_service().parse(raw)
