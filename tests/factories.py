"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from typing import Optional

from models.part import Part, FunctionalCode, DEFAULT_SELECT_PREFERENCE
from models.rule import Rule
from models.matching import MatchQuery
from services.rule_parser_service import parse


class PartFactory:
    """
    Factory for creating test Part records.

    Usage:
        # Create with defaults
        part = PartFactory.create()

        # Create with overrides
        part = PartFactory.create(name="Hydraulic Pump", ref_des="HYD")

        # Create multiple
        parts = PartFactory.create_batch(5)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        id: Optional[str] = None,
        part_number: Optional[str] = None,
        name: str = "",
        remarks: str = "",
        std_remarks: str = "",
        ref_des: str = "",
        functional_code: FunctionalCode = FunctionalCode.BASELINE,
        select_preference: int = DEFAULT_SELECT_PREFERENCE,
    ) -> Part:
        """
        Create a single part.

        Args:
            id: Part id (auto-generated if not provided)
            part_number: Catalog number (auto-generated if not provided)
            functional_code: 0 baseline, 1 optional, 2 mandatory, 9 reference

        Returns:
            Part record
        """
        counter = cls._next_counter()

        return Part(
            id=id or f"part-{counter}",
            part_number=part_number if part_number is not None else f"PN-{counter:04d}",
            name=name,
            remarks=remarks,
            std_remarks=std_remarks,
            ref_des=ref_des,
            functional_code=functional_code,
            select_preference=select_preference,
        )

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list[Part]:
        """Create multiple parts sharing the given overrides."""
        return [cls.create(**overrides) for _ in range(count)]

    @classmethod
    def create_baseline(cls, **overrides) -> Part:
        return cls.create(functional_code=FunctionalCode.BASELINE, **overrides)

    @classmethod
    def create_optional(cls, **overrides) -> Part:
        return cls.create(functional_code=FunctionalCode.OPTIONAL, **overrides)

    @classmethod
    def create_mandatory(cls, **overrides) -> Part:
        return cls.create(functional_code=FunctionalCode.MANDATORY, **overrides)

    @classmethod
    def create_reference(cls, **overrides) -> Part:
        return cls.create(functional_code=FunctionalCode.REFERENCE, **overrides)

    @classmethod
    def reset_counter(cls):
        """Reset the counter (call in test setup if needed)."""
        cls._counter = 0


class RuleFactory:
    """
    Factory for creating test Rule records from expressions.

    Usage:
        rule = RuleFactory.create("opt1", "(CAB/CAN) [TT]")
    """

    _counter = 0

    @classmethod
    def create(
        cls,
        target_part_id: str,
        expression: str = "",
        id: Optional[str] = None,
        is_active: bool = True,
    ) -> Rule:
        cls._counter += 1
        return Rule(
            id=id or f"rule-{cls._counter}",
            target_part_id=target_part_id,
            logic=parse(expression),
            is_active=is_active,
        )

    @classmethod
    def always(cls, target_part_id: str, **overrides) -> Rule:
        """Rule with empty logic, which always fires."""
        return cls.create(target_part_id, "", **overrides)


def make_query(category: str, selection: str, quantity: Optional[str] = None) -> MatchQuery:
    """Build an extracted order option."""
    return MatchQuery(category=category, selection=selection, quantity=quantity)
