"""
Part schemas for the master parts catalog.

Raw imported rows are mapped to Part at the import boundary
(parsers/catalog_parser.py); everything past that point works with these
strict records only.
"""

from enum import IntEnum

from pydantic import Field

from models.base import BaseSchema


DEFAULT_SELECT_PREFERENCE = 999999
DEFAULT_GROUP = "General"


class FunctionalCode(IntEnum):
    """Role of a part within an assembly."""
    BASELINE = 0    # Always included
    OPTIONAL = 1    # Several selectable per ref_des group
    MANDATORY = 2   # Exactly one selectable per ref_des group
    REFERENCE = 9   # Selectable for matching, never in the final manifest


class Part(BaseSchema):
    """
    A single catalog part.

    Required: id
    Everything else defaults to empty text, BASELINE and the lowest
    selection preference.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Internal unique ID"
    )
    part_number: str = Field(
        default="",
        description="Catalog part number",
        examples=["X9-350"]
    )
    name: str = Field(default="", description="Part name")
    remarks: str = Field(default="", description="Engineering remarks")
    std_remarks: str = Field(default="", description="Standard remarks")
    ref_des: str = Field(
        default="",
        description="Reference designator (grouping key)"
    )
    functional_code: FunctionalCode = Field(
        default=FunctionalCode.BASELINE,
        description="0 baseline, 1 optional, 2 mandatory-single, 9 reference"
    )
    select_preference: int = Field(
        default=DEFAULT_SELECT_PREFERENCE,
        description="Sort key for groups and the final manifest"
    )

    @property
    def is_configurable(self) -> bool:
        """True for parts a user can pick (codes 1, 2 and 9)."""
        return self.functional_code != FunctionalCode.BASELINE

    @property
    def is_mandatory(self) -> bool:
        return self.functional_code == FunctionalCode.MANDATORY

    @property
    def group_key(self) -> str:
        """Display group; parts without a designator fall under General."""
        return self.ref_des or DEFAULT_GROUP

    @property
    def context_text(self) -> str:
        """Text contributing to the resolver's context tokens."""
        return f"{self.part_number} {self.name} {self.remarks} {self.std_remarks}"

    @property
    def index_text(self) -> str:
        """Text indexed for matching extracted order options."""
        return f"{self.name} {self.remarks} {self.std_remarks} {self.ref_des}"
