"""
Catalog parser for master parts list uploads.

Reads the first sheet of an Excel workbook (or a CSV export) with the
engineering columns:

    Part_Number | Name | Remarks | Std_Remarks | F_Code | Ref_des |
    Select_pref | Logic (or Logic_Config)

Every row becomes a strict Part record. Defaults resolved here:
    missing text        → ""
    missing F_Code      → 0 (baseline)
    unknown F_Code      → 0, reported as a row error
    missing Select_pref → 999999
"""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Iterable, Optional, Union
from uuid import uuid4
import structlog

import pandas as pd

from exceptions import CatalogMissingColumnsError, CatalogParseError
from models.part import DEFAULT_SELECT_PREFERENCE, FunctionalCode, Part

logger = structlog.get_logger(__name__)


# Normalized column name → Part field
COLUMN_FIELDS = {
    "part_number": "part_number",
    "name": "name",
    "remarks": "remarks",
    "std_remarks": "std_remarks",
    "f_code": "functional_code",
    "ref_des": "ref_des",
    "select_pref": "select_preference",
}

LOGIC_COLUMNS = ("logic", "logic_config")

REQUIRED_COLUMNS = ["part_number"]


@dataclass
class CatalogRowError:
    """Single validation problem found in a catalog row."""
    row: int
    field: str
    error: str


@dataclass
class CatalogParseResult:
    """Result of parsing a catalog upload."""
    parts: list[Part] = field(default_factory=list)
    logic_by_part: dict[str, str] = field(default_factory=dict)
    errors: list[CatalogRowError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no errors occurred."""
        return len(self.errors) == 0

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "parts": [p.model_dump(mode="json") for p in self.parts],
            "logic_by_part": dict(self.logic_by_part),
            "errors": [
                {"row": e.row, "field": e.field, "error": e.error}
                for e in self.errors
            ],
        }


def parse_catalog_file(
    file: Union[str, Path, BytesIO],
    filename: Optional[str] = None,
    id_prefix: Optional[str] = None,
) -> CatalogParseResult:
    """
    Parse a catalog upload.

    Args:
        file: File path (str/Path) or file-like object (BytesIO)
        filename: Original file name; a .csv suffix selects the CSV reader
        id_prefix: Prefix for generated part ids (random when omitted)

    Returns:
        CatalogParseResult with parts, explicit logic and row errors

    Raises:
        CatalogParseError: If the file cannot be read
        CatalogMissingColumnsError: If the Part_Number column is absent
    """
    name = filename or (str(file) if isinstance(file, (str, Path)) else "")
    is_csv = name.lower().endswith(".csv")

    logger.info("parsing_catalog", file_type=type(file).__name__, csv=is_csv)

    try:
        if is_csv:
            df = pd.read_csv(file, dtype=str)
        else:
            df = pd.read_excel(file, sheet_name=0, dtype=str, engine="openpyxl")
    except Exception as e:
        logger.error("catalog_read_failed", error=str(e))
        raise CatalogParseError(
            message="Failed to read catalog file",
            details={"original_error": str(e)}
        )

    df.columns = [_normalize_column(col) for col in df.columns]

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise CatalogMissingColumnsError(
            missing=[_display_column(col) for col in missing],
            found=[str(col) for col in df.columns]
        )

    df = df.astype(object).where(df.notna(), None)
    records = df.to_dict(orient="records")

    # Excel row numbers: 1-indexed plus header
    return _map_rows(records, id_prefix=id_prefix, first_row=2)


def parse_catalog_rows(
    rows: Iterable[dict[str, Any]],
    id_prefix: Optional[str] = None,
) -> CatalogParseResult:
    """
    Map already-loaded rows (e.g. JSON) to parts.

    Column names are matched the same way as in uploaded files.
    """
    records = [
        {_normalize_column(key): value for key, value in row.items()}
        for row in rows
    ]
    return _map_rows(records, id_prefix=id_prefix, first_row=1)


def _map_rows(
    records: list[dict[str, Any]],
    id_prefix: Optional[str],
    first_row: int,
) -> CatalogParseResult:
    prefix = id_prefix or f"part-{uuid4().hex[:8]}"
    result = CatalogParseResult()

    for idx, record in enumerate(records):
        row_num = idx + first_row

        # Skip empty rows
        if all(_cell_text(value) == "" for value in record.values()):
            continue

        values = {
            field_name: _cell_text(record.get(column))
            for column, field_name in COLUMN_FIELDS.items()
        }

        functional_code = _parse_functional_code(values["functional_code"])
        if functional_code is None:
            result.errors.append(CatalogRowError(
                row=row_num,
                field="F_Code",
                error=f"Unknown functional code: {values['functional_code']} (using 0)"
            ))
            functional_code = FunctionalCode.BASELINE

        part = Part(
            id=f"{prefix}-{idx}",
            part_number=values["part_number"],
            name=values["name"],
            remarks=values["remarks"],
            std_remarks=values["std_remarks"],
            ref_des=values["ref_des"],
            functional_code=functional_code,
            select_preference=_parse_int(values["select_preference"], DEFAULT_SELECT_PREFERENCE),
        )
        result.parts.append(part)

        logic = next(
            (_cell_text(record.get(col)) for col in LOGIC_COLUMNS if _cell_text(record.get(col))),
            ""
        )
        if logic:
            result.logic_by_part[part.id] = logic

    logger.info(
        "catalog_parsed",
        part_count=len(result.parts),
        logic_count=len(result.logic_by_part),
        error_count=len(result.errors),
        success=result.success
    )

    return result


# ===================
# HELPER FUNCTIONS
# ===================

def _normalize_column(col: Any) -> str:
    """
    Normalize column name for consistent matching.

    "Part_Number" -> "part_number"
    "Std Remarks" -> "std_remarks"
    "F-Code"      -> "f_code"
    """
    col = str(col).lower().strip()
    col = col.replace("-", "_").replace(" ", "_")
    return col


def _display_column(col: str) -> str:
    """Convert a normalized column name back to its template header."""
    mapping = {
        "part_number": "Part_Number",
        "name": "Name",
        "remarks": "Remarks",
        "std_remarks": "Std_Remarks",
        "f_code": "F_Code",
        "ref_des": "Ref_des",
        "select_pref": "Select_pref",
        "logic": "Logic",
    }
    return mapping.get(col, col)


def _cell_text(value: Any) -> str:
    """Cell value as trimmed text; blanks and NaN become ""."""
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def _parse_int(text: str, default: int) -> int:
    if not text:
        return default
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return default


def _parse_functional_code(text: str) -> Optional[FunctionalCode]:
    """FunctionalCode for a cell, BASELINE when blank, None when unknown."""
    if not text:
        return FunctionalCode.BASELINE
    try:
        return FunctionalCode(_parse_int(text, -1))
    except ValueError:
        return None
