"""
Catalog file parsers.
"""

from parsers.catalog_parser import (
    parse_catalog_file,
    parse_catalog_rows,
    CatalogParseResult,
    CatalogRowError,
)

__all__ = [
    "parse_catalog_file",
    "parse_catalog_rows",
    "CatalogParseResult",
    "CatalogRowError",
]
