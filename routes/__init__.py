"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.rules import router as rules_router
from routes.configuration import router as configuration_router
from routes.matching import router as matching_router
from routes.knowledge import router as knowledge_router
from routes.catalog import router as catalog_router

__all__ = [
    "rules_router",
    "configuration_router",
    "matching_router",
    "knowledge_router",
    "catalog_router",
]
