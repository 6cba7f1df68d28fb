"""
Business logic services.

Each service handles one domain area. The rule engine core (parser, index,
resolver, matcher) is pure; the knowledge service is the only one holding
state.
"""

from services.rule_parser_service import RuleParserService, get_rule_parser_service, parse
from services.part_index_service import PartIndex, IndexedPart, build_part_index
from services.selection_resolver_service import (
    SelectionResolverService,
    get_selection_resolver_service,
    resolve,
)
from services.confidence_matcher_service import (
    ConfidenceMatcherService,
    get_confidence_matcher_service,
    match,
    match_all,
)
from services.configuration_service import ConfigurationService, get_configuration_service
from services.knowledge_service import KnowledgeService, get_knowledge_service
from services.order_reconciliation_service import (
    OrderReconciliationService,
    get_order_reconciliation_service,
)

__all__ = [
    "RuleParserService",
    "get_rule_parser_service",
    "parse",
    "PartIndex",
    "IndexedPart",
    "build_part_index",
    "SelectionResolverService",
    "get_selection_resolver_service",
    "resolve",
    "ConfidenceMatcherService",
    "get_confidence_matcher_service",
    "match",
    "match_all",
    "ConfigurationService",
    "get_configuration_service",
    "KnowledgeService",
    "get_knowledge_service",
    "OrderReconciliationService",
    "get_order_reconciliation_service",
]
