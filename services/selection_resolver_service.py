"""
Selection resolver service — forward-chaining fixpoint over dependency rules.

Given the catalog, the active rules and the user's confirmed part ids,
computes which further parts the rules imply.

Algorithm:
    base     = context tokens of every BASELINE part
    implied  = {}
    repeat up to max_passes:
        context = base ∪ tokens of confirmed and implied parts
        for each active rule whose target is neither confirmed nor implied:
            skip a MANDATORY target whose ref_des group already has a
            confirmed or implied member (first resolved choice wins)
            fire when the rule logic holds against context
        stop once a pass fires nothing

Rules can chain (selecting A adds a token that triggers the rule for B).
The pass bound guarantees termination for mutually reinforcing rules; a
chain deeper than the bound is left unresolved and reported through
ResolutionResult.converged.
"""

from typing import Iterable, Optional

import structlog

from config import settings
from models.configuration import ResolutionResult
from models.part import Part, FunctionalCode
from models.rule import Rule
from utils.text_utils import tokenize_context

logger = structlog.get_logger(__name__)


class SelectionResolverService:
    """
    Resolves implied part selections.

    Pure: inputs are never mutated and identical snapshots always produce
    identical output.
    """

    def __init__(self, max_passes: Optional[int] = None):
        self.max_passes = max_passes or settings.resolver_max_passes

    def resolve(
        self,
        parts: list[Part],
        rules: list[Rule],
        confirmed_ids: Iterable[str],
    ) -> set[str]:
        """
        Compute the parts implied by the confirmed selection.

        Args:
            parts: Catalog snapshot
            rules: Dependency rules (inactive ones are ignored)
            confirmed_ids: Part ids the user has confirmed

        Returns:
            Implied part ids, never including confirmed ones
        """
        return self.resolve_detailed(parts, rules, confirmed_ids).implied_set

    def resolve_detailed(
        self,
        parts: list[Part],
        rules: list[Rule],
        confirmed_ids: Iterable[str],
    ) -> ResolutionResult:
        """
        Resolve and report firing order, passes used and convergence.

        Returns:
            ResolutionResult; converged is False when the last allowed pass
            still fired a rule
        """
        confirmed = set(confirmed_ids)

        parts_by_id: dict[str, Part] = {}
        for part in parts:
            parts_by_id.setdefault(part.id, part)

        tokens_by_id = {
            part_id: tokenize_context(part.context_text)
            for part_id, part in parts_by_id.items()
        }

        base_tokens: set[str] = set()
        for part_id, part in parts_by_id.items():
            if part.functional_code == FunctionalCode.BASELINE:
                base_tokens.update(tokens_by_id[part_id])

        # Reference designators that already hold a choice
        resolved_groups = {
            parts_by_id[part_id].ref_des
            for part_id in confirmed
            if part_id in parts_by_id
        }

        implied: list[str] = []
        implied_set: set[str] = set()
        passes = 0
        changed = True

        while changed and passes < self.max_passes:
            changed = False
            passes += 1

            context = set(base_tokens)
            for part_id in confirmed | implied_set:
                context.update(tokens_by_id.get(part_id, ()))

            for rule in rules:
                target_id = rule.target_part_id
                if not rule.is_active or target_id in confirmed or target_id in implied_set:
                    continue

                target = parts_by_id.get(target_id)
                if target is None:
                    logger.debug("rule_target_missing", rule_id=rule.id, target_part_id=target_id)
                    continue

                if target.is_mandatory and target.ref_des in resolved_groups:
                    continue

                if not rule.logic.is_satisfied_by(context):
                    continue

                implied.append(target_id)
                implied_set.add(target_id)
                resolved_groups.add(target.ref_des)
                changed = True

        converged = not changed
        if not converged:
            logger.warning(
                "resolution_truncated",
                max_passes=self.max_passes,
                implied=len(implied)
            )

        logger.debug(
            "selection_resolved",
            confirmed=len(confirmed),
            implied=len(implied),
            passes=passes,
            converged=converged
        )

        return ResolutionResult(
            implied_ids=implied,
            passes=passes,
            converged=converged,
        )


# Singleton instance
_selection_resolver_service: Optional[SelectionResolverService] = None


def get_selection_resolver_service() -> SelectionResolverService:
    """Get or create SelectionResolverService instance."""
    global _selection_resolver_service
    if _selection_resolver_service is None:
        _selection_resolver_service = SelectionResolverService()
    return _selection_resolver_service


def resolve(
    parts: list[Part],
    rules: list[Rule],
    confirmed_ids: Iterable[str],
) -> set[str]:
    """Implied part ids for a confirmed selection."""
    return get_selection_resolver_service().resolve(parts, rules, confirmed_ids)
