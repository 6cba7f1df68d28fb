"""
Configuration service for the user-facing selection workflow.

Wraps the resolver output into the steps of configuring one machine:
toggling picks, checking readiness, accepting suggestions, and producing
the final manifest and the mappings to learn from it.
"""

import math
from collections import OrderedDict
from typing import Iterable, Optional

import structlog

from models.configuration import GroupStatus, SelectionValidation
from models.knowledge import LearningMapping
from models.part import Part, FunctionalCode

logger = structlog.get_logger(__name__)


UNKNOWN_CATEGORY = "Unknown"


class ConfigurationService:
    """Selection workflow over a catalog snapshot."""

    def toggle_selection(
        self,
        parts: list[Part],
        selected_ids: Iterable[str],
        part_id: str,
    ) -> set[str]:
        """
        Flip one part in the user's selection.

        Selecting a MANDATORY part clears the other configurable members of
        its group, keeping at most one pick per group.

        Returns:
            New selection; the input is not modified
        """
        selected = set(selected_ids)
        if part_id in selected:
            selected.discard(part_id)
            return selected

        part = next((p for p in parts if p.id == part_id), None)
        if part is not None and part.is_mandatory:
            for member in parts:
                if member.is_configurable and member.group_key == part.group_key:
                    selected.discard(member.id)

        selected.add(part_id)
        return selected

    def group_parts(self, parts: list[Part]) -> list[tuple[str, list[Part]]]:
        """
        Configurable parts grouped by designator.

        Groups are ordered by their lowest select preference, then first
        appearance.
        """
        groups: "OrderedDict[str, list[Part]]" = OrderedDict()
        for part in parts:
            if part.is_configurable:
                groups.setdefault(part.group_key, []).append(part)

        return sorted(
            groups.items(),
            key=lambda item: min(p.select_preference for p in item[1])
        )

    def validate_selection(
        self,
        parts: list[Part],
        selected_ids: Iterable[str],
        implied_ids: Optional[Iterable[str]] = None,
    ) -> SelectionValidation:
        """
        Check whether a selection is ready for manifest generation.

        A selection is valid when every group holding a MANDATORY part has a
        user pick and no group has a suggestion the user has not confirmed.

        Args:
            parts: Catalog snapshot
            selected_ids: User-confirmed part ids
            implied_ids: Resolver suggestions

        Returns:
            SelectionValidation with per-group status
        """
        selected = set(selected_ids)
        implied = set(implied_ids or ())

        statuses = []
        for group, members in self.group_parts(parts):
            statuses.append(GroupStatus(
                group=group,
                is_mandatory=any(p.is_mandatory for p in members),
                selected_ids=[p.id for p in members if p.id in selected],
                implied_ids=[p.id for p in members if p.id in implied and p.id not in selected],
                min_select_preference=min(p.select_preference for p in members),
            ))

        mandatory = [s for s in statuses if s.is_mandatory]
        missing = sum(1 for s in mandatory if not s.selected_ids)
        pending = sum(1 for s in statuses if s.needs_confirmation)

        if mandatory:
            progress = math.floor((len(mandatory) - missing) * 100 / len(mandatory) + 0.5)
        else:
            progress = 100

        return SelectionValidation(
            is_valid=missing == 0 and pending == 0,
            progress=progress,
            total_mandatory_groups=len(mandatory),
            missing_mandatory=missing,
            pending_confirmation=pending,
            groups=statuses,
        )

    def accept_suggestions(
        self,
        selected_ids: Iterable[str],
        implied_ids: Iterable[str],
    ) -> set[str]:
        """Confirm every resolver suggestion."""
        return set(selected_ids) | set(implied_ids)

    def build_manifest(self, parts: list[Part], selected_ids: Iterable[str]) -> list[Part]:
        """
        Final bill of materials.

        Baseline parts plus confirmed parts, without REFERENCE parts,
        ordered by select preference (catalog order on ties).
        """
        selected = set(selected_ids)
        manifest = [
            part for part in parts
            if part.functional_code != FunctionalCode.REFERENCE
            and (part.functional_code == FunctionalCode.BASELINE or part.id in selected)
        ]
        manifest.sort(key=lambda p: p.select_preference)

        logger.info(
            "manifest_built",
            parts=len(manifest),
            selected=len(selected)
        )

        return manifest

    def learning_mappings(
        self,
        parts: list[Part],
        selected_ids: Iterable[str],
    ) -> list[LearningMapping]:
        """Confirmed optional and mandatory picks as knowledge mappings."""
        selected = set(selected_ids)
        return [
            LearningMapping(
                category=part.ref_des or UNKNOWN_CATEGORY,
                selection=part.name or part.part_number,
                part_number=part.part_number,
            )
            for part in parts
            if part.id in selected
            and part.functional_code in (FunctionalCode.OPTIONAL, FunctionalCode.MANDATORY)
            and part.part_number
        ]


# Singleton instance
_configuration_service: Optional[ConfigurationService] = None


def get_configuration_service() -> ConfigurationService:
    """Get or create ConfigurationService instance."""
    global _configuration_service
    if _configuration_service is None:
        _configuration_service = ConfigurationService()
    return _configuration_service
