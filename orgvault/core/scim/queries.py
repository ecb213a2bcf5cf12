"""Read-side SCIM group queries."""
from __future__ import annotations
import logging
import re
from typing import Optional
import uuid

from orgvault.core.exceptions import BadRequestError
from orgvault.core.models import Group
from orgvault.core.repositories import GroupRepository

logger = logging.getLogger(__name__)

# Only the equality filters identity providers send for group reconciliation.
_FILTER_PATTERN = re.compile(r'^\s*(displayName|externalId)\s+eq\s+"?(.*?)"?\s*$', re.IGNORECASE)


def parse_group_filter(filter_str: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Return (attribute, value) for a supported filter, else (None, None)."""
    if not filter_str or not filter_str.strip():
        return None, None
    match = _FILTER_PATTERN.match(filter_str)
    if not match:
        logger.debug("Unsupported group filter ignored: %r", filter_str)
        return None, None
    attribute = "displayName" if match.group(1).lower() == "displayname" else "externalId"
    return attribute, match.group(2)


class GetGroupsListQuery:
    def __init__(self, group_repository: GroupRepository):
        self._group_repository = group_repository

    def get_groups_list(
        self,
        organization_id: uuid.UUID,
        filter: Optional[str] = None,
        count: Optional[int] = None,
        start_index: Optional[int] = None,
    ) -> tuple[list[Group], int]:
        """List groups for an organization.

        Returns:
            Tuple of (page of groups, total matching results)
        """
        groups = self._group_repository.get_many_by_organization_id(organization_id)

        attribute, value = parse_group_filter(filter)
        if attribute is not None:
            field_name = "name" if attribute == "displayName" else "external_id"
            match = next((g for g in groups if getattr(g, field_name) == value), None)
            group_list = [match] if match else []
            return group_list, len(group_list)

        if count is not None and count < 0:
            raise BadRequestError("count must be at least 0.")
        if start_index is not None and start_index < 1:
            raise BadRequestError("startIndex must be at least 1.")

        ordered = sorted(groups, key=lambda g: (g.name or "").lower())
        start = (start_index or 1) - 1
        page = ordered[start:] if count is None else ordered[start:start + count]
        return page, len(groups)
