"""Write-side SCIM group commands (POST, PUT, PATCH).

Membership values coming from identity providers are organization user ids.
Values that are not UUIDs, or that do not belong to the organization, are
dropped rather than rejected so a partially stale directory can still sync.
"""
from __future__ import annotations
import logging
import re
from typing import Any, Iterable, Optional
import uuid

from orgvault.core.enums import EventSystemUser, EventType
from orgvault.core.events import EventService
from orgvault.core.exceptions import BadRequestError, ConflictError, NotFoundError
from orgvault.core.models import Group, Organization
from orgvault.core.repositories import GroupRepository, OrganizationUserRepository
from orgvault.core.scim.models import ScimGroupRequestModel, ScimMember, ScimPatchModel

logger = logging.getLogger(__name__)

_MEMBER_FILTER_PATH = re.compile(r'^members\[\s*value\s+eq\s+"([^"]+)"\s*\]$', re.IGNORECASE)


def _parse_uuid(value: Any) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class _GroupMembership:
    """Shared membership resolution for the group commands."""

    def __init__(self, group_repository: GroupRepository, organization_user_repository: OrganizationUserRepository):
        self._group_repository = group_repository
        self._organization_user_repository = organization_user_repository

    def resolve_member_ids(self, organization: Organization, values: Iterable[Any]) -> set[uuid.UUID]:
        requested = {parsed for parsed in (_parse_uuid(v) for v in values) if parsed is not None}
        if not requested:
            return set()
        known = {ou.id for ou in self._organization_user_repository.get_many_by_organization(organization.id)}
        ignored = requested - known
        if ignored:
            logger.info("Ignoring %d member id(s) not in organization %s", len(ignored), organization.id)
        return requested & known

    def update_group_members(self, group: Group, organization: Organization, members: Optional[list[ScimMember]]) -> None:
        if members is None:
            return
        member_ids = self.resolve_member_ids(organization, (m.value for m in members))
        self._group_repository.update_users(group.id, member_ids)


def _require_organization(organization: Optional[Organization]) -> Organization:
    if organization is None:
        raise NotFoundError("Organization not found.")
    return organization


def _get_group_in_organization(group_repository: GroupRepository, organization: Organization, group_id: uuid.UUID) -> Group:
    group = group_repository.get_by_id(group_id)
    if group is None or group.organization_id != organization.id:
        raise NotFoundError("Group not found.")
    return group


class PostGroupCommand(_GroupMembership):
    def __init__(
        self,
        group_repository: GroupRepository,
        organization_user_repository: OrganizationUserRepository,
        event_service: EventService,
    ):
        super().__init__(group_repository, organization_user_repository)
        self._event_service = event_service

    def post_group(self, organization: Optional[Organization], model: ScimGroupRequestModel) -> Group:
        organization = _require_organization(organization)

        if not (model.display_name or "").strip():
            raise BadRequestError("displayName is required.")

        if not organization.use_groups:
            raise BadRequestError("This organization cannot use groups.")

        external_id = model.external_id_for_group
        if external_id is not None:
            groups = self._group_repository.get_many_by_organization_id(organization.id)
            if any(g.external_id == external_id for g in groups):
                raise ConflictError("Group with the same externalId already exists.")

        group = model.to_group(organization.id)
        self._group_repository.create(group)
        self._event_service.log_group_event(group, EventType.GROUP_CREATED, EventSystemUser.SCIM)
        self.update_group_members(group, organization, model.members)
        return group


class PutGroupCommand(_GroupMembership):
    def __init__(
        self,
        group_repository: GroupRepository,
        organization_user_repository: OrganizationUserRepository,
        event_service: EventService,
    ):
        super().__init__(group_repository, organization_user_repository)
        self._event_service = event_service

    def put_group(self, organization: Optional[Organization], group_id: uuid.UUID, model: ScimGroupRequestModel) -> Group:
        organization = _require_organization(organization)
        group = _get_group_in_organization(self._group_repository, organization, group_id)

        if not (model.display_name or "").strip():
            raise BadRequestError("displayName is required.")

        group.name = model.display_name
        self._group_repository.replace(group)
        self._event_service.log_group_event(group, EventType.GROUP_UPDATED, EventSystemUser.SCIM)
        self.update_group_members(group, organization, model.members)
        return group


class PatchGroupCommand(_GroupMembership):
    def __init__(
        self,
        group_repository: GroupRepository,
        organization_user_repository: OrganizationUserRepository,
        event_service: EventService,
    ):
        super().__init__(group_repository, organization_user_repository)
        self._event_service = event_service

    def patch_group(self, organization: Optional[Organization], group_id: uuid.UUID, model: ScimPatchModel) -> None:
        organization = _require_organization(organization)
        group = _get_group_in_organization(self._group_repository, organization, group_id)

        operation_handled = False
        for operation in model.operations:
            op = operation.op.strip().lower()
            path = (operation.path or "").strip()
            handled = False

            if op == "replace":
                if path.lower() == "members":
                    ids = self.resolve_member_ids(organization, _member_values(operation.value))
                    self._group_repository.update_users(group.id, ids)
                    handled = True
                elif path.lower() == "displayname":
                    handled = self._rename(group, operation.value)
                elif not path and isinstance(operation.value, dict) and "displayName" in operation.value:
                    handled = self._rename(group, operation.value["displayName"])
            elif op == "add":
                if path.lower() == "members":
                    ids = self.resolve_member_ids(organization, _member_values(operation.value))
                    self._group_repository.add_group_users_by_id(group.id, ids)
                    handled = True
            elif op == "remove":
                match = _MEMBER_FILTER_PATH.match(path)
                if match:
                    member_id = _parse_uuid(match.group(1))
                    if member_id is not None:
                        self._group_repository.delete_user(group.id, member_id)
                    handled = True
                elif path.lower() == "members":
                    for member_id in filter(None, (_parse_uuid(v) for v in _member_values(operation.value))):
                        self._group_repository.delete_user(group.id, member_id)
                    handled = True

            if not handled:
                logger.warning("Group patch operation not handled: %s : %s", operation.op, operation.path)
            operation_handled = operation_handled or handled

        if not operation_handled:
            logger.warning("Group patch for %s changed nothing", group.id)

    def _rename(self, group: Group, display_name: Any) -> bool:
        if not isinstance(display_name, str) or not display_name.strip():
            raise BadRequestError("displayName must be a non-empty string.")
        group.name = display_name
        self._group_repository.replace(group)
        self._event_service.log_group_event(group, EventType.GROUP_UPDATED, EventSystemUser.SCIM)
        return True


def _member_values(value: Any) -> list[Any]:
    """Extract member ids from ``[{"value": id}, ...]`` or a single object."""
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return []
    return [item.get("value") for item in value if isinstance(item, dict)]
