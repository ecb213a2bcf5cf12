"""SCIM 2.0 group request/response models (RFC 7643 / RFC 7644).

Usage:
    model = ScimGroupRequestModel.from_dict(request_json)
    group = model.to_group(organization_id)
    payload = ScimGroupResponseModel(group).to_dict()
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from orgvault.core.exceptions import BadRequestError
from orgvault.core.models import Group

SCIM_GROUP_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:Group"
SCIM_LIST_RESPONSE_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:ListResponse"
SCIM_PATCH_OP_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:PatchOp"
SCIM_ERROR_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:Error"


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise BadRequestError(f"{key} must be a string.")
    return value


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.isoformat() + "Z"
    return value.isoformat()


@dataclass
class ScimMember:
    value: Optional[str] = None
    display: Optional[str] = None


@dataclass
class ScimGroupRequestModel:
    display_name: Optional[str] = None
    external_id: Optional[str] = None
    members: Optional[List[ScimMember]] = None
    schemas: List[str] = field(default_factory=lambda: [SCIM_GROUP_SCHEMA])

    @classmethod
    def from_dict(cls, payload: Any) -> "ScimGroupRequestModel":
        if not isinstance(payload, dict):
            raise BadRequestError("Request body must be a JSON object")

        members = payload.get("members")
        parsed_members = None
        if members is not None:
            if not isinstance(members, list):
                raise BadRequestError("members must be an array")
            parsed_members = [
                ScimMember(value=m.get("value"), display=m.get("display"))
                for m in members
                if isinstance(m, dict)
            ]

        return cls(
            display_name=_optional_str(payload, "displayName"),
            external_id=_optional_str(payload, "externalId"),
            members=parsed_members,
            schemas=payload.get("schemas") or [SCIM_GROUP_SCHEMA],
        )

    @property
    def external_id_for_group(self) -> Optional[str]:
        if self.external_id is None or not self.external_id.strip():
            return None
        return self.external_id

    def to_group(self, organization_id: uuid.UUID) -> Group:
        return Group(
            id=uuid.uuid4(),
            organization_id=organization_id,
            name=self.display_name,
            external_id=self.external_id_for_group,
            access_all=False,
        )


@dataclass
class ScimPatchOperation:
    op: str
    path: Optional[str] = None
    value: Any = None


@dataclass
class ScimPatchModel:
    operations: List[ScimPatchOperation]
    schemas: List[str] = field(default_factory=lambda: [SCIM_PATCH_OP_SCHEMA])

    @classmethod
    def from_dict(cls, payload: Any) -> "ScimPatchModel":
        if not isinstance(payload, dict):
            raise BadRequestError("Request body must be a JSON object")

        operations = payload.get("Operations", payload.get("operations"))
        if not isinstance(operations, list):
            raise BadRequestError("Operations must be an array")

        parsed = []
        for operation in operations:
            if not isinstance(operation, dict) or not isinstance(operation.get("op"), str):
                raise BadRequestError("Each operation must be an object with an 'op' string")
            path = _optional_str(operation, "path")
            parsed.append(
                ScimPatchOperation(op=operation["op"], path=path, value=operation.get("value"))
            )
        return cls(operations=parsed, schemas=payload.get("schemas") or [SCIM_PATCH_OP_SCHEMA])


class ScimGroupResponseModel:
    """SCIM Group resource built from a ``Group`` entity."""

    def __init__(self, group: Group):
        self.group = group

    def to_dict(self) -> Dict[str, Any]:
        group = self.group
        return {
            "schemas": [SCIM_GROUP_SCHEMA],
            "id": str(group.id),
            "displayName": group.name,
            "externalId": group.external_id,
            "meta": {
                "resourceType": "Group",
                "created": _iso(group.creation_date),
                "lastModified": _iso(group.revision_date),
            },
        }


@dataclass
class ScimListResponseModel:
    resources: List[Dict[str, Any]]
    items_per_page: int
    total_results: int
    start_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemas": [SCIM_LIST_RESPONSE_SCHEMA],
            "totalResults": self.total_results,
            "itemsPerPage": self.items_per_page,
            "startIndex": self.start_index,
            "Resources": self.resources,
        }


@dataclass
class ScimErrorResponseModel:
    status: int
    detail: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemas": [SCIM_ERROR_SCHEMA],
            "status": str(self.status),
            "detail": self.detail,
        }
