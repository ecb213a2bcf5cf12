"""SCIM 2.0 group provisioning."""
from .commands import PatchGroupCommand, PostGroupCommand, PutGroupCommand
from .models import (
    ScimErrorResponseModel,
    ScimGroupRequestModel,
    ScimGroupResponseModel,
    ScimListResponseModel,
    ScimPatchModel,
)
from .queries import GetGroupsListQuery

__all__ = [
    "PatchGroupCommand",
    "PostGroupCommand",
    "PutGroupCommand",
    "GetGroupsListQuery",
    "ScimErrorResponseModel",
    "ScimGroupRequestModel",
    "ScimGroupResponseModel",
    "ScimListResponseModel",
    "ScimPatchModel",
]
