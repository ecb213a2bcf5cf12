"""Organization subscription and seat management endpoints.

All routes require a bearer token with scope 'api' whose subject is a
confirmed Owner of the organization. Anyone else gets 404 so that the
existence of an organization is not disclosed.
"""
from __future__ import annotations
import logging
import uuid

from flask import Blueprint, jsonify, request

from orgvault.api import get_services
from orgvault.api.decorators import get_current_user_id, require_oauth_token
from orgvault.api.request_models import (
    AutoAddSeatsRequestModel,
    OrganizationSmSubscriptionUpdateRequestModel,
    OrganizationSubscriptionUpdateRequestModel,
)
from orgvault.core.enums import OrganizationUserStatusType, OrganizationUserType
from orgvault.core.exceptions import NotFoundError
from orgvault.core.models import Organization

bp = Blueprint("billing", __name__, url_prefix="/organizations")

logger = logging.getLogger(__name__)


def _require_owner(organization_id: uuid.UUID) -> Organization:
    services = get_services()
    user_id = get_current_user_id()
    organization = services.organization_repository.get_by_id(organization_id)
    if organization is None or user_id is None:
        raise NotFoundError()

    membership = services.organization_user_repository.get_by_organization(organization_id, user_id)
    if (
        membership is None
        or membership.status != OrganizationUserStatusType.CONFIRMED
        or membership.type != OrganizationUserType.OWNER
    ):
        logger.warning(f"User {user_id} is not a confirmed owner of organization {organization_id}")
        raise NotFoundError()
    return organization


def _seats_payload(organization: Organization) -> dict:
    return {
        "seats": organization.seats,
        "maxAutoscaleSeats": organization.max_autoscale_seats,
        "smSeats": organization.sm_seats,
        "maxAutoscaleSmSeats": organization.max_autoscale_sm_seats,
        "smServiceAccounts": organization.sm_service_accounts,
        "maxAutoscaleSmServiceAccounts": organization.max_autoscale_sm_service_accounts,
    }


@bp.route("/<uuid:organization_id>/subscription", methods=["POST"])
@require_oauth_token(scopes=["api"])
def update_subscription(organization_id: uuid.UUID):
    """Adjust Password Manager seats and the seat autoscale limit."""
    _require_owner(organization_id)
    model = OrganizationSubscriptionUpdateRequestModel.from_dict(request.get_json(silent=True))

    organization = get_services().update_subscription_command.update_password_manager_subscription(
        model.to_organization_update(organization_id), acting_user_id=get_current_user_id()
    )
    return jsonify(_seats_payload(organization)), 200


@bp.route("/<uuid:organization_id>/sm-subscription", methods=["POST"])
@require_oauth_token(scopes=["api"])
def update_sm_subscription(organization_id: uuid.UUID):
    """Adjust Secrets Manager seats and service accounts."""
    _require_owner(organization_id)
    model = OrganizationSmSubscriptionUpdateRequestModel.from_dict(request.get_json(silent=True))

    organization = get_services().update_subscription_command.update_secrets_manager_subscription(
        model.to_organization_update(organization_id), acting_user_id=get_current_user_id()
    )
    return jsonify(_seats_payload(organization)), 200


@bp.route("/<uuid:organization_id>/seats/auto-add", methods=["POST"])
@require_oauth_token(scopes=["api"])
def auto_add_seats(organization_id: uuid.UUID):
    organization = _require_owner(organization_id)
    model = AutoAddSeatsRequestModel.from_dict(request.get_json(silent=True))

    organization = get_services().auto_add_seats_command.auto_add_seats(
        organization, model.seats_to_add, acting_user_id=get_current_user_id()
    )
    return jsonify(_seats_payload(organization)), 200
