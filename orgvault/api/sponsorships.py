"""Families-for-Enterprise sponsorship endpoints."""
from __future__ import annotations
import logging
import uuid

from flask import Blueprint

from orgvault.api import get_services
from orgvault.api.decorators import get_current_user_id, require_oauth_token

bp = Blueprint("sponsorships", __name__, url_prefix="/organization/sponsorship")

logger = logging.getLogger(__name__)


@bp.route("/<uuid:sponsoring_org_id>/families-for-enterprise/resend", methods=["POST"])
@require_oauth_token(scopes=["api"])
def resend_sponsorship_offer(sponsoring_org_id: uuid.UUID):
    """Re-send the caller's outstanding sponsorship offer email."""
    services = get_services()
    user_id = get_current_user_id()

    sponsoring_org = services.organization_repository.get_by_id(sponsoring_org_id)
    sponsoring_org_user = None
    sponsorship = None
    sponsoring_user_email = None
    if user_id is not None:
        sponsoring_org_user = services.organization_user_repository.get_by_organization(sponsoring_org_id, user_id)
        user = services.user_repository.get_by_id(user_id)
        sponsoring_user_email = user.email if user else None
    if sponsoring_org_user is not None:
        sponsorship = services.sponsorship_repository.get_by_sponsoring_organization_user_id(sponsoring_org_user.id)

    services.send_sponsorship_offer_command.send_sponsorship_offer(
        sponsoring_org, sponsoring_org_user, sponsorship, sponsoring_user_email
    )
    logger.info(f"Sponsorship offer re-sent for organization {sponsoring_org_id} by user {user_id}")
    return "", 204
