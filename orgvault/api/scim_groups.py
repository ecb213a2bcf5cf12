"""SCIM 2.0 Groups endpoints (RFC 7644) scoped to a single organization.

Routes:
    GET    /v2/<organization_id>/groups
    GET    /v2/<organization_id>/groups/<id>
    POST   /v2/<organization_id>/groups
    PUT    /v2/<organization_id>/groups/<id>
    PATCH  /v2/<organization_id>/groups/<id>
    DELETE /v2/<organization_id>/groups/<id>

Security:
    - Bearer JWT from the identity issuer with scope 'api.scim' whose
      'client_sub' claim names the organization in the route
    - Optional static SCIM API key for directory connectors (constant-time compare)
    - 64 KB payload limit, SCIM/JSON content types only on writes
"""

from __future__ import annotations
import hmac
import logging
import uuid

from flask import Blueprint, Response, current_app, g, jsonify, request, url_for

from orgvault.api import get_services
from orgvault.api.decorators import (
    TokenValidationError,
    extract_bearer_token,
    log_auth_attempt,
    token_scopes,
    validate_jwt_token,
)
from orgvault.core.enums import EventSystemUser, EventType
from orgvault.core.exceptions import BadRequestError, DomainError, NotFoundError
from orgvault.core.scim import (
    ScimErrorResponseModel,
    ScimGroupRequestModel,
    ScimGroupResponseModel,
    ScimListResponseModel,
    ScimPatchModel,
)

bp = Blueprint("scim_groups", __name__, url_prefix="/v2")

JSON_MAX_SIZE_BYTES = 65536  # 64 KB
SCIM_SCOPE = "api.scim"
ACCEPTED_CONTENT_TYPES = ("application/scim+json", "application/json")

logger = logging.getLogger(__name__)


def scim_error_response(status: int, detail: str) -> Response:
    """SCIM error Response for before_request handlers."""
    response = jsonify(ScimErrorResponseModel(status, detail).to_dict())
    response.status_code = status
    return response


@bp.errorhandler(DomainError)
def handle_domain_error(error: DomainError):
    return scim_error_response(error.status, error.detail)


@bp.errorhandler(413)
def handle_request_too_large(error):
    return scim_error_response(413, "Request payload exceeds maximum allowed size (64 KB)")


# ─────────────────────────────────────────────────────────────────────────────
# Request Validation Middleware
# ─────────────────────────────────────────────────────────────────────────────

def _validate_static_token(provided_token: str) -> bool:
    cfg = current_app.config.get("APP_CONFIG")
    if not cfg or not cfg.scim_static_token:
        return False
    return hmac.compare_digest(provided_token.encode(), cfg.scim_static_token.encode())


@bp.before_request
def validate_request():
    """Authenticate the caller, then check payload size and content type.

    Authentication precedence:
    1. Static SCIM key (when configured) matching the bearer token
    2. Otherwise the bearer token must be a valid JWT with scope 'api.scim'
       and 'client_sub' equal to the organization in the route
    """
    token, error = extract_bearer_token()
    if error:
        return scim_error_response(401, error)

    if _validate_static_token(token):
        log_auth_attempt("static", token, success=True)
        g.auth_method = "static"
        g.oauth_claims = None
    else:
        try:
            claims = validate_jwt_token(token)
        except TokenValidationError as e:
            log_auth_attempt("oauth", token, success=False)
            return scim_error_response(401, str(e))

        if SCIM_SCOPE not in token_scopes(claims):
            logger.warning(f"SCIM request lacks scope {SCIM_SCOPE}: {claims.get('scope')}")
            return scim_error_response(403, f"Insufficient scope. Required: '{SCIM_SCOPE}'.")

        organization_id = (request.view_args or {}).get("organization_id")
        if organization_id is None or str(claims.get("client_sub", "")).lower() != str(organization_id):
            logger.warning(f"SCIM token client_sub does not match organization {organization_id}")
            return scim_error_response(403, "Token is not authorized for this organization.")

        log_auth_attempt("oauth", token, success=True)
        g.auth_method = "oauth"
        g.oauth_claims = claims

    if request.content_length and request.content_length > JSON_MAX_SIZE_BYTES:
        return scim_error_response(413, "Request payload too large")

    if request.method in ("POST", "PUT", "PATCH"):
        content_type = request.mimetype or ""
        if content_type not in ACCEPTED_CONTENT_TYPES:
            return scim_error_response(415, "Content-Type must be application/scim+json")


@bp.after_request
def add_correlation_id(response):
    """Echo the correlation id and report the auth method."""
    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        response.headers["X-Correlation-Id"] = correlation_id

    auth_method = getattr(g, "auth_method", None)
    if auth_method:
        response.headers["X-Auth-Method"] = auth_method

    return response


def _scim_json(payload: dict, status: int = 200) -> Response:
    response = jsonify(payload)
    response.status_code = status
    response.mimetype = "application/scim+json"
    return response


def _parse_int_arg(name: str, minimum: int):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    if value < minimum:
        raise BadRequestError(f"{name} must be at least {minimum}.")
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Groups
# ─────────────────────────────────────────────────────────────────────────────

@bp.route("/<uuid:organization_id>/groups/<uuid:id>", methods=["GET"])
def get_group(organization_id: uuid.UUID, id: uuid.UUID):
    services = get_services()
    group = services.group_repository.get_by_id(id)
    if group is None or group.organization_id != organization_id:
        raise NotFoundError("Group not found.")
    return _scim_json(ScimGroupResponseModel(group).to_dict())


@bp.route("/<uuid:organization_id>/groups", methods=["GET"])
def list_groups(organization_id: uuid.UUID):
    """List groups with optional ``filter``, ``count`` and ``startIndex``."""
    services = get_services()
    count = _parse_int_arg("count", minimum=0)
    start_index = _parse_int_arg("startIndex", minimum=1)

    groups, total = services.get_groups_list_query.get_groups_list(
        organization_id,
        filter=request.args.get("filter"),
        count=count,
        start_index=start_index,
    )
    resources = [ScimGroupResponseModel(group).to_dict() for group in groups]
    payload = ScimListResponseModel(
        resources=resources,
        items_per_page=count or len(resources),
        total_results=total,
        start_index=start_index or 1,
    )
    return _scim_json(payload.to_dict())


@bp.route("/<uuid:organization_id>/groups", methods=["POST"])
def create_group(organization_id: uuid.UUID):
    services = get_services()
    model = ScimGroupRequestModel.from_dict(request.get_json(force=True, silent=True))
    organization = services.organization_repository.get_by_id(organization_id)

    group = services.post_group_command.post_group(organization, model)

    response = _scim_json(ScimGroupResponseModel(group).to_dict(), 201)
    response.headers["Location"] = url_for(
        "scim_groups.get_group", organization_id=organization_id, id=group.id, _external=True
    )
    logger.info(f"SCIM group created: {group.id} in organization {organization_id}")
    return response


@bp.route("/<uuid:organization_id>/groups/<uuid:id>", methods=["PUT"])
def replace_group(organization_id: uuid.UUID, id: uuid.UUID):
    services = get_services()
    model = ScimGroupRequestModel.from_dict(request.get_json(force=True, silent=True))
    organization = services.organization_repository.get_by_id(organization_id)

    group = services.put_group_command.put_group(organization, id, model)
    return _scim_json(ScimGroupResponseModel(group).to_dict())


@bp.route("/<uuid:organization_id>/groups/<uuid:id>", methods=["PATCH"])
def patch_group(organization_id: uuid.UUID, id: uuid.UUID):
    services = get_services()
    model = ScimPatchModel.from_dict(request.get_json(force=True, silent=True))
    organization = services.organization_repository.get_by_id(organization_id)

    services.patch_group_command.patch_group(organization, id, model)
    return "", 204


@bp.route("/<uuid:organization_id>/groups/<uuid:id>", methods=["DELETE"])
def delete_group(organization_id: uuid.UUID, id: uuid.UUID):
    services = get_services()
    group = services.group_repository.get_by_id(id)
    if group is None or group.organization_id != organization_id:
        raise NotFoundError("Group not found.")

    services.group_repository.delete(group)
    services.event_service.log_group_event(group, EventType.GROUP_DELETED, EventSystemUser.SCIM)
    logger.info(f"SCIM group deleted: {group.id} in organization {organization_id}")
    return "", 204
