"""
Flask decorators and helpers for bearer token authentication.

Access tokens are RS256 JWTs issued by the identity service and verified
against its JWKS endpoint (RFC 7517). The same validator backs the SCIM
blueprint and the first-party billing / sponsorship endpoints.

Security:
- RSA-SHA256 signature verification via JWKS
- Expiration, not-before and issuer validation (RFC 7519)
- JWKS caching (1-hour refresh)
- Tokens are never logged; only a truncated SHA-256 hash
"""

import hashlib
import logging
import uuid
from functools import wraps
from typing import Dict, List, Optional

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidIssuerError,
    InvalidSignatureError,
)
from flask import current_app, g, jsonify, request

logger = logging.getLogger(__name__)

# Global JWKS client (cached per JWKS URL)
_jwks_client: Optional[PyJWKClient] = None
_jwks_client_url: Optional[str] = None


class TokenValidationError(Exception):
    """Exception raised when JWT token validation fails."""
    pass


def get_jwks_client() -> PyJWKClient:
    """
    Get cached JWKS client for the configured identity issuer.

    Returns:
        PyJWKClient: Configured client (keys cached, refreshed hourly)
    """
    global _jwks_client, _jwks_client_url

    cfg = current_app.config["APP_CONFIG"]
    jwks_url = cfg.jwks_url_resolved

    if _jwks_client is None or _jwks_client_url != jwks_url:
        logger.info(f"Initializing JWKS client for: {jwks_url}")
        _jwks_client = PyJWKClient(
            jwks_url,
            cache_keys=True,
            max_cached_keys=16,
            lifespan=3600,
            headers={"User-Agent": "orgvault/1.0"},
        )
        _jwks_client_url = jwks_url

    return _jwks_client


def validate_jwt_token(token: str) -> Dict[str, any]:
    """
    Validate a JWT bearer token.

    Validations performed:
    1. Signature verification (RS256 via JWKS)
    2. Expiration (exp) and not-before (nbf)
    3. Issuer (iss)

    Args:
        token: JWT token string (without "Bearer " prefix)

    Returns:
        dict: Validated token claims

    Raises:
        TokenValidationError: If any validation fails
    """
    cfg = current_app.config["APP_CONFIG"]

    try:
        jwks_client = get_jwks_client()
        signing_key = jwks_client.get_signing_key_from_jwt(token)

        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=cfg.identity_issuer,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_nbf": True,
                "verify_iss": True,
                "verify_aud": False,
                "require": ["exp", "iat"],
            },
            leeway=5,
        )

        logger.debug(f"JWT validated for client: {claims.get('client_id', 'unknown')}, scopes: {claims.get('scope')}")
        return claims

    except ExpiredSignatureError:
        raise TokenValidationError("Token expired (exp claim)")
    except InvalidIssuerError as e:
        raise TokenValidationError(f"Invalid issuer: {e}")
    except InvalidSignatureError:
        raise TokenValidationError("Invalid signature (token tampered or wrong key)")
    except DecodeError as e:
        raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
    except Exception as e:
        logger.error(f"JWT validation failed: {e}")
        raise TokenValidationError(f"Token validation failed: {e}")


def token_scopes(claims: dict) -> List[str]:
    """Scopes from either a space-delimited string or a JSON array claim."""
    scope = claims.get("scope", "")
    if isinstance(scope, list):
        return [str(s) for s in scope]
    return str(scope).split()


def log_auth_attempt(auth_method: str, token: str, success: bool) -> None:
    """Log authentication attempt without leaking secrets."""
    token_hash = hashlib.sha256(token.encode()).hexdigest()[:12]
    correlation_id = request.headers.get("X-Correlation-Id", "none")
    client_ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    status = "SUCCESS" if success else "FAILED"
    logger.info(
        f"{status} auth | method={auth_method} | token_hash={token_hash} | "
        f"path={request.path} | correlation_id={correlation_id} | client_ip={client_ip}"
    )


def extract_bearer_token() -> tuple[Optional[str], Optional[str]]:
    """Return (token, error_detail) from the Authorization header."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        return None, "Authorization header missing. Provide 'Authorization: Bearer <token>'."
    if not auth_header.startswith("Bearer "):
        return None, "Authorization header must use Bearer token scheme: 'Authorization: Bearer <token>'."
    token = auth_header[7:].strip()
    if not token:
        return None, "Bearer token is empty."
    return token, None


def require_oauth_token(scopes: Optional[List[str]] = None):
    """
    Decorator requiring a valid bearer token for first-party API endpoints.

    Args:
        scopes: Optional list of accepted scopes (any one is sufficient)

    Example:
        @bp.route("/organizations/<uuid:organization_id>/subscription", methods=["POST"])
        @require_oauth_token(scopes=["api"])
        def update_subscription(organization_id):
            ...
    """
    if scopes is None:
        scopes = []

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token, error = extract_bearer_token()
            if error:
                logger.warning(f"API request rejected: {error}")
                return jsonify({"error": "Unauthorized", "message": error}), 401

            try:
                claims = validate_jwt_token(token)
            except TokenValidationError as e:
                log_auth_attempt("oauth", token, success=False)
                return jsonify({"error": "Unauthorized", "message": str(e)}), 401

            if scopes:
                granted = token_scopes(claims)
                if not any(scope in granted for scope in scopes):
                    logger.warning(f"API request lacks required scopes. Required: {scopes}, Token has: {granted}")
                    return jsonify({
                        "error": "Forbidden",
                        "message": f"Insufficient scope. Required: {', '.join(scopes)}",
                    }), 403

            log_auth_attempt("oauth", token, success=True)
            g.oauth_claims = claims
            g.oauth_client_id = claims.get("client_id") or claims.get("azp")
            return fn(*args, **kwargs)

        return wrapper
    return decorator


def get_oauth_claims() -> Optional[dict]:
    """Full claims of the validated token in the current request."""
    return getattr(g, "oauth_claims", None)


def get_current_user_id() -> Optional[uuid.UUID]:
    """User id from the ``sub`` claim, or None when absent or not a UUID."""
    claims = get_oauth_claims() or {}
    try:
        return uuid.UUID(str(claims.get("sub")))
    except (TypeError, ValueError):
        return None
