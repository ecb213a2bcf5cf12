"""Signed tokens embedded in sponsorship offer emails."""
from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from jwt.exceptions import InvalidTokenError

from orgvault.core.exceptions import BadRequestError
from orgvault.core.models import OrganizationSponsorship

TOKEN_PURPOSE = "families-for-enterprise-offer"


class SponsorshipOfferTokenizer:
    """HS256 JWT binding a sponsorship id to the offered email address."""

    def __init__(self, signing_key: str, ttl_days: int = 5):
        if not signing_key:
            raise ValueError("Sponsorship token signing key must not be empty")
        self._signing_key = signing_key
        self._ttl = timedelta(days=ttl_days)

    def generate(self, sponsorship: OrganizationSponsorship) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "purpose": TOKEN_PURPOSE,
            "sponsorship_id": str(sponsorship.id),
            "email": sponsorship.offered_to_email,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(claims, self._signing_key, algorithm="HS256")

    def validate(self, token: str) -> Dict[str, Any]:
        try:
            claims = jwt.decode(token, self._signing_key, algorithms=["HS256"], options={"require": ["exp"]})
        except InvalidTokenError as exc:
            raise BadRequestError(f"Invalid sponsorship offer token: {exc}")
        if claims.get("purpose") != TOKEN_PURPOSE:
            raise BadRequestError("Invalid sponsorship offer token: wrong purpose")
        return claims
