"""Pytest shared fixtures."""
import os
import pathlib
import sys
import time
import uuid
from types import SimpleNamespace
from typing import Optional
from unittest.mock import Mock

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DEMO_MODE", "true")

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.backends import default_backend
from authlib.jose import JsonWebKey, jwt as authlib_jwt

from orgvault.api import SERVICES_EXTENSION_KEY
from orgvault.api import decorators
from orgvault.config import AppConfig
from orgvault.core.db import create_engine_from_url, create_session_factory, init_db
from orgvault.core.enums import OrganizationUserStatusType, OrganizationUserType, PlanType
from orgvault.core.mail import MailService
from orgvault.core.models import Organization, OrganizationUser, User
from orgvault.core.services import build_services
from orgvault.flask_app import create_app

TEST_ISSUER = "https://identity.test"
STATIC_SCIM_TOKEN = "static-scim-token-for-tests"


# ─────────────────────────────────────────────────────────────────────────────
# Configuration & Persistence
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app_config(tmp_path):
    return AppConfig(
        demo_mode=True,
        secret_key="test-secret-key",
        log_level="DEBUG",
        app_base_url="https://vault.test",
        self_hosted=False,
        database_url="sqlite://",
        identity_issuer=TEST_ISSUER,
        scim_static_token=STATIC_SCIM_TOKEN,
        audit_log_dir=str(tmp_path / "audit"),
        audit_log_signing_key="test-audit-signing-key",
        sponsorship_token_key="test-sponsorship-token-key",
    )


@pytest.fixture()
def engine():
    engine = create_engine_from_url("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture()
def mail_service():
    return Mock(spec=MailService)


@pytest.fixture()
def domain_services(app_config, session_factory, mail_service):
    """Services container without Flask, for command and query tests."""
    return build_services(app_config, session_factory, mail_service=mail_service)


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def flask_app(app_config, engine, mail_service):
    flask_app = create_app(app_config, engine=engine, mail_service=mail_service)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(flask_app):
    with flask_app.test_client() as client:
        with flask_app.app_context():
            yield client


@pytest.fixture()
def services(flask_app):
    return flask_app.extensions[SERVICES_EXTENSION_KEY]


# ─────────────────────────────────────────────────────────────────────────────
# RSA Key Pair for JWT Testing
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(scope="session")
def rsa_key_pair():
    """Generate RSA key pair for JWT signing in tests."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
        backend=default_backend()
    )

    public_key = private_key.public_key()
    public_pem = public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    )

    return {
        "private_key": private_key,
        "public_key": public_key,
        "public_pem": public_pem,
    }


@pytest.fixture()
def mock_jwks(monkeypatch, rsa_key_pair):
    """Serve the test public key in place of the identity JWKS endpoint."""
    jwk = JsonWebKey.import_key(rsa_key_pair["public_pem"], {"kty": "RSA"})
    signing_key = SimpleNamespace(key=rsa_key_pair["public_key"], key_id="default-key-id", jwk=jwk.as_dict())

    class _JWKSClient:
        def __init__(self):
            self.fetch_count = 0

        def get_signing_key_from_jwt(self, token):
            self.fetch_count += 1
            return signing_key

    jwks_client = _JWKSClient()
    monkeypatch.setattr(decorators, "get_jwks_client", lambda: jwks_client)
    return jwks_client


# ─────────────────────────────────────────────────────────────────────────────
# JWT Token Helpers
# ─────────────────────────────────────────────────────────────────────────────
def create_valid_jwt(
    rsa_key_pair: dict,
    issuer: str = TEST_ISSUER,
    sub: str = "user-123",
    scope: str = "api",
    client_sub: Optional[str] = None,
    exp_offset: int = 3600,
    kid: str = "default-key-id",
) -> str:
    """Create a valid RS256-signed JWT for testing."""
    now = int(time.time())
    header = {"alg": "RS256", "typ": "JWT", "kid": kid}
    payload = {
        "iss": issuer,
        "sub": sub,
        "exp": now + exp_offset,
        "nbf": now,
        "iat": now,
        "scope": scope,
        "client_id": "test-client",
    }
    if client_sub is not None:
        payload["client_sub"] = client_sub

    token = authlib_jwt.encode(header, payload, rsa_key_pair["private_key"])
    return token.decode("utf-8") if isinstance(token, bytes) else token


# ─────────────────────────────────────────────────────────────────────────────
# Domain Helpers
# ─────────────────────────────────────────────────────────────────────────────
def make_organization(repository, **overrides) -> Organization:
    values = {
        "id": uuid.uuid4(),
        "name": "Acme",
        "billing_email": "billing@acme.test",
        "plan": "Enterprise (Annually)",
        "plan_type": int(PlanType.ENTERPRISE_ANNUALLY),
        "seats": 10,
        "use_groups": True,
        "use_scim": True,
    }
    values.update(overrides)
    return repository.create(Organization(**values))


def make_member(
    services,
    organization: Organization,
    email: str = "member@acme.test",
    status: OrganizationUserStatusType = OrganizationUserStatusType.CONFIRMED,
    user_type: OrganizationUserType = OrganizationUserType.USER,
) -> OrganizationUser:
    user = services.user_repository.create(User(id=uuid.uuid4(), email=email, name=email.split("@")[0]))
    return services.organization_user_repository.create(OrganizationUser(
        id=uuid.uuid4(),
        organization_id=organization.id,
        user_id=user.id,
        email=email,
        status=int(status),
        type=int(user_type),
    ))
