"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from tempfile import gettempdir
from typing import Optional


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_bool(var_name: str, default: bool = False) -> bool:
    return os.environ.get(var_name, str(default)).strip().lower() == "true"


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Flask
    secret_key: str
    log_level: str = "INFO"
    app_base_url: str = "https://localhost"

    # Global settings consulted by business rules
    self_hosted: bool = False

    # Persistence
    database_url: str = "sqlite://"

    # Identity (JWT bearer tokens)
    identity_issuer: str = ""
    identity_jwks_url: str = ""

    # SCIM static API key (demo / self-hosted directory connectors)
    scim_static_token: str = ""

    # Audit
    audit_log_dir: str = ".runtime/audit"
    audit_log_signing_key: str = ""

    # Sponsorships
    sponsorship_token_key: str = ""
    sponsorship_offer_ttl_days: int = 5

    # Mail
    mail_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = ""

    @property
    def jwks_url_resolved(self) -> str:
        """JWKS endpoint, derived from the issuer when not configured."""
        if self.identity_jwks_url:
            return self.identity_jwks_url
        return f"{self.identity_issuer.rstrip('/')}/.well-known/openid-configuration/jwks"


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        print(f"[demo-mode] Using default for {var_name}")
        os.environ[var_name] = demo_default
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = _env_bool("DEMO_MODE")

    # Flask secret key
    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key:
        if not demo_mode:
            raise RuntimeError("FLASK_SECRET_KEY not found in /run/secrets or environment")
        secret_key = secrets.token_urlsafe(48)
        os.environ["FLASK_SECRET_KEY"] = secret_key
        print("[demo-mode] Generated temporary FLASK_SECRET_KEY")

    database_url = _get_or_generate(
        "DATABASE_URL",
        demo_default=f"sqlite:///{Path(gettempdir()) / 'orgvault-demo.db'}",
        demo_mode=demo_mode,
    )

    identity_issuer = _get_or_generate(
        "IDENTITY_ISSUER",
        demo_default="http://localhost:33656",
        demo_mode=demo_mode,
    )
    identity_jwks_url = os.environ.get("IDENTITY_JWKS_URL", "")

    scim_static_token = _load_secret_from_file("scim_static_token", "SCIM_STATIC_TOKEN") or ""
    if scim_static_token:
        print(f"[settings] ✓ Loaded SCIM static token (length: {len(scim_static_token)})")

    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""
    if not audit_log_signing_key and demo_mode:
        audit_log_signing_key = os.environ.get("AUDIT_LOG_SIGNING_KEY_DEMO", "demo-audit-signing-key-change-in-production")
        print(f"[demo-mode] Using demo AUDIT_LOG_SIGNING_KEY: {audit_log_signing_key[:20]}...")

    sponsorship_token_key = _load_secret_from_file("sponsorship_token_key", "SPONSORSHIP_TOKEN_KEY")
    if not sponsorship_token_key:
        if not demo_mode:
            raise RuntimeError("SPONSORSHIP_TOKEN_KEY not found in /run/secrets or environment")
        sponsorship_token_key = secrets.token_urlsafe(32)
        print("[demo-mode] Generated temporary SPONSORSHIP_TOKEN_KEY")

    smtp_password = _load_secret_from_file("smtp_password", "SMTP_PASSWORD") or ""
    mail_enabled = _env_bool("MAIL_ENABLED")
    smtp_host = os.environ.get("SMTP_HOST", "")
    if mail_enabled and not smtp_host:
        raise RuntimeError("SMTP_HOST is required when MAIL_ENABLED=true.")

    smtp_user = os.environ.get("SMTP_USER", "")

    cfg = AppConfig(
        demo_mode=demo_mode,
        secret_key=secret_key,
        log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper(),
        app_base_url=os.environ.get("APP_BASE_URL", "https://localhost"),
        self_hosted=_env_bool("GLOBAL_SETTINGS_SELF_HOSTED"),
        database_url=database_url,
        identity_issuer=identity_issuer,
        identity_jwks_url=identity_jwks_url,
        scim_static_token=scim_static_token,
        audit_log_dir=os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"),
        audit_log_signing_key=audit_log_signing_key,
        sponsorship_token_key=sponsorship_token_key,
        sponsorship_offer_ttl_days=int(os.environ.get("SPONSORSHIP_OFFER_TTL_DAYS", "5")),
        mail_enabled=mail_enabled,
        smtp_host=smtp_host,
        smtp_port=int(os.environ.get("SMTP_PORT", "587")),
        smtp_user=smtp_user,
        smtp_password=smtp_password,
        smtp_from=os.environ.get("SMTP_FROM", smtp_user),
    )

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; self_hosted={cfg.self_hosted}; issuer={cfg.identity_issuer}")
    if demo_mode:
        print("[settings] WARNING: Demo credentials in use. Do not deploy with these defaults.")

    return cfg
