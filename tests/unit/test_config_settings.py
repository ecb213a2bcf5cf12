import pytest

from orgvault.config import settings
from orgvault.config.settings import _get_or_generate

CONFIG_ENV_VARS = [
    "DEMO_MODE",
    "FLASK_SECRET_KEY",
    "DATABASE_URL",
    "IDENTITY_ISSUER",
    "IDENTITY_JWKS_URL",
    "SCIM_STATIC_TOKEN",
    "AUDIT_LOG_SIGNING_KEY",
    "SPONSORSHIP_TOKEN_KEY",
    "MAIL_ENABLED",
    "SMTP_HOST",
    "GLOBAL_SETTINGS_SELF_HOSTED",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    # Point the Docker secrets directory at an empty temp dir
    real_path = settings.Path

    def fake_path(target, *args):
        if str(target) == "/run/secrets":
            return tmp_path
        return real_path(target, *args)

    monkeypatch.setattr(settings, "Path", fake_path)
    return tmp_path


def make_config(**overrides):
    base = dict(
        demo_mode=False,
        secret_key="secret",
        identity_issuer="https://identity.example",
    )
    base.update(overrides)
    return settings.AppConfig(**base)


def test_jwks_url_derived_from_issuer():
    cfg = make_config(identity_issuer="https://identity.example/")
    assert cfg.jwks_url_resolved == "https://identity.example/.well-known/openid-configuration/jwks"


def test_jwks_url_explicit_value_wins():
    cfg = make_config(identity_jwks_url="https://keys.example/jwks")
    assert cfg.jwks_url_resolved == "https://keys.example/jwks"


def test_get_or_generate_demo_default(monkeypatch):
    assert _get_or_generate("IDENTITY_ISSUER", demo_default="http://demo", demo_mode=True) == "http://demo"


def test_get_or_generate_production_requires_value():
    with pytest.raises(RuntimeError, match="IDENTITY_ISSUER"):
        _get_or_generate("IDENTITY_ISSUER", demo_default="http://demo", demo_mode=False)


def test_get_or_generate_optional_returns_empty():
    assert _get_or_generate("IDENTITY_ISSUER", required=False) == ""


def test_load_settings_demo_mode(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")

    cfg = settings.load_settings()

    assert cfg.demo_mode is True
    assert cfg.secret_key
    assert cfg.sponsorship_token_key
    assert cfg.audit_log_signing_key
    assert cfg.identity_issuer == "http://localhost:33656"
    assert cfg.database_url.startswith("sqlite:///")
    assert cfg.self_hosted is False


def test_load_settings_production_requires_secret_key():
    with pytest.raises(RuntimeError, match="FLASK_SECRET_KEY"):
        settings.load_settings()


def test_load_settings_production_requires_sponsorship_key(monkeypatch):
    monkeypatch.setenv("FLASK_SECRET_KEY", "prod-secret")
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/orgvault")
    monkeypatch.setenv("IDENTITY_ISSUER", "https://identity.example")

    with pytest.raises(RuntimeError, match="SPONSORSHIP_TOKEN_KEY"):
        settings.load_settings()


def test_load_settings_production(monkeypatch):
    monkeypatch.setenv("FLASK_SECRET_KEY", "prod-secret")
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/orgvault")
    monkeypatch.setenv("IDENTITY_ISSUER", "https://identity.example")
    monkeypatch.setenv("SPONSORSHIP_TOKEN_KEY", "sponsor-key")
    monkeypatch.setenv("GLOBAL_SETTINGS_SELF_HOSTED", "true")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = settings.load_settings()

    assert cfg.demo_mode is False
    assert cfg.secret_key == "prod-secret"
    assert cfg.database_url == "postgresql://db/orgvault"
    assert cfg.self_hosted is True
    assert cfg.log_level == "DEBUG"
    assert cfg.mail_enabled is False


def test_secret_file_takes_precedence(monkeypatch, clean_env):
    (clean_env / "flask_secret_key").write_text("from-file\n")
    monkeypatch.setenv("FLASK_SECRET_KEY", "from-env")
    monkeypatch.setenv("DEMO_MODE", "true")

    cfg = settings.load_settings()

    assert cfg.secret_key == "from-file"


def test_mail_enabled_requires_smtp_host(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")
    monkeypatch.setenv("MAIL_ENABLED", "true")

    with pytest.raises(RuntimeError, match="SMTP_HOST"):
        settings.load_settings()
