"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, persistence and configuration.
"""
from __future__ import annotations
import logging
from typing import Optional

from flask import Flask
from sqlalchemy.engine import Engine
from werkzeug.middleware.proxy_fix import ProxyFix

from orgvault.api import SERVICES_EXTENSION_KEY
from orgvault.config import AppConfig, load_settings
from orgvault.core.db import create_engine_from_url, create_session_factory, init_db
from orgvault.core.mail import MailService
from orgvault.core.services import build_services

JSON_MAX_SIZE_BYTES = 65536  # 64 KB


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    cfg: Optional[AppConfig] = None,
    engine: Optional[Engine] = None,
    mail_service: Optional[MailService] = None,
) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings; loaded from the environment when omitted
        engine: SQLAlchemy engine; built from ``cfg.database_url`` when omitted
        mail_service: Mail transport override (tests, demo)
    """
    cfg = cfg or load_settings()
    _configure_logging(cfg.log_level)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["SECRET_KEY"] = cfg.secret_key
    app.config["MAX_CONTENT_LENGTH"] = JSON_MAX_SIZE_BYTES

    # Trust X-Forwarded-* headers from the reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    engine = engine or create_engine_from_url(cfg.database_url)
    init_db(engine)
    session_factory = create_session_factory(engine)

    from orgvault.api import billing, errors, health, scim_groups, sponsorships

    app.extensions[health.ENGINE_EXTENSION_KEY] = engine
    app.extensions[SERVICES_EXTENSION_KEY] = build_services(cfg, session_factory, mail_service=mail_service)

    # Register blueprints
    app.register_blueprint(health.bp)
    app.register_blueprint(scim_groups.bp)
    app.register_blueprint(billing.bp)
    app.register_blueprint(sponsorships.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    print(f"[flask_app] Mode={mode_label}")
    print("[flask_app] SCIM 2.0 Groups API registered at /v2/<organization_id>/groups")

    if cfg.demo_mode:
        print("[flask_app] WARNING: Demo mode active - do not deploy with demo credentials")

    return app


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger().setLevel(level)
