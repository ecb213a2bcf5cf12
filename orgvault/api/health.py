"""Health check endpoints."""
import logging

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

bp = Blueprint("health", __name__)

logger = logging.getLogger(__name__)

ENGINE_EXTENSION_KEY = "orgvault.engine"


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness check: the database must answer a trivial query."""
    engine = current_app.extensions[ENGINE_EXTENSION_KEY]
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error(f"Readiness check failed: {exc}")
        return ("database unavailable", 503, {"Content-Type": "text/plain"})
    return ("ready", 200, {"Content-Type": "text/plain"})
