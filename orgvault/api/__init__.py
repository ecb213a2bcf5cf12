"""HTTP layer: Flask blueprints, auth decorators and error handlers."""
from __future__ import annotations

from flask import current_app

from orgvault.core.services import Services

SERVICES_EXTENSION_KEY = "orgvault.services"


def get_services() -> Services:
    """Return the dependency container registered by ``create_app``."""
    return current_app.extensions[SERVICES_EXTENSION_KEY]
