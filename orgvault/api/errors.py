"""Error handlers for the application."""
from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from orgvault.core.exceptions import DomainError
from orgvault.core.scim.models import ScimErrorResponseModel

SCIM_PATH_PREFIX = "/v2/"


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        return error_response(error.status, error.title, error.detail)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return error_response(error.code or 500, error.name, error.description or error.name)

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return error_response(500, "Internal Server Error", "An unexpected error occurred")


def error_response(status: int, title: str, detail: str):
    """Build a JSON error body; SCIM routes get the SCIM error schema."""
    if _is_scim_request():
        return jsonify(ScimErrorResponseModel(status, detail).to_dict()), status
    return jsonify({"error": title, "message": detail}), status


def _is_scim_request() -> bool:
    return request.path.startswith(SCIM_PATH_PREFIX)
