"""Domain exceptions mapped to HTTP status codes by the API error handlers."""
from __future__ import annotations
from typing import Optional


class DomainError(Exception):
    """Base exception for all service-layer failures.

    Attributes:
        status: HTTP status code the error maps to
        detail: Human-readable message returned to the client
    """

    status = 500
    title = "Internal Server Error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail()
        super().__init__(self.detail)

    @classmethod
    def default_detail(cls) -> str:
        return cls.title


class BadRequestError(DomainError):
    """Request is well-formed HTTP but violates a business rule."""

    status = 400
    title = "Bad Request"


class NotFoundError(DomainError):
    """Resource does not exist or is not visible to the caller."""

    status = 404
    title = "Not Found"

    @classmethod
    def default_detail(cls) -> str:
        return "Resource not found."


class ConflictError(DomainError):
    """Resource already exists (e.g. duplicate externalId)."""

    status = 409
    title = "Conflict"
