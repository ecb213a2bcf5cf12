"""Request bodies for the billing endpoints."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional
import uuid

from orgvault.core.exceptions import BadRequestError
from orgvault.core.subscription import OrganizationUpdate


def _require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise BadRequestError("Request body must be a JSON object")
    return payload


def _int_field(payload: dict, name: str, required: bool = False) -> Optional[int]:
    """Read an integer field.

    Raises:
        BadRequestError: If a required field is missing or a value is not an integer
    """
    value = payload.get(name)
    if value is None:
        if required:
            raise BadRequestError(f"{name} is required.")
        return None
    # bool is a subclass of int; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise BadRequestError(f"{name} must be an integer.")
    return value


@dataclass
class OrganizationSubscriptionUpdateRequestModel:
    """Password Manager seat update."""
    seat_adjustment: int
    max_autoscale_seats: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "OrganizationSubscriptionUpdateRequestModel":
        payload = _require_object(payload)
        return cls(
            seat_adjustment=_int_field(payload, "seatAdjustment", required=True),
            max_autoscale_seats=_int_field(payload, "maxAutoscaleSeats"),
        )

    def to_organization_update(self, organization_id: uuid.UUID) -> OrganizationUpdate:
        return OrganizationUpdate(
            organization_id=organization_id,
            seat_adjustment=self.seat_adjustment,
            max_autoscale_seats=self.max_autoscale_seats,
        )


@dataclass
class OrganizationSmSubscriptionUpdateRequestModel:
    """Secrets Manager seat and service account update."""
    seat_adjustment: int
    max_autoscale_seats: Optional[int] = None
    service_accounts_adjustment: Optional[int] = None
    max_autoscale_service_accounts: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "OrganizationSmSubscriptionUpdateRequestModel":
        payload = _require_object(payload)
        return cls(
            seat_adjustment=_int_field(payload, "seatAdjustment", required=True),
            max_autoscale_seats=_int_field(payload, "maxAutoscaleSeats"),
            service_accounts_adjustment=_int_field(payload, "serviceAccountsAdjustment"),
            max_autoscale_service_accounts=_int_field(payload, "maxAutoscaleServiceAccounts"),
        )

    def to_organization_update(self, organization_id: uuid.UUID) -> OrganizationUpdate:
        return OrganizationUpdate(
            organization_id=organization_id,
            seat_adjustment=self.seat_adjustment,
            max_autoscale_seats=self.max_autoscale_seats,
            service_accounts_adjustment=self.service_accounts_adjustment or 0,
            max_autoscale_service_accounts=self.max_autoscale_service_accounts or 0,
        )


@dataclass
class AutoAddSeatsRequestModel:
    seats_to_add: int

    @classmethod
    def from_dict(cls, payload: Any) -> "AutoAddSeatsRequestModel":
        payload = _require_object(payload)
        return cls(seats_to_add=_int_field(payload, "seatsToAdd", required=True))
