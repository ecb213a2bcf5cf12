"""Domain commands for subscription changes."""
from __future__ import annotations
import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class OrganizationUpdate:
    organization_id: uuid.UUID
    seat_adjustment: int = 0
    max_autoscale_seats: Optional[int] = None
    service_accounts_adjustment: int = 0
    max_autoscale_service_accounts: Optional[int] = None
