"""Static plan catalog.

Seat rules consulted by the subscription access policies live here. The
``Custom`` plan type intentionally has no entry: custom organizations are
managed by hand and cannot adjust seats through the API.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from orgvault.core.enums import PlanType, ProductTierType


@dataclass(frozen=True)
class Plan:
    type: PlanType
    product: ProductTierType
    name: str
    base_seats: int = 0
    has_additional_seats_option: bool = False
    max_additional_seats: Optional[int] = None
    max_users: Optional[int] = None
    is_annual: bool = False
    disabled: bool = False
    legacy_year: Optional[int] = None

    # Secrets Manager
    supports_secrets_manager: bool = False
    base_sm_seats: int = 0
    has_additional_sm_seats_option: bool = False
    max_additional_sm_seats: Optional[int] = None
    base_service_accounts: int = 0
    has_additional_service_account_option: bool = False
    max_additional_service_accounts: Optional[int] = None


PLANS: list[Plan] = [
    Plan(
        type=PlanType.FREE,
        product=ProductTierType.FREE,
        name="Free",
        base_seats=2,
        max_users=2,
        supports_secrets_manager=True,
        base_sm_seats=2,
        base_service_accounts=3,
    ),
    Plan(
        type=PlanType.FAMILIES_ANNUALLY_2019,
        product=ProductTierType.FAMILIES,
        name="Families 2019",
        base_seats=5,
        is_annual=True,
        legacy_year=2020,
    ),
    Plan(
        type=PlanType.TEAMS_MONTHLY_2019,
        product=ProductTierType.TEAMS,
        name="Teams (Monthly) 2019",
        base_seats=5,
        has_additional_seats_option=True,
        legacy_year=2020,
    ),
    Plan(
        type=PlanType.TEAMS_ANNUALLY_2019,
        product=ProductTierType.TEAMS,
        name="Teams (Annually) 2019",
        base_seats=5,
        has_additional_seats_option=True,
        is_annual=True,
        legacy_year=2020,
    ),
    Plan(
        type=PlanType.ENTERPRISE_MONTHLY_2019,
        product=ProductTierType.ENTERPRISE,
        name="Enterprise (Monthly) 2019",
        has_additional_seats_option=True,
        legacy_year=2020,
    ),
    Plan(
        type=PlanType.ENTERPRISE_ANNUALLY_2019,
        product=ProductTierType.ENTERPRISE,
        name="Enterprise (Annually) 2019",
        has_additional_seats_option=True,
        is_annual=True,
        legacy_year=2020,
    ),
    Plan(
        type=PlanType.FAMILIES_ANNUALLY,
        product=ProductTierType.FAMILIES,
        name="Families",
        base_seats=6,
        max_users=6,
        is_annual=True,
    ),
    Plan(
        type=PlanType.TEAMS_MONTHLY,
        product=ProductTierType.TEAMS,
        name="Teams (Monthly)",
        has_additional_seats_option=True,
        supports_secrets_manager=True,
        has_additional_sm_seats_option=True,
        base_service_accounts=20,
        has_additional_service_account_option=True,
    ),
    Plan(
        type=PlanType.TEAMS_ANNUALLY,
        product=ProductTierType.TEAMS,
        name="Teams (Annually)",
        has_additional_seats_option=True,
        is_annual=True,
        supports_secrets_manager=True,
        has_additional_sm_seats_option=True,
        base_service_accounts=20,
        has_additional_service_account_option=True,
    ),
    Plan(
        type=PlanType.ENTERPRISE_MONTHLY,
        product=ProductTierType.ENTERPRISE,
        name="Enterprise (Monthly)",
        has_additional_seats_option=True,
        supports_secrets_manager=True,
        has_additional_sm_seats_option=True,
        base_service_accounts=50,
        has_additional_service_account_option=True,
    ),
    Plan(
        type=PlanType.ENTERPRISE_ANNUALLY,
        product=ProductTierType.ENTERPRISE,
        name="Enterprise (Annually)",
        has_additional_seats_option=True,
        is_annual=True,
        supports_secrets_manager=True,
        has_additional_sm_seats_option=True,
        base_service_accounts=50,
        has_additional_service_account_option=True,
    ),
]


def get_plan(plan_type) -> Optional[Plan]:
    """Return the first catalog plan matching ``plan_type``, or None."""
    return next((plan for plan in PLANS if plan.type == plan_type), None)
