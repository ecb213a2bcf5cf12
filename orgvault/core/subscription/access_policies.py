"""Seat and autoscale rules for organization subscriptions.

Policies never raise: they return an :class:`AccessPolicyResult` whose
``reason`` is a human-readable message suitable for the client. Commands
decide whether a failed result becomes a ``BadRequestError``.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from orgvault.core.models import Organization
from orgvault.core.plans import get_plan


@dataclass(frozen=True)
class AccessPolicyResult:
    permitted: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.permitted


class BaseAccessPolicies:
    """Shared helpers plus per-policy overrides.

    ``permission_overrides`` maps a policy method name (e.g. ``"can_scale"``)
    to a fixed result, which the policy returns before evaluating any rule.
    """

    success = AccessPolicyResult(True)

    def __init__(self):
        self.permission_overrides: dict[str, AccessPolicyResult] = {}

    @staticmethod
    def fail(reason: str) -> AccessPolicyResult:
        return AccessPolicyResult(False, reason)

    def _override(self, policy_name: str) -> Optional[AccessPolicyResult]:
        return self.permission_overrides.get(policy_name)


class OrganizationSubscriptionAccessPolicies(BaseAccessPolicies):
    def __init__(self, global_settings):
        super().__init__()
        self._global_settings = global_settings

    def can_scale(self, organization: Organization, seats_to_add: int) -> AccessPolicyResult:
        """Check whether ``seats_to_add`` seats may be added automatically."""
        override = self._override("can_scale")
        if override is not None:
            return override

        if seats_to_add < 1:
            return self.success

        if self._global_settings.self_hosted:
            return self.fail("Cannot autoscale on self-hosted instance.")

        if (
            organization.seats is not None
            and organization.max_autoscale_seats is not None
            and organization.max_autoscale_seats < organization.seats + seats_to_add
        ):
            return self.fail("Cannot invite new users. Seat limit has been reached.")

        return self.success

    def can_adjust_seats(
        self, organization: Organization, seat_adjustment: int, current_user_count: int
    ) -> AccessPolicyResult:
        """Check a manual seat adjustment against the plan and current usage."""
        override = self._override("can_adjust_seats")
        if override is not None:
            return override

        if organization.seats is None:
            return self.fail("Organization has no seat limit, no need to adjust seats")

        if not (organization.gateway_customer_id or "").strip():
            return self.fail("No payment method found.")

        if not (organization.gateway_subscription_id or "").strip():
            return self.fail("No subscription found.")

        plan = get_plan(organization.plan_type)
        if plan is None:
            return self.fail("Existing plan not found.")

        if not plan.has_additional_seats_option:
            return self.fail("Plan does not allow additional seats.")

        new_seat_total = organization.seats + seat_adjustment
        if plan.base_seats > new_seat_total:
            return self.fail(f"Plan has a minimum of {plan.base_seats} seats.")

        if new_seat_total <= 0:
            return self.fail("You must have at least 1 seat.")

        additional_seats = new_seat_total - plan.base_seats
        if plan.max_additional_seats is not None and additional_seats > plan.max_additional_seats:
            return self.fail(
                "Organization plan allows a maximum of "
                f"{plan.max_additional_seats} additional seats."
            )

        if organization.seats > new_seat_total and current_user_count > new_seat_total:
            return self.fail(
                f"Your organization currently has {current_user_count} seats filled. "
                f"Your new plan only has ({new_seat_total}) seats. Remove some users."
            )

        return self.success
