"""Subscription update commands.

Each command loads the organization, evaluates the access policies and the
plan catalog, and persists the new seat counters. Payment gateway
synchronisation is out of scope; the stored counters are the source of truth
for the rest of the service.
"""
from __future__ import annotations
import logging
from typing import Optional
import uuid

from orgvault.core.enums import EventType
from orgvault.core.events import EventService
from orgvault.core.exceptions import BadRequestError, NotFoundError
from orgvault.core.models import Organization
from orgvault.core.plans import Plan, get_plan
from orgvault.core.repositories import OrganizationRepository, OrganizationUserRepository
from orgvault.core.subscription.access_policies import OrganizationSubscriptionAccessPolicies
from orgvault.core.subscription.models import OrganizationUpdate

logger = logging.getLogger(__name__)


class UpdateSubscriptionCommand:
    def __init__(
        self,
        organization_repository: OrganizationRepository,
        organization_user_repository: OrganizationUserRepository,
        access_policies: OrganizationSubscriptionAccessPolicies,
        event_service: EventService,
        global_settings,
    ):
        self._organization_repository = organization_repository
        self._organization_user_repository = organization_user_repository
        self._access_policies = access_policies
        self._event_service = event_service
        self._global_settings = global_settings

    def _get_organization(self, organization_id: uuid.UUID) -> Organization:
        organization = self._organization_repository.get_by_id(organization_id)
        if organization is None:
            raise NotFoundError("Organization not found.")
        return organization

    def update_password_manager_subscription(
        self, update: OrganizationUpdate, acting_user_id: Optional[uuid.UUID] = None
    ) -> Organization:
        organization = self._get_organization(update.organization_id)

        if update.seat_adjustment != 0:
            occupied = self._organization_user_repository.get_occupied_seat_count_by_organization_id(organization.id)
            result = self._access_policies.can_adjust_seats(organization, update.seat_adjustment, occupied)
            if not result.permitted:
                raise BadRequestError(result.reason)

        new_seats = organization.seats + update.seat_adjustment if organization.seats is not None else None
        plan = get_plan(organization.plan_type)
        self._validate_seat_autoscaling(plan, new_seats, update.max_autoscale_seats)

        organization.seats = new_seats
        organization.max_autoscale_seats = update.max_autoscale_seats
        self._organization_repository.replace(organization)
        self._event_service.log_organization_event(
            organization, EventType.ORGANIZATION_UPDATED, acting_user_id=acting_user_id
        )
        logger.info(
            "Password Manager subscription updated for %s: seats=%s max_autoscale_seats=%s",
            organization.id,
            organization.seats,
            organization.max_autoscale_seats,
        )
        return organization

    def _validate_seat_autoscaling(
        self, plan: Optional[Plan], new_seats: Optional[int], max_autoscale_seats: Optional[int]
    ) -> None:
        if max_autoscale_seats is None:
            return

        if self._global_settings.self_hosted:
            raise BadRequestError("Cannot set max seat autoscaling on self-hosted instance.")

        if new_seats is not None and new_seats > max_autoscale_seats:
            raise BadRequestError("Cannot set max seat autoscaling below seat count.")

        if plan is None:
            raise BadRequestError("Existing plan not found.")

        if not plan.has_additional_seats_option:
            raise BadRequestError("Your plan does not allow seat autoscaling.")

        if plan.max_users is not None and max_autoscale_seats > plan.max_users:
            raise BadRequestError(
                f"Your plan has a seat limit of {plan.max_users}, but you have specified a max "
                f"autoscale count of {max_autoscale_seats}. Reduce your max autoscale seat count."
            )

    def update_secrets_manager_subscription(
        self, update: OrganizationUpdate, acting_user_id: Optional[uuid.UUID] = None
    ) -> Organization:
        organization = self._get_organization(update.organization_id)

        if not organization.use_secrets_manager:
            raise BadRequestError("Organization has no access to Secrets Manager.")

        plan = get_plan(organization.plan_type)
        if plan is None:
            raise BadRequestError("Existing plan not found.")
        if not plan.supports_secrets_manager:
            raise BadRequestError("Plan does not support Secrets Manager.")

        if update.seat_adjustment != 0 or update.service_accounts_adjustment != 0:
            if not (organization.gateway_customer_id or "").strip():
                raise BadRequestError("No payment method found.")
            if not (organization.gateway_subscription_id or "").strip():
                raise BadRequestError("No subscription found.")

        new_sm_seats = self._adjusted_sm_seats(organization, plan, update.seat_adjustment)
        self._validate_sm_seat_autoscaling(plan, new_sm_seats, update.max_autoscale_seats)

        new_service_accounts = self._adjusted_service_accounts(organization, plan, update.service_accounts_adjustment)
        # A zero limit from the request model means "no limit".
        max_service_accounts = update.max_autoscale_service_accounts or None
        self._validate_service_account_autoscaling(plan, new_service_accounts, max_service_accounts)

        organization.sm_seats = new_sm_seats
        organization.max_autoscale_sm_seats = update.max_autoscale_seats
        organization.sm_service_accounts = new_service_accounts
        organization.max_autoscale_sm_service_accounts = max_service_accounts
        self._organization_repository.replace(organization)
        self._event_service.log_organization_event(
            organization, EventType.ORGANIZATION_UPDATED, acting_user_id=acting_user_id
        )
        logger.info(
            "Secrets Manager subscription updated for %s: sm_seats=%s service_accounts=%s",
            organization.id,
            organization.sm_seats,
            organization.sm_service_accounts,
        )
        return organization

    def _validate_sm_seat_autoscaling(
        self, plan: Plan, new_sm_seats: Optional[int], max_autoscale_sm_seats: Optional[int]
    ) -> None:
        if max_autoscale_sm_seats is None:
            return

        if self._global_settings.self_hosted:
            raise BadRequestError("Cannot set max seat autoscaling on self-hosted instance.")

        if new_sm_seats is not None and new_sm_seats > max_autoscale_sm_seats:
            raise BadRequestError("Cannot set max Secrets Manager seat autoscaling below seat count.")

        if not plan.has_additional_sm_seats_option:
            raise BadRequestError("Your plan does not allow Secrets Manager seat autoscaling.")

        if plan.max_additional_sm_seats is not None:
            seat_limit = plan.base_sm_seats + plan.max_additional_sm_seats
            if max_autoscale_sm_seats > seat_limit:
                raise BadRequestError(
                    f"Your plan has a Secrets Manager seat limit of {seat_limit}, but you have specified a max "
                    f"autoscale count of {max_autoscale_sm_seats}. Reduce your max autoscale count."
                )

    def _validate_service_account_autoscaling(
        self, plan: Plan, new_service_accounts: Optional[int], max_service_accounts: Optional[int]
    ) -> None:
        if max_service_accounts is None:
            return

        if self._global_settings.self_hosted:
            raise BadRequestError("Cannot set max service accounts autoscaling on self-hosted instance.")

        if new_service_accounts is not None and new_service_accounts > max_service_accounts:
            raise BadRequestError("Cannot set max service accounts autoscaling below service account amount.")

        if not plan.has_additional_service_account_option:
            raise BadRequestError("Your plan does not allow service accounts autoscaling.")

        if plan.max_additional_service_accounts is not None:
            limit = plan.base_service_accounts + plan.max_additional_service_accounts
            if max_service_accounts > limit:
                raise BadRequestError(
                    f"Your plan has a service account limit of {limit}, but you have specified a max "
                    f"autoscale count of {max_service_accounts}. Reduce your max autoscale count."
                )

    @staticmethod
    def _adjusted_sm_seats(organization: Organization, plan: Plan, seat_adjustment: int) -> Optional[int]:
        if seat_adjustment == 0:
            return organization.sm_seats

        if organization.sm_seats is None:
            raise BadRequestError("Organization has no Secrets Manager seat limit, no need to adjust seats")

        if not plan.has_additional_sm_seats_option:
            raise BadRequestError("Plan does not allow additional Secrets Manager seats.")

        new_total = organization.sm_seats + seat_adjustment
        if plan.base_sm_seats > new_total:
            raise BadRequestError(f"Plan has a minimum of {plan.base_sm_seats} Secrets Manager seats.")

        if new_total <= 0:
            raise BadRequestError("You must have at least 1 Secrets Manager seat.")

        additional = new_total - plan.base_sm_seats
        if plan.max_additional_sm_seats is not None and additional > plan.max_additional_sm_seats:
            raise BadRequestError(
                "Organization plan allows a maximum of "
                f"{plan.max_additional_sm_seats} additional Secrets Manager seats."
            )

        if organization.seats is not None and new_total > organization.seats:
            raise BadRequestError("You cannot have more Secrets Manager seats than Password Manager seats.")

        return new_total

    @staticmethod
    def _adjusted_service_accounts(
        organization: Organization, plan: Plan, adjustment: int
    ) -> Optional[int]:
        if adjustment == 0:
            return organization.sm_service_accounts

        if organization.sm_service_accounts is None:
            raise BadRequestError("Organization has no service accounts limit, no need to adjust service accounts")

        if not plan.has_additional_service_account_option:
            raise BadRequestError("Plan does not allow additional service accounts.")

        new_total = organization.sm_service_accounts + adjustment
        if new_total < 0:
            raise BadRequestError("Cannot use a negative number of service accounts.")

        if plan.base_service_accounts > new_total:
            raise BadRequestError(f"Plan has a minimum of {plan.base_service_accounts} service accounts.")

        additional = new_total - plan.base_service_accounts
        if plan.max_additional_service_accounts is not None and additional > plan.max_additional_service_accounts:
            raise BadRequestError(
                "Organization plan allows a maximum of "
                f"{plan.max_additional_service_accounts} additional service accounts."
            )

        return new_total


class AutoAddSeatsCommand:
    """Grows the seat count when new members need seats, within autoscale limits."""

    def __init__(
        self,
        organization_repository: OrganizationRepository,
        access_policies: OrganizationSubscriptionAccessPolicies,
        event_service: EventService,
    ):
        self._organization_repository = organization_repository
        self._access_policies = access_policies
        self._event_service = event_service

    def auto_add_seats(
        self, organization: Organization, seats_to_add: int, acting_user_id: Optional[uuid.UUID] = None
    ) -> Organization:
        result = self._access_policies.can_scale(organization, seats_to_add)
        if not result.permitted:
            raise BadRequestError(result.reason)

        if seats_to_add < 1 or organization.seats is None:
            return organization

        organization.seats = organization.seats + seats_to_add
        self._organization_repository.replace(organization)
        self._event_service.log_organization_event(
            organization, EventType.ORGANIZATION_UPDATED, acting_user_id=acting_user_id
        )
        logger.info("Autoscaled %s by %d seats (now %d)", organization.id, seats_to_add, organization.seats)
        return organization
