"""Subscription and seat management."""
from .access_policies import AccessPolicyResult, BaseAccessPolicies, OrganizationSubscriptionAccessPolicies
from .commands import AutoAddSeatsCommand, UpdateSubscriptionCommand
from .models import OrganizationUpdate

__all__ = [
    "AccessPolicyResult",
    "BaseAccessPolicies",
    "OrganizationSubscriptionAccessPolicies",
    "AutoAddSeatsCommand",
    "UpdateSubscriptionCommand",
    "OrganizationUpdate",
]
