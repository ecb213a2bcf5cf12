"""Enumerations shared by entities, policies and events."""
from __future__ import annotations
import enum


class PlanType(enum.IntEnum):
    FREE = 0
    FAMILIES_ANNUALLY_2019 = 1
    TEAMS_MONTHLY_2019 = 2
    TEAMS_ANNUALLY_2019 = 3
    ENTERPRISE_MONTHLY_2019 = 4
    ENTERPRISE_ANNUALLY_2019 = 5
    CUSTOM = 6
    FAMILIES_ANNUALLY = 7
    TEAMS_MONTHLY = 8
    TEAMS_ANNUALLY = 9
    ENTERPRISE_MONTHLY = 10
    ENTERPRISE_ANNUALLY = 11


class ProductTierType(enum.IntEnum):
    FREE = 0
    FAMILIES = 1
    TEAMS = 2
    ENTERPRISE = 3


class OrganizationUserStatusType(enum.IntEnum):
    REVOKED = -1
    INVITED = 0
    ACCEPTED = 1
    CONFIRMED = 2


class OrganizationUserType(enum.IntEnum):
    OWNER = 0
    ADMIN = 1
    USER = 2
    MANAGER = 3
    CUSTOM = 4


class PlanSponsorshipType(enum.IntEnum):
    FAMILIES_FOR_ENTERPRISE = 0


class EventType(enum.IntEnum):
    GROUP_CREATED = 1400
    GROUP_UPDATED = 1401
    GROUP_DELETED = 1402
    ORGANIZATION_UPDATED = 1600


class EventSystemUser(enum.IntEnum):
    """Non-human actor responsible for an event."""

    SCIM = 1
    BILLING_SYNC = 2
