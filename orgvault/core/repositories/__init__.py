"""Data-access abstractions and their SQLAlchemy implementations."""
from .base import (
    EventRepository,
    GroupRepository,
    OrganizationRepository,
    OrganizationSponsorshipRepository,
    OrganizationUserRepository,
    UserRepository,
)
from .sql import (
    SqlEventRepository,
    SqlGroupRepository,
    SqlOrganizationRepository,
    SqlOrganizationSponsorshipRepository,
    SqlOrganizationUserRepository,
    SqlUserRepository,
)

__all__ = [
    "EventRepository",
    "GroupRepository",
    "OrganizationRepository",
    "OrganizationSponsorshipRepository",
    "OrganizationUserRepository",
    "UserRepository",
    "SqlEventRepository",
    "SqlGroupRepository",
    "SqlOrganizationRepository",
    "SqlOrganizationSponsorshipRepository",
    "SqlOrganizationUserRepository",
    "SqlUserRepository",
]
