"""Repository interfaces.

Commands and queries depend only on these abstractions; the SQLAlchemy
implementations live in :mod:`orgvault.core.repositories.sql`.
"""
from __future__ import annotations
import uuid
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from orgvault.core.models import (
    Event,
    Group,
    Organization,
    OrganizationSponsorship,
    OrganizationUser,
    User,
)


class OrganizationRepository(ABC):
    @abstractmethod
    def get_by_id(self, organization_id: uuid.UUID) -> Optional[Organization]: ...

    @abstractmethod
    def create(self, organization: Organization) -> Organization: ...

    @abstractmethod
    def replace(self, organization: Organization) -> None: ...


class GroupRepository(ABC):
    @abstractmethod
    def get_by_id(self, group_id: uuid.UUID) -> Optional[Group]: ...

    @abstractmethod
    def get_many_by_organization_id(self, organization_id: uuid.UUID) -> list[Group]: ...

    @abstractmethod
    def get_many_user_ids_by_id(self, group_id: uuid.UUID) -> list[uuid.UUID]: ...

    @abstractmethod
    def create(self, group: Group) -> Group: ...

    @abstractmethod
    def replace(self, group: Group) -> None: ...

    @abstractmethod
    def delete(self, group: Group) -> None: ...

    @abstractmethod
    def update_users(self, group_id: uuid.UUID, organization_user_ids: Iterable[uuid.UUID]) -> None:
        """Replace the full member set of a group."""

    @abstractmethod
    def add_group_users_by_id(self, group_id: uuid.UUID, organization_user_ids: Iterable[uuid.UUID]) -> None: ...

    @abstractmethod
    def delete_user(self, group_id: uuid.UUID, organization_user_id: uuid.UUID) -> None: ...


class OrganizationUserRepository(ABC):
    @abstractmethod
    def get_by_id(self, organization_user_id: uuid.UUID) -> Optional[OrganizationUser]: ...

    @abstractmethod
    def get_by_organization(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> Optional[OrganizationUser]: ...

    @abstractmethod
    def get_many_by_organization(self, organization_id: uuid.UUID) -> list[OrganizationUser]: ...

    @abstractmethod
    def get_occupied_seat_count_by_organization_id(self, organization_id: uuid.UUID) -> int:
        """Count organization users that occupy a seat (everyone not revoked)."""

    @abstractmethod
    def create(self, organization_user: OrganizationUser) -> OrganizationUser: ...


class UserRepository(ABC):
    @abstractmethod
    def get_by_id(self, user_id: uuid.UUID) -> Optional[User]: ...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def create(self, user: User) -> User: ...


class OrganizationSponsorshipRepository(ABC):
    @abstractmethod
    def get_by_sponsoring_organization_user_id(
        self, organization_user_id: uuid.UUID
    ) -> Optional[OrganizationSponsorship]: ...

    @abstractmethod
    def create(self, sponsorship: OrganizationSponsorship) -> OrganizationSponsorship: ...


class EventRepository(ABC):
    @abstractmethod
    def create(self, event: Event) -> Event: ...

    @abstractmethod
    def get_many_by_organization(self, organization_id: uuid.UUID) -> list[Event]: ...
