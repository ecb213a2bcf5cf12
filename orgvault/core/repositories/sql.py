"""SQLAlchemy-backed repository implementations.

Each call opens a short-lived session from the injected factory and commits
on success, so repositories hold no per-request state.
"""
from __future__ import annotations
import uuid
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, sessionmaker

from orgvault.core.enums import OrganizationUserStatusType
from orgvault.core.models import (
    Event,
    Group,
    GroupUser,
    Organization,
    OrganizationSponsorship,
    OrganizationUser,
    User,
    utcnow,
)
from orgvault.core.repositories import base


class _SqlRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._session_factory() as session:
            with session.begin():
                yield session

    def _add(self, entity):
        with self._session() as session:
            session.add(entity)
        return entity

    def _merge(self, entity) -> None:
        with self._session() as session:
            session.merge(entity)


class SqlOrganizationRepository(_SqlRepository, base.OrganizationRepository):
    def get_by_id(self, organization_id: uuid.UUID) -> Optional[Organization]:
        with self._session() as session:
            return session.get(Organization, organization_id)

    def create(self, organization: Organization) -> Organization:
        return self._add(organization)

    def replace(self, organization: Organization) -> None:
        organization.revision_date = utcnow()
        self._merge(organization)


class SqlGroupRepository(_SqlRepository, base.GroupRepository):
    def get_by_id(self, group_id: uuid.UUID) -> Optional[Group]:
        with self._session() as session:
            return session.get(Group, group_id)

    def get_many_by_organization_id(self, organization_id: uuid.UUID) -> list[Group]:
        with self._session() as session:
            stmt = select(Group).where(Group.organization_id == organization_id)
            return list(session.scalars(stmt))

    def get_many_user_ids_by_id(self, group_id: uuid.UUID) -> list[uuid.UUID]:
        with self._session() as session:
            stmt = select(GroupUser.organization_user_id).where(GroupUser.group_id == group_id)
            return list(session.scalars(stmt))

    def create(self, group: Group) -> Group:
        return self._add(group)

    def replace(self, group: Group) -> None:
        group.revision_date = utcnow()
        self._merge(group)

    def delete(self, group: Group) -> None:
        with self._session() as session:
            session.execute(delete(GroupUser).where(GroupUser.group_id == group.id))
            session.execute(delete(Group).where(Group.id == group.id))

    def update_users(self, group_id: uuid.UUID, organization_user_ids: Iterable[uuid.UUID]) -> None:
        wanted = set(organization_user_ids)
        with self._session() as session:
            current = set(
                session.scalars(select(GroupUser.organization_user_id).where(GroupUser.group_id == group_id))
            )
            to_remove = current - wanted
            if to_remove:
                session.execute(
                    delete(GroupUser).where(
                        GroupUser.group_id == group_id,
                        GroupUser.organization_user_id.in_(list(to_remove)),
                    )
                )
            for organization_user_id in wanted - current:
                session.add(GroupUser(group_id=group_id, organization_user_id=organization_user_id))

    def add_group_users_by_id(self, group_id: uuid.UUID, organization_user_ids: Iterable[uuid.UUID]) -> None:
        with self._session() as session:
            current = set(
                session.scalars(select(GroupUser.organization_user_id).where(GroupUser.group_id == group_id))
            )
            for organization_user_id in set(organization_user_ids) - current:
                session.add(GroupUser(group_id=group_id, organization_user_id=organization_user_id))

    def delete_user(self, group_id: uuid.UUID, organization_user_id: uuid.UUID) -> None:
        with self._session() as session:
            session.execute(
                delete(GroupUser).where(
                    GroupUser.group_id == group_id,
                    GroupUser.organization_user_id == organization_user_id,
                )
            )


class SqlOrganizationUserRepository(_SqlRepository, base.OrganizationUserRepository):
    def get_by_id(self, organization_user_id: uuid.UUID) -> Optional[OrganizationUser]:
        with self._session() as session:
            return session.get(OrganizationUser, organization_user_id)

    def get_by_organization(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> Optional[OrganizationUser]:
        with self._session() as session:
            stmt = select(OrganizationUser).where(
                OrganizationUser.organization_id == organization_id,
                OrganizationUser.user_id == user_id,
            )
            return session.scalars(stmt).first()

    def get_many_by_organization(self, organization_id: uuid.UUID) -> list[OrganizationUser]:
        with self._session() as session:
            stmt = select(OrganizationUser).where(OrganizationUser.organization_id == organization_id)
            return list(session.scalars(stmt))

    def get_occupied_seat_count_by_organization_id(self, organization_id: uuid.UUID) -> int:
        with self._session() as session:
            stmt = select(func.count(OrganizationUser.id)).where(
                OrganizationUser.organization_id == organization_id,
                OrganizationUser.status != int(OrganizationUserStatusType.REVOKED),
            )
            return session.scalar(stmt) or 0

    def create(self, organization_user: OrganizationUser) -> OrganizationUser:
        return self._add(organization_user)


class SqlUserRepository(_SqlRepository, base.UserRepository):
    def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        with self._session() as session:
            return session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        with self._session() as session:
            stmt = select(User).where(func.lower(User.email) == email.strip().lower())
            return session.scalars(stmt).first()

    def create(self, user: User) -> User:
        return self._add(user)


class SqlOrganizationSponsorshipRepository(_SqlRepository, base.OrganizationSponsorshipRepository):
    def get_by_sponsoring_organization_user_id(
        self, organization_user_id: uuid.UUID
    ) -> Optional[OrganizationSponsorship]:
        with self._session() as session:
            stmt = select(OrganizationSponsorship).where(
                OrganizationSponsorship.sponsoring_organization_user_id == organization_user_id
            )
            return session.scalars(stmt).first()

    def create(self, sponsorship: OrganizationSponsorship) -> OrganizationSponsorship:
        return self._add(sponsorship)


class SqlEventRepository(_SqlRepository, base.EventRepository):
    def create(self, event: Event) -> Event:
        return self._add(event)

    def get_many_by_organization(self, organization_id: uuid.UUID) -> list[Event]:
        with self._session() as session:
            stmt = select(Event).where(Event.organization_id == organization_id).order_by(Event.date)
            return list(session.scalars(stmt))
