"""Relational domain records."""
from __future__ import annotations
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Uuid

from orgvault.core.db import Base
from orgvault.core.enums import OrganizationUserStatusType, OrganizationUserType, PlanType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    billing_email = Column(String(256), nullable=True)
    plan = Column(String(50), nullable=True)
    plan_type = Column(Integer, nullable=False, default=int(PlanType.FREE))
    seats = Column(Integer, nullable=True)
    max_autoscale_seats = Column(Integer, nullable=True)
    use_groups = Column(Boolean, nullable=False, default=False)
    use_scim = Column(Boolean, nullable=False, default=False)
    use_secrets_manager = Column(Boolean, nullable=False, default=False)
    sm_seats = Column(Integer, nullable=True)
    max_autoscale_sm_seats = Column(Integer, nullable=True)
    sm_service_accounts = Column(Integer, nullable=True)
    max_autoscale_sm_service_accounts = Column(Integer, nullable=True)
    gateway_customer_id = Column(String(50), nullable=True)
    gateway_subscription_id = Column(String(50), nullable=True)
    enabled = Column(Boolean, nullable=False, default=True)
    creation_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    revision_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r} seats={self.seats}>"


class Group(Base):
    __tablename__ = "groups"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    access_all = Column(Boolean, nullable=False, default=False)
    external_id = Column(String(300), nullable=True)
    creation_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    revision_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Group id={self.id} name={self.name!r}>"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(256), nullable=False, unique=True, index=True)
    name = Column(String(50), nullable=True)
    creation_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class OrganizationUser(Base):
    __tablename__ = "organization_users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    email = Column(String(256), nullable=True)
    status = Column(Integer, nullable=False, default=int(OrganizationUserStatusType.INVITED))
    type = Column(Integer, nullable=False, default=int(OrganizationUserType.USER))
    external_id = Column(String(300), nullable=True)
    creation_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    revision_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class GroupUser(Base):
    __tablename__ = "group_users"

    group_id = Column(Uuid, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True)
    organization_user_id = Column(Uuid, ForeignKey("organization_users.id", ondelete="CASCADE"), primary_key=True)


class OrganizationSponsorship(Base):
    __tablename__ = "organization_sponsorships"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sponsoring_organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=True)
    sponsoring_organization_user_id = Column(Uuid, ForeignKey("organization_users.id"), nullable=False, index=True)
    sponsored_organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=True)
    friendly_name = Column(String(256), nullable=True)
    offered_to_email = Column(String(256), nullable=True)
    plan_sponsorship_type = Column(Integer, nullable=True)
    last_sync_date = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    to_delete = Column(Boolean, nullable=False, default=False)


class Event(Base):
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(Integer, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    organization_id = Column(Uuid, nullable=True, index=True)
    group_id = Column(Uuid, nullable=True)
    organization_user_id = Column(Uuid, nullable=True)
    acting_user_id = Column(Uuid, nullable=True)
    system_user = Column(Integer, nullable=True)
