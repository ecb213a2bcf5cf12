"""Dependency wiring for commands, queries and repositories.

``build_services`` is called once by the application factory; blueprints
reach the container through ``orgvault.api.get_services()``.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import sessionmaker

from orgvault.core.events import AuditLog, EventService
from orgvault.core.mail import LoggingMailService, MailService, SmtpMailService
from orgvault.core.repositories import (
    EventRepository,
    GroupRepository,
    OrganizationRepository,
    OrganizationSponsorshipRepository,
    OrganizationUserRepository,
    SqlEventRepository,
    SqlGroupRepository,
    SqlOrganizationRepository,
    SqlOrganizationSponsorshipRepository,
    SqlOrganizationUserRepository,
    SqlUserRepository,
    UserRepository,
)
from orgvault.core.scim import GetGroupsListQuery, PatchGroupCommand, PostGroupCommand, PutGroupCommand
from orgvault.core.sponsorships import SendSponsorshipOfferCommand, SponsorshipOfferTokenizer
from orgvault.core.subscription import (
    AutoAddSeatsCommand,
    OrganizationSubscriptionAccessPolicies,
    UpdateSubscriptionCommand,
)


@dataclass
class Services:
    organization_repository: OrganizationRepository
    group_repository: GroupRepository
    organization_user_repository: OrganizationUserRepository
    user_repository: UserRepository
    sponsorship_repository: OrganizationSponsorshipRepository
    event_repository: EventRepository
    event_service: EventService
    mail_service: MailService
    subscription_access_policies: OrganizationSubscriptionAccessPolicies
    get_groups_list_query: GetGroupsListQuery
    post_group_command: PostGroupCommand
    put_group_command: PutGroupCommand
    patch_group_command: PatchGroupCommand
    update_subscription_command: UpdateSubscriptionCommand
    auto_add_seats_command: AutoAddSeatsCommand
    send_sponsorship_offer_command: SendSponsorshipOfferCommand


def build_mail_service(cfg) -> MailService:
    if cfg.mail_enabled:
        return SmtpMailService(
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            username=cfg.smtp_user,
            password=cfg.smtp_password,
            sender=cfg.smtp_from,
            base_url=cfg.app_base_url,
        )
    return LoggingMailService(base_url=cfg.app_base_url)


def build_services(cfg, session_factory: sessionmaker, mail_service: Optional[MailService] = None) -> Services:
    organizations = SqlOrganizationRepository(session_factory)
    groups = SqlGroupRepository(session_factory)
    organization_users = SqlOrganizationUserRepository(session_factory)
    users = SqlUserRepository(session_factory)
    sponsorships = SqlOrganizationSponsorshipRepository(session_factory)
    events = SqlEventRepository(session_factory)

    event_service = EventService(events, AuditLog(cfg.audit_log_dir, cfg.audit_log_signing_key))
    mail_service = mail_service or build_mail_service(cfg)
    policies = OrganizationSubscriptionAccessPolicies(cfg)
    tokenizer = SponsorshipOfferTokenizer(cfg.sponsorship_token_key, cfg.sponsorship_offer_ttl_days)

    return Services(
        organization_repository=organizations,
        group_repository=groups,
        organization_user_repository=organization_users,
        user_repository=users,
        sponsorship_repository=sponsorships,
        event_repository=events,
        event_service=event_service,
        mail_service=mail_service,
        subscription_access_policies=policies,
        get_groups_list_query=GetGroupsListQuery(groups),
        post_group_command=PostGroupCommand(groups, organization_users, event_service),
        put_group_command=PutGroupCommand(groups, organization_users, event_service),
        patch_group_command=PatchGroupCommand(groups, organization_users, event_service),
        update_subscription_command=UpdateSubscriptionCommand(
            organizations, organization_users, policies, event_service, cfg
        ),
        auto_add_seats_command=AutoAddSeatsCommand(organizations, policies, event_service),
        send_sponsorship_offer_command=SendSponsorshipOfferCommand(users, mail_service, tokenizer),
    )
