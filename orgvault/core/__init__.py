"""Core Business Logic Module

Framework-independent domain code: entities, repositories, commands,
queries and policies. Flask is only imported by ``orgvault.api``.

Module Structure:
    - models.py          : SQLAlchemy domain records
    - repositories/      : Repository interfaces + SQLAlchemy implementations
    - scim/              : SCIM 2.0 group models, list query, post/put/patch commands
    - subscription/      : Seat access policies and subscription update commands
    - sponsorships/      : Families-for-Enterprise offer command and tokens
    - events.py          : Event log + signed audit trail
    - mail.py            : Outbound mail
    - plans.py           : Static plan catalog
    - services.py        : Dependency wiring

Import explicitly when needed:
    from orgvault.core.scim import PostGroupCommand
    from orgvault.core.subscription import OrganizationSubscriptionAccessPolicies
"""
