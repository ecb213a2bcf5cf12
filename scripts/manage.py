#!/usr/bin/env python3
"""Operational helpers for orgvault deployments.

Usage:
    python scripts/manage.py init-db
    python scripts/manage.py create-org --name "Acme" --plan-type ENTERPRISE_ANNUALLY --use-groups
    python scripts/manage.py verify-audit
    python scripts/manage.py verify-scim --base-url http://localhost:8000 --org-id <uuid>
"""
from __future__ import annotations
import argparse
import os
import sys
import uuid
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from orgvault.core.db import create_engine_from_url, create_session_factory, init_db
from orgvault.core.enums import PlanType
from orgvault.core.events import AuditLog
from orgvault.core.models import Organization
from orgvault.core.plans import get_plan
from orgvault.core.repositories import SqlOrganizationRepository
from scripts.verify_scim import ScimVerificationRunner


def _database_url(args) -> str:
    return args.database_url or os.environ.get("DATABASE_URL", "sqlite://")


def cmd_init_db(args) -> int:
    engine = create_engine_from_url(_database_url(args))
    init_db(engine)
    print(f"[manage] Schema ready on {engine.url.render_as_string(hide_password=True)}")
    return 0


def cmd_create_org(args) -> int:
    try:
        plan_type = PlanType[args.plan_type.upper()]
    except KeyError:
        print(f"[manage] Unknown plan type: {args.plan_type}", file=sys.stderr)
        return 2

    plan = get_plan(plan_type)
    seats = args.seats if args.seats is not None else (plan.base_seats if plan else None)

    engine = create_engine_from_url(_database_url(args))
    init_db(engine)
    repository = SqlOrganizationRepository(create_session_factory(engine))
    organization = repository.create(Organization(
        id=uuid.uuid4(),
        name=args.name,
        billing_email=args.billing_email,
        plan=plan.name if plan else plan_type.name,
        plan_type=int(plan_type),
        seats=seats,
        use_groups=args.use_groups,
        use_scim=args.use_scim,
        use_secrets_manager=args.use_secrets_manager,
    ))
    print(organization.id)
    return 0


def cmd_verify_audit(args) -> int:
    log_dir = args.audit_dir or os.environ.get("AUDIT_LOG_DIR", ".runtime/audit")
    signing_key = os.environ.get("AUDIT_LOG_SIGNING_KEY", "")
    if not signing_key:
        print("[manage] AUDIT_LOG_SIGNING_KEY is not set; signatures cannot be verified", file=sys.stderr)
        return 2

    total, valid = AuditLog(log_dir, signing_key).verify()
    print(f"[manage] Audit events: {total}, valid signatures: {valid}")
    return 0 if total == valid else 1


def cmd_verify_scim(args) -> int:
    token = args.token or os.environ.get("SCIM_STATIC_TOKEN", "")
    if not token:
        print("[manage] No SCIM token (use --token or SCIM_STATIC_TOKEN)", file=sys.stderr)
        return 2

    report = ScimVerificationRunner(args.base_url, args.org_id, token).run()
    for result in report.results:
        marker = "OK  " if result.ok else "FAIL"
        print(f"[manage] {marker} {result.name:<12} {result.status} (expected {result.expected}) {result.duration_ms}ms")
    return 0 if report.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="orgvault operations helper")
    parser.add_argument("--database-url", default=None)
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("init-db")

    co = sub.add_parser("create-org")
    co.add_argument("--name", required=True)
    co.add_argument("--plan-type", default="FREE")
    co.add_argument("--seats", type=int, default=None)
    co.add_argument("--billing-email", default=None)
    co.add_argument("--use-groups", action="store_true")
    co.add_argument("--use-scim", action="store_true")
    co.add_argument("--use-secrets-manager", action="store_true")

    va = sub.add_parser("verify-audit")
    va.add_argument("--audit-dir", default=None)

    vs = sub.add_parser("verify-scim")
    vs.add_argument("--base-url", default="http://localhost:8000")
    vs.add_argument("--org-id", required=True)
    vs.add_argument("--token", default=None)

    return parser


COMMANDS = {
    "init-db": cmd_init_db,
    "create-org": cmd_create_org,
    "verify-audit": cmd_verify_audit,
    "verify-scim": cmd_verify_scim,
}


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 1

    return COMMANDS[args.cmd](args)


if __name__ == "__main__":
    sys.exit(main())
