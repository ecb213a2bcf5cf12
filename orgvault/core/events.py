"""Event logging for organization and group changes.

Every event is stored through the ``EventRepository`` and mirrored to an
append-only JSONL audit trail. Each audit line carries an HMAC-SHA256
signature over its canonical JSON form so tampering can be detected with
:meth:`AuditLog.verify`.
"""
from __future__ import annotations
import hashlib
import hmac
import json
import logging
from pathlib import Path
from typing import Any, Optional
import uuid

from orgvault.core.enums import EventSystemUser, EventType
from orgvault.core.models import Event, Group, Organization, utcnow
from orgvault.core.repositories import EventRepository

logger = logging.getLogger(__name__)

AUDIT_LOG_FILENAME = "org-events.jsonl"


class AuditLog:
    """Signed JSONL audit trail."""

    def __init__(self, log_dir: str | Path, signing_key: str = ""):
        self.log_dir = Path(log_dir)
        self.log_file = self.log_dir / AUDIT_LOG_FILENAME
        self._signing_key = signing_key.strip().encode("utf-8")

    def _ensure_dir(self) -> None:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.chmod(0o700)

    def sign(self, record: dict[str, Any]) -> str:
        if not self._signing_key:
            return ""
        canonical = json.dumps(record, sort_keys=True, separators=(",", ":"))
        return hmac.new(self._signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()

    def append(self, record: dict[str, Any]) -> None:
        self._ensure_dir()
        signature = self.sign(record)
        if signature:
            record = {**record, "signature": signature}
        with self.log_file.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")
        self.log_file.chmod(0o600)

    def verify(self) -> tuple[int, int]:
        """Verify all signatures in the audit log.

        Returns:
            Tuple of (total_events, valid_signatures)
        """
        if not self.log_file.exists():
            return 0, 0

        total = 0
        valid = 0
        with self.log_file.open("r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                total += 1
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    continue
                stored_sig = record.pop("signature", "")
                if stored_sig and hmac.compare_digest(stored_sig, self.sign(record)):
                    valid += 1
        return total, valid


class EventService:
    """Records domain events for the organization event log."""

    def __init__(self, event_repository: EventRepository, audit_log: Optional[AuditLog] = None):
        self._event_repository = event_repository
        self._audit_log = audit_log

    def log_group_event(
        self,
        group: Group,
        event_type: EventType,
        system_user: Optional[EventSystemUser] = None,
        acting_user_id: Optional[uuid.UUID] = None,
    ) -> Event:
        event = Event(
            type=int(event_type),
            date=utcnow(),
            organization_id=group.organization_id,
            group_id=group.id,
            acting_user_id=acting_user_id,
            system_user=int(system_user) if system_user is not None else None,
        )
        return self._record(event)

    def log_organization_event(
        self,
        organization: Organization,
        event_type: EventType,
        system_user: Optional[EventSystemUser] = None,
        acting_user_id: Optional[uuid.UUID] = None,
    ) -> Event:
        event = Event(
            type=int(event_type),
            date=utcnow(),
            organization_id=organization.id,
            acting_user_id=acting_user_id,
            system_user=int(system_user) if system_user is not None else None,
        )
        return self._record(event)

    def _record(self, event: Event) -> Event:
        self._event_repository.create(event)
        logger.info(
            "event=%s organization_id=%s group_id=%s system_user=%s",
            EventType(event.type).name,
            event.organization_id,
            event.group_id,
            event.system_user,
        )
        if self._audit_log is not None:
            try:
                self._audit_log.append(_audit_record(event))
            except OSError as exc:
                # Audit trail is best effort; the event row is the source of truth.
                logger.warning("Failed to append audit record for %s: %s", EventType(event.type).name, exc)
        return event


def _audit_record(event: Event) -> dict[str, Any]:
    return {
        "timestamp": event.date.isoformat(),
        "event_type": EventType(event.type).name,
        "organization_id": str(event.organization_id) if event.organization_id else None,
        "group_id": str(event.group_id) if event.group_id else None,
        "acting_user_id": str(event.acting_user_id) if event.acting_user_id else None,
        "system_user": EventSystemUser(event.system_user).name if event.system_user is not None else None,
    }
