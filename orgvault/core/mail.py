"""Outbound mail delivery."""
from __future__ import annotations
import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Optional
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


class MailService(ABC):
    @abstractmethod
    def send_families_for_enterprise_offer_email(
        self,
        sponsor_org_name: str,
        email: str,
        existing_account: bool,
        token: str,
        sponsor_email: Optional[str] = None,
    ) -> None: ...


def build_families_offer_message(
    sender: str,
    base_url: str,
    sponsor_org_name: str,
    email: str,
    existing_account: bool,
    token: str,
    sponsor_email: Optional[str] = None,
) -> EmailMessage:
    """Compose the Families-for-Enterprise offer email."""
    action = "accept" if existing_account else "register"
    query = urlencode({"token": token, "email": email, "action": action})
    link = f"{base_url.rstrip('/')}/#/sponsored/families-for-enterprise?{query}"

    message = EmailMessage()
    message["Subject"] = "Accept your free Families subscription"
    message["From"] = sender
    message["To"] = email
    offered_by = f" by {sponsor_email}" if sponsor_email else ""
    message.set_content(
        f"Your membership in {sponsor_org_name} includes a free Families organization.\n"
        f"This offer was sent{offered_by}.\n\n"
        f"{'Sign in' if existing_account else 'Create an account'} to redeem it:\n{link}\n"
    )
    return message


class SmtpMailService(MailService):
    """Delivers mail through an SMTP relay with STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        sender: str = "",
        base_url: str = "https://localhost",
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.base_url = base_url
        self.timeout = timeout

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(message)
        logger.info("Mail sent to %s (subject=%r)", message["To"], message["Subject"])

    def send_families_for_enterprise_offer_email(
        self,
        sponsor_org_name: str,
        email: str,
        existing_account: bool,
        token: str,
        sponsor_email: Optional[str] = None,
    ) -> None:
        message = build_families_offer_message(
            self.sender, self.base_url, sponsor_org_name, email, existing_account, token, sponsor_email
        )
        self._send(message)


class LoggingMailService(MailService):
    """Logs messages instead of sending them (demo mode or mail disabled)."""

    def __init__(self, base_url: str = "https://localhost"):
        self.base_url = base_url

    def send_families_for_enterprise_offer_email(
        self,
        sponsor_org_name: str,
        email: str,
        existing_account: bool,
        token: str,
        sponsor_email: Optional[str] = None,
    ) -> None:
        message = build_families_offer_message(
            "no-reply@localhost", self.base_url, sponsor_org_name, email, existing_account, token, sponsor_email
        )
        logger.info("Mail delivery disabled; would send %r to %s", message["Subject"], email)
