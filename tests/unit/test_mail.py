"""Unit tests for outbound mail."""
import logging
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

from orgvault.core import mail
from orgvault.core.mail import LoggingMailService, SmtpMailService, build_families_offer_message


def _offer_link(message):
    body = message.get_content()
    return next(line for line in body.splitlines() if line.startswith("https://"))


def _offer_query(link):
    # offer parameters sit inside the URL fragment
    return parse_qs(urlparse(link).fragment.split("?", 1)[1])


def test_offer_message_for_new_account():
    message = build_families_offer_message(
        "no-reply@vault.test", "https://vault.test/", "Acme", "friend+x@example.test", False, "tok"
    )

    assert message["To"] == "friend+x@example.test"
    assert message["From"] == "no-reply@vault.test"
    link = _offer_link(message)
    query = _offer_query(link)
    assert link.startswith("https://vault.test/#/sponsored/families-for-enterprise?")
    assert query["email"] == ["friend+x@example.test"]
    assert query["action"] == ["register"]
    assert query["token"] == ["tok"]
    assert "Create an account" in message.get_content()


def test_offer_message_for_existing_account_names_sponsor():
    message = build_families_offer_message(
        "no-reply@vault.test", "https://vault.test", "Acme", "friend@example.test", True, "tok", "boss@acme.test"
    )

    assert _offer_query(_offer_link(message))["action"] == ["accept"]
    assert "by boss@acme.test" in message.get_content()


def test_logging_mail_service_logs_instead_of_sending(caplog, monkeypatch):
    def fail_connect(*args, **kwargs):
        raise AssertionError("SMTP must not be used")

    monkeypatch.setattr(mail.smtplib, "SMTP", fail_connect)
    service = LoggingMailService(base_url="https://vault.test")

    with caplog.at_level(logging.INFO, logger="orgvault.core.mail"):
        for _ in range(3):
            service.send_families_for_enterprise_offer_email("Acme", "friend@example.test", False, "tok")

    assert caplog.text.count("Mail delivery disabled") == 3
    assert "friend@example.test" in caplog.text
    assert not hasattr(service, "sent")


def test_smtp_mail_service_uses_starttls_and_login(monkeypatch):
    smtp_instance = MagicMock()
    smtp_cls = MagicMock()
    smtp_cls.return_value.__enter__.return_value = smtp_instance
    monkeypatch.setattr(mail.smtplib, "SMTP", smtp_cls)

    service = SmtpMailService(
        host="smtp.example.test", port=2525, username="mailer", password="pw", sender="no-reply@vault.test"
    )
    service.send_families_for_enterprise_offer_email("Acme", "friend@example.test", True, "tok")

    smtp_cls.assert_called_once_with("smtp.example.test", 2525, timeout=10)
    smtp_instance.starttls.assert_called_once()
    smtp_instance.login.assert_called_once_with("mailer", "pw")
    sent = smtp_instance.send_message.call_args.args[0]
    assert sent["To"] == "friend@example.test"


def test_smtp_mail_service_skips_login_without_credentials(monkeypatch):
    smtp_instance = MagicMock()
    smtp_cls = MagicMock()
    smtp_cls.return_value.__enter__.return_value = smtp_instance
    monkeypatch.setattr(mail.smtplib, "SMTP", smtp_cls)

    SmtpMailService(host="relay", sender="no-reply@vault.test").send_families_for_enterprise_offer_email(
        "Acme", "friend@example.test", False, "tok"
    )

    smtp_instance.login.assert_not_called()
    smtp_instance.send_message.assert_called_once()
