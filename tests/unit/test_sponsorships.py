"""Unit tests for Families-for-Enterprise sponsorship offers."""
import uuid
from datetime import timedelta
from unittest.mock import Mock

import jwt
import pytest

from orgvault.core.enums import OrganizationUserStatusType, PlanSponsorshipType
from orgvault.core.exceptions import BadRequestError
from orgvault.core.models import Organization, OrganizationSponsorship, OrganizationUser, User
from orgvault.core.sponsorships import SendSponsorshipOfferCommand, SponsorshipOfferTokenizer
from orgvault.core.sponsorships.tokens import TOKEN_PURPOSE


@pytest.fixture
def user_repository():
    repository = Mock()
    repository.get_by_email.return_value = None
    return repository


@pytest.fixture
def mail():
    return Mock()


@pytest.fixture
def tokenizer():
    return SponsorshipOfferTokenizer("test-sponsorship-key")


@pytest.fixture
def command(user_repository, mail, tokenizer):
    return SendSponsorshipOfferCommand(user_repository, mail, tokenizer)


def _org():
    return Organization(id=uuid.uuid4(), name="Sponsoring Org")


def _org_user(status=OrganizationUserStatusType.CONFIRMED):
    return OrganizationUser(id=uuid.uuid4(), status=int(status))


def _sponsorship(email="friend@example.test"):
    return OrganizationSponsorship(
        id=uuid.uuid4(),
        offered_to_email=email,
        plan_sponsorship_type=int(PlanSponsorshipType.FAMILIES_FOR_ENTERPRISE),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Guard clauses
# ─────────────────────────────────────────────────────────────────────────────

def test_missing_sponsoring_org(command, mail):
    with pytest.raises(BadRequestError) as exc:
        command.send_sponsorship_offer(None, _org_user(), _sponsorship(), "sponsor@corp.test")

    assert exc.value.detail == "Cannot find the requested sponsoring organization."
    mail.send_families_for_enterprise_offer_email.assert_not_called()


def test_missing_org_user(command, mail):
    with pytest.raises(BadRequestError) as exc:
        command.send_sponsorship_offer(_org(), None, _sponsorship(), "sponsor@corp.test")

    assert exc.value.detail == "Only confirmed users can sponsor other organizations."
    mail.send_families_for_enterprise_offer_email.assert_not_called()


@pytest.mark.parametrize(
    "status",
    [OrganizationUserStatusType.INVITED, OrganizationUserStatusType.ACCEPTED, OrganizationUserStatusType.REVOKED],
)
def test_org_user_must_be_confirmed(command, mail, status):
    with pytest.raises(BadRequestError) as exc:
        command.send_sponsorship_offer(_org(), _org_user(status), _sponsorship(), "sponsor@corp.test")

    assert exc.value.detail == "Only confirmed users can sponsor other organizations."
    mail.send_families_for_enterprise_offer_email.assert_not_called()


def test_missing_sponsorship(command, mail):
    with pytest.raises(BadRequestError) as exc:
        command.send_sponsorship_offer(_org(), _org_user(), None, "sponsor@corp.test")

    assert exc.value.detail == "Cannot find an outstanding sponsorship offer for this organization."
    mail.send_families_for_enterprise_offer_email.assert_not_called()


def test_sponsorship_without_offered_email(command, mail):
    with pytest.raises(BadRequestError) as exc:
        command.send_sponsorship_offer(_org(), _org_user(), _sponsorship(email=None), "sponsor@corp.test")

    assert exc.value.detail == "Cannot find an outstanding sponsorship offer for this organization."
    mail.send_families_for_enterprise_offer_email.assert_not_called()


# ─────────────────────────────────────────────────────────────────────────────
# Delivery
# ─────────────────────────────────────────────────────────────────────────────

def test_send_offer_to_new_account(command, mail, tokenizer):
    sponsorship = _sponsorship()

    command.send_sponsorship_offer(_org(), _org_user(), sponsorship, "sponsor@corp.test")

    mail.send_families_for_enterprise_offer_email.assert_called_once()
    org_name, email, existing_account, token, sponsor_email = (
        mail.send_families_for_enterprise_offer_email.call_args.args
    )
    assert org_name == "Sponsoring Org"
    assert email == "friend@example.test"
    assert existing_account is False
    assert sponsor_email == "sponsor@corp.test"
    assert tokenizer.validate(token)["sponsorship_id"] == str(sponsorship.id)


def test_send_offer_to_existing_account(command, mail, user_repository):
    user_repository.get_by_email.return_value = User(id=uuid.uuid4(), email="friend@example.test")

    command.send_offer(_sponsorship(), "Sponsoring Org")

    user_repository.get_by_email.assert_called_once_with("friend@example.test")
    assert mail.send_families_for_enterprise_offer_email.call_args.args[2] is True


# ─────────────────────────────────────────────────────────────────────────────
# Tokens
# ─────────────────────────────────────────────────────────────────────────────

def test_token_round_trip_claims(tokenizer):
    sponsorship = _sponsorship()
    claims = tokenizer.validate(tokenizer.generate(sponsorship))

    assert claims["purpose"] == TOKEN_PURPOSE
    assert claims["email"] == "friend@example.test"
    assert claims["exp"] - claims["iat"] == int(timedelta(days=5).total_seconds())


def test_token_signed_with_other_key_rejected(tokenizer):
    token = SponsorshipOfferTokenizer("other-key").generate(_sponsorship())
    with pytest.raises(BadRequestError, match="Invalid sponsorship offer token"):
        tokenizer.validate(token)


def test_expired_token_rejected():
    tokenizer = SponsorshipOfferTokenizer("key", ttl_days=-1)
    with pytest.raises(BadRequestError):
        tokenizer.validate(tokenizer.generate(_sponsorship()))


def test_token_with_wrong_purpose_rejected(tokenizer):
    token = jwt.encode({"purpose": "password-reset", "exp": 9999999999}, "test-sponsorship-key", algorithm="HS256")
    with pytest.raises(BadRequestError, match="wrong purpose"):
        tokenizer.validate(token)


def test_tokenizer_requires_key():
    with pytest.raises(ValueError):
        SponsorshipOfferTokenizer("")
