"""Families-for-Enterprise sponsorship offer commands."""
from __future__ import annotations
import logging
from typing import Optional

from orgvault.core.enums import OrganizationUserStatusType
from orgvault.core.exceptions import BadRequestError
from orgvault.core.mail import MailService
from orgvault.core.models import Organization, OrganizationSponsorship, OrganizationUser
from orgvault.core.repositories import UserRepository
from orgvault.core.sponsorships.tokens import SponsorshipOfferTokenizer

logger = logging.getLogger(__name__)


class SendSponsorshipOfferCommand:
    def __init__(
        self,
        user_repository: UserRepository,
        mail_service: MailService,
        tokenizer: SponsorshipOfferTokenizer,
    ):
        self._user_repository = user_repository
        self._mail_service = mail_service
        self._tokenizer = tokenizer

    def send_sponsorship_offer(
        self,
        sponsoring_org: Optional[Organization],
        sponsoring_org_user: Optional[OrganizationUser],
        sponsorship: Optional[OrganizationSponsorship],
        sponsoring_user_email: Optional[str],
    ) -> None:
        """Re-send an outstanding sponsorship offer.

        Raises:
            BadRequestError: sponsoring organization missing, sponsor not a
                confirmed member, or no outstanding offer
        """
        if sponsoring_org is None:
            raise BadRequestError("Cannot find the requested sponsoring organization.")

        if sponsoring_org_user is None or sponsoring_org_user.status != OrganizationUserStatusType.CONFIRMED:
            raise BadRequestError("Only confirmed users can sponsor other organizations.")

        if sponsorship is None or not sponsorship.offered_to_email:
            raise BadRequestError("Cannot find an outstanding sponsorship offer for this organization.")

        self.send_offer(sponsorship, sponsoring_org.name, sponsoring_user_email)

    def send_offer(
        self,
        sponsorship: OrganizationSponsorship,
        sponsoring_org_name: str,
        sponsoring_user_email: Optional[str] = None,
    ) -> None:
        user = self._user_repository.get_by_email(sponsorship.offered_to_email)
        existing_account = user is not None
        token = self._tokenizer.generate(sponsorship)

        self._mail_service.send_families_for_enterprise_offer_email(
            sponsoring_org_name,
            sponsorship.offered_to_email,
            existing_account,
            token,
            sponsoring_user_email,
        )
        logger.info(
            "Sponsorship offer %s sent (existing_account=%s)", sponsorship.id, existing_account
        )
