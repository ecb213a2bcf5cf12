"""Families-for-Enterprise sponsorships."""
from .commands import SendSponsorshipOfferCommand
from .tokens import SponsorshipOfferTokenizer

__all__ = ["SendSponsorshipOfferCommand", "SponsorshipOfferTokenizer"]
