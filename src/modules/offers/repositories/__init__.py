"""Offer repositories package."""

from modules.offers.repositories.django_repository import (
    OfferDjangoRepository,
    StoreMemberDjangoRepository,
)
from modules.offers.repositories.interfaces import (
    IOfferRepository,
    IStoreMemberRepository,
)

__all__ = [
    "IOfferRepository",
    "IStoreMemberRepository",
    "OfferDjangoRepository",
    "StoreMemberDjangoRepository",
]
