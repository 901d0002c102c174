"""Personalized offer repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.offers.models import PersonalizedOffer


class IOfferRepository(IRepository["PersonalizedOffer"]):
    @abstractmethod
    def get_by_token(self, token: str) -> Optional[PersonalizedOffer]:
        """Retrieve an offer by its secret token."""

    @abstractmethod
    def latest_usable_for_product(
        self, product_id: Any, now: datetime
    ) -> Optional[PersonalizedOffer]:
        """Most recently created offer that is active, unused and unexpired."""

    @abstractmethod
    def list_for_store(
        self, store_id: str, status: str, now: datetime
    ) -> List[PersonalizedOffer]:
        """Store offers narrowed by an ``OfferListStatus`` value."""

    @abstractmethod
    def update(self, id: str, **changes: Any) -> Optional[PersonalizedOffer]:
        """Apply *changes*; ``None`` if the offer does not exist."""

    @abstractmethod
    def mark_used(self, id: str, order_id: str, used_at: datetime) -> bool:
        """Flag the offer used unless someone already did; ``True`` on success."""

    @abstractmethod
    def erase_for_email(self, email: str) -> int:
        """Delete every offer addressed to *email*; returns the count."""


class IStoreMemberRepository(ABC):
    @abstractmethod
    def store_for_user(self, user_id: str) -> Optional[str]:
        """Store managed by *user_id*, or ``None`` for non-sellers."""
