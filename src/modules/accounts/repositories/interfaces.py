"""Address repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import Address


class IAddressRepository(IRepository["Address"]):
    @abstractmethod
    def erase_for_owner(self, user_id: str) -> int:
        """Delete every address owned by *user_id*; returns the count."""
