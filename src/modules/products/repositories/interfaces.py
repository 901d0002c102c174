"""Product repository interface (Product Store).

Besides the generic contract, the order lifecycle needs an atomic stock
counter increment and an explicit availability setter, and the storefront
needs slug look-ups.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    @abstractmethod
    def get_by_slug(self, slug: str) -> Optional[Product]:
        """Retrieve a live product by its storefront slug."""

    @abstractmethod
    def increment_stock(self, id: str, delta: int) -> Optional[Product]:
        """Atomically add *delta* to the stock counter.

        Returns the refreshed product, or ``None`` if it does not exist.
        Does **not** touch ``in_stock``.
        """

    @abstractmethod
    def set_availability(self, id: str, in_stock: bool) -> None:
        """Persist the availability flag."""
