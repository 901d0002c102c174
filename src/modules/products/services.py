"""Product service layer.

``ProductService`` serves storefront look-ups; ``InventoryService`` is the
inventory adjuster used when an order gives reserved stock back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog

from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


def _looks_like_id(value: str) -> bool:
    try:
        UUID(value)
    except ValueError:
        return False
    return True


class ProductService:
    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def get_by_slug(self, slug: str) -> Product:
        """Resolve a storefront slug.

        Old links carried the product id in place of the slug, so an
        id-shaped value that matches no slug is retried as an id.

        Raises:
            ProductNotFound: nothing matches.
        """
        product = self._repo.get_by_slug(slug)
        if product is None and _looks_like_id(slug):
            product = self._repo.get_by_id(slug)
        if product is None:
            raise ProductNotFound(f"Product '{slug}' not found.")
        return product


class InventoryService:
    """Adjusts stock counters and keeps ``in_stock`` consistent with them."""

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def restore_stock(self, product_id: str, quantity: int) -> Optional[Product]:
        """Give *quantity* units back to a product.

        Returns the updated product, or ``None`` when the product no longer
        exists.  The availability flag is rewritten only when it disagrees
        with the new counter.
        """
        product = self._repo.increment_stock(product_id, quantity)
        if product is None:
            logger.warning(
                "inventory.restore_skipped_missing_product",
                product_id=str(product_id),
                quantity=quantity,
            )
            return None

        has_stock = product.stock_quantity > 0
        if product.in_stock != has_stock:
            self._repo.set_availability(product_id, has_stock)
            product.in_stock = has_stock

        logger.info(
            "inventory.stock_restored",
            product_id=str(product_id),
            quantity=quantity,
            stock_quantity=product.stock_quantity,
            in_stock=product.in_stock,
        )
        return product
