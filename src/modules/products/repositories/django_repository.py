"""Django ORM implementation of the Product repository.

Look-ups return ``None`` instead of raising; the service layer decides how
a missing product maps onto an API error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_slug(self, slug: str) -> Optional[Product]:
        return Product.objects.alive().filter(slug=slug).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = Product.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Stock counter
    # ------------------------------------------------------------------

    def increment_stock(self, id: str, delta: int) -> Optional[Product]:
        """Single ``UPDATE ... SET stock_quantity = stock_quantity + delta``.

        Concurrent increments never lose updates because the addition is
        evaluated by the database.
        """
        try:
            updated = Product.objects.filter(id=id).update(
                stock_quantity=F("stock_quantity") + delta,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            return None
        if not updated:
            return None
        product = Product.objects.get(id=id)
        logger.info(
            "product.stock_incremented",
            product_id=str(id),
            delta=delta,
            stock_quantity=product.stock_quantity,
        )
        return product

    def set_availability(self, id: str, in_stock: bool) -> None:
        Product.objects.filter(id=id).update(
            in_stock=in_stock,
            updated_at=timezone.now(),
        )
        logger.info("product.availability_set", product_id=str(id), in_stock=in_stock)
