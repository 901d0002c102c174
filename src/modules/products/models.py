"""Product catalogue model.

Products are referenced (never owned) by order line items and
personalized offers.  Rules kept here:
- SKU and slug are unique; SKU is upper-cased on save.
- Price must be greater than zero; ``mrp`` is an optional list price.
- ``stock_quantity`` is a non-negative counter.
- ``in_stock`` always mirrors ``stock_quantity > 0``: ``save()`` reconciles
  it, and code that bumps the counter with an ``F()`` update must reconcile
  it explicitly (see ``ProductDjangoRepository.set_availability``).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class Product(SoftDeleteModel):
    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")
    short_description = models.CharField(max_length=500, blank=True, default="")
    category = models.CharField(max_length=120, blank=True, default="")
    images = models.JSONField(default=list, blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    mrp = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    stock_quantity = models.PositiveIntegerField(default=0)
    in_stock = models.BooleanField(default=False)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError(
                {"stock_quantity": "Stock quantity cannot be negative."}
            )

    @property
    def has_stock(self) -> bool:
        return (self.stock_quantity or 0) > 0

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        self.in_stock = self.has_stock
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "stock_quantity" in update_fields:
            kwargs["update_fields"] = list({*update_fields, "in_stock"})
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                sku=self.sku,
                slug=self.slug,
            )

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
