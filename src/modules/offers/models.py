"""Personalized offer model.

A store admin addresses one discounted product to one customer.  The offer
is usable only while ``is_active and not is_used and now < expires_at``;
the discounted price is always derived from the live product price (see
``pricing.py``) and never stored.
"""

from __future__ import annotations

import secrets
from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.offers.constants import OFFER_TOKEN_BYTES


def generate_offer_token() -> str:
    return secrets.token_hex(OFFER_TOKEN_BYTES)


class PersonalizedOffer(BaseModel):
    offer_token = models.CharField(
        max_length=64,
        unique=True,
        default=generate_offer_token,
        editable=False,
    )
    store_id = models.CharField(max_length=128)
    customer_email = models.EmailField(max_length=254)
    customer_phone = models.CharField(max_length=20, blank=True, default="")
    customer_name = models.CharField(max_length=255, blank=True, default="")
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        related_name="personalized_offers",
    )
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal("0")),
            MaxValueValidator(Decimal("100")),
        ],
    )
    expires_at = models.DateTimeField()
    is_active = models.BooleanField(default=True)
    is_used = models.BooleanField(default=False)
    used_at = models.DateTimeField(null=True, blank=True)
    order_id = models.CharField(max_length=64, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "personalized_offers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["product", "is_active", "is_used", "expires_at"],
                name="offers_product_active_idx",
            ),
            models.Index(fields=["store_id", "is_active"], name="offers_store_idx"),
            models.Index(fields=["customer_email"], name="offers_customer_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_percent__gte=0)
                & models.Q(discount_percent__lte=100),
                name="offers_discount_percent_range",
            ),
        ]

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or timezone.now()) >= self.expires_at

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        return self.is_active and not self.is_used and not self.is_expired(now)

    def __str__(self) -> str:
        return f"{self.customer_email} -{self.discount_percent}% ({self.product_id})"


class StoreMember(BaseModel):
    """Links a seller (identity subject id) to the one store they manage."""

    store_id = models.CharField(max_length=128, db_index=True)
    user_id = models.CharField(max_length=128, unique=True)

    class Meta:
        db_table = "store_members"

    def __str__(self) -> str:
        return f"{self.user_id} @ {self.store_id}"
