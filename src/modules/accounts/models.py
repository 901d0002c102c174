"""Shopper address book.

``user_id`` is the identity-provider subject (or local user pk) that owns
the address; orders reference an address for delivery and for the contact
e-mail used in status notifications.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Address(BaseModel):
    user_id = models.CharField(max_length=128, db_index=True)
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, blank=True, default="")
    phone = models.CharField(max_length=20, blank=True, default="")
    street = models.CharField(max_length=255)
    city = models.CharField(max_length=120)
    state = models.CharField(max_length=120, blank=True, default="")
    zip_code = models.CharField(max_length=20, blank=True, default="")
    country = models.CharField(max_length=80, blank=True, default="")

    class Meta:
        db_table = "addresses"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name}, {self.street}, {self.city}"
