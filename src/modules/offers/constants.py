from django.db import models

OFFER_TOKEN_BYTES = 16


class OfferListStatus(models.TextChoices):
    """Store-admin list filter."""

    ACTIVE = "active", "Active"
    EXPIRED = "expired", "Expired"
    USED = "used", "Used"
    ALL = "all", "All"
