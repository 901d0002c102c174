"""Offer DTOs passed from the API layer into ``OfferService``."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateOfferDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    store_id: str = Field(min_length=1)
    customer_email: str = Field(min_length=3)
    customer_phone: str = ""
    customer_name: str = ""
    product_id: UUID
    discount_percent: Decimal = Field(ge=0, le=100)
    expires_at: datetime
    notes: str = ""


class UpdateOfferDTO(BaseModel):
    """Partial update; only the fields that were sent are applied."""

    model_config = ConfigDict(frozen=True)

    offer_id: UUID
    discount_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None

    def changes(self) -> dict:
        return {
            name: getattr(self, name)
            for name in ("discount_percent", "expires_at", "is_active", "notes")
            if name in self.model_fields_set
        }
