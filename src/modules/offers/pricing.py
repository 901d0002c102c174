"""Offer price arithmetic (Decimal, half-up to cents)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OfferPrice:
    original_price: Decimal
    discount_percent: Decimal
    discounted_price: Decimal
    savings: Decimal


def price_offer(price: Decimal, discount_percent: Decimal) -> OfferPrice:
    """Apply *discount_percent* to *price*.

    >>> price_offer(Decimal("100"), Decimal("25")).discounted_price
    Decimal('75.00')
    """
    price = Decimal(price)
    discount_percent = Decimal(discount_percent)
    discount_amount = price * discount_percent / Decimal(100)
    return OfferPrice(
        original_price=round2(price),
        discount_percent=discount_percent,
        discounted_price=round2(price - discount_amount),
        savings=round2(discount_amount),
    )


def time_remaining_ms(expires_at: datetime, now: datetime) -> int:
    """Milliseconds until *expires_at*; zero once it has passed."""
    remaining = expires_at - now
    return max(0, int(remaining.total_seconds() * 1000))
