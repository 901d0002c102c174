"""Unit tests for offer pricing arithmetic."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from modules.offers.pricing import price_offer, round2, time_remaining_ms

pytestmark = pytest.mark.unit


class TestPriceOffer:
    def test_quarter_off(self):
        price = price_offer(Decimal("100"), Decimal("25"))

        assert price.discounted_price == Decimal("75.00")
        assert price.savings == Decimal("25.00")
        assert price.original_price == Decimal("100.00")

    @pytest.mark.parametrize(
        ("price", "percent", "discounted", "savings"),
        [
            ("19.99", "15", "16.99", "3.00"),
            ("10.00", "0", "10.00", "0.00"),
            ("10.00", "100", "0.00", "10.00"),
            ("0.05", "50", "0.03", "0.03"),
        ],
    )
    def test_half_up_rounding(self, price, percent, discounted, savings):
        result = price_offer(Decimal(price), Decimal(percent))

        assert result.discounted_price == Decimal(discounted)
        assert result.savings == Decimal(savings)

    def test_round2_half_up(self):
        assert round2(Decimal("2.675")) == Decimal("2.68")


class TestTimeRemaining:
    def test_future(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert time_remaining_ms(now + timedelta(seconds=90), now) == 90_000

    def test_past_is_zero(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert time_remaining_ms(now - timedelta(seconds=1), now) == 0
