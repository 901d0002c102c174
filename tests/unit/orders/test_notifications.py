"""Unit tests for the order status e-mail dispatcher and task."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.core import mail
from django.test import override_settings

from modules.accounts.models import Address
from modules.orders.constants import OrderStatus
from modules.orders.notifications import CeleryOrderNotifier
from modules.orders.tasks import render_status_email, send_order_status_email

pytestmark = pytest.mark.unit


class TestCeleryOrderNotifier:
    def test_enqueues_task(self, make_order):
        order = make_order()

        with patch("modules.orders.tasks.send_order_status_email.delay") as delay:
            CeleryOrderNotifier().send_status_change(order, OrderStatus.CANCELLED)

        delay.assert_called_once_with(str(order.id), "CANCELLED")

    @override_settings(ORDER_NOTIFICATIONS_ENABLED=False)
    def test_disabled_by_setting(self, make_order):
        order = make_order()

        with patch("modules.orders.tasks.send_order_status_email.delay") as delay:
            CeleryOrderNotifier().send_status_change(order, OrderStatus.CANCELLED)

        delay.assert_not_called()


class TestSendOrderStatusEmail:
    def test_sends_to_guest_email(self, make_order):
        order = make_order(guest_email="guest@example.com", cancel_reason="too slow")

        assert send_order_status_email(str(order.id), OrderStatus.CANCELLED) is True

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == ["guest@example.com"]
        assert order.order_number in message.subject
        assert "Reason: too slow" in message.body

    def test_prefers_address_email(self, make_order):
        address = Address.objects.create(
            user_id="u-1",
            name="Ana",
            email="ana@example.com",
            street="Rua A, 1",
            city="Recife",
        )
        order = make_order(user_id="u-1", address=address, guest_email="old@example.com")

        send_order_status_email(str(order.id), OrderStatus.SHIPPED)

        assert mail.outbox[0].to == ["ana@example.com"]

    def test_skips_order_without_contact(self, make_order):
        order = make_order(user_id="u-2")

        assert send_order_status_email(str(order.id), OrderStatus.CANCELLED) is False
        assert mail.outbox == []

    def test_skips_missing_order(self):
        assert (
            send_order_status_email(
                "0190a000-0000-7000-8000-000000000000", OrderStatus.CANCELLED
            )
            is False
        )


class TestRenderStatusEmail:
    def test_unknown_status_falls_back_to_raw_value(self, make_order):
        order = make_order()

        subject, body = render_status_email(order, "ON_HOLD")

        assert "ON_HOLD" in subject
        assert "ON_HOLD" in body
