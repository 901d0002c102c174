"""Integration tests for POST /api/v1/account/delete/."""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model

from modules.accounts.models import Address
from modules.orders.models import Order

pytestmark = pytest.mark.integration

URL = "/api/v1/account/delete/"


class TestAccountDelete:
    def test_requires_authentication(self, api_client):
        assert api_client.post(URL).status_code == 401

    def test_erases_caller_data(self, shopper_client, shopper, make_order):
        subject = str(shopper.pk)
        Address.objects.create(user_id=subject, name="S", street="R", city="C")
        make_order(user_id=subject)
        other = make_order(user_id="someone-else")

        response = shopper_client.post(URL)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["deleted"] == {"addresses": 1, "orders": 1, "offers": 0, "user": 1}
        assert not Order.objects.filter(user_id=subject).exists()
        assert Order.objects.filter(id=other.id).exists()
        assert not get_user_model().objects.filter(pk=shopper.pk).exists()
