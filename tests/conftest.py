from __future__ import annotations

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.core.identity import CallerIdentity
from modules.offers.models import StoreMember
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem
from modules.products.models import Product, ProductStatus

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture()
def shopper():
    return User.objects.create_user(
        username="shopper", email="shopper@example.com", password="testpass123"
    )


@pytest.fixture()
def shopper_identity(shopper):
    return CallerIdentity(subject_id=str(shopper.pk), email=shopper.email)


@pytest.fixture()
def shopper_client(shopper):
    client = APIClient()
    client.force_authenticate(user=shopper)
    return client


@pytest.fixture()
def staff_client():
    staff = User.objects.create_user(
        username="staff", password="testpass123", is_staff=True
    )
    client = APIClient()
    client.force_authenticate(user=staff)
    return client


@pytest.fixture()
def seller_client():
    """Authenticated seller who manages ``store-1``."""
    seller = User.objects.create_user(username="seller", password="testpass123")
    StoreMember.objects.create(store_id="store-1", user_id=str(seller.pk))
    client = APIClient()
    client.force_authenticate(user=seller)
    return client


# ---------------------------------------------------------------------------
# Catalogue and orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(**overrides) -> Product:
        counter["n"] += 1
        n = counter["n"]
        defaults = {
            "sku": f"SKU-{n:03d}",
            "name": f"Product {n}",
            "slug": f"product-{n}",
            "price": Decimal("100.00"),
            "stock_quantity": 10,
            "status": ProductStatus.ACTIVE,
        }
        defaults.update(overrides)
        return Product.objects.create(**defaults)

    return _make


@pytest.fixture()
def make_order():
    def _make(items=(), **overrides) -> Order:
        defaults = {"status": OrderStatus.PLACED}
        defaults.update(overrides)
        order = Order.objects.create(**defaults)
        total = Decimal("0.00")
        for product, quantity in items:
            item = OrderItem.objects.create(
                order=order,
                product=product,
                quantity=quantity,
                unit_price=product.price,
            )
            total += item.subtotal
        if items:
            order.total_amount = total
            order.save(update_fields=["total_amount"])
        return order

    return _make
