"""Unit tests for stock restoration and the availability flag."""

from __future__ import annotations

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.repositories.interfaces import IProductRepository
from modules.products.services import InventoryService

pytestmark = pytest.mark.unit


@pytest.fixture()
def inventory():
    return InventoryService(repository=ProductDjangoRepository())


class TestProductModel:
    def test_in_stock_follows_quantity_on_save(self, make_product):
        product = make_product(stock_quantity=0)
        assert product.in_stock is False

        product.stock_quantity = 4
        product.save(update_fields=["stock_quantity"])
        product.refresh_from_db()

        assert product.in_stock is True

    def test_sku_upper_cased(self, make_product):
        assert make_product(sku=" abc-1 ").sku == "ABC-1"


class TestRestoreStock:
    def test_increments_counter(self, inventory, make_product):
        product = make_product(stock_quantity=5)

        restored = inventory.restore_stock(str(product.id), 3)

        product.refresh_from_db()
        assert restored.stock_quantity == 8
        assert product.stock_quantity == 8

    def test_sets_availability_when_coming_back(self, inventory, make_product):
        product = make_product(stock_quantity=0)

        inventory.restore_stock(str(product.id), 2)

        product.refresh_from_db()
        assert (product.stock_quantity, product.in_stock) == (2, True)

    def test_missing_product_is_skipped(self, inventory):
        assert inventory.restore_stock(str(uuid4()), 2) is None

    def test_flag_written_only_when_it_disagrees(self):
        repo = MagicMock(spec=IProductRepository)
        repo.increment_stock.return_value = Product(stock_quantity=7, in_stock=True)

        InventoryService(repository=repo).restore_stock("p-1", 2)

        repo.set_availability.assert_not_called()

    def test_stale_flag_is_repaired(self):
        repo = MagicMock(spec=IProductRepository)
        repo.increment_stock.return_value = Product(stock_quantity=7, in_stock=False)

        product = InventoryService(repository=repo).restore_stock("p-1", 2)

        repo.set_availability.assert_called_once_with("p-1", True)
        assert product.in_stock is True
