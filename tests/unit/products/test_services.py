"""Unit tests for storefront product look-ups."""

from __future__ import annotations

import pytest

from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return ProductService(repository=ProductDjangoRepository())


class TestGetBySlug:
    def test_by_slug(self, service, make_product):
        product = make_product(slug="blue-mug")
        assert service.get_by_slug("blue-mug").id == product.id

    def test_falls_back_to_id(self, service, make_product):
        product = make_product()
        assert service.get_by_slug(str(product.id)).id == product.id

    def test_soft_deleted_product_is_not_found(self, service, make_product):
        product = make_product(slug="gone")
        product.delete()

        with pytest.raises(ProductNotFound):
            service.get_by_slug("gone")

    def test_unknown_slug(self, service):
        with pytest.raises(ProductNotFound):
            service.get_by_slug("nothing-here")
