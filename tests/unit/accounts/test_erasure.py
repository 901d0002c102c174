"""Unit tests for ``AccountErasureService``."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from modules.accounts.exceptions import AccountErasureIncomplete
from modules.accounts.models import Address
from modules.accounts.repositories.django_repository import AddressDjangoRepository
from modules.accounts.services import AccountErasureService
from modules.core.identity import CallerIdentity
from modules.offers.models import PersonalizedOffer
from modules.offers.repositories.django_repository import OfferDjangoRepository
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.repositories.interfaces import IOrderRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def caller():
    return CallerIdentity(subject_id="auth0|erase-me", email="erase@example.com")


@pytest.fixture()
def account_data(caller, make_order, make_product):
    product = make_product()
    Address.objects.create(
        user_id=caller.subject_id, name="Erase", street="Rua B, 2", city="Natal"
    )
    make_order(items=[(product, 1)], user_id=caller.subject_id)
    make_order(items=[(product, 1)], user_id=caller.subject_id)
    PersonalizedOffer.objects.create(
        store_id="store-1",
        customer_email="ERASE@example.com",
        product=product,
        discount_percent=Decimal("10"),
        expires_at=timezone.now() + timedelta(days=1),
    )
    keep = make_order(user_id="someone-else")
    return keep


def _service(order_repository=None) -> AccountErasureService:
    return AccountErasureService(
        address_repository=AddressDjangoRepository(),
        order_repository=order_repository or OrderDjangoRepository(),
        offer_repository=OfferDjangoRepository(),
    )


class TestErase:
    def test_erases_every_collection(self, caller, account_data):
        deleted = _service().erase(caller)

        assert deleted == {"addresses": 1, "orders": 2, "offers": 1}
        assert not Order.objects.filter(user_id=caller.subject_id).exists()
        assert Order.objects.filter(id=account_data.id).exists()

    def test_deletes_local_user_row(self, shopper):
        caller = CallerIdentity(subject_id=str(shopper.pk), email=shopper.email)

        deleted = _service().erase(caller, local_user_pk=shopper.pk)

        assert deleted["user"] == 1
        assert not get_user_model().objects.filter(pk=shopper.pk).exists()

    def test_caller_without_email_keeps_offers_untouched(self, account_data):
        caller = CallerIdentity(subject_id="auth0|erase-me", email=None)

        deleted = _service().erase(caller)

        assert deleted["offers"] == 0
        assert PersonalizedOffer.objects.count() == 1

    def test_one_failing_collection_does_not_stop_the_others(
        self, caller, account_data
    ):
        orders = MagicMock(spec=IOrderRepository)
        orders.erase_for_owner.side_effect = RuntimeError("orders store down")

        with pytest.raises(AccountErasureIncomplete) as exc_info:
            _service(order_repository=orders).erase(caller)

        assert exc_info.value.failed == ["orders"]
        assert exc_info.value.deleted == {"addresses": 1, "offers": 1}
        assert not Address.objects.filter(user_id=caller.subject_id).exists()
        assert Order.objects.filter(user_id=caller.subject_id).count() == 2
