"""Unit tests for order cancellation with stock restoration.

Covers:
- Cancel from every cancellable stage: status, reason, history, outbox event.
- Stock restored per line item, availability flag reconciled.
- Ownership by user id or guest e-mail; everyone else is rejected.
- Already-cancelled and non-cancellable stages rejected without writes.
- A failing item restore or notification never fails the cancellation.
- Notification dispatched only after commit.
- Repeated / racing cancellations credit stock once.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from modules.core.identity import CallerIdentity
from modules.core.models import OutboxEvent
from modules.orders.constants import CANCELLABLE_STATES, OrderStatus
from modules.orders.dtos import CancelOrderDTO
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderAccessDenied,
    OrderAlreadyCancelled,
    OrderNotFound,
)
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.notifications import IOrderNotifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import InventoryService

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def notifier():
    return MagicMock(spec=IOrderNotifier)


@pytest.fixture()
def inventory():
    return InventoryService(repository=ProductDjangoRepository())


@pytest.fixture()
def service(inventory, notifier):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        inventory=inventory,
        notifier=notifier,
    )


@pytest.fixture()
def product_a(make_product):
    return make_product(stock_quantity=10)


@pytest.fixture()
def product_b(make_product):
    return make_product(stock_quantity=0)


@pytest.fixture()
def order(make_order, shopper, product_a, product_b):
    return make_order(
        items=[(product_a, 2), (product_b, 3)],
        user_id=str(shopper.pk),
    )


def _stock(product: Product) -> tuple[int, bool]:
    product.refresh_from_db()
    return product.stock_quantity, product.in_stock


def _assert_untouched(order: Order, notifier: MagicMock) -> None:
    assert not OrderStatusHistory.objects.filter(order_id=order.id).exists()
    assert not OutboxEvent.objects.filter(aggregate_id=str(order.id)).exists()
    notifier.send_status_change.assert_not_called()


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestCancelOrder:
    def test_cancels_and_restocks_every_item(
        self, service, order, shopper_identity, product_a, product_b
    ):
        result = service.cancel_order(
            CancelOrderDTO(order_id=order.id), shopper_identity
        )

        assert result.status == OrderStatus.CANCELLED
        order.refresh_from_db()
        assert order.status == OrderStatus.CANCELLED
        assert _stock(product_a) == (12, True)
        assert _stock(product_b) == (3, True)

    def test_out_of_stock_product_becomes_available(
        self, service, order, shopper_identity, product_b
    ):
        assert _stock(product_b) == (0, False)

        service.cancel_order(CancelOrderDTO(order_id=order.id), shopper_identity)

        assert _stock(product_b) == (3, True)

    @pytest.mark.parametrize("status", sorted(CANCELLABLE_STATES))
    def test_every_cancellable_stage(
        self, service, make_order, shopper, shopper_identity, product_a, status
    ):
        order = make_order(
            items=[(product_a, 1)], user_id=str(shopper.pk), status=status
        )

        result = service.cancel_order(
            CancelOrderDTO(order_id=order.id), shopper_identity
        )

        assert result.status == OrderStatus.CANCELLED
        assert _stock(product_a) == (11, True)

    def test_legacy_lowercase_status_is_cancellable(
        self, service, make_order, shopper, shopper_identity, product_a
    ):
        order = make_order(items=[(product_a, 1)], user_id=str(shopper.pk))
        Order.objects.filter(id=order.id).update(status="processing")

        result = service.cancel_order(
            CancelOrderDTO(order_id=order.id), shopper_identity
        )

        assert result.status == OrderStatus.CANCELLED

    def test_reason_is_stripped_and_stored(self, service, order, shopper_identity):
        service.cancel_order(
            CancelOrderDTO(order_id=order.id, reason="  changed my mind  "),
            shopper_identity,
        )

        order.refresh_from_db()
        assert order.cancel_reason == "changed my mind"

    def test_blank_reason_is_not_stored(self, service, order, shopper_identity):
        service.cancel_order(
            CancelOrderDTO(order_id=order.id, reason="   "), shopper_identity
        )

        order.refresh_from_db()
        assert order.cancel_reason == ""

    def test_history_row_written(self, service, order, shopper_identity):
        service.cancel_order(CancelOrderDTO(order_id=order.id), shopper_identity)

        history = OrderStatusHistory.objects.get(order=order)
        assert history.old_status == OrderStatus.PLACED
        assert history.new_status == OrderStatus.CANCELLED
        assert history.actor_id == shopper_identity.subject_id

    def test_outbox_event_written(self, service, order, shopper_identity):
        service.cancel_order(
            CancelOrderDTO(order_id=order.id, reason="late"), shopper_identity
        )

        event = OutboxEvent.objects.get(
            event_type="OrderCancelled", aggregate_id=str(order.id)
        )
        assert event.topic == "orders"
        assert event.payload["previous_status"] == OrderStatus.PLACED
        assert event.payload["reason"] == "late"

    def test_result_has_items_with_products_expanded(
        self, service, order, shopper_identity, product_a
    ):
        result = service.cancel_order(
            CancelOrderDTO(order_id=order.id), shopper_identity
        )

        products = {item.product.id for item in result.items.all()}
        assert product_a.id in products

    def test_item_without_product_is_skipped(
        self, service, order, shopper_identity, product_a, product_b
    ):
        product_a.hard_delete()

        result = service.cancel_order(
            CancelOrderDTO(order_id=order.id), shopper_identity
        )

        assert result.status == OrderStatus.CANCELLED
        assert _stock(product_b) == (3, True)


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------


class TestCancelOwnership:
    def test_guest_owner_matched_by_email_case_insensitively(
        self, service, make_order, product_a
    ):
        order = make_order(items=[(product_a, 1)], guest_email="Guest@Example.com")
        guest = CallerIdentity(subject_id="auth0|guest", email="guest@example.COM")

        result = service.cancel_order(CancelOrderDTO(order_id=order.id), guest)

        assert result.status == OrderStatus.CANCELLED

    def test_stranger_is_rejected_without_writes(self, service, order, product_a):
        stranger = CallerIdentity(subject_id="someone-else", email="x@example.com")

        with pytest.raises(OrderAccessDenied):
            service.cancel_order(CancelOrderDTO(order_id=order.id), stranger)

        order.refresh_from_db()
        assert order.status == OrderStatus.PLACED
        assert _stock(product_a) == (10, True)
        assert not OrderStatusHistory.objects.filter(order=order).exists()

    def test_guest_order_needs_an_email(self, service, make_order, product_a):
        order = make_order(items=[(product_a, 1)], guest_email="guest@example.com")
        caller = CallerIdentity(subject_id="auth0|no-email", email=None)

        with pytest.raises(OrderAccessDenied):
            service.cancel_order(CancelOrderDTO(order_id=order.id), caller)


# ---------------------------------------------------------------------------
# State guard
# ---------------------------------------------------------------------------


class TestCancelStateGuard:
    def test_unknown_order(self, service, shopper_identity):
        with pytest.raises(OrderNotFound):
            service.cancel_order(CancelOrderDTO(order_id=uuid4()), shopper_identity)

    def test_already_cancelled(
        self, service, notifier, make_order, shopper, shopper_identity, product_a
    ):
        order = make_order(
            items=[(product_a, 4)],
            user_id=str(shopper.pk),
            status=OrderStatus.CANCELLED,
        )

        with pytest.raises(OrderAlreadyCancelled):
            service.cancel_order(CancelOrderDTO(order_id=order.id), shopper_identity)

        assert _stock(product_a) == (10, True)
        _assert_untouched(order, notifier)

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED],
    )
    def test_non_cancellable_stage(
        self,
        service,
        notifier,
        make_order,
        shopper,
        shopper_identity,
        product_a,
        status,
    ):
        order = make_order(
            items=[(product_a, 1)], user_id=str(shopper.pk), status=status
        )

        with pytest.raises(InvalidOrderStatus) as exc_info:
            service.cancel_order(CancelOrderDTO(order_id=order.id), shopper_identity)

        assert str(exc_info.value) == f"Order cannot be cancelled at {status} stage"
        order.refresh_from_db()
        assert order.status == status
        assert _stock(product_a) == (10, True)
        _assert_untouched(order, notifier)

    def test_unrecognised_status_is_not_cancellable(
        self, service, make_order, shopper, shopper_identity, product_a
    ):
        order = make_order(items=[(product_a, 1)], user_id=str(shopper.pk))
        Order.objects.filter(id=order.id).update(status="ON_HOLD")

        with pytest.raises(InvalidOrderStatus):
            service.cancel_order(CancelOrderDTO(order_id=order.id), shopper_identity)


# ---------------------------------------------------------------------------
# Best-effort side effects
# ---------------------------------------------------------------------------


class TestCancelSideEffects:
    def test_failing_item_does_not_stop_the_others(
        self, inventory, notifier, order, shopper_identity, product_a, product_b
    ):
        real_restore = inventory.restore_stock

        def flaky_restore(product_id, quantity):
            if product_id == str(product_a.id):
                raise RuntimeError("inventory store unavailable")
            return real_restore(product_id, quantity)

        with patch.object(inventory, "restore_stock", side_effect=flaky_restore):
            service = OrderService(OrderDjangoRepository(), inventory, notifier)
            result = service.cancel_order(
                CancelOrderDTO(order_id=order.id), shopper_identity
            )

        assert result.status == OrderStatus.CANCELLED
        assert _stock(product_a) == (10, True)
        assert _stock(product_b) == (3, True)

    def test_notification_sent_after_commit(
        self,
        service,
        notifier,
        order,
        shopper_identity,
        django_capture_on_commit_callbacks,
    ):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            service.cancel_order(CancelOrderDTO(order_id=order.id), shopper_identity)
            notifier.send_status_change.assert_not_called()

        assert len(callbacks) == 1
        callbacks[0]()
        sent_order, sent_status = notifier.send_status_change.call_args.args
        assert sent_order.id == order.id
        assert sent_status == OrderStatus.CANCELLED

    def test_notification_failure_is_swallowed(
        self,
        service,
        notifier,
        order,
        shopper_identity,
        django_capture_on_commit_callbacks,
    ):
        notifier.send_status_change.side_effect = RuntimeError("smtp down")

        with django_capture_on_commit_callbacks(execute=True):
            result = service.cancel_order(
                CancelOrderDTO(order_id=order.id), shopper_identity
            )

        assert result.status == OrderStatus.CANCELLED
        notifier.send_status_change.assert_called_once()

    def test_expanded_read_failure_returns_updated_order(
        self, service, order, shopper_identity
    ):
        with patch.object(
            OrderDjangoRepository,
            "get_by_id_with_expansions",
            side_effect=RuntimeError("read replica down"),
        ):
            result = service.cancel_order(
                CancelOrderDTO(order_id=order.id, reason="oops"), shopper_identity
            )

        assert result.id == order.id
        assert result.status == OrderStatus.CANCELLED
        assert result.cancel_reason == "oops"


# ---------------------------------------------------------------------------
# Repeated and racing cancellations
# ---------------------------------------------------------------------------


class _RacingRepository(OrderDjangoRepository):
    """Another request cancels the order just before our conditional update."""

    def compare_and_set_status(self, id, expected_status, new_status, **changes):
        Order.objects.filter(id=id).update(status=OrderStatus.CANCELLED)
        return super().compare_and_set_status(
            id, expected_status, new_status, **changes
        )


class TestCancelIdempotency:
    def test_second_cancel_fails_and_stock_is_credited_once(
        self, service, order, shopper_identity, product_a
    ):
        service.cancel_order(CancelOrderDTO(order_id=order.id), shopper_identity)

        with pytest.raises(OrderAlreadyCancelled):
            service.cancel_order(CancelOrderDTO(order_id=order.id), shopper_identity)

        assert _stock(product_a) == (12, True)

    def test_lost_race_reports_already_cancelled(
        self, inventory, notifier, order, shopper_identity, product_a
    ):
        service = OrderService(_RacingRepository(), inventory, notifier)

        with pytest.raises(OrderAlreadyCancelled):
            service.cancel_order(CancelOrderDTO(order_id=order.id), shopper_identity)

        assert _stock(product_a) == (10, True)
        assert not OrderStatusHistory.objects.filter(order=order).exists()
