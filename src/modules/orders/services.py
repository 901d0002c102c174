"""Order service layer (order lifecycle use cases).

``OrderService`` owns every decision about an order's status: who may
change it, which transitions are legal, and which side effects follow.

Cancellation in short:
1. Load the order and check the caller owns it.
2. Reject CANCELLED (``OrderAlreadyCancelled``) and any status outside the
   cancellable set (``InvalidOrderStatus``) before writing anything.
3. Apply the transition with a compare-and-swap on the status read in
   step 2, so a concurrent cancellation cannot credit stock twice.
4. Give each line item's quantity back to its product.  Each item runs in
   its own savepoint; one failure is logged and the others still run.
5. After commit, hand the notification to the dispatcher.  Failures are
   logged and never reach the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderCancelled, OrderStatusChanged
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderAccessDenied,
    OrderAlreadyCancelled,
    OrderNotFound,
)

if TYPE_CHECKING:
    from modules.core.identity import CallerIdentity
    from modules.orders.dtos import CancelOrderDTO, UpdateOrderStatusDTO
    from modules.orders.models import Order
    from modules.orders.notifications import IOrderNotifier
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.services import InventoryService

logger = structlog.get_logger(__name__)

# Bound on re-reads when the compare-and-swap loses to another writer.
STATUS_CAS_ATTEMPTS = 3


class OrderService:
    """Application service for order lifecycle use cases.

    Collaborators are injected (repository, inventory adjuster, notifier).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        inventory: InventoryService,
        notifier: IOrderNotifier,
    ) -> None:
        self._order_repo = order_repository
        self._inventory = inventory
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def cancel_order(self, dto: CancelOrderDTO, caller: CallerIdentity) -> Order:
        """Cancel an order on behalf of its owner and restock its items.

        Raises:
            OrderNotFound: no such order.
            OrderAccessDenied: caller is not the owner / guest on record.
            OrderAlreadyCancelled: the order is already CANCELLED.
            InvalidOrderStatus: the current stage does not allow cancelling.
        """
        order_id = str(dto.order_id)
        log = logger.bind(order_id=order_id, actor_id=caller.subject_id)

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")

        if not caller.owns(order.user_id, order.guest_email):
            log.warning("order.cancel_forbidden")
            raise OrderAccessDenied(f"Caller may not cancel order {order_id}.")

        changes: Dict[str, Any] = {}
        if dto.reason:
            changes["cancel_reason"] = dto.reason

        order, previous_status = self._transition(
            order, OrderStatus.CANCELLED, self._ensure_cancellable, changes
        )
        log = log.bind(previous_status=previous_status)

        self._order_repo.add_history(
            order_id=order.id,
            old_status=previous_status,
            new_status=OrderStatus.CANCELLED,
            notes=dto.reason or "Order cancelled",
            actor_id=caller.subject_id,
        )
        order.add_domain_event(
            OrderCancelled(
                aggregate_id=order.id,
                previous_status=previous_status,
                reason=dto.reason,
                actor_id=caller.subject_id,
            )
        )
        self._order_repo.record_events(order)
        log.info("order.cancelled", reason_given=bool(dto.reason))

        self._restore_inventory(order)
        self._notify_after_commit(order, OrderStatus.CANCELLED)
        return self._load_for_display(order)

    @transaction.atomic
    def update_status(self, dto: UpdateOrderStatusDTO, actor_id: str = "") -> Order:
        """Move an order along the transition table (never to CANCELLED).

        Raises:
            OrderNotFound: no such order.
            InvalidOrderStatus: the transition is not allowed.
        """
        order_id = str(dto.order_id)
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")

        def ensure_allowed(current: Order) -> None:
            if not current.can_transition_to(dto.new_status):
                logger.warning(
                    "order.invalid_transition",
                    order_id=order_id,
                    current_status=current.normalized_status,
                    new_status=dto.new_status,
                )
                raise InvalidOrderStatus(
                    f"Cannot transition from {current.normalized_status} "
                    f"to {dto.new_status}.",
                    current_status=current.normalized_status,
                )

        order, previous_status = self._transition(
            order, dto.new_status, ensure_allowed, {}
        )

        self._order_repo.add_history(
            order_id=order.id,
            old_status=previous_status,
            new_status=dto.new_status,
            notes=dto.notes,
            actor_id=actor_id,
        )
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                previous_status=previous_status,
                new_status=dto.new_status,
                actor_id=actor_id,
            )
        )
        self._order_repo.record_events(order)
        logger.info(
            "order.status_updated",
            order_id=order_id,
            previous_status=previous_status,
            new_status=dto.new_status,
        )

        self._notify_after_commit(order, dto.new_status)
        return self._load_for_display(order)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, caller: CallerIdentity) -> Order:
        """Retrieve one of the caller's orders.

        Raises:
            OrderNotFound: no such order.
            OrderAccessDenied: the order belongs to someone else.
        """
        order = self._order_repo.get_by_id_with_expansions(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        if not caller.owns(order.user_id, order.guest_email):
            raise OrderAccessDenied(f"Caller may not view order {order_id}.")
        return order

    def list_orders(
        self, caller: CallerIdentity, filters: Optional[Dict[str, Any]] = None
    ):
        """Orders the caller owns, either registered or as a guest."""
        return self._order_repo.list_for_owner(
            caller.subject_id, email=caller.email, filters=filters
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_cancellable(order: Order) -> None:
        status = order.normalized_status
        if status == OrderStatus.CANCELLED:
            raise OrderAlreadyCancelled(f"Order {order.id} is already cancelled.")
        if not order.is_cancellable:
            logger.warning(
                "order.cancel_not_allowed", order_id=str(order.id), status=status
            )
            raise InvalidOrderStatus(
                f"Order cannot be cancelled at {status} stage",
                current_status=status,
            )

    def _transition(
        self,
        order: Order,
        new_status: str,
        guard,
        changes: Dict[str, Any],
    ) -> tuple[Order, str]:
        """Guard then compare-and-swap; re-read and re-guard on a lost race.

        Returns the order (with the new status applied in memory) and the
        status it had before.
        """
        for _ in range(STATUS_CAS_ATTEMPTS):
            guard(order)
            previous_status = order.status
            if self._order_repo.compare_and_set_status(
                str(order.id), previous_status, new_status, **changes
            ):
                order.status = new_status
                for field, value in changes.items():
                    setattr(order, field, value)
                return order, str(previous_status)

            logger.info(
                "order.status_changed_concurrently",
                order_id=str(order.id),
                expected_status=previous_status,
            )
            reloaded = self._order_repo.get_by_id(str(order.id))
            if reloaded is None:
                raise OrderNotFound(f"Order {order.id} not found.")
            order = reloaded

        guard(order)
        raise InvalidOrderStatus(
            f"Order {order.id} is being modified concurrently; retry later.",
            current_status=order.normalized_status,
        )

    def _restore_inventory(self, order: Order) -> None:
        log = logger.bind(order_id=str(order.id))
        for item in order.items.all():
            quantity = int(item.quantity or 0)
            product_id = item.product_id
            if not product_id or quantity <= 0:
                continue
            try:
                with transaction.atomic():
                    self._inventory.restore_stock(str(product_id), quantity)
            except Exception as exc:
                log.error(
                    "order.stock_restore_failed",
                    product_id=str(product_id),
                    quantity=quantity,
                    error=str(exc),
                    exc_info=exc,
                )

    def _notify_after_commit(self, order: Order, new_status: str) -> None:
        transaction.on_commit(lambda: self._dispatch_notification(order, new_status))

    def _dispatch_notification(self, order: Order, new_status: str) -> None:
        try:
            self._notifier.send_status_change(order, new_status)
        except Exception as exc:
            logger.error(
                "order.notification_failed",
                order_id=str(order.id),
                status=str(new_status),
                error=str(exc),
                exc_info=exc,
            )

    def _load_for_display(self, order: Order) -> Order:
        """Re-read with expansions; fall back to the in-memory order."""
        try:
            with transaction.atomic():
                expanded = self._order_repo.get_by_id_with_expansions(
                    str(order.id)
                )
        except Exception as exc:
            logger.warning(
                "order.expansion_failed", order_id=str(order.id), error=str(exc)
            )
            return order
        return expanded or order
