"""Django ORM implementation of the Order repository.

``save`` writes the aggregate plus its pending domain events (as outbox
rows) in one transaction.  Status transitions use a conditional
``UPDATE ... WHERE status = <expected>`` instead of a row lock, which also
works on databases without ``SELECT FOR UPDATE``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from modules.core.outbox import record_events
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _expanded(self) -> QuerySet:
        return (
            Order.objects.alive()
            .select_related("address")
            .prefetch_related("items__product", "status_history")
        )

    def get_by_id(self, id: str) -> Optional[Order]:
        """Order with its items prefetched; ``None`` for unknown/invalid ids."""
        try:
            return (
                Order.objects.alive()
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_id_with_expansions(self, id: str) -> Optional[Order]:
        try:
            return self._expanded().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        queryset = self._expanded()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_owner(
        self,
        user_id: str,
        email: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> QuerySet:
        """Owner-scoped queryset (left lazy so filter backends can refine it)."""
        owner = Q(user_id=user_id)
        if email:
            owner |= Q(guest_email__iexact=email)
        queryset = self._expanded().filter(owner)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        event_count = self.record_events(entity)
        logger.info("order.saved", order_id=str(entity.id), event_count=event_count)
        return entity

    def record_events(self, entity: Order) -> int:
        count = record_events(entity.domain_events, topic=OUTBOX_TOPIC)
        entity.clear_domain_events()
        return count

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an order by ID."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.soft_deleted", order_id=str(id))
        return True

    def compare_and_set_status(
        self,
        id: str,
        expected_status: str,
        new_status: str,
        **changes: Any,
    ) -> bool:
        try:
            updated = Order.objects.filter(id=id, status=expected_status).update(
                status=new_status,
                updated_at=timezone.now(),
                **changes,
            )
        except (ValueError, ValidationError):
            return False

        logger.info(
            "order.status_cas",
            order_id=str(id),
            expected_status=expected_status,
            new_status=new_status,
            applied=bool(updated),
        )
        return bool(updated)

    def add_history(
        self,
        order_id: Any,
        old_status: str,
        new_status: str,
        notes: str = "",
        actor_id: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status or "",
            new_status=new_status,
            notes=notes,
            actor_id=actor_id,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    @transaction.atomic
    def erase_for_owner(self, user_id: str) -> int:
        """Hard delete; items and history go with the order (CASCADE)."""
        count = Order.objects.filter(user_id=user_id).count()
        Order.objects.filter(user_id=user_id).hard_delete()
        logger.info("order.erased_for_owner", count=count)
        return count
