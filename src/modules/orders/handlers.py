"""Event handlers for Orders domain events (fed by the outbox relay)."""

from __future__ import annotations

import structlog

from modules.orders.events import OrderCancelled, OrderStatusChanged
from shared.domain.bus import IEventBus, IEventHandler

logger = structlog.get_logger(__name__)


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.cancelled_event_processed",
            order_id=str(event.aggregate_id),
            previous_status=event.previous_status,
            reason_given=bool(event.reason),
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.status_changed_event_processed",
            order_id=str(event.aggregate_id),
            previous_status=event.previous_status,
            new_status=event.new_status,
        )


def register_handlers(bus: IEventBus) -> None:
    bus.subscribe(OrderCancelled, OrderCancelledHandler())
    bus.subscribe(OrderStatusChanged, OrderStatusChangedHandler())
