"""Notification dispatcher for order status changes.

The service only knows ``IOrderNotifier``; production wiring hands it a
``CeleryOrderNotifier`` which enqueues the e-mail task so delivery (and
its failures) happen outside the request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import structlog
from django.conf import settings

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class IOrderNotifier(ABC):
    @abstractmethod
    def send_status_change(self, order: Order, new_status: str) -> None:
        """Tell the order contact about *new_status*; may raise."""


class CeleryOrderNotifier(IOrderNotifier):
    def send_status_change(self, order: Order, new_status: str) -> None:
        from modules.orders.tasks import send_order_status_email

        if not getattr(settings, "ORDER_NOTIFICATIONS_ENABLED", True):
            logger.info("order.notification_disabled", order_id=str(order.id))
            return
        send_order_status_email.delay(str(order.id), str(new_status))
        logger.info(
            "order.notification_enqueued",
            order_id=str(order.id),
            status=str(new_status),
        )
