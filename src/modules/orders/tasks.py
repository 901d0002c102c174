"""Asynchronous order tasks."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from modules.orders.constants import OrderStatus
from modules.orders.models import Order

logger = structlog.get_logger(__name__)

_STATUS_LINES = {
    OrderStatus.CANCELLED: "Your order has been cancelled.",
    OrderStatus.CONFIRMED: "Your order has been confirmed.",
    OrderStatus.SHIPPED: "Your order is on its way.",
    OrderStatus.DELIVERED: "Your order has been delivered.",
}


def render_status_email(order: Order, status: str) -> tuple[str, str]:
    label = OrderStatus(status).label if status in OrderStatus.values else status
    subject = f"Order {order.order_number}: {label}"
    lines = [
        _STATUS_LINES.get(status, f"Your order status is now: {label}."),
        "",
        f"Order number: {order.order_number}",
        f"Total: {order.total_amount}",
    ]
    if status == OrderStatus.CANCELLED and order.cancel_reason:
        lines.append(f"Reason: {order.cancel_reason}")
    return subject, "\n".join(lines)


@shared_task(name="orders.send_order_status_email")
def send_order_status_email(order_id: str, status: str) -> bool:
    """Send the status-change e-mail; returns ``False`` when nothing was sent."""
    log = logger.bind(order_id=order_id, status=status)

    order = Order.objects.select_related("address").filter(id=order_id).first()
    if order is None:
        log.warning("order.notification_order_missing")
        return False

    recipient = order.contact_email
    if not recipient:
        log.info("order.notification_skipped_no_contact")
        return False

    subject, body = render_status_email(order, status)
    send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient])
    log.info("order.notification_sent")
    return True
