"""Order status model.

``VALID_TRANSITIONS`` is the single source of truth for which moves are
legal; the cancellable set is derived from it rather than listed twice.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PLACED = "ORDER_PLACED", "Order placed"
    CONFIRMED = "CONFIRMED", "Confirmed"
    PROCESSING = "PROCESSING", "Processing"
    PICKUP_REQUESTED = "PICKUP_REQUESTED", "Pickup requested"
    WAITING_FOR_PICKUP = "WAITING_FOR_PICKUP", "Waiting for pickup"
    SHIPPED = "SHIPPED", "Shipped"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", "Out for delivery"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


VALID_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PLACED: frozenset(
        {OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.CANCELLED}
    ),
    OrderStatus.CONFIRMED: frozenset(
        {OrderStatus.PROCESSING, OrderStatus.PICKUP_REQUESTED, OrderStatus.CANCELLED}
    ),
    OrderStatus.PROCESSING: frozenset(
        {OrderStatus.PICKUP_REQUESTED, OrderStatus.SHIPPED, OrderStatus.CANCELLED}
    ),
    OrderStatus.PICKUP_REQUESTED: frozenset(
        {
            OrderStatus.WAITING_FOR_PICKUP,
            OrderStatus.SHIPPED,
            OrderStatus.CANCELLED,
        }
    ),
    OrderStatus.WAITING_FOR_PICKUP: frozenset(
        {OrderStatus.SHIPPED, OrderStatus.CANCELLED}
    ),
    OrderStatus.SHIPPED: frozenset(
        {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED}
    ),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES: frozenset[str] = frozenset(
    status for status, targets in VALID_TRANSITIONS.items() if not targets
)

CANCELLABLE_STATES: frozenset[str] = frozenset(
    status
    for status, targets in VALID_TRANSITIONS.items()
    if OrderStatus.CANCELLED in targets
)

ORDER_NUMBER_MAX_RETRIES = 5


def normalize_status(value: object) -> str:
    """Upper-case a stored status; legacy rows were written in mixed case."""
    return str(value or "").strip().upper()
