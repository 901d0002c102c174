"""Order domain exceptions.

Raised by ``OrderService``; ``views.py`` maps each one to an HTTP status.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist (or the id is malformed)."""


class OrderAccessDenied(Exception):
    """The caller is neither the registered owner nor the guest on record."""


class OrderAlreadyCancelled(Exception):
    """Cancellation requested for an order that is already CANCELLED."""


class InvalidOrderStatus(Exception):
    """The requested transition is not allowed from the current status."""

    def __init__(self, message: str, current_status: str = "") -> None:
        super().__init__(message)
        self.current_status = current_status
