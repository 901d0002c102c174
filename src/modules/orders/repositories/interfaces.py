"""Order repository interface (Order Store).

The service layer depends only on this contract.  Status changes go
through ``compare_and_set_status`` so two requests racing on the same order
cannot both apply a transition.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    @abstractmethod
    def get_by_id_with_expansions(self, id: str) -> Optional[Order]:
        """Retrieve an order with items→product, address and history loaded."""

    @abstractmethod
    def list_for_owner(
        self,
        user_id: str,
        email: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Sequence[Order]:
        """Orders owned by *user_id* or placed as a guest with *email*."""

    @abstractmethod
    def compare_and_set_status(
        self,
        id: str,
        expected_status: str,
        new_status: str,
        **changes: Any,
    ) -> bool:
        """Move the order to *new_status* only if it still has *expected_status*.

        Extra ``changes`` (e.g. ``cancel_reason``) are written in the same
        statement.  Returns ``False`` when the row did not match.
        """

    @abstractmethod
    def record_events(self, entity: Order) -> int:
        """Write the aggregate's pending domain events to the outbox."""

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        old_status: str,
        new_status: str,
        notes: str = "",
        actor_id: str = "",
    ) -> OrderStatusHistory:
        """Append a record to the order's audit trail."""

    @abstractmethod
    def erase_for_owner(self, user_id: str) -> int:
        """Physically delete every order of *user_id*; returns the count."""
