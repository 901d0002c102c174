"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """An order moved to CANCELLED."""

    previous_status: str = ""
    reason: str = ""
    actor_id: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """An order moved between two non-cancelled statuses."""

    previous_status: str = ""
    new_status: str = ""
    actor_id: str = ""
