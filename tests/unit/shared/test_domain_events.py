"""Unit tests for domain event primitives."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.core.outbox import serialize_event
from modules.orders.events import OrderCancelled, OrderStatusChanged
from modules.orders.models import Order
from shared.domain.events import DomainEvent

pytestmark = pytest.mark.unit


class TestDomainEvent:
    def test_event_name_is_class_name(self):
        assert OrderCancelled(aggregate_id=uuid4()).event_name == "OrderCancelled"

    def test_subclasses_are_registered(self):
        assert DomainEvent.registry["OrderStatusChanged"] is OrderStatusChanged

    def test_round_trip_through_payload(self):
        event = OrderStatusChanged(
            aggregate_id=uuid4(), previous_status="CONFIRMED", new_status="SHIPPED"
        )

        rebuilt = DomainEvent.from_payload("OrderStatusChanged", serialize_event(event))

        assert rebuilt == event

    def test_unknown_type(self):
        with pytest.raises(KeyError):
            DomainEvent.from_payload("Nope", {"aggregate_id": str(uuid4())})


class TestDomainEventMixin:
    def test_collects_and_clears(self):
        order = Order()
        order.add_domain_event(OrderCancelled(aggregate_id=uuid4()))

        assert len(order.domain_events) == 1
        order.clear_domain_events()
        assert order.domain_events == []
