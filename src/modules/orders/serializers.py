"""Order DRF serializers for API input/output.

Business logic lives in ``OrderService``, which receives the Pydantic DTOs
from ``dtos.py``; these serializers only validate request shape and render
responses.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.serializers import AddressSerializer
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.products.serializers import ProductSummarySerializer

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CancelOrderSerializer(serializers.Serializer):
    """``{orderId, reason?}`` as sent by the storefront."""

    orderId = serializers.CharField(
        error_messages={
            "required": "Order ID is required",
            "blank": "Order ID is required",
            "null": "Order ID is required",
        },
    )
    reason = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=""
    )


class UpdateOrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_status(self, value: str) -> str:
        normalized = value.strip().upper()
        if normalized == OrderStatus.CANCELLED:
            raise serializers.ValidationError(
                "Use the /orders/cancel/ endpoint for cancellations."
            )
        if normalized not in OrderStatus.values:
            raise serializers.ValidationError(f"Unknown order status '{value}'.")
        return normalized


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Line item with the referenced product expanded (``null`` once deleted)."""

    product = ProductSummarySerializer(read_only=True, allow_null=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items, address and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    address = AddressSerializer(read_only=True, allow_null=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "guest_email",
            "status",
            "total_amount",
            "cancel_reason",
            "notes",
            "address",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "total_amount",
            "created_at",
        ]
        read_only_fields = fields
