"""Order API views.

Exposes ``OrderService`` over HTTP.  Domain exceptions are caught and
translated into HTTP status codes with an ``{"error": ...}`` body; anything
unexpected propagates to the project exception handler (500).
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.core.identity import identity_from_request
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import CancelOrderDTO, UpdateOrderStatusDTO
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderAccessDenied,
    OrderAlreadyCancelled,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.notifications import CeleryOrderNotifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import InventoryService


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        inventory=InventoryService(repository=ProductDjangoRepository()),
        notifier=CeleryOrderNotifier(),
    )


def _error(message: str, http_status: int) -> Response:
    return Response({"error": message}, status=http_status)


class OrderCancelView(APIView):
    """POST /api/v1/orders/cancel/

    Body ``{"orderId": "...", "reason": "..."}``.  Cancels one of the
    caller's orders and gives its line items back to stock.
    """

    permission_classes = [IsAuthenticated]
    throttle_scope = "order_cancellation"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def post(self, request: Request) -> Response:
        caller = identity_from_request(request)

        serializer = CancelOrderSerializer(data=request.data)
        if not serializer.is_valid():
            if "orderId" in serializer.errors:
                return _error("Order ID is required", status.HTTP_400_BAD_REQUEST)
            raise ValidationError(serializer.errors)
        data = serializer.validated_data

        try:
            dto = CancelOrderDTO(order_id=data["orderId"], reason=data.get("reason"))
        except PydanticValidationError:
            # A malformed id cannot name an existing order.
            return _error("Order not found", status.HTTP_404_NOT_FOUND)

        try:
            order = self._service.cancel_order(dto, caller)
        except OrderNotFound:
            return _error("Order not found", status.HTTP_404_NOT_FOUND)
        except OrderAccessDenied:
            return _error("Unauthorized", status.HTTP_403_FORBIDDEN)
        except OrderAlreadyCancelled:
            return _error("Order already cancelled", status.HTTP_400_BAD_REQUEST)
        except InvalidOrderStatus as exc:
            return _error(str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "success": True,
                "message": "Order cancelled successfully",
                "order": OrderSerializer(order).data,
            }
        )


class OrderStatusView(APIView):
    """PATCH /api/v1/orders/{pk}/status/ (staff only).

    Moves an order along the transition table.  Cancellations are not
    accepted here; they go through ``/orders/cancel/``.
    """

    permission_classes = [IsAdminUser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def patch(self, request: Request, pk: str) -> Response:
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = UpdateOrderStatusDTO(
                order_id=pk, new_status=data["status"], notes=data["notes"]
            )
        except PydanticValidationError:
            return _error("Order not found", status.HTTP_404_NOT_FOUND)

        try:
            order = self._service.update_status(dto, actor_id=str(request.user.pk))
        except OrderNotFound:
            return _error("Order not found", status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatus as exc:
            return _error(str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data)


class OrderViewSet(GenericViewSet):
    """Read-only access to the caller's own orders.

    Ownership scoping happens in the repository; filtering, ordering and
    pagination are left to the DRF backends.
    """

    queryset = Order.objects.none()
    permission_classes = [IsAuthenticated]
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    throttle_scope = "order_listing"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(identity_from_request(self.request))

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/"""
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        caller = identity_from_request(request)
        try:
            order = self._service.get_order(str(pk), caller)
        except OrderNotFound:
            return _error("Order not found", status.HTTP_404_NOT_FOUND)
        except OrderAccessDenied:
            return _error("Unauthorized", status.HTTP_403_FORBIDDEN)
        return Response(OrderSerializer(order).data)
