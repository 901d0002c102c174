"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import OrderCancelView, OrderStatusView, OrderViewSet

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

# Explicit routes first: "cancel" would otherwise match the detail route.
urlpatterns = [
    path("orders/cancel/", OrderCancelView.as_view(), name="order-cancel"),
    path("orders/<str:pk>/status/", OrderStatusView.as_view(), name="order-status"),
    *router.urls,
]
