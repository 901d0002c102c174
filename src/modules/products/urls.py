"""Product URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.products.views import ProductBySlugView

urlpatterns = [
    path(
        "products/by-slug/<str:slug>/",
        ProductBySlugView.as_view(),
        name="product-by-slug",
    ),
]
