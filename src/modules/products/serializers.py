"""Product DRF serializers (read side)."""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Storefront projection of a product."""

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "slug",
            "description",
            "short_description",
            "category",
            "images",
            "price",
            "mrp",
            "stock_quantity",
            "in_stock",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductSummarySerializer(serializers.ModelSerializer):
    """Compact projection embedded in order line items and offer listings."""

    class Meta:
        model = Product
        fields = ["id", "sku", "name", "slug", "price", "mrp", "images", "in_stock"]
        read_only_fields = fields
