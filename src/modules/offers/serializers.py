"""Personalized offer serializers.

Input serializers check request shape; output serializers render the
service-layer views (``OfferView``, ``StoreOfferEntry``, ``CreatedOffer``).
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.offers.constants import OfferListStatus
from modules.offers.models import PersonalizedOffer
from modules.products.serializers import ProductSerializer, ProductSummarySerializer

DISCOUNT_RANGE_MESSAGE = "Discount percent must be between 0 and 100"


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOfferSerializer(serializers.Serializer):
    # Defaults to the caller's store; any other value is refused.
    store_id = serializers.CharField(max_length=128, required=False)
    customer_email = serializers.EmailField()
    customer_phone = serializers.CharField(
        max_length=20, required=False, allow_blank=True, default=""
    )
    customer_name = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    product_id = serializers.UUIDField()
    discount_percent = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=Decimal("100"),
        error_messages={
            "min_value": DISCOUNT_RANGE_MESSAGE,
            "max_value": DISCOUNT_RANGE_MESSAGE,
        },
    )
    expires_at = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class UpdateOfferSerializer(serializers.Serializer):
    discount_percent = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=Decimal("100"),
        required=False,
        error_messages={
            "min_value": DISCOUNT_RANGE_MESSAGE,
            "max_value": DISCOUNT_RANGE_MESSAGE,
        },
    )
    expires_at = serializers.DateTimeField(required=False)
    is_active = serializers.BooleanField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class MarkOfferUsedSerializer(serializers.Serializer):
    orderId = serializers.CharField(
        max_length=64, required=False, allow_blank=True, allow_null=True
    )


class OfferListQuerySerializer(serializers.Serializer):
    store_id = serializers.CharField(max_length=128, required=False)
    status = serializers.ChoiceField(
        choices=OfferListStatus.choices, required=False, default=OfferListStatus.ALL
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class PublicOfferSerializer(serializers.ModelSerializer):
    """Offer fields a customer may see (no store or order bookkeeping)."""

    class Meta:
        model = PersonalizedOffer
        fields = [
            "id",
            "offer_token",
            "customer_email",
            "customer_name",
            "discount_percent",
            "expires_at",
            "is_active",
            "is_used",
            "notes",
        ]
        read_only_fields = fields


class SlugOfferSerializer(PublicOfferSerializer):
    """Offer fields shown to anyone who knows the product slug.

    Leaves out the token (which consumes the offer) and the recipient.
    """

    class Meta(PublicOfferSerializer.Meta):
        fields = [
            name
            for name in PublicOfferSerializer.Meta.fields
            if name not in ("offer_token", "customer_email")
        ]
        read_only_fields = fields


class OfferSerializer(serializers.ModelSerializer):
    class Meta:
        model = PersonalizedOffer
        fields = [
            "id",
            "offer_token",
            "store_id",
            "customer_email",
            "customer_phone",
            "customer_name",
            "product_id",
            "discount_percent",
            "expires_at",
            "is_active",
            "is_used",
            "used_at",
            "order_id",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OfferViewSerializer(serializers.Serializer):
    """Composite offer + enriched product payload of the public endpoints."""

    offer_serializer_class = PublicOfferSerializer

    valid = serializers.BooleanField()
    expired = serializers.BooleanField()
    used = serializers.BooleanField()
    offer = serializers.SerializerMethodField()
    product = serializers.SerializerMethodField()

    def get_offer(self, view) -> dict:
        data = dict(self.offer_serializer_class(view.offer).data)
        data["time_remaining"] = view.time_remaining_ms
        return data

    def get_product(self, view) -> dict:
        data = dict(ProductSerializer(view.product).data)
        data.update(
            original_price=_money(view.pricing.original_price),
            discounted_price=_money(view.pricing.discounted_price),
            savings=_money(view.pricing.savings),
            discount_percent=_money(view.pricing.discount_percent),
        )
        return data


class SlugOfferViewSerializer(OfferViewSerializer):
    offer_serializer_class = SlugOfferSerializer


class StoreOfferEntrySerializer(serializers.Serializer):
    is_expired = serializers.BooleanField()
    is_valid = serializers.BooleanField()

    def to_representation(self, entry) -> dict:
        data = dict(OfferSerializer(entry.offer).data)
        data["product"] = (
            ProductSummarySerializer(entry.product).data if entry.product else None
        )
        data.update(super().to_representation(entry))
        return data


class CreatedOfferSerializer(serializers.Serializer):
    def to_representation(self, created) -> dict:
        data = dict(OfferSerializer(created.offer).data)
        data["product"] = ProductSummarySerializer(created.product).data
        data["discounted_price"] = _money(created.pricing.discounted_price)
        data["offer_url"] = created.offer_url
        return data
