"""Personalized offer API views.

Public: resolve-by-slug, validate-token, mark-used.  Store admin (sellers
linked to a store through ``StoreMember``): list/create and update/delete,
always within the caller's own store.
"""

from __future__ import annotations

from typing import Optional

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.identity import identity_from_request
from modules.offers.dtos import CreateOfferDTO, UpdateOfferDTO
from modules.offers.exceptions import (
    InvalidOfferData,
    OfferAccessDenied,
    OfferAlreadyUsed,
    OfferExpired,
    OfferNotFound,
    OfferProductMissing,
    StoreAccessDenied,
)
from modules.offers.repositories.django_repository import (
    OfferDjangoRepository,
    StoreMemberDjangoRepository,
)
from modules.offers.serializers import (
    CreatedOfferSerializer,
    CreateOfferSerializer,
    MarkOfferUsedSerializer,
    OfferListQuerySerializer,
    OfferSerializer,
    OfferViewSerializer,
    SlugOfferViewSerializer,
    StoreOfferEntrySerializer,
    UpdateOfferSerializer,
)
from modules.offers.services import OfferService
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository

NO_STORE_ACCESS = "Forbidden - No store access"


def build_offer_service() -> OfferService:
    return OfferService(
        offer_repository=OfferDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        membership_repository=StoreMemberDjangoRepository(),
    )


def _error(message: str, http_status: int) -> Response:
    return Response({"error": message}, status=http_status)


def _offer_view_response(view, serializer_class=OfferViewSerializer) -> Response:
    return Response({"success": True, **serializer_class(view).data})


class _OfferAPIView(APIView):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_offer_service()


class OfferResolveView(_OfferAPIView):
    """GET /api/v1/personalized-offers/resolve/{slug}/ (public)."""

    permission_classes = [AllowAny]
    authentication_classes: list = []
    throttle_scope = "offer_lookup"

    def get(self, request: Request, slug: str) -> Response:
        try:
            view = self._service.resolve_by_slug(slug)
        except ProductNotFound:
            return _error("Product not found", status.HTTP_404_NOT_FOUND)
        except OfferNotFound:
            return _error(
                "No active offer found for this product", status.HTTP_404_NOT_FOUND
            )
        return _offer_view_response(view, SlugOfferViewSerializer)


class OfferTokenView(_OfferAPIView):
    """GET/POST /api/v1/personalized-offers/validate/{token}/ (public).

    GET returns the offer with its validity flags; POST consumes it.
    """

    permission_classes = [AllowAny]
    authentication_classes: list = []
    throttle_scope = "offer_lookup"

    def get(self, request: Request, token: str) -> Response:
        try:
            view = self._service.validate_token(token)
        except OfferNotFound:
            return Response(
                {"error": "Invalid offer link", "expired": False, "not_found": True},
                status=status.HTTP_404_NOT_FOUND,
            )
        except OfferProductMissing:
            return _error("Product not found for this offer", status.HTTP_404_NOT_FOUND)
        return _offer_view_response(view)

    def post(self, request: Request, token: str) -> Response:
        serializer = MarkOfferUsedSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order_id = serializer.validated_data.get("orderId") or ""

        try:
            self._service.mark_used(token, order_id=order_id)
        except OfferNotFound:
            return _error("Offer not found", status.HTTP_404_NOT_FOUND)
        except OfferAlreadyUsed:
            return _error(
                "This offer has already been used", status.HTTP_400_BAD_REQUEST
            )
        except OfferExpired:
            return _error("This offer has expired", status.HTTP_400_BAD_REQUEST)
        return Response({"success": True, "message": "Offer marked as used"})


class _StoreAdminView(_OfferAPIView):
    """Offer management for sellers, scoped to the store they manage."""

    permission_classes = [IsAuthenticated]

    def _caller_store(self, request: Request, requested: Optional[str] = None) -> str:
        """Caller's store; a *requested* store other than that one is refused.

        Raises:
            StoreAccessDenied
        """
        store_id = self._service.store_for(identity_from_request(request))
        if requested and requested != store_id:
            raise StoreAccessDenied(f"No access to store {requested}.")
        return store_id


class OfferListCreateView(_StoreAdminView):
    """GET/POST /api/v1/personalized-offers/ (store sellers)."""

    def get(self, request: Request) -> Response:
        query = OfferListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            store_id = self._caller_store(
                request, query.validated_data.get("store_id")
            )
        except StoreAccessDenied:
            return _error(NO_STORE_ACCESS, status.HTTP_403_FORBIDDEN)

        entries = self._service.list_for_store(
            store_id, query.validated_data["status"]
        )
        return Response(
            {
                "success": True,
                "offers": StoreOfferEntrySerializer(entries, many=True).data,
                "count": len(entries),
                "store_id": store_id,
            }
        )

    def post(self, request: Request) -> Response:
        serializer = CreateOfferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        try:
            data["store_id"] = self._caller_store(request, data.get("store_id"))
        except StoreAccessDenied:
            return _error(NO_STORE_ACCESS, status.HTTP_403_FORBIDDEN)
        dto = CreateOfferDTO(**data)

        try:
            created = self._service.create_offer(dto)
        except ProductNotFound:
            return _error("Product not found", status.HTTP_404_NOT_FOUND)
        except InvalidOfferData as exc:
            return _error(str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "success": True,
                "message": "Personalized offer created successfully",
                "offer": CreatedOfferSerializer(created).data,
            },
            status=status.HTTP_201_CREATED,
        )


class OfferDetailView(_StoreAdminView):
    """PATCH/DELETE /api/v1/personalized-offers/{pk}/ (store sellers)."""

    def patch(self, request: Request, pk) -> Response:
        serializer = UpdateOfferSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        dto = UpdateOfferDTO(offer_id=pk, **serializer.validated_data)

        try:
            offer = self._service.update_offer(dto, self._caller_store(request))
        except StoreAccessDenied:
            return _error(NO_STORE_ACCESS, status.HTTP_403_FORBIDDEN)
        except OfferNotFound:
            return _error("Offer not found", status.HTTP_404_NOT_FOUND)
        except OfferAccessDenied:
            return _error(NO_STORE_ACCESS, status.HTTP_403_FORBIDDEN)
        except InvalidOfferData as exc:
            return _error(str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "success": True,
                "message": "Offer updated successfully",
                "offer": OfferSerializer(offer).data,
            }
        )

    def delete(self, request: Request, pk) -> Response:
        try:
            self._service.delete_offer(str(pk), self._caller_store(request))
        except (StoreAccessDenied, OfferAccessDenied):
            return _error(NO_STORE_ACCESS, status.HTTP_403_FORBIDDEN)
        except OfferNotFound:
            return _error("Offer not found", status.HTTP_404_NOT_FOUND)
        return Response({"success": True, "message": "Offer deleted successfully"})
