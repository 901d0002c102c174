"""Product API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer
from modules.products.services import ProductService


class ProductBySlugView(APIView):
    """GET /api/v1/products/by-slug/{slug}/ (public)."""

    permission_classes = [AllowAny]
    authentication_classes: list = []

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def get(self, request: Request, slug: str) -> Response:
        try:
            product = self._service.get_by_slug(slug)
        except ProductNotFound:
            return Response(
                {"error": "Product not found"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({"product": ProductSerializer(product).data})
