"""Account API views."""

from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.exceptions import AccountErasureIncomplete
from modules.accounts.repositories.django_repository import AddressDjangoRepository
from modules.accounts.services import AccountErasureService
from modules.core.identity import identity_from_request
from modules.offers.repositories.django_repository import OfferDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository


class AccountDeleteView(APIView):
    """POST /api/v1/account/delete/

    Erases the caller's addresses, orders and offers (and the local user
    row for Django-authenticated callers).
    """

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AccountErasureService(
            address_repository=AddressDjangoRepository(),
            order_repository=OrderDjangoRepository(),
            offer_repository=OfferDjangoRepository(),
        )

    def post(self, request: Request) -> Response:
        caller = identity_from_request(request)
        local_user_pk = (
            request.user.pk if isinstance(request.user, get_user_model()) else None
        )

        try:
            deleted = self._service.erase(caller, local_user_pk=local_user_pk)
        except AccountErasureIncomplete as exc:
            return Response(
                {"error": str(exc), "deleted": exc.deleted, "failed": exc.failed},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(
            {
                "success": True,
                "message": "Account deleted successfully",
                "deleted": deleted,
            }
        )
