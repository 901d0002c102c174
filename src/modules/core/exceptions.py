"""Project-wide DRF exception handler.

Every failure leaves the API as ``{"error": "<message>"}``.  Expected
conditions are raised as DRF ``APIException`` subclasses (or translated by
the views); anything else is an unexpected dependency/storage failure and
is answered with 500 carrying the original message so operators can
diagnose it from the client report.
"""

from __future__ import annotations

from typing import Any

import structlog
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import set_rollback

logger = structlog.get_logger(__name__)


def _first_message(detail: Any) -> str:
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else "Invalid input."
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            return message if key == "non_field_errors" else f"{key}: {message}"
        return "Invalid input."
    return str(detail)


def json_error_exception_handler(exc: Exception, context: dict) -> Response:
    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    if isinstance(exc, exceptions.APIException):
        headers = {}
        if getattr(exc, "auth_header", None):
            headers["WWW-Authenticate"] = exc.auth_header
        if getattr(exc, "wait", None):
            headers["Retry-After"] = str(int(exc.wait))

        body: dict[str, Any] = {"error": _first_message(exc.detail)}
        if isinstance(exc, exceptions.ValidationError):
            body["details"] = exc.detail

        set_rollback()
        return Response(body, status=exc.status_code, headers=headers)

    view = context.get("view")
    logger.error(
        "api.unexpected_error",
        view=view.__class__.__name__ if view else None,
        error=str(exc),
        exc_info=exc,
    )
    set_rollback()
    return Response(
        {"error": str(exc) or "Internal server error."},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
