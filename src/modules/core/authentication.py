"""Auth0 JWT authentication backend for Django REST Framework.

Storefront shoppers sign in with the hosted identity provider; their ID/
access tokens are RS256 JWTs verified against the tenant JWKS, which
``PyJWKClient`` caches in memory (300 s).  Staff and service accounts keep
using locally issued SimpleJWT tokens, so this backend steps aside for any
token not issued by the configured tenant.

* Any decode / validation error returns 401.
* ``algorithms`` is fixed from configuration, never read from the token.
* Audience and issuer are always validated.
"""

from __future__ import annotations

from typing import Any, Optional

import jwt as pyjwt
import structlog
from decouple import config
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = structlog.get_logger(__name__)

AUTH0_DOMAIN = config("AUTH0_DOMAIN", default="")
AUTH0_AUDIENCE = config("AUTH0_AUDIENCE", default="")
AUTH0_ALGORITHM = config("AUTH0_ALGORITHM", default="RS256")
# Auth0 only puts ``email`` in access tokens through a namespaced custom claim.
AUTH0_EMAIL_CLAIM = config("AUTH0_EMAIL_CLAIM", default="email")

_ISSUER = f"https://{AUTH0_DOMAIN}/" if AUTH0_DOMAIN else ""
_JWKS_URL = f"https://{AUTH0_DOMAIN}/.well-known/jwks.json" if AUTH0_DOMAIN else ""

_jwks_client: PyJWKClient | None = None

if _JWKS_URL:
    _jwks_client = PyJWKClient(_JWKS_URL, cache_jwk_set=True, lifespan=300)

_AUTH0_ENABLED = bool(_jwks_client and AUTH0_AUDIENCE and _ISSUER)


class Auth0User:
    """Principal for requests authenticated by the identity provider.

    No local ``User`` row is required; the token subject is the shopper's
    identifier and is what orders store in ``user_id``.
    """

    is_authenticated = True
    is_active = True
    is_staff = False

    def __init__(self, payload: dict[str, Any]):
        self.payload = payload
        self.sub: str = payload.get("sub", "")
        self.email: Optional[str] = payload.get(AUTH0_EMAIL_CLAIM) or payload.get(
            "email"
        )
        self.permissions: list[str] = payload.get("permissions", [])

    @property
    def pk(self) -> str:
        return self.sub

    def __str__(self) -> str:  # pragma: no cover
        return self.sub


class Auth0JSONWebTokenAuthentication(BaseAuthentication):
    """Validates identity-provider Bearer tokens."""

    keyword = "Bearer"

    def authenticate(self, request):
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)

        if not _AUTH0_ENABLED or not self._token_has_auth0_issuer(token):
            return None

        payload = self._decode_token(token)
        user = Auth0User(payload)
        logger.info("jwt_authenticated", sub=user.sub)
        return (user, token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'

    @staticmethod
    def _extract_token(header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _token_has_auth0_issuer(token: str) -> bool:
        try:
            payload = pyjwt.decode(
                token,
                options={
                    "verify_signature": False,
                    "verify_aud": False,
                    "verify_iss": False,
                },
            )
        except PyJWTError:
            return False
        return payload.get("iss") == _ISSUER

    @staticmethod
    def _decode_token(token: str) -> dict:
        if not _jwks_client:
            raise AuthenticationFailed("Identity provider is not configured.")
        try:
            signing_key = _jwks_client.get_signing_key_from_jwt(token)
            payload = pyjwt.decode(
                token,
                signing_key.key,
                algorithms=[AUTH0_ALGORITHM],
                audience=AUTH0_AUDIENCE,
                issuer=_ISSUER,
            )
        except PyJWTError as exc:
            logger.warning("jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
        return payload
