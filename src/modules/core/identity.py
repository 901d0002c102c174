"""Caller identity resolution.

Views never inspect ``request.user`` directly: they ask for a
``CallerIdentity`` so ownership checks work the same for identity-provider
principals and local Django users.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rest_framework.exceptions import NotAuthenticated
from rest_framework.request import Request


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated subject: opaque id plus the e-mail the provider vouches for."""

    subject_id: str
    email: Optional[str] = None

    def owns(self, user_id: str | None, guest_email: str | None) -> bool:
        """Return ``True`` for the registered owner or the matching guest."""
        if user_id and str(user_id) == self.subject_id:
            return True
        if self.email and guest_email:
            return guest_email.strip().lower() == self.email.strip().lower()
        return False


def identity_from_request(request: Request) -> CallerIdentity:
    """Map the DRF-authenticated principal to a ``CallerIdentity``.

    Raises:
        NotAuthenticated: the request carries no valid credential.
    """
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        raise NotAuthenticated("Authentication credentials were not provided.")

    sub = getattr(user, "sub", None)
    subject_id = sub if sub else str(user.pk)
    email = getattr(user, "email", None) or None
    return CallerIdentity(subject_id=subject_id, email=email)
