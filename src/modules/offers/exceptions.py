"""Offer domain exceptions."""

from __future__ import annotations


class OfferNotFound(Exception):
    """No offer matches (unknown token/id, or no usable offer for a product)."""


class OfferProductMissing(Exception):
    """The offer points at a product that no longer exists."""


class OfferAlreadyUsed(Exception):
    pass


class OfferExpired(Exception):
    pass


class InvalidOfferData(Exception):
    """Create/update input that is well-formed but breaks an offer rule."""


class StoreAccessDenied(Exception):
    """The caller manages no store."""


class OfferAccessDenied(Exception):
    """The offer belongs to a store other than the caller's."""
