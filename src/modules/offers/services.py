"""Personalized offer service layer.

Public side: resolve the current offer for a product slug, validate an
offer link token, and consume an offer.  Store-admin side: list, create,
update and delete a store's offers.  Pricing is derived from the live
product price on every read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from urllib.parse import quote, urlencode

import structlog
from django.conf import settings
from django.utils import timezone

from modules.offers.exceptions import (
    InvalidOfferData,
    OfferAccessDenied,
    OfferAlreadyUsed,
    OfferExpired,
    OfferNotFound,
    OfferProductMissing,
    StoreAccessDenied,
)
from modules.offers.models import PersonalizedOffer
from modules.offers.pricing import OfferPrice, price_offer, time_remaining_ms
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.core.identity import CallerIdentity
    from modules.offers.dtos import CreateOfferDTO, UpdateOfferDTO
    from modules.offers.repositories.interfaces import (
        IOfferRepository,
        IStoreMemberRepository,
    )
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OfferView:
    """Offer combined with its product and the derived prices."""

    offer: PersonalizedOffer
    product: Product
    pricing: OfferPrice
    valid: bool
    expired: bool
    used: bool
    time_remaining_ms: int


@dataclass(frozen=True)
class StoreOfferEntry:
    offer: PersonalizedOffer
    product: Optional[Product]
    is_expired: bool
    is_valid: bool


@dataclass(frozen=True)
class CreatedOffer:
    offer: PersonalizedOffer
    product: Product
    pricing: OfferPrice
    offer_url: str


def offer_url_for(offer: PersonalizedOffer, product: Product) -> str:
    """Storefront link sent to the customer.

    Slug links carry the token as a query parameter: the slug page alone
    shows the price but cannot consume the offer.
    """
    base = getattr(settings, "STOREFRONT_BASE_URL", "").rstrip("/")
    if not product.slug:
        return f"{base}/offer/{offer.offer_token}"
    slug = quote(product.slug, safe="")
    query = urlencode({"token": offer.offer_token})
    return f"{base}/offer/{slug}?{query}"


class OfferService:
    def __init__(
        self,
        offer_repository: IOfferRepository,
        product_repository: IProductRepository,
        membership_repository: IStoreMemberRepository,
    ) -> None:
        self._offers = offer_repository
        self._products = product_repository
        self._members = membership_repository

    # ------------------------------------------------------------------
    # Public look-ups
    # ------------------------------------------------------------------

    def resolve_by_slug(self, slug: str, now: Optional[datetime] = None) -> OfferView:
        """Latest usable offer for the product behind *slug*.  Read-only.

        Raises:
            ProductNotFound: no product has this slug.
            OfferNotFound: the product has no active, unused, unexpired offer.
        """
        now = now or timezone.now()
        product = self._products.get_by_slug(slug)
        if product is None:
            raise ProductNotFound(f"Product '{slug}' not found.")

        offer = self._offers.latest_usable_for_product(product.id, now)
        if offer is None:
            logger.info("offer.none_active", product_id=str(product.id))
            raise OfferNotFound(f"No active offer for product '{slug}'.")

        return self._view(offer, product, now)

    def validate_token(self, token: str, now: Optional[datetime] = None) -> OfferView:
        """Offer behind a link token, with its validity flags.

        Expired or used offers are still returned; the flags say so.

        Raises:
            OfferNotFound: unknown token.
            OfferProductMissing: the offer's product is gone.
        """
        now = now or timezone.now()
        offer = self._offers.get_by_token(token)
        if offer is None:
            raise OfferNotFound("Unknown offer token.")
        product = self._product_for(offer)
        if product is None:
            raise OfferProductMissing(f"Product for offer {offer.id} not found.")
        return self._view(offer, product, now)

    def mark_used(self, token: str, order_id: str = "") -> PersonalizedOffer:
        """Consume an offer after a purchase.

        Raises:
            OfferNotFound: unknown token.
            OfferAlreadyUsed: the offer was consumed before (or concurrently).
            OfferExpired: the offer expired.
        """
        offer = self._offers.get_by_token(token)
        if offer is None:
            raise OfferNotFound("Unknown offer token.")
        if offer.is_used:
            raise OfferAlreadyUsed(f"Offer {offer.id} has already been used.")

        now = timezone.now()
        if offer.is_expired(now):
            raise OfferExpired(f"Offer {offer.id} has expired.")

        if not self._offers.mark_used(str(offer.id), order_id or "", now):
            raise OfferAlreadyUsed(f"Offer {offer.id} has already been used.")

        offer.is_used = True
        offer.used_at = now
        offer.order_id = order_id or ""
        logger.info("offer.marked_used", offer_id=str(offer.id), order_id=order_id)
        return offer

    # ------------------------------------------------------------------
    # Store admin
    # ------------------------------------------------------------------

    def store_for(self, caller: CallerIdentity) -> str:
        """Store the caller manages.

        Raises:
            StoreAccessDenied: the caller is not linked to a store.
        """
        store_id = self._members.store_for_user(caller.subject_id)
        if not store_id:
            logger.warning("offer.store_access_denied", subject_id=caller.subject_id)
            raise StoreAccessDenied(f"{caller.subject_id} manages no store.")
        return store_id

    def list_for_store(self, store_id: str, status: str) -> List[StoreOfferEntry]:
        now = timezone.now()
        return [
            StoreOfferEntry(
                offer=offer,
                product=self._product_for(offer),
                is_expired=offer.is_expired(now),
                is_valid=offer.is_valid(now),
            )
            for offer in self._offers.list_for_store(store_id, status, now)
        ]

    def create_offer(self, dto: CreateOfferDTO) -> CreatedOffer:
        """Create an offer with a fresh random token.

        Raises:
            ProductNotFound: the product does not exist.
            InvalidOfferData: the expiry is not in the future.
        """
        product = self._products.get_by_id(str(dto.product_id))
        if product is None:
            raise ProductNotFound(f"Product {dto.product_id} not found.")
        _ensure_future(dto.expires_at)

        offer = self._offers.save(
            PersonalizedOffer(
                store_id=dto.store_id,
                customer_email=dto.customer_email,
                customer_phone=dto.customer_phone,
                customer_name=dto.customer_name,
                product=product,
                discount_percent=dto.discount_percent,
                expires_at=dto.expires_at,
                notes=dto.notes,
                is_active=True,
            )
        )
        logger.info(
            "offer.created",
            offer_id=str(offer.id),
            store_id=dto.store_id,
            product_id=str(product.id),
        )
        return CreatedOffer(
            offer=offer,
            product=product,
            pricing=price_offer(product.price, offer.discount_percent),
            offer_url=offer_url_for(offer, product),
        )

    def update_offer(self, dto: UpdateOfferDTO, store_id: str) -> PersonalizedOffer:
        """Raises ``OfferNotFound``, ``OfferAccessDenied`` or ``InvalidOfferData``."""
        self._owned_offer(str(dto.offer_id), store_id)
        changes = dto.changes()
        if changes.get("expires_at") is not None:
            _ensure_future(changes["expires_at"])
        if "notes" in changes and changes["notes"] is None:
            changes["notes"] = ""

        offer = self._offers.update(str(dto.offer_id), **changes)
        if offer is None:
            raise OfferNotFound(f"Offer {dto.offer_id} not found.")
        return offer

    def delete_offer(self, offer_id: str, store_id: str) -> None:
        self._owned_offer(offer_id, store_id)
        if not self._offers.delete(offer_id):
            raise OfferNotFound(f"Offer {offer_id} not found.")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _owned_offer(self, offer_id: str, store_id: str) -> PersonalizedOffer:
        offer = self._offers.get_by_id(offer_id)
        if offer is None:
            raise OfferNotFound(f"Offer {offer_id} not found.")
        if offer.store_id != store_id:
            logger.warning(
                "offer.cross_store_access",
                offer_id=offer_id,
                offer_store_id=offer.store_id,
                store_id=store_id,
            )
            raise OfferAccessDenied(f"Offer {offer_id} belongs to another store.")
        return offer

    def _product_for(self, offer: PersonalizedOffer) -> Optional[Product]:
        if not offer.product_id:
            return None
        return self._products.get_by_id(str(offer.product_id))

    @staticmethod
    def _view(offer: PersonalizedOffer, product: Product, now: datetime) -> OfferView:
        expired = offer.is_expired(now)
        return OfferView(
            offer=offer,
            product=product,
            pricing=price_offer(product.price, offer.discount_percent),
            valid=offer.is_valid(now),
            expired=expired,
            used=offer.is_used,
            time_remaining_ms=(
                0 if expired else time_remaining_ms(offer.expires_at, now)
            ),
        )


def _ensure_future(expires_at: datetime) -> None:
    if timezone.is_naive(expires_at):
        expires_at = timezone.make_aware(expires_at)
    if expires_at <= timezone.now():
        raise InvalidOfferData("Expiry date must be in the future")
