"""Django ORM implementation of the PersonalizedOffer repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.offers.constants import OfferListStatus
from modules.offers.models import PersonalizedOffer, StoreMember
from modules.offers.repositories.interfaces import (
    IOfferRepository,
    IStoreMemberRepository,
)

logger = structlog.get_logger(__name__)


class OfferDjangoRepository(IOfferRepository):
    def get_by_id(self, id: str) -> Optional[PersonalizedOffer]:
        try:
            return PersonalizedOffer.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_token(self, token: str) -> Optional[PersonalizedOffer]:
        return PersonalizedOffer.objects.filter(offer_token=token).first()

    def latest_usable_for_product(
        self, product_id: Any, now: datetime
    ) -> Optional[PersonalizedOffer]:
        return (
            PersonalizedOffer.objects.filter(
                product_id=product_id,
                is_active=True,
                is_used=False,
                expires_at__gt=now,
            )
            .order_by("-created_at", "-id")
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[PersonalizedOffer]:
        queryset = PersonalizedOffer.objects.select_related("product")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_store(
        self, store_id: str, status: str, now: datetime
    ) -> List[PersonalizedOffer]:
        queryset = PersonalizedOffer.objects.select_related("product").filter(
            store_id=store_id
        )
        if status == OfferListStatus.ACTIVE:
            queryset = queryset.filter(
                is_active=True, is_used=False, expires_at__gt=now
            )
        elif status == OfferListStatus.EXPIRED:
            queryset = queryset.filter(expires_at__lte=now)
        elif status == OfferListStatus.USED:
            queryset = queryset.filter(is_used=True)
        return list(queryset.order_by("-created_at"))

    @transaction.atomic
    def save(self, entity: PersonalizedOffer) -> PersonalizedOffer:
        entity.save()
        logger.info(
            "offer.saved", offer_id=str(entity.id), product_id=str(entity.product_id)
        )
        return entity

    def update(self, id: str, **changes: Any) -> Optional[PersonalizedOffer]:
        offer = self.get_by_id(id)
        if offer is None:
            return None
        for field, value in changes.items():
            setattr(offer, field, value)
        offer.save(update_fields=list(changes) or None)
        logger.info("offer.updated", offer_id=str(id), fields=sorted(changes))
        return offer

    def delete(self, id: str) -> bool:
        try:
            deleted, _ = PersonalizedOffer.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        if deleted:
            logger.info("offer.deleted", offer_id=str(id))
        return bool(deleted)

    def mark_used(self, id: str, order_id: str, used_at: datetime) -> bool:
        updated = PersonalizedOffer.objects.filter(id=id, is_used=False).update(
            is_used=True,
            used_at=used_at,
            order_id=order_id,
            updated_at=timezone.now(),
        )
        return bool(updated)

    def erase_for_email(self, email: str) -> int:
        deleted, _ = PersonalizedOffer.objects.filter(
            customer_email__iexact=email
        ).delete()
        logger.info("offer.erased_for_email", count=deleted)
        return deleted


class StoreMemberDjangoRepository(IStoreMemberRepository):
    def store_for_user(self, user_id: str) -> Optional[str]:
        return (
            StoreMember.objects.filter(user_id=user_id)
            .values_list("store_id", flat=True)
            .first()
        )
