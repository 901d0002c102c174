"""Django ORM implementation of the Address repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.accounts.models import Address
from modules.accounts.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressDjangoRepository(IAddressRepository):
    def get_by_id(self, id: str) -> Optional[Address]:
        try:
            return Address.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Address]:
        queryset = Address.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def save(self, entity: Address) -> Address:
        entity.save()
        return entity

    def delete(self, id: str) -> bool:
        try:
            deleted, _ = Address.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        return bool(deleted)

    def erase_for_owner(self, user_id: str) -> int:
        deleted, _ = Address.objects.filter(user_id=user_id).delete()
        logger.info("address.erased_for_owner", count=deleted)
        return deleted
