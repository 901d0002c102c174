"""Account erasure.

Erasing an account is the only path that physically deletes orders.  Each
collection is erased in its own savepoint, so one failing deletion is
logged and the others still go through; the caller learns about the
failure from ``AccountErasureIncomplete``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

import structlog
from django.contrib.auth import get_user_model
from django.db import transaction

from modules.accounts.exceptions import AccountErasureIncomplete

if TYPE_CHECKING:
    from modules.accounts.repositories.interfaces import IAddressRepository
    from modules.core.identity import CallerIdentity
    from modules.offers.repositories.interfaces import IOfferRepository
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def delete_local_user(user_pk) -> int:
    deleted, _ = get_user_model().objects.filter(pk=user_pk).delete()
    return 1 if deleted else 0


class AccountErasureService:
    def __init__(
        self,
        address_repository: IAddressRepository,
        order_repository: IOrderRepository,
        offer_repository: IOfferRepository,
        user_deleter: Callable[[object], int] = delete_local_user,
    ) -> None:
        self._addresses = address_repository
        self._orders = order_repository
        self._offers = offer_repository
        self._delete_user = user_deleter

    def erase(
        self, caller: CallerIdentity, local_user_pk: Optional[object] = None
    ) -> Dict[str, int]:
        """Delete everything keyed on the caller; returns per-collection counts.

        ``local_user_pk`` is set when the caller is a Django user whose row
        should go too.

        Raises:
            AccountErasureIncomplete: one or more collections failed.
        """
        log = logger.bind(subject_id=caller.subject_id)
        steps: List[Tuple[str, Callable[[], int]]] = [
            ("addresses", lambda: self._addresses.erase_for_owner(caller.subject_id)),
            ("orders", lambda: self._orders.erase_for_owner(caller.subject_id)),
            (
                "offers",
                lambda: self._offers.erase_for_email(caller.email)
                if caller.email
                else 0,
            ),
        ]
        if local_user_pk is not None:
            steps.append(("user", lambda: self._delete_user(local_user_pk)))

        deleted: Dict[str, int] = {}
        failed: List[str] = []
        for name, step in steps:
            try:
                with transaction.atomic():
                    deleted[name] = step()
            except Exception as exc:
                failed.append(name)
                log.error(
                    "account.erasure_step_failed",
                    collection=name,
                    error=str(exc),
                    exc_info=exc,
                )

        if failed:
            raise AccountErasureIncomplete(deleted, failed)

        log.info("account.erased", deleted=deleted)
        return deleted
