"""Outbox serialisation and relay.

Repositories call ``record_events`` inside their write transaction; the
``core.relay_outbox_events`` task later calls ``relay_pending_events`` to
hand stored events to the in-process bus.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable
from uuid import UUID

import structlog

from modules.core.models import OutboxEvent
from shared.domain.bus import IEventBus
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

MAX_RELAY_ATTEMPTS = 5


def serialize_event(event: DomainEvent) -> Dict[str, Any]:
    data = asdict(event)
    return json.loads(json.dumps(_normalize_for_json(data)))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value


def record_events(events: Iterable[DomainEvent], topic: str) -> int:
    """Persist *events* as PENDING outbox rows; returns how many were written."""
    count = 0
    for event in events:
        OutboxEvent.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=serialize_event(event),
            topic=topic,
        )
        count += 1
    return count


def relay_pending_events(bus: IEventBus, batch_size: int = 100) -> Dict[str, int]:
    """Publish up to *batch_size* relayable rows, oldest first.

    A row whose handler raises is marked FAILED and retried by later runs
    until it has failed ``MAX_RELAY_ATTEMPTS`` times; the rest of the batch
    is unaffected.
    """
    rows = list(OutboxEvent.objects.relayable(MAX_RELAY_ATTEMPTS)[:batch_size])

    published = failed = 0
    for row in rows:
        log = logger.bind(outbox_id=str(row.id), event_type=row.event_type)
        try:
            event = DomainEvent.from_payload(row.event_type, row.payload)
            bus.publish(event)
        except Exception as exc:
            row.mark_as_failed(str(exc) or exc.__class__.__name__)
            log.warning(
                "outbox.relay_failed", error=str(exc), retry_count=row.retry_count
            )
            failed += 1
            continue
        row.mark_as_published()
        published += 1

    if rows:
        logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
