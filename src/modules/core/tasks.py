"""Background tasks for the core module."""

from celery import shared_task

from modules.core.outbox import relay_pending_events
from shared.infrastructure.bus import event_bus


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int = 100) -> dict:
    """Hand pending outbox rows to the in-process event bus."""
    return relay_pending_events(event_bus, batch_size=batch_size)
