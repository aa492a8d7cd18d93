"""Tasks assíncronas do módulo core."""

import structlog
from celery import shared_task

from modules.core.models import EventStatus, OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_BATCH_SIZE = 100


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size=OUTBOX_BATCH_SIZE):
    """Publica eventos PENDING do outbox no barramento em memória.

    Cada linha é reconstruída como ``DomainEvent`` e entregue aos handlers
    registrados; falhas ficam marcadas como FAILED com o erro.
    """
    pending = list(
        OutboxEvent.objects.filter(status=EventStatus.PENDING).order_by("created_at")[
            :batch_size
        ]
    )
    published = failed = 0

    for row in pending:
        log = logger.bind(outbox_id=str(row.id), event_type=row.event_type)
        try:
            event = DomainEvent.from_payload(row.payload)
            event_bus.publish(event)
        except Exception as exc:  # noqa: BLE001 - a row failure must not stop the batch
            row.mark_as_failed(str(exc))
            failed += 1
            log.error("outbox.publish_failed", error=str(exc))
            continue
        row.mark_as_published()
        published += 1

    logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
