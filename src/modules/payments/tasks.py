"""Tasks assíncronas do módulo de pagamentos."""

import structlog
from celery import shared_task

from modules.payments.constants import REPLAYABLE_REASONS
from modules.payments.repositories.django_repository import (
    NotificationDjangoRepository,
)
from modules.payments.services import build_reconciler

logger = structlog.get_logger(__name__)

REPROCESS_BATCH_SIZE = 50


@shared_task(name="payments.reprocess_failed_notifications")
def reprocess_failed_notifications(batch_size=REPROCESS_BATCH_SIZE):
    """Reprocessa notificações ignoradas por falha do gateway ou concorrência.

    Cada reprocessamento conta como uma nova entrega no inbox.
    """
    notifications = NotificationDjangoRepository().list_replayable(
        REPLAYABLE_REASONS, batch_size
    )
    if not notifications:
        return {"reprocessed": 0, "applied": 0}

    reconciler = build_reconciler()
    applied = 0
    for notification in notifications:
        result = reconciler.handle_notification(
            notification.topic, notification.resource_id
        )
        if result.applied:
            applied += 1

    logger.info(
        "payment.reprocess_completed",
        reprocessed=len(notifications),
        applied=applied,
    )
    return {"reprocessed": len(notifications), "applied": applied}
