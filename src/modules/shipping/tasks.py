"""Tasks assíncronas do módulo de envio."""

import structlog
from celery import shared_task

from modules.core.exceptions import UpstreamError, UpstreamTimeout
from modules.shipping.dtos import GenerateLabelDTO
from modules.shipping.services import build_orchestrator

logger = structlog.get_logger(__name__)


@shared_task(name="shipping.generate_shipment_label")
def generate_shipment_label(order_id, service_id, sender=None):
    """Gera (ou retoma) a etiqueta de envio de um pedido confirmado.

    Deve haver no máximo um job ativo por pedido; o agendador garante isso.
    Falhas do provedor são registradas no envio e retornadas no resultado.
    """
    dto = GenerateLabelDTO(order_id=order_id, service_id=service_id, sender=sender)
    try:
        result = build_orchestrator().generate_label(dto)
    except (UpstreamError, UpstreamTimeout) as exc:
        logger.warning(
            "shipment.task_failed",
            order_id=str(order_id),
            step=exc.step,
            error_code=exc.code,
        )
        return {"ok": False, "step": exc.step, "code": exc.code}
    return {"ok": True, **result.model_dump()}
