"""Payment gateway adapters."""

from functools import lru_cache

from modules.payments.gateway.port import PaymentGateway


@lru_cache(maxsize=1)
def get_gateway() -> PaymentGateway:
    """Process-wide gateway client (keeps the HTTP connection pool warm)."""
    from modules.payments.gateway.mercadopago import MercadoPagoGateway

    return MercadoPagoGateway.from_settings()


__all__ = ["PaymentGateway", "get_gateway"]
