"""Shipping provider adapters."""

from functools import lru_cache

from modules.shipping.provider.port import ShippingProvider


@lru_cache(maxsize=1)
def get_provider() -> ShippingProvider:
    from modules.shipping.provider.melhorenvio import MelhorEnvioClient

    return MelhorEnvioClient.from_settings()


__all__ = ["ShippingProvider", "get_provider"]
