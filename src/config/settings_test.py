"""Settings for the pytest run.

Fills the required environment before the main settings module reads it,
then swaps infrastructure that the test process cannot rely on (Redis,
external providers) for in-process equivalents.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-only-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")

from config.settings import *  # noqa: E402,F401,F403

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "engine-tests",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

MERCADO_PAGO_ACCESS_TOKEN = "TEST-mp-token"
MERCADO_PAGO_API_URL = "https://api.mercadopago.test"
MERCADO_PAGO_NOTIFICATION_URL = "https://engine.test/api/v1/payment-notifications"
PUBLIC_SITE_URL = "https://loja.test"
MELHOR_ENVIO_API_KEY = "test-me-key"
MELHOR_ENVIO_API_URL = "https://melhorenvio.test/api/v2"
