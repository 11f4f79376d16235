"""Runtime configuration read from environment variables."""

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_POSTAL_LOOKUP_URL = "https://zipcloud.ibsnet.co.jp/api/search"


@dataclass(frozen=True)
class Settings:
    environment: str
    payment_gateway: str
    stripe_secret_key: str | None
    stripe_webhook_secret: str | None
    order_notify_url: str | None
    postal_lookup_url: str
    currency: str

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings() -> Settings:
    """Build settings from the current process environment."""
    return Settings(
        environment=(os.environ.get("PROTEAN_ENV") or os.environ.get("ENVIRONMENT") or "development").lower(),
        payment_gateway=os.environ.get("PAYMENT_GATEWAY", "fake").lower(),
        stripe_secret_key=os.environ.get("STRIPE_SECRET_KEY") or None,
        stripe_webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET") or None,
        order_notify_url=os.environ.get("ORDER_NOTIFY_URL") or None,
        postal_lookup_url=os.environ.get("POSTAL_LOOKUP_URL", DEFAULT_POSTAL_LOOKUP_URL),
        currency=os.environ.get("CURRENCY", "jpy").lower(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings. Call ``get_settings.cache_clear()`` after changing the environment."""
    return load_settings()
