"""
Durable storage for the active checkout session id.

This is the only thing the wizard persists. Keys are namespaced per wizard
client so a reload of the same client reads its id back.
"""
from typing import Optional

from redis import Redis

from app.observability.logging import log
from app.settings import settings
from app.store.redis_conn import get_redis

PREFIX = "wizard:"


def _key(client_id: str) -> str:
    return f"{PREFIX}{client_id}:{settings.CHECKOUT_ID_KEY}"


class CheckoutIdStore:
    def __init__(self, client_id: str, redis: Optional[Redis] = None):
        self.client_id = client_id
        self._redis = redis

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    def load(self) -> Optional[str]:
        raw = self.redis.get(_key(self.client_id))
        if not raw:
            return None
        return raw.decode() if isinstance(raw, bytes) else str(raw)

    def save(self, checkout_id: str) -> None:
        ttl = int(settings.CHECKOUT_ID_TTL_SEC or 0)
        if ttl > 0:
            self.redis.set(_key(self.client_id), checkout_id, ex=ttl)
        else:
            self.redis.set(_key(self.client_id), checkout_id)
        log(event="checkout_id_saved", clientId=self.client_id, checkoutId=checkout_id)
