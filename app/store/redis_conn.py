from functools import lru_cache

from redis import Redis
from app.settings import settings


@lru_cache(maxsize=1)
def get_redis() -> Redis:
    """One connection pool for every wizard's CheckoutIdStore."""
    return Redis.from_url(settings.REDIS_URL, decode_responses=True)
