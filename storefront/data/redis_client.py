# storefront/data/redis_client.py
import redis

from storefront.utils.settings import REDIS_URL, REDIS_SOCKET_TIMEOUT

_client: redis.Redis | None = None


def build_redis(url: str | None = None) -> redis.Redis:
    # krotki timeout, redis nie moze zawiesic checkoutu
    return redis.Redis.from_url(
        url or REDIS_URL,
        decode_responses=True,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
    )


def get_redis() -> redis.Redis:
    """Shared client, the connection pool is created on first use."""
    global _client
    if _client is None:
        _client = build_redis()
    return _client
