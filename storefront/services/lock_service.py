# storefront/services/lock_service.py
import uuid

import redis
from redis.exceptions import RedisError

from storefront.domain.errors import StoreUnavailableError
from storefront.utils.retry import redis_retry
from storefront.utils.settings import CHECKOUT_PENDING_TTL_SECONDS, IDEMPOTENCY_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PENDING = "pending"

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje atomowo przez lua, skrypt dziala jako jedna nieprzerywalna operacja
#nie mozna wcisnac sie miedzy GET a DEL


def checkout_key(idempotency_key: str) -> str:
    return f"checkout:{idempotency_key}"


def is_pending(marker: str | None) -> bool:
    return bool(marker) and marker.startswith(PENDING)


class CheckoutLockService:
    """
    Klucz idempotencji checkoutu w redis
    -acquire: SET NX EX "pending:<token>" z krotkim TTL, drugi rownolegly checkout dostaje None
    -complete: po commicie id zamowienia pod kluczem, TTL 24h
    -release: po bledzie kasujemy tylko nasz token (lua)
    Awaria redis = checkout przerwany (fail closed).
    """

    def __init__(self, client: redis.Redis):
        self.redis = client

    @redis_retry()
    def _claim(self, key: str, token: str, ttl: int) -> bool:
        if self.redis.set(name=key, value=token, nx=True, ex=ttl):
            return True
        # poprzednia proba mogla zapisac klucz i zgubic odpowiedz
        return self.redis.get(key) == token

    @redis_retry()
    def _get(self, key: str) -> str | None:
        return self.redis.get(key)

    @redis_retry()
    def _set(self, key: str, value: str, ttl: int) -> None:
        self.redis.set(name=key, value=value, ex=ttl)

    @redis_retry()
    def _release(self, key: str, token: str) -> bool:
        return bool(self.redis.eval(_RELEASE_LUA, 1, key, token))

    def lookup(self, idempotency_key: str) -> str | None:
        try:
            return self._get(checkout_key(idempotency_key))
        except RedisError as e:
            raise StoreUnavailableError("Checkout guard is unavailable") from e

    def acquire(self, idempotency_key: str, ttl: int = CHECKOUT_PENDING_TTL_SECONDS) -> str | None:
        """Returns the owner token, or None when another checkout holds the key."""
        key = checkout_key(idempotency_key)
        token = f"{PENDING}:{uuid.uuid4().hex}"
        logger.info(f"Acquire checkout guard {key}")
        try:
            return token if self._claim(key, token, ttl) else None
        except RedisError as e:
            raise StoreUnavailableError("Checkout guard is unavailable") from e

    def complete(self, idempotency_key: str, order_id: int, ttl: int = IDEMPOTENCY_TTL_SECONDS) -> None:
        key = checkout_key(idempotency_key)
        try:
            self._set(key, str(order_id), ttl)
        except RedisError as e:
            # zamowienie jest w bazie z tym kluczem, replay i tak je znajdzie
            logger.error(f"Failed to record order {order_id} under {key}: {e}")

    def release(self, idempotency_key: str, token: str) -> None:
        key = checkout_key(idempotency_key)
        logger.info(f"Release checkout guard {key}")
        try:
            self._release(key, token)
        except RedisError as e:
            logger.error(f"Failed to release checkout guard {key}: {e}")
