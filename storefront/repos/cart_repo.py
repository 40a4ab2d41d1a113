# storefront/repos/cart_repo.py
import redis
from redis.exceptions import RedisError

from storefront.domain.cart import Cart
from storefront.domain.errors import StoreUnavailableError
from storefront.utils.retry import redis_retry
from storefront.utils.settings import CART_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def cart_key(session_id: str) -> str:
    return f"cart:{session_id}"


class CartRepo:
    """
    Koszyk jako jeden dokument JSON w redis, klucz cart:<session>
    -kazdy zapis to SETEX, wiec TTL liczy sie od ostatniej zmiany
    -kazdy odczyt parsuje JSON od nowa, wolajacy dostaje wlasna kopie
    """

    def __init__(self, client: redis.Redis):
        self.redis = client

    @redis_retry()
    def _get_raw(self, session_id: str) -> str | None:
        return self.redis.get(cart_key(session_id))

    @redis_retry()
    def _set_raw(self, session_id: str, payload: str, ttl: int) -> None:
        self.redis.setex(cart_key(session_id), ttl, payload)

    @redis_retry()
    def _delete_raw(self, session_id: str) -> None:
        self.redis.delete(cart_key(session_id))

    def get(self, session_id: str) -> Cart | None:
        """Display read: an unreachable store degrades to an empty cart."""
        try:
            return self.load(session_id)
        except StoreUnavailableError:
            logger.warning(f"Cart store unreachable, treating cart {session_id} as empty")
            return None

    def load(self, session_id: str) -> Cart | None:
        """Strict read for checkout and mutations."""
        try:
            raw = self._get_raw(session_id)
        except RedisError as e:
            raise StoreUnavailableError("Cart store is unavailable") from e

        if not raw:
            return None
        return Cart.model_validate_json(raw)

    def save(self, cart: Cart, ttl: int = CART_TTL_SECONDS) -> None:
        try:
            self._set_raw(cart.session_id, cart.model_dump_json(), ttl)
        except RedisError as e:
            raise StoreUnavailableError("Cart store is unavailable") from e

    def delete(self, session_id: str) -> None:
        try:
            self._delete_raw(session_id)
        except RedisError as e:
            raise StoreUnavailableError("Cart store is unavailable") from e
