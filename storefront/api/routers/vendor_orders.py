# storefront/api/routers/vendor_orders.py
import redis
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, get_redis
from storefront.api.errors import http_error
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CancelIn, FulfillmentIn, OrderOut
from storefront.repos.cart_repo import CartRepo
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/stores/{store_id}/orders", tags=["vendor-orders"])


def get_service(db: Session, client: redis.Redis):
    return OrderService(db=db, cart_repo=CartRepo(client))


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    store_id: int,
    order_id: int,
    payload: CancelIn,
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    """Anulowanie przez sprzedawce, stan magazynu wraca."""
    svc = get_service(db, client)
    try:
        return svc.cancel_order(order_id, store_id, payload.reason)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/{order_id}/fulfillment", response_model=OrderOut)
def update_fulfillment(
    store_id: int,
    order_id: int,
    payload: FulfillmentIn,
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    svc = get_service(db, client)
    try:
        return svc.update_fulfillment(order_id, store_id, payload.status)
    except StorefrontError as e:
        raise http_error(e)
