# storefront/api/routers/orders.py
import redis
from fastapi import APIRouter, Cookie, Depends, Header, Response
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, get_redis, get_notification_service, get_tax_provider
from storefront.api.errors import http_error
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CheckoutIn, OrderOut, PaymentIn
from storefront.repos.cart_repo import CartRepo
from storefront.services.lock_service import CheckoutLockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.tax_client import TaxRateProvider

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session, client: redis.Redis, notifications: NotificationService | None = None,
                tax_provider: TaxRateProvider | None = None):
    return OrderService(
        db=db,
        cart_repo=CartRepo(client),
        lock_service=CheckoutLockService(client),
        notification_service=notifications,
        tax_provider=tax_provider,
    )


@router.post("", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    response: Response,
    cart_id: str | None = Cookie(default=None),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
    notifications: NotificationService = Depends(get_notification_service),
    tax_provider: TaxRateProvider = Depends(get_tax_provider),
):
    svc = get_service(db, client, notifications, tax_provider)
    try:
        order = svc.create_order(cart_id, payload, idempotency_key=idempotency_key)
    except StorefrontError as e:
        raise http_error(e)

    # koszyk juz nie istnieje
    response.delete_cookie("cart_id", path="/")
    return order


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    svc = get_service(db, client)
    try:
        return svc.get_order(order_id)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/{order_id}/payment", response_model=OrderOut)
def record_payment(
    order_id: int,
    payload: PaymentIn,
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    svc = get_service(db, client)
    try:
        return svc.record_payment(order_id, payload.succeeded)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/{order_id}/refund", response_model=OrderOut)
def record_refund(
    order_id: int,
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Sygnal pelnego zwrotu od procesora platnosci."""
    svc = get_service(db, client, notifications)
    try:
        return svc.record_refund(order_id)
    except StorefrontError as e:
        raise http_error(e)
