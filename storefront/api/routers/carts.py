# storefront/api/routers/carts.py
import redis
from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, get_redis, get_notification_service
from storefront.api.errors import http_error
from storefront.domain.cart import Cart
from storefront.domain.errors import StorefrontError
from storefront.domain.money import ZERO
from storefront.domain.schemas import (
    ItemIn,
    QuantityIn,
    CartOut,
    CartLineOut,
    ApplyCouponIn,
    CouponValidationOut,
    CouponSummary,
    TrackAbandonedIn,
    AbandonedCartOut,
)
from storefront.repos.cart_repo import CartRepo
from storefront.services.abandoned_cart_service import AbandonedCartService
from storefront.services.cart_service import CartService
from storefront.services.coupon_service import CouponService, CouponContext
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import CART_TTL_SECONDS

router = APIRouter(prefix="/cart", tags=["cart"])

CART_COOKIE = "cart_id"


def get_service(db: Session, client: redis.Redis):
    return CartService(db=db, repo=CartRepo(client))


def set_cart_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=CART_COOKIE,
        value=session_id,
        max_age=CART_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        path="/",
    )


def cart_out(cart: Cart | None, session_id: str | None = None) -> CartOut:
    if not cart:
        return CartOut(session_id=session_id, store_id=None, lines=[], subtotal=ZERO, item_count=0)
    return CartOut(
        session_id=cart.session_id,
        store_id=cart.store_id,
        lines=[CartLineOut(**line.model_dump()) for line in cart.lines],
        subtotal=cart.subtotal,
        item_count=cart.item_count,
    )


@router.get("", response_model=CartOut)
def get_cart(
    cart_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    svc = get_service(db, client)
    return cart_out(svc.get_cart(cart_id), cart_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    response: Response,
    cart_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    svc = get_service(db, client)
    try:
        cart = svc.add_line(
            cart_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            variant_id=payload.variant_id,
            combination_id=payload.combination_id,
        )
    except StorefrontError as e:
        raise http_error(e)

    set_cart_cookie(response, cart.session_id)
    return cart_out(cart)


@router.put("/items/{line_id}", response_model=CartOut)
def update_item(
    line_id: str,
    payload: QuantityIn,
    response: Response,
    cart_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    svc = get_service(db, client)
    try:
        cart = svc.update_quantity(cart_id, line_id, payload.quantity)
    except StorefrontError as e:
        raise http_error(e)

    set_cart_cookie(response, cart.session_id)
    return cart_out(cart)


@router.delete("/items/{line_id}", response_model=CartOut)
def remove_item(
    line_id: str,
    cart_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    svc = get_service(db, client)
    try:
        return cart_out(svc.remove_line(cart_id, line_id))
    except StorefrontError as e:
        raise http_error(e)


@router.delete("", response_model=CartOut)
def clear_cart(
    cart_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    svc = get_service(db, client)
    try:
        svc.clear(cart_id)
    except StorefrontError as e:
        raise http_error(e)
    return cart_out(None, cart_id)


@router.post("/apply-coupon", response_model=CouponValidationOut)
def apply_coupon(
    payload: ApplyCouponIn,
    cart_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    """Podglad rabatu, nic nie zapisuje i nie zuzywa kuponu."""
    cart = get_service(db, client).get_cart(cart_id)
    if not cart or cart.is_empty:
        raise HTTPException(status_code=400, detail="Cart is empty")

    coupons = CouponService(db)
    try:
        result = coupons.validate_and_calculate(
            CouponContext(
                code=payload.code,
                store_id=cart.store_id,
                lines=coupons.lines_from_cart(cart.lines),
                subtotal=cart.subtotal,
                shipping_cost=payload.shipping_cost,
                customer_id=payload.customer_id,
                customer_email=payload.customer_email,
            )
        )
    except StorefrontError as e:
        raise http_error(e)

    return CouponValidationOut(
        valid=result.valid,
        discount_amount=result.discount_amount,
        coupon=CouponSummary.model_validate(result.coupon) if result.valid else None,
        error=result.error,
    )


@router.post("/track-abandoned", response_model=AbandonedCartOut)
def track_abandoned(
    payload: TrackAbandonedIn,
    cart_id: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
    notifications: NotificationService = Depends(get_notification_service),
):
    repo = CartRepo(client)
    svc = AbandonedCartService(db, repo, notifications)
    try:
        cart = repo.load(cart_id) if cart_id else None
        return svc.track(cart_id, cart, payload.customer_email, payload.customer_name)
    except StorefrontError as e:
        raise http_error(e)


@router.get("/recover")
def recover_cart(
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
    notifications: NotificationService = Depends(get_notification_service),
):
    svc = AbandonedCartService(db, CartRepo(client), notifications)
    try:
        session_id, _ = svc.recover(token)
    except StorefrontError as e:
        raise http_error(e)

    response = RedirectResponse(url="/cart?recovered=true", status_code=303)
    set_cart_cookie(response, session_id)
    return response
