# storefront/api/routers/abandoned_carts.py
from typing import List

import redis
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, get_redis, get_notification_service
from storefront.api.errors import http_error
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import AbandonedCartOut, ReminderIn
from storefront.repos.cart_repo import CartRepo
from storefront.services.abandoned_cart_service import AbandonedCartService
from storefront.services.notification_service import NotificationService

router = APIRouter(prefix="/stores/{store_id}/abandoned-carts", tags=["abandoned-carts"])


def get_service(db: Session, client: redis.Redis, notifications: NotificationService | None = None):
    return AbandonedCartService(db, CartRepo(client), notifications)


@router.get("", response_model=List[AbandonedCartOut])
def list_abandoned_carts(
    store_id: int,
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    return get_service(db, client).list_for_store(store_id)


@router.post("/{cart_id}/reminder", response_model=AbandonedCartOut)
def send_reminder(
    store_id: int,
    cart_id: int,
    payload: ReminderIn,
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Reczne przypomnienie z panelu sprzedawcy."""
    svc = get_service(db, client, notifications)
    try:
        return svc.send_reminder(cart_id, payload.stage, store_id=store_id)
    except StorefrontError as e:
        raise http_error(e)
