# storefront/api/routers/coupons.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_db
from storefront.api.errors import http_error
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CouponCreate, CouponOut
from storefront.services.coupon_service import CouponService

router = APIRouter(prefix="/stores/{store_id}/coupons", tags=["coupons"])


def get_service(db: Session):
    return CouponService(db)


@router.post("", response_model=CouponOut, status_code=201)
def create_coupon(store_id: int, payload: CouponCreate, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.create_coupon(store_id, payload)
    except StorefrontError as e:
        raise http_error(e)


@router.get("", response_model=List[CouponOut])
def list_coupons(store_id: int, db: Session = Depends(get_db)):
    return get_service(db).list_coupons(store_id)


@router.post("/{coupon_id}/deactivate", response_model=CouponOut)
def deactivate_coupon(store_id: int, coupon_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.deactivate_coupon(store_id, coupon_id)
    except StorefrontError as e:
        raise http_error(e)
