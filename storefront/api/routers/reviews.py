# storefront/api/routers/reviews.py
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_db
from storefront.api.errors import http_error
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import ReviewEligibilityOut
from storefront.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("/eligibility", response_model=ReviewEligibilityOut)
def review_eligibility(order_item_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    try:
        result = ReviewService(db).check(order_item_id)
    except StorefrontError as e:
        raise http_error(e)
    return ReviewEligibilityOut(**asdict(result))
