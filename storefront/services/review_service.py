# storefront/services/review_service.py
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel, OrderStatus, PaymentStatus
from storefront.domain.errors import NotFoundError
from storefront.repos.order_repo import OrderRepo
from storefront.utils.clock import utcnow, as_utc
from storefront.utils.settings import REVIEW_WAIT_DAYS, REVIEW_WINDOW_DAYS

_DAY = timedelta(days=1)


@dataclass(frozen=True)
class ReviewEligibility:
    eligible: bool
    reason: str | None = None
    days_remaining: int | None = None
    waiting_for_shipment: bool = False
    expired: bool = False
    has_review: bool = False


def check_review_eligibility(order: OrderModel, has_review: bool, now: datetime | None = None) -> ReviewEligibility:
    """
    Liczone na zadanie z timestampow zamowienia, nic nie zapisujemy.
    Kolejnosc: oplacone -> zwrot -> wyslane -> okno czasowe -> istniejaca recenzja
    """
    now = now or utcnow()

    if order.paid_at is None:
        return ReviewEligibility(False, "Order has not been paid")

    if order.status == OrderStatus.REFUNDED.value or order.payment_status == PaymentStatus.REFUNDED.value:
        return ReviewEligibility(False, "Order has been refunded")

    if order.shipped_at is None:
        return ReviewEligibility(False, "Order has not shipped yet", waiting_for_shipment=True)

    shipped_at = as_utc(order.shipped_at)
    opens_at = shipped_at + timedelta(days=REVIEW_WAIT_DAYS)
    if now < opens_at:
        days_remaining = math.ceil((opens_at - now) / _DAY)
        return ReviewEligibility(
            False,
            f"You can review this product in {days_remaining} day(s)",
            days_remaining=days_remaining,
        )

    if now > shipped_at + timedelta(days=REVIEW_WINDOW_DAYS):
        return ReviewEligibility(False, "Review window has closed", expired=True)

    if has_review:
        return ReviewEligibility(False, "You have already reviewed this product", has_review=True)

    return ReviewEligibility(True)


class ReviewService:
    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def check(self, order_item_id: int, now: datetime | None = None) -> ReviewEligibility:
        item = self.repo.get_item(order_item_id)
        if not item:
            raise NotFoundError("Order item not found")
        return check_review_eligibility(item.order, self.repo.has_review(order_item_id), now)
