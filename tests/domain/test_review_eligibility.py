"""Tests for the review window over order timestamps."""

from datetime import datetime, timedelta, timezone

from storefront.data.models.order import OrderModel, OrderStatus, PaymentStatus
from storefront.services.review_service import check_review_eligibility

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


def _order(shipped_days_ago=None, paid=True, status=OrderStatus.PAID.value,
           payment_status=PaymentStatus.PAID.value):
    return OrderModel(
        status=status,
        payment_status=payment_status,
        paid_at=NOW - timedelta(days=200) if paid else None,
        shipped_at=NOW - timedelta(days=shipped_days_ago) if shipped_days_ago is not None else None,
    )


class TestReviewEligibility:
    def test_shipped_two_days_ago_waits_one_more_day(self):
        result = check_review_eligibility(_order(shipped_days_ago=2), has_review=False, now=NOW)
        assert result.eligible is False
        assert result.days_remaining == 1

    def test_shipped_four_days_ago_is_eligible(self):
        result = check_review_eligibility(_order(shipped_days_ago=4), has_review=False, now=NOW)
        assert result.eligible is True
        assert result.reason is None

    def test_shipped_150_days_ago_is_expired(self):
        result = check_review_eligibility(_order(shipped_days_ago=150), has_review=False, now=NOW)
        assert result.eligible is False
        assert result.expired is True

    def test_partial_day_rounds_up(self):
        order = _order()
        order.shipped_at = NOW - timedelta(hours=1)
        result = check_review_eligibility(order, has_review=False, now=NOW)
        assert result.days_remaining == 3

    def test_unpaid_order(self):
        result = check_review_eligibility(_order(shipped_days_ago=10, paid=False), has_review=False, now=NOW)
        assert result.eligible is False
        assert result.reason == "Order has not been paid"

    def test_refunded_order(self):
        order = _order(
            shipped_days_ago=10,
            status=OrderStatus.REFUNDED.value,
            payment_status=PaymentStatus.REFUNDED.value,
        )
        result = check_review_eligibility(order, has_review=False, now=NOW)
        assert result.eligible is False
        assert result.reason == "Order has been refunded"

    def test_not_shipped_yet(self):
        result = check_review_eligibility(_order(), has_review=False, now=NOW)
        assert result.eligible is False
        assert result.waiting_for_shipment is True

    def test_existing_review(self):
        result = check_review_eligibility(_order(shipped_days_ago=10), has_review=True, now=NOW)
        assert result.eligible is False
        assert result.has_review is True

    def test_naive_timestamps_are_treated_as_utc(self):
        order = _order()
        order.shipped_at = (NOW - timedelta(days=5)).replace(tzinfo=None)
        assert check_review_eligibility(order, has_review=False, now=NOW).eligible is True
