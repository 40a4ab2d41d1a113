"""Tests for abandoned cart tracking, recovery and reminders."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from storefront.data.models.coupon import CouponModel
from storefront.domain.errors import (
    BusinessLogicError,
    ConflictError,
    NotFoundError,
    RecoveryExpiredError,
    StoreUnavailableError,
)
from storefront.repos.cart_repo import cart_key
from storefront.services.abandoned_cart_service import AbandonedCartService
from storefront.utils.settings import CART_TTL_SECONDS

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def tracker(db, cart_repo, notifier):
    return AbandonedCartService(db, cart_repo, notifier)


@pytest.fixture()
def cart(cart_service, make_product):
    product = make_product(price="29.99", quantity=10)
    return cart_service.add_line(None, product.id, 2)


class TestTrack:
    def test_first_call_creates_token_and_code(self, db, tracker, cart, store):
        record = tracker.track(cart.session_id, cart, "jane@example.com", "Jane", now=NOW)

        assert record.recovery_token
        assert record.discount_code.startswith("RECOVER")
        assert len(record.discount_code) == len("RECOVER") + 8
        assert record.cart_total == Decimal("59.98")
        assert record.item_count == 1
        assert record.is_recovered is False
        assert record.expires_at == NOW + timedelta(days=7)

        coupon = db.query(CouponModel).filter_by(store_id=store.id, code=record.discount_code).one()
        assert coupon.discount_type == "PERCENTAGE"
        assert coupon.discount_value == Decimal("10")
        assert coupon.usage_limit == 1

    def test_second_call_updates_snapshot_only(self, tracker, cart_service, cart, make_product):
        first = tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)
        token, code = first.recovery_token, first.discount_code

        other = make_product(price="5.00", name="Spoon")
        bigger = cart_service.add_line(cart.session_id, other.id, 1)
        second = tracker.track(cart.session_id, bigger, None, now=NOW + timedelta(hours=1))

        assert second.id == first.id
        assert (second.recovery_token, second.discount_code) == (token, code)
        assert second.cart_total == Decimal("64.98")
        assert second.item_count == 2
        assert second.customer_email == "jane@example.com"

    def test_empty_cart_not_tracked(self, tracker, cart_service, cart):
        emptied = cart_service.remove_line(cart.session_id, cart.lines[0].line_id)
        with pytest.raises(BusinessLogicError):
            tracker.track(cart.session_id, emptied)

    def test_missing_cart(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.track("gone", None)


class TestRecover:
    def test_restores_snapshot_into_new_session(self, tracker, cart, cart_repo, fake_redis):
        record = tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)

        session_id, recovered = tracker.recover(record.recovery_token, now=NOW + timedelta(days=1))

        assert session_id != cart.session_id
        restored = cart_repo.get(session_id)
        assert restored.subtotal == cart.subtotal
        assert [line.line_id for line in restored.lines] == [line.line_id for line in cart.lines]
        assert fake_redis.ttls[cart_key(session_id)] == CART_TTL_SECONDS
        assert recovered.is_recovered is True
        assert recovered.recovered_at is not None

    def test_second_recover_fails(self, tracker, cart):
        record = tracker.track(cart.session_id, cart, now=NOW)
        tracker.recover(record.recovery_token, now=NOW)

        with pytest.raises(ConflictError, match="already been recovered"):
            tracker.recover(record.recovery_token, now=NOW)

    def test_expired_is_rejected_even_if_not_recovered(self, tracker, cart):
        record = tracker.track(cart.session_id, cart, now=NOW)

        with pytest.raises(RecoveryExpiredError):
            tracker.recover(record.recovery_token, now=NOW + timedelta(days=7, seconds=1))
        assert record.is_recovered is False

    def test_unknown_token(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.recover("not-a-token", now=NOW)

    def test_cart_store_down_leaves_record_recoverable(self, db, tracker, cart, fake_redis):
        record = tracker.track(cart.session_id, cart, now=NOW)
        fake_redis.down = True

        with pytest.raises(StoreUnavailableError):
            tracker.recover(record.recovery_token, now=NOW)

        db.refresh(record)
        assert record.is_recovered is False


class TestReminders:
    def test_mark_reminder_sent(self, tracker, cart):
        record = tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)
        updated = tracker.mark_reminder_sent(record.id, stage=1, now=NOW + timedelta(hours=1))
        assert updated.reminder_sent_at is not None

    def test_duplicate_reminder_rejected(self, tracker, cart):
        record = tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)
        tracker.mark_reminder_sent(record.id, stage=1, now=NOW)
        with pytest.raises(ConflictError):
            tracker.mark_reminder_sent(record.id, stage=1, now=NOW)

    def test_reminder_needs_email(self, tracker, cart):
        record = tracker.track(cart.session_id, cart, now=NOW)
        with pytest.raises(BusinessLogicError):
            tracker.send_reminder(record.id, stage=1, now=NOW)

    def test_reminder_scoped_to_store(self, tracker, cart, make_store):
        other = make_store()
        record = tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)
        with pytest.raises(NotFoundError):
            tracker.send_reminder(record.id, stage=1, store_id=other.id, now=NOW)

    def test_send_reminder_notifies_with_recovery_link(self, tracker, cart, notifier):
        record = tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)
        tracker.send_reminder(record.id, stage=1, now=NOW)

        sent = notifier.recoveries[0]
        assert sent["customer_email"] == "jane@example.com"
        assert sent["recovery_url"].endswith(f"/cart/recover?token={record.recovery_token}")
        assert sent["discount_code"] == record.discount_code

    def test_due_reminders_follow_stages(self, tracker, cart):
        record = tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)

        assert tracker.due_reminders(NOW + timedelta(minutes=30)) == []
        assert tracker.due_reminders(NOW + timedelta(hours=1, minutes=30)) == [(1, record)]

        tracker.mark_reminder_sent(record.id, stage=1, now=NOW + timedelta(hours=1, minutes=30))
        assert tracker.due_reminders(NOW + timedelta(hours=1, minutes=45)) == []
        assert tracker.due_reminders(NOW + timedelta(hours=24, minutes=30)) == [(2, record)]

    def test_third_reminder_needs_second(self, tracker, cart):
        tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)
        assert tracker.due_reminders(NOW + timedelta(hours=48, minutes=30)) == []

    def test_dispatch_sends_and_stamps(self, tracker, cart, notifier):
        record = tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)

        results = tracker.dispatch_due_reminders(NOW + timedelta(hours=1, minutes=30))

        assert results == {"total": 1, "sent": 1, "failed": 0}
        assert notifier.recoveries[0]["stage"] == 1
        assert record.reminder_sent_at is not None

    def test_recovered_cart_gets_no_reminders(self, tracker, cart):
        record = tracker.track(cart.session_id, cart, "jane@example.com", now=NOW)
        tracker.recover(record.recovery_token, now=NOW + timedelta(minutes=10))
        assert tracker.due_reminders(NOW + timedelta(hours=1, minutes=30)) == []
