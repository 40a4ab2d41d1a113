# storefront/services/abandoned_cart_service.py
import secrets
import string
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.abandoned_cart import AbandonedCartModel
from storefront.data.models.coupon import CouponModel
from storefront.domain.cart import Cart
from storefront.domain.discounts import DiscountType
from storefront.domain.errors import (
    BusinessLogicError,
    ConflictError,
    NotFoundError,
    RecoveryExpiredError,
)
from storefront.repos.abandoned_cart_repo import AbandonedCartRepo
from storefront.repos.cart_repo import CartRepo
from storefront.repos.coupon_repo import CouponRepo
from storefront.services.cart_service import new_session_id
from storefront.services.notification_service import NotificationService
from storefront.utils.clock import utcnow, as_utc
from storefront.utils.settings import (
    ABANDONED_CART_EXPIRY_DAYS,
    APP_BASE_URL,
    RECOVERY_DISCOUNT_PERCENT,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits

# etap -> (od ilu godzin po utworzeniu, pole znacznika, pole poprzedniego etapu)
REMINDER_STAGES = {
    1: (1, "reminder_sent_at", None),
    2: (24, "second_reminder_sent_at", "reminder_sent_at"),
    3: (48, "third_reminder_sent_at", "second_reminder_sent_at"),
}


def generate_recovery_code() -> str:
    return "RECOVER" + "".join(secrets.choice(_CODE_ALPHABET) for _ in range(8))


def generate_recovery_token() -> str:
    return secrets.token_urlsafe(32)


def recovery_url(token: str) -> str:
    return f"{APP_BASE_URL.rstrip('/')}/cart/recover?token={token}"


def is_expired(record: AbandonedCartModel, now: datetime) -> bool:
    return now > as_utc(record.expires_at)


class AbandonedCartService:
    """
    Porzucone koszyki: ACTIVE -> RECOVERED albo ACTIVE -> EXPIRED (tylko przez expires_at)
    -track: upsert po sesji, token i kod tylko przy pierwszym wywolaniu
    -recover: nowa sesja koszyka, is_recovered nigdy nie wraca do False
    -przypomnienia to tylko znaczniki czasu
    """

    def __init__(self, db: Session, cart_repo: CartRepo,
                 notification_service: NotificationService | None = None):
        self.db = db
        self.repo = AbandonedCartRepo(db)
        self.coupons = CouponRepo(db)
        self.cart_repo = cart_repo
        self.notification_service = notification_service or NotificationService()

    def track(self, cart_session_id: str, cart: Cart | None, customer_email: str | None = None,
              customer_name: str | None = None, now: datetime | None = None) -> AbandonedCartModel:
        now = now or utcnow()

        if cart is None:
            raise NotFoundError("Cart not found")
        if cart.is_empty:
            raise BusinessLogicError("Cart is empty")
        if cart.store_id is None:
            raise BusinessLogicError("Invalid cart data")

        snapshot = cart.model_dump(mode="json")
        record = self.repo.get_by_session(cart_session_id)

        try:
            if record:
                record.cart_data = snapshot
                record.cart_total = cart.subtotal
                record.item_count = len(cart.lines)
                record.customer_email = customer_email or record.customer_email
                record.customer_name = customer_name or record.customer_name
                record.updated_at = now
                logger.info(f"Updated abandoned cart snapshot for session {cart_session_id}")
            else:
                record = self._create(cart_session_id, cart, snapshot, customer_email, customer_name, now)
            self.repo.commit()
        except IntegrityError as e:
            self.repo.rollback()
            raise ConflictError("Cart is already being tracked") from e

        return record

    def _create(self, cart_session_id: str, cart: Cart, snapshot: dict, customer_email: str | None,
                customer_name: str | None, now: datetime) -> AbandonedCartModel:
        code = self._unique_code(cart.store_id)
        expires_at = now + timedelta(days=ABANDONED_CART_EXPIRY_DAYS)

        record = AbandonedCartModel(
            cart_session_id=cart_session_id,
            store_id=cart.store_id,
            customer_email=customer_email,
            customer_name=customer_name,
            cart_data=snapshot,
            cart_total=cart.subtotal,
            item_count=len(cart.lines),
            recovery_token=generate_recovery_token(),
            discount_code=code,
            discount_percent=RECOVERY_DISCOUNT_PERCENT,
            expires_at=expires_at,
            is_recovered=False,
            created_at=now,
            updated_at=now,
        )
        self.repo.add(record)

        # kod rabatowy to zwykly kupon sklepu, jednorazowy, wazny do expires_at
        self.coupons.add(
            CouponModel(
                store_id=cart.store_id,
                code=code,
                description="Abandoned cart recovery discount",
                discount_type=DiscountType.PERCENTAGE.value,
                discount_value=RECOVERY_DISCOUNT_PERCENT,
                usage_limit=1,
                end_date=expires_at,
                is_active=True,
            )
        )

        logger.info(f"Tracking abandoned cart {cart_session_id} with code {code}")
        return record

    def _unique_code(self, store_id: int) -> str:
        for _ in range(5):
            code = generate_recovery_code()
            if not self.repo.code_exists(code) and not self.coupons.get_by_code(store_id, code):
                return code
        raise ConflictError("Could not allocate a recovery code, please try again")

    def recover(self, token: str, now: datetime | None = None) -> tuple[str, AbandonedCartModel]:
        """Restore the snapshot into a new cart session and return its id."""
        now = now or utcnow()

        record = self.repo.get_by_token(token) if token else None
        if not record:
            raise NotFoundError("Cart not found or expired")
        if is_expired(record, now):
            raise RecoveryExpiredError("Cart has expired")
        if record.is_recovered:
            raise ConflictError("Cart has already been recovered")

        session_id = new_session_id()
        try:
            if self.repo.mark_recovered(record.id, now) == 0:
                raise ConflictError("Cart has already been recovered")

            cart = Cart.model_validate(record.cart_data)
            cart.session_id = session_id
            cart.updated_at = now
            # zapis koszyka przed commitem, jak redis padnie to recover sie cofa
            self.cart_repo.save(cart)

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Abandoned cart {record.id} recovered into session {session_id}")
        return session_id, record

    def list_for_store(self, store_id: int) -> list[AbandonedCartModel]:
        return self.repo.list_for_store(store_id)

    def mark_reminder_sent(self, cart_id: int, stage: int = 1, store_id: int | None = None,
                           now: datetime | None = None) -> AbandonedCartModel:
        now = now or utcnow()
        record = self._remindable(cart_id, stage, store_id, now)

        setattr(record, REMINDER_STAGES[stage][1], now)
        self.repo.commit()
        return record

    def send_reminder(self, cart_id: int, stage: int = 1, store_id: int | None = None,
                      now: datetime | None = None) -> AbandonedCartModel:
        now = now or utcnow()
        record = self._remindable(cart_id, stage, store_id, now)

        if not self.notification_service.send_cart_recovery(
            record.id, record.customer_email, recovery_url(record.recovery_token), record.discount_code, stage
        ):
            raise BusinessLogicError("Reminder could not be sent, please try again")
        return self.mark_reminder_sent(cart_id, stage, store_id, now)

    def _remindable(self, cart_id: int, stage: int, store_id: int | None, now: datetime) -> AbandonedCartModel:
        if stage not in REMINDER_STAGES:
            raise BusinessLogicError("Unknown reminder stage")

        record = self.repo.get(cart_id)
        if not record or (store_id is not None and record.store_id != store_id):
            raise NotFoundError("Cart not found")
        if is_expired(record, now):
            raise RecoveryExpiredError("Cart has expired")
        if record.is_recovered:
            raise ConflictError("Cart has already been recovered")
        if not record.customer_email:
            raise BusinessLogicError("No email address for this customer")
        if getattr(record, REMINDER_STAGES[stage][1]) is not None:
            raise ConflictError("Reminder has already been sent")
        return record

    def due_reminders(self, now: datetime | None = None) -> list[tuple[int, AbandonedCartModel]]:
        now = now or utcnow()
        due = []
        for stage, (hours, stamp, previous) in REMINDER_STAGES.items():
            carts = self.repo.find_due(
                created_from=now - timedelta(hours=hours + 1),
                created_to=now - timedelta(hours=hours),
                now=now,
                stamp_column=getattr(AbandonedCartModel, stamp),
                previous_column=getattr(AbandonedCartModel, previous) if previous else None,
            )
            due.extend((stage, cart) for cart in carts)
        return due

    def dispatch_due_reminders(self, now: datetime | None = None) -> dict:
        now = now or utcnow()
        results = {"total": 0, "sent": 0, "failed": 0}

        for stage, record in self.due_reminders(now):
            results["total"] += 1
            try:
                self.send_reminder(record.id, stage, now=now)
                results["sent"] += 1
            except (BusinessLogicError, ConflictError, NotFoundError) as e:
                results["failed"] += 1
                logger.warning(f"Reminder #{stage} for abandoned cart {record.id} skipped: {e}")

        logger.info(f"Abandoned cart reminders: {results}")
        return results
