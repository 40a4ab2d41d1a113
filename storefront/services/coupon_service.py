# storefront/services/coupon_service.py
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.coupon import CouponModel
from storefront.domain.cart import CartLine
from storefront.domain.discounts import discount_for
from storefront.domain.errors import ValidationError, NotFoundError, ConflictError
from storefront.domain.money import to_decimal, round_money
from storefront.domain.schemas import CouponCreate, COUPON_CODE_PATTERN
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.coupon_repo import CouponRepo
from storefront.utils.clock import utcnow, as_utc
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_CODE_RE = re.compile(COUPON_CODE_PATTERN)


@dataclass
class CouponValidation:
    valid: bool
    discount_amount: Decimal | None = None
    coupon: CouponModel | None = None
    error: str | None = None
    applies_to_shipping: bool = False


@dataclass(frozen=True)
class CouponLine:
    """Cart line with the category resolved on the server side."""

    product_id: int
    variant_id: int | None
    unit_price: Decimal
    quantity: int
    category: str | None = None


@dataclass
class CouponContext:
    code: str
    store_id: int
    lines: list[CouponLine]
    subtotal: Decimal
    shipping_cost: Decimal
    customer_id: str | None = None
    customer_email: str | None = None
    now: datetime = field(default_factory=utcnow)


def normalize_code(code: str) -> str:
    code = (code or "").strip()
    if not _CODE_RE.match(code):
        raise ValidationError(
            "Invalid coupon code",
            details=[{"loc": ["code"], "msg": "Coupon code must be 3-32 letters, digits, '-' or '_'"}],
        )
    return code.upper()


def _rejected(error: str) -> CouponValidation:
    return CouponValidation(valid=False, error=error)


class CouponService:
    """
    Walidacja kuponu i wyliczenie rabatu.
    validate_and_calculate nie ma efektow ubocznych, licznik uzyc
    zwieksza dopiero OrderService w transakcji zamowienia.
    """

    def __init__(self, db: Session):
        self.repo = CouponRepo(db)
        self.catalog = CatalogRepo(db)
        self.db = db

    def lines_from_cart(self, cart_lines: Iterable[CartLine]) -> list[CouponLine]:
        cart_lines = list(cart_lines)
        categories = self.catalog.get_categories([line.product_id for line in cart_lines])
        return [
            CouponLine(
                product_id=line.product_id,
                variant_id=line.variant_id,
                unit_price=line.unit_price,
                quantity=line.quantity,
                category=categories.get(line.product_id),
            )
            for line in cart_lines
        ]

    def validate_and_calculate(self, ctx: CouponContext) -> CouponValidation:
        code = normalize_code(ctx.code)
        subtotal = to_decimal(ctx.subtotal)
        shipping_cost = to_decimal(ctx.shipping_cost)

        # 1. istnieje i aktywny
        coupon = self.repo.get_by_code(ctx.store_id, code)
        if not coupon:
            return _rejected("Coupon code not found")
        if not coupon.is_active:
            return _rejected("This coupon is no longer active")

        # 2. daty
        start, end = as_utc(coupon.start_date), as_utc(coupon.end_date)
        if start and ctx.now < start:
            return _rejected(f"This coupon is not valid until {start.date().isoformat()}")
        if end and ctx.now > end:
            return _rejected("This coupon has expired")

        # 3. limity uzyc
        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            return _rejected("This coupon has reached its usage limit")
        if coupon.per_customer_limit is not None:
            used = self.repo.count_customer_uses(coupon.id, ctx.customer_id, ctx.customer_email)
            if used >= coupon.per_customer_limit:
                return _rejected("You have already used this coupon the maximum number of times")

        # 4. minimalna kwota
        if coupon.min_purchase_amount is not None and subtotal < to_decimal(coupon.min_purchase_amount):
            return _rejected(
                f"Minimum purchase amount of ${round_money(coupon.min_purchase_amount)} required"
            )

        # 5. tylko nowi klienci
        if coupon.first_time_customers_only:
            previous = self.repo.count_paid_orders(ctx.store_id, ctx.customer_id, ctx.customer_email)
            if previous > 0:
                return _rejected("This coupon is only valid for first-time customers")

        # 6. produkty / kategorie
        error = self._applicability_error(coupon, ctx.lines)
        if error:
            return _rejected(error)

        discount = discount_for(coupon.discount_type, coupon.discount_value, coupon.max_discount_amount)
        return CouponValidation(
            valid=True,
            discount_amount=discount.amount(subtotal, shipping_cost),
            coupon=coupon,
            applies_to_shipping=discount.applies_to_shipping,
        )

    @staticmethod
    def _applicability_error(coupon: CouponModel, lines: list[CouponLine]) -> str | None:
        excluded = set(coupon.excluded_products or [])
        for line in lines:
            if line.product_id in excluded:
                return "This coupon cannot be used with one or more items in your cart"

        applicable_products = set(coupon.applicable_products or [])
        applicable_categories = set(coupon.applicable_categories or [])
        if not applicable_products and not applicable_categories:
            return None

        for line in lines:
            if line.product_id in applicable_products:
                return None
            if line.category and line.category in applicable_categories:
                return None
        return "This coupon is not applicable to items in your cart"

    # vendor commands

    def create_coupon(self, store_id: int, payload: CouponCreate) -> CouponModel:
        if not self.catalog.get_store(store_id):
            raise NotFoundError("Store not found")

        code = normalize_code(payload.code)
        if self.repo.get_by_code(store_id, code):
            raise ConflictError(f"Coupon code {code} already exists for this store")

        data = payload.model_dump()
        data["code"] = code
        data["discount_type"] = payload.discount_type.value
        coupon = CouponModel(store_id=store_id, **data)

        try:
            self.repo.add(coupon)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Coupon code {code} already exists for this store") from e

        logger.info(f"Created coupon {code} for store {store_id}")
        return coupon

    def list_coupons(self, store_id: int) -> list[CouponModel]:
        return self.repo.list_for_store(store_id)

    def deactivate_coupon(self, store_id: int, coupon_id: int) -> CouponModel:
        coupon = self.repo.get(coupon_id)
        if not coupon or coupon.store_id != store_id:
            raise NotFoundError("Coupon not found")

        coupon.is_active = False
        self.db.commit()
        logger.info(f"Deactivated coupon {coupon.code} for store {store_id}")
        return coupon
