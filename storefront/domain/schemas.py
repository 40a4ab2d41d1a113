# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, EmailStr, model_validator
from typing import List, Literal
from decimal import Decimal
from datetime import datetime

from storefront.domain.discounts import DiscountType
from storefront.utils.clock import as_utc
from storefront.utils.settings import CART_MAX_LINE_QUANTITY

COUPON_CODE_PATTERN = r"^[A-Za-z0-9_-]{3,32}$"


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0)
    variant_id: int | None = Field(default=None, gt=0)
    combination_id: int | None = Field(default=None, gt=0)
    quantity: int = Field(..., ge=1, le=CART_MAX_LINE_QUANTITY)


class QuantityIn(BaseModel):
    """0 usuwa pozycje."""

    quantity: int = Field(..., ge=0, le=CART_MAX_LINE_QUANTITY)


class CartLineOut(BaseModel):
    line_id: str
    product_id: int
    variant_id: int | None = None
    combination_id: int | None = None
    product_name: str
    variant_name: str | None = None
    unit_price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    session_id: str | None = None
    store_id: int | None = None
    lines: List[CartLineOut]
    subtotal: Decimal
    item_count: int


class ApplyCouponIn(BaseModel):
    code: str = Field(..., pattern=COUPON_CODE_PATTERN)
    shipping_cost: Decimal = Field(default=Decimal("0"), ge=0)
    customer_id: str | None = None
    customer_email: EmailStr | None = None


class CouponSummary(BaseModel):
    id: int
    code: str
    discount_type: str
    description: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CouponValidationOut(BaseModel):
    valid: bool
    discount_amount: Decimal | None = None
    coupon: CouponSummary | None = None
    error: str | None = None


class TrackAbandonedIn(BaseModel):
    customer_email: EmailStr | None = None
    customer_name: str | None = Field(default=None, max_length=200)


class AddressIn(BaseModel):
    full_name: str = Field(..., min_length=1)
    address_line1: str = Field(..., min_length=1)
    address_line2: str | None = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=3, max_length=12)
    phone: str | None = None


class CheckoutIn(BaseModel):
    """Schema dla checkoutu koszyka z cookie."""

    customer_id: str | None = None
    customer_email: EmailStr
    customer_name: str | None = None
    shipping_address: AddressIn
    shipping_method: Literal["standard", "local_pickup"] = "standard"
    coupon_code: str | None = Field(default=None, pattern=COUPON_CODE_PATTERN)
    payment_method_ref: str = Field(..., min_length=1)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    variant_id: int | None = None
    combination_id: int | None = None
    name: str
    variant_name: str | None = None
    unit_price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: str
    store_id: int
    customer_id: str | None = None
    customer_email: str
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    platform_fee: Decimal
    processor_fee: Decimal
    vendor_payout: Decimal
    total: Decimal
    coupon_code: str | None = None
    status: str
    payment_status: str
    fulfillment_status: str
    created_at: datetime
    paid_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    refunded_at: datetime | None = None
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)


class PaymentIn(BaseModel):
    succeeded: bool


class FulfillmentIn(BaseModel):
    status: Literal["PROCESSING", "SHIPPED", "DELIVERED"]


class CancelIn(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class CouponCreate(BaseModel):
    """Schema dla tworzenia kuponu przez sprzedawce."""

    code: str = Field(..., pattern=COUPON_CODE_PATTERN)
    description: str | None = None
    discount_type: DiscountType
    discount_value: Decimal = Field(default=Decimal("0"), ge=0)
    min_purchase_amount: Decimal | None = Field(default=None, ge=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    usage_limit: int | None = Field(default=None, ge=1)
    per_customer_limit: int | None = Field(default=None, ge=1)
    applicable_products: List[int] = Field(default_factory=list)
    applicable_categories: List[str] = Field(default_factory=list)
    excluded_products: List[int] = Field(default_factory=list)
    first_time_customers_only: bool = False
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_rules(self):
        if self.discount_type is DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.discount_type is not DiscountType.FREE_SHIPPING and self.discount_value <= 0:
            raise ValueError("Discount value must be greater than 0")
        if self.start_date and self.end_date and as_utc(self.end_date) <= as_utc(self.start_date):
            raise ValueError("End date must be after start date")
        return self


class CouponOut(BaseModel):
    id: int
    store_id: int
    code: str
    description: str | None = None
    discount_type: str
    discount_value: Decimal
    min_purchase_amount: Decimal | None = None
    max_discount_amount: Decimal | None = None
    usage_limit: int | None = None
    usage_count: int
    per_customer_limit: int | None = None
    first_time_customers_only: bool
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class AbandonedCartOut(BaseModel):
    id: int
    cart_session_id: str
    customer_email: str | None = None
    customer_name: str | None = None
    cart_total: Decimal
    item_count: int
    discount_code: str
    expires_at: datetime
    is_recovered: bool
    recovered_at: datetime | None = None
    reminder_sent_at: datetime | None = None
    second_reminder_sent_at: datetime | None = None
    third_reminder_sent_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class LowStockItemOut(BaseModel):
    product_id: int
    variant_id: int | None = None
    combination_id: int | None = None
    name: str
    quantity: int
    threshold: int

    model_config = ConfigDict(from_attributes=True)


class ReminderIn(BaseModel):
    stage: int = Field(default=1, ge=1, le=3)


class ReviewEligibilityOut(BaseModel):
    eligible: bool
    reason: str | None = None
    days_remaining: int | None = None
    waiting_for_shipment: bool = False
    expired: bool = False
    has_review: bool = False
