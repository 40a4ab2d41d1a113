from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class FulfillmentStatus(str, Enum):
    UNFULFILLED = "UNFULFILLED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String, nullable=False, unique=True)
    store_id = Column(Integer, ForeignKey("vendor_stores.id"), nullable=False, index=True)
    idempotency_key = Column(String, nullable=True, unique=True)

    # gosc ma tylko email
    customer_id = Column(String, nullable=True, index=True)
    customer_email = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=True)
    shipping_address = Column(JSON, nullable=False)
    shipping_method = Column(String, nullable=False, default="standard")

    subtotal = Column(Numeric(12, 2), nullable=False)
    shipping_cost = Column(Numeric(12, 2), nullable=False)
    tax_amount = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    platform_fee = Column(Numeric(12, 2), nullable=False)
    processor_fee = Column(Numeric(12, 2), nullable=False, default=0)
    vendor_payout = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    coupon_id = Column(Integer, ForeignKey("coupons.id"), nullable=True, index=True)
    coupon_code = Column(String, nullable=True)
    payment_method_ref = Column(String, nullable=False)

    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    payment_status = Column(String, nullable=False, default=PaymentStatus.PENDING.value)
    fulfillment_status = Column(String, nullable=False, default=FulfillmentStatus.UNFULFILLED.value)
    internal_notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    paid_at = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
