from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, ForeignKey, String, Numeric, Boolean, DateTime, JSON, UniqueConstraint,
)

from storefront.data.database import Base


class CouponModel(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("vendor_stores.id"), nullable=False, index=True)
    code = Column(String(32), nullable=False)
    description = Column(String, nullable=True)

    discount_type = Column(String, nullable=False)  # PERCENTAGE, FIXED_AMOUNT, FREE_SHIPPING
    discount_value = Column(Numeric(12, 2), nullable=False, default=0)

    min_purchase_amount = Column(Numeric(12, 2), nullable=True)
    max_discount_amount = Column(Numeric(12, 2), nullable=True)
    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    per_customer_limit = Column(Integer, nullable=True)

    applicable_products = Column(JSON, nullable=False, default=lambda: [])
    applicable_categories = Column(JSON, nullable=False, default=lambda: [])
    excluded_products = Column(JSON, nullable=False, default=lambda: [])
    first_time_customers_only = Column(Boolean, nullable=False, default=False)

    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("store_id", "code", name="u_store_coupon_code"),)
