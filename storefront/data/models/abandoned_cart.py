from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Boolean, JSON

from storefront.data.database import Base


class AbandonedCartModel(Base):
    __tablename__ = "abandoned_carts"

    id = Column(Integer, primary_key=True)
    cart_session_id = Column(String, nullable=False, unique=True)
    store_id = Column(Integer, ForeignKey("vendor_stores.id"), nullable=False, index=True)

    customer_email = Column(String, nullable=True)
    customer_name = Column(String, nullable=True)

    cart_data = Column(JSON, nullable=False)
    cart_total = Column(Numeric(12, 2), nullable=False)
    item_count = Column(Integer, nullable=False)

    recovery_token = Column(String, nullable=False, unique=True)
    discount_code = Column(String, nullable=False, unique=True)
    discount_percent = Column(Numeric(5, 2), nullable=False)

    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_recovered = Column(Boolean, nullable=False, default=False)
    recovered_at = Column(DateTime(timezone=True), nullable=True)

    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)
    second_reminder_sent_at = Column(DateTime(timezone=True), nullable=True)
    third_reminder_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
