# storefront/repos/coupon_repo.py
from sqlalchemy import select, update, func, or_
from sqlalchemy.orm import Session

from storefront.data.models.coupon import CouponModel
from storefront.data.models.order import OrderModel, OrderStatus, PaymentStatus


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, store_id: int, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(
                CouponModel.store_id == store_id,
                CouponModel.code == code,
            )
        ).scalar_one_or_none()

    def get(self, coupon_id: int) -> CouponModel | None:
        return self.db.get(CouponModel, coupon_id)

    def list_for_store(self, store_id: int) -> list[CouponModel]:
        return list(
            self.db.execute(
                select(CouponModel).where(CouponModel.store_id == store_id).order_by(CouponModel.id)
            ).scalars()
        )

    def add(self, coupon: CouponModel) -> CouponModel:
        self.db.add(coupon)
        self.db.flush()
        return coupon

    def increment_usage(self, coupon_id: int) -> int:
        """Conditional increment that never passes ``usage_limit``."""
        result = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.id == coupon_id,
                (CouponModel.usage_limit.is_(None)) | (CouponModel.usage_count < CouponModel.usage_limit),
            )
            .values(usage_count=CouponModel.usage_count + 1)
        )
        return result.rowcount

    def count_customer_uses(self, coupon_id: int, customer_id: str | None, customer_email: str | None) -> int:
        identity = _customer_filter(customer_id, customer_email)
        if identity is None:
            return 0
        return self.db.execute(
            select(func.count(OrderModel.id)).where(
                OrderModel.coupon_id == coupon_id,
                OrderModel.status != OrderStatus.CANCELLED.value,
                identity,
            )
        ).scalar_one()

    def count_paid_orders(self, store_id: int, customer_id: str | None, customer_email: str | None) -> int:
        identity = _customer_filter(customer_id, customer_email)
        if identity is None:
            return 0
        return self.db.execute(
            select(func.count(OrderModel.id)).where(
                OrderModel.store_id == store_id,
                OrderModel.payment_status == PaymentStatus.PAID.value,
                identity,
            )
        ).scalar_one()


def _customer_filter(customer_id: str | None, customer_email: str | None):
    clauses = []
    if customer_id:
        clauses.append(OrderModel.customer_id == customer_id)
    if customer_email:
        clauses.append(func.lower(OrderModel.customer_email) == customer_email.lower())
    if not clauses:
        return None
    return or_(*clauses)
