# storefront/repos/order_repo.py
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel, OrderStatus
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.review import ReviewModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_for_update(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.id == order_id).with_for_update()
        ).scalar_one_or_none()

    def get_by_idempotency_key(self, key: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.idempotency_key == key)
        ).scalar_one_or_none()

    def get_item(self, order_item_id: int) -> OrderItemModel | None:
        return self.db.get(OrderItemModel, order_item_id)

    def has_review(self, order_item_id: int) -> bool:
        return self.db.execute(
            select(ReviewModel.id).where(ReviewModel.order_item_id == order_item_id)
        ).first() is not None

    def store_totals(self, store_id: int):
        """Liczba i suma wyplat z zamowien ktore nie sa anulowane."""
        return self.db.execute(
            select(
                func.count(OrderModel.id),
                func.coalesce(func.sum(OrderModel.vendor_payout), 0),
            ).where(
                OrderModel.store_id == store_id,
                OrderModel.status != OrderStatus.CANCELLED.value,
            )
        ).one()

    def product_sales(self, store_id: int) -> dict[int, int]:
        rows = self.db.execute(
            select(OrderItemModel.product_id, func.sum(OrderItemModel.quantity))
            .join(OrderModel, OrderItemModel.order_id == OrderModel.id)
            .where(
                OrderModel.store_id == store_id,
                OrderModel.status != OrderStatus.CANCELLED.value,
            )
            .group_by(OrderItemModel.product_id)
        ).all()
        return {product_id: int(sold) for product_id, sold in rows}

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
