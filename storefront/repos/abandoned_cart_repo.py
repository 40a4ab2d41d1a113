# storefront/repos/abandoned_cart_repo.py
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.abandoned_cart import AbandonedCartModel


class AbandonedCartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, cart_id: int) -> AbandonedCartModel | None:
        return self.db.get(AbandonedCartModel, cart_id)

    def get_by_session(self, cart_session_id: str) -> AbandonedCartModel | None:
        return self.db.execute(
            select(AbandonedCartModel).where(AbandonedCartModel.cart_session_id == cart_session_id)
        ).scalar_one_or_none()

    def get_by_token(self, token: str) -> AbandonedCartModel | None:
        return self.db.execute(
            select(AbandonedCartModel).where(AbandonedCartModel.recovery_token == token)
        ).scalar_one_or_none()

    def code_exists(self, code: str) -> bool:
        return self.db.execute(
            select(AbandonedCartModel.id).where(AbandonedCartModel.discount_code == code)
        ).first() is not None

    def list_for_store(self, store_id: int) -> list[AbandonedCartModel]:
        return list(
            self.db.execute(
                select(AbandonedCartModel)
                .where(AbandonedCartModel.store_id == store_id)
                .order_by(AbandonedCartModel.created_at.desc())
            ).scalars()
        )

    def add(self, cart: AbandonedCartModel) -> AbandonedCartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def mark_recovered(self, cart_id: int, recovered_at: datetime) -> int:
        # warunek is_recovered = false, dwa rownolegle recover -> tylko jeden wygra
        result = self.db.execute(
            update(AbandonedCartModel)
            .where(
                AbandonedCartModel.id == cart_id,
                AbandonedCartModel.is_recovered.is_(False),
            )
            .values(is_recovered=True, recovered_at=recovered_at)
        )
        return result.rowcount

    def find_due(self, created_from: datetime, created_to: datetime, now: datetime,
                 stamp_column, previous_column=None, limit: int = 50) -> list[AbandonedCartModel]:
        criteria = [
            AbandonedCartModel.created_at >= created_from,
            AbandonedCartModel.created_at <= created_to,
            AbandonedCartModel.is_recovered.is_(False),
            AbandonedCartModel.expires_at >= now,
            AbandonedCartModel.customer_email.is_not(None),
            stamp_column.is_(None),
        ]
        if previous_column is not None:
            criteria.append(previous_column.is_not(None))

        return list(
            self.db.execute(
                select(AbandonedCartModel).where(*criteria).order_by(AbandonedCartModel.id).limit(limit)
            ).scalars()
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
