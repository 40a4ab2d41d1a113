# storefront/services/stock_ledger.py
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel, VariantModel, VariantCombinationModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class StockResult(str, Enum):
    OK = "OK"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    FAILED = "FAILED"


@dataclass(frozen=True)
class StockCounter:
    """Which row holds the sellable quantity for a cart line."""

    model: type | None
    row_id: int | None
    tracked: bool
    # wiersz licznika nie istnieje (np. usuniety wariant)
    missing: bool = False


UNTRACKED = StockCounter(model=None, row_id=None, tracked=False)


@dataclass(frozen=True)
class StockCheck:
    available: bool
    quantity: int | None


class StockLedger:
    """
    Jedyne miejsce ktore zmienia stan magazynu.
    -reserve: warunkowy UPDATE ... WHERE quantity >= n, jedna operacja, bez read-then-write
    -release: inkrementacja bez warunku, w SAVEPOINT
    -produkty bez sledzenia stanow zawsze OK
    -brakujacy wiersz licznika to nie "bez sledzenia": brak towaru, release FAILED
    """

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, product_id: int, variant_id: int | None = None,
                combination_id: int | None = None) -> StockCounter:
        # kombinacja (nowy system) > wariant (stary) > produkt
        if combination_id:
            model, row_id = VariantCombinationModel, combination_id
        elif variant_id:
            model, row_id = VariantModel, variant_id
        else:
            model, row_id = ProductModel, product_id

        tracked = self.db.execute(
            select(model.track_inventory).where(model.id == row_id)
        ).scalar_one_or_none()

        if tracked is None:
            return StockCounter(model=model, row_id=row_id, tracked=False, missing=True)
        if not tracked:
            return UNTRACKED
        return StockCounter(model=model, row_id=row_id, tracked=True)

    def check(self, product_id: int, quantity: int, variant_id: int | None = None,
              combination_id: int | None = None) -> StockCheck:
        """Advisory availability; the authoritative check is ``reserve``."""
        counter = self.resolve(product_id, variant_id, combination_id)
        if counter.missing:
            return StockCheck(available=False, quantity=0)
        if not counter.tracked:
            return StockCheck(available=True, quantity=None)

        model = counter.model
        on_hand = self.db.execute(
            select(model.quantity).where(model.id == counter.row_id)
        ).scalar_one()
        return StockCheck(available=on_hand >= quantity, quantity=on_hand)

    def reserve(self, product_id: int, quantity: int, variant_id: int | None = None,
                combination_id: int | None = None) -> StockResult:
        counter = self.resolve(product_id, variant_id, combination_id)
        if counter.missing:
            logger.info(f"No stock counter {counter.model.__tablename__}:{counter.row_id} for product {product_id}")
            return StockResult.INSUFFICIENT_STOCK
        if not counter.tracked:
            return StockResult.OK

        model = counter.model
        result = self.db.execute(
            update(model)
            .where(model.id == counter.row_id, model.quantity >= quantity)
            .values(quantity=model.quantity - quantity)
        )

        if result.rowcount == 0:
            logger.info(
                f"Insufficient stock for product {product_id} "
                f"({model.__tablename__}:{counter.row_id}), requested {quantity}"
            )
            return StockResult.INSUFFICIENT_STOCK

        logger.info(f"Reserved {quantity} of {model.__tablename__}:{counter.row_id}")
        return StockResult.OK

    def release(self, product_id: int, quantity: int, variant_id: int | None = None,
                combination_id: int | None = None) -> StockResult:
        """Best effort: a failed release is logged and reported, never raised."""
        try:
            with self.db.begin_nested():
                counter = self.resolve(product_id, variant_id, combination_id)
                if counter.missing:
                    logger.error(
                        f"Cannot release {quantity} units of product {product_id}: "
                        f"{counter.model.__tablename__}:{counter.row_id} no longer exists"
                    )
                    return StockResult.FAILED
                if not counter.tracked:
                    return StockResult.OK

                model = counter.model
                self.db.execute(
                    update(model)
                    .where(model.id == counter.row_id)
                    .values(quantity=model.quantity + quantity)
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to release {quantity} units of product {product_id}: {e}")
            return StockResult.FAILED

        logger.info(f"Released {quantity} of {model.__tablename__}:{counter.row_id}")
        return StockResult.OK
