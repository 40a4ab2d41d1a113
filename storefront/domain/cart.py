# storefront/domain/cart.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field

from storefront.domain.money import ZERO


def make_line_id(product_id: int, variant_id: int | None = None, combination_id: int | None = None) -> str:
    if combination_id:
        return f"{product_id}-c{combination_id}"
    if variant_id:
        return f"{product_id}-v{variant_id}"
    return str(product_id)


class CartLine(BaseModel):
    """Pozycja koszyka, cena zapisana w chwili dodania."""

    line_id: str
    product_id: int
    variant_id: int | None = None
    combination_id: int | None = None
    product_name: str
    variant_name: str | None = None
    category: str | None = None
    unit_price: Decimal
    quantity: int = Field(..., ge=1)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Cart(BaseModel):
    """Cart document as stored under ``cart:<session id>`` in Redis."""

    session_id: str
    store_id: int | None = None
    lines: List[CartLine] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), ZERO)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def find_line(self, line_id: str) -> CartLine | None:
        for line in self.lines:
            if line.line_id == line_id:
                return line
        return None

    def remove_line(self, line_id: str) -> bool:
        before = len(self.lines)
        self.lines = [line for line in self.lines if line.line_id != line_id]
        # pusty koszyk nie ma sklepu
        if not self.lines:
            self.store_id = None
        return len(self.lines) != before
