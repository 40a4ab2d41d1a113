# storefront/domain/discounts.py
"""
Discount kinds as a tagged variant.

Each coupon type maps to exactly one dataclass with a single ``amount``
calculation; call sites never branch on the stored type string.
Amounts keep full precision, rounding happens when the order is written.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Union

from storefront.domain.money import ZERO, to_decimal, percent_of


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    FREE_SHIPPING = "FREE_SHIPPING"


@dataclass(frozen=True)
class PercentageDiscount:
    percent: Decimal
    cap: Decimal | None = None

    applies_to_shipping = False

    def amount(self, subtotal: Decimal, shipping_cost: Decimal) -> Decimal:
        discount = percent_of(subtotal, self.percent)
        if self.cap is not None and discount > self.cap:
            discount = self.cap
        return discount


@dataclass(frozen=True)
class FixedAmountDiscount:
    value: Decimal

    applies_to_shipping = False

    def amount(self, subtotal: Decimal, shipping_cost: Decimal) -> Decimal:
        return min(self.value, max(subtotal, ZERO))


@dataclass(frozen=True)
class FreeShippingDiscount:
    applies_to_shipping = True

    def amount(self, subtotal: Decimal, shipping_cost: Decimal) -> Decimal:
        return max(shipping_cost, ZERO)


Discount = Union[PercentageDiscount, FixedAmountDiscount, FreeShippingDiscount]


def discount_for(discount_type: str, value, max_discount_amount=None) -> Discount:
    kind = DiscountType(discount_type)

    if kind is DiscountType.PERCENTAGE:
        cap = to_decimal(max_discount_amount) if max_discount_amount is not None else None
        return PercentageDiscount(percent=to_decimal(value), cap=cap)
    if kind is DiscountType.FIXED_AMOUNT:
        return FixedAmountDiscount(value=to_decimal(value))
    return FreeShippingDiscount()
