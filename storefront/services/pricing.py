# storefront/services/pricing.py
"""
Order money math.

Amounts flow through with full precision and are rounded half-up to cents
only when the order row is built; the stored grand total is the exact sum of
the stored components, so ``total = subtotal + shipping + tax - discount``
holds on what is persisted.
"""
from dataclasses import dataclass
from decimal import Decimal

from storefront.data.models.vendor_store import VendorStoreModel
from storefront.domain.money import ZERO, to_decimal, round_money, percent_of
from storefront.utils.settings import PROCESSOR_FEE_PERCENT, PROCESSOR_FEE_FIXED

CASH_PAYMENT_REFS = ("cash",)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    shipping_cost: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    platform_fee: Decimal
    processor_fee: Decimal
    vendor_payout: Decimal


def shipping_cost_for(store: VendorStoreModel, subtotal: Decimal, shipping_method: str) -> Decimal:
    if shipping_method == "local_pickup":
        return ZERO

    threshold = store.free_shipping_threshold
    if threshold is not None and subtotal >= to_decimal(threshold):
        return ZERO
    return to_decimal(store.shipping_flat_rate)


def processor_fee_for(payment_method_ref: str, total: Decimal) -> Decimal:
    if payment_method_ref.lower().startswith(CASH_PAYMENT_REFS):
        return ZERO
    if total <= 0:
        return ZERO
    return percent_of(total, PROCESSOR_FEE_PERCENT) + PROCESSOR_FEE_FIXED


def compute_totals(subtotal: Decimal, shipping_cost: Decimal, discount_amount: Decimal,
                   discount_on_shipping: bool, tax_rate: Decimal, platform_fee_percent: Decimal,
                   payment_method_ref: str) -> OrderTotals:
    subtotal = to_decimal(subtotal)
    shipping_cost = to_decimal(shipping_cost)
    discount_amount = to_decimal(discount_amount)

    # rabat na wysylke nie zmniejsza podstawy podatku
    product_discount = ZERO if discount_on_shipping else discount_amount
    taxable = max(subtotal - product_discount, ZERO)
    tax = percent_of(taxable, tax_rate)

    subtotal_q = round_money(subtotal)
    shipping_q = round_money(shipping_cost)
    discount_q = round_money(discount_amount)
    tax_q = round_money(tax)
    total = subtotal_q + shipping_q + tax_q - discount_q

    platform_fee = round_money(percent_of(total, platform_fee_percent))
    processor_fee = round_money(processor_fee_for(payment_method_ref, total))

    return OrderTotals(
        subtotal=subtotal_q,
        shipping_cost=shipping_q,
        discount_amount=discount_q,
        tax_amount=tax_q,
        total=total,
        platform_fee=platform_fee,
        processor_fee=processor_fee,
        vendor_payout=total - platform_fee - processor_fee,
    )
