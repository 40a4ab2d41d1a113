"""Tests for discount kinds and their amount calculation."""

from decimal import Decimal

import pytest
from storefront.domain.discounts import (
    DiscountType,
    FixedAmountDiscount,
    FreeShippingDiscount,
    PercentageDiscount,
    discount_for,
)


class TestPercentageDiscount:
    def test_percentage_of_subtotal(self):
        discount = PercentageDiscount(percent=Decimal("15"))
        assert discount.amount(Decimal("80.00"), Decimal("5.00")) == Decimal("12.00")

    def test_capped_by_max_discount(self):
        discount = PercentageDiscount(percent=Decimal("20"), cap=Decimal("10"))
        assert discount.amount(Decimal("100"), Decimal("0")) == Decimal("10")

    def test_below_cap_is_not_clamped(self):
        discount = PercentageDiscount(percent=Decimal("20"), cap=Decimal("10"))
        assert discount.amount(Decimal("30"), Decimal("0")) == Decimal("6")

    @pytest.mark.parametrize("subtotal", ["0.01", "9.99", "49.995", "100", "12345.67"])
    def test_never_exceeds_cap(self, subtotal):
        discount = PercentageDiscount(percent=Decimal("35"), cap=Decimal("7.50"))
        assert discount.amount(Decimal(subtotal), Decimal("0")) <= Decimal("7.50")

    def test_keeps_full_precision(self):
        discount = PercentageDiscount(percent=Decimal("10"))
        assert discount.amount(Decimal("0.05"), Decimal("0")) == Decimal("0.005")


class TestFixedAmountDiscount:
    def test_fixed_value(self):
        assert FixedAmountDiscount(value=Decimal("5")).amount(Decimal("20"), Decimal("0")) == Decimal("5")

    def test_never_discounts_below_zero(self):
        assert FixedAmountDiscount(value=Decimal("50")).amount(Decimal("20"), Decimal("0")) == Decimal("20")


class TestFreeShippingDiscount:
    def test_amount_equals_shipping_cost(self):
        discount = FreeShippingDiscount()
        assert discount.amount(Decimal("40"), Decimal("7.95")) == Decimal("7.95")
        assert discount.applies_to_shipping is True

    def test_product_discounts_do_not_apply_to_shipping(self):
        assert PercentageDiscount(percent=Decimal("10")).applies_to_shipping is False
        assert FixedAmountDiscount(value=Decimal("1")).applies_to_shipping is False


class TestDiscountFor:
    def test_builds_percentage_with_cap(self):
        discount = discount_for("PERCENTAGE", Decimal("20"), Decimal("10"))
        assert discount == PercentageDiscount(percent=Decimal("20"), cap=Decimal("10"))

    def test_builds_fixed_amount(self):
        assert discount_for(DiscountType.FIXED_AMOUNT, "5.50") == FixedAmountDiscount(value=Decimal("5.50"))

    def test_builds_free_shipping(self):
        assert isinstance(discount_for("FREE_SHIPPING", 0), FreeShippingDiscount)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            discount_for("BOGO", 1)
