"""Tests for the cart document."""

from decimal import Decimal

from storefront.domain.cart import Cart, CartLine, make_line_id


def _line(product_id=1, variant_id=None, price="10.00", quantity=1):
    return CartLine(
        line_id=make_line_id(product_id, variant_id),
        product_id=product_id,
        variant_id=variant_id,
        product_name=f"Product {product_id}",
        unit_price=Decimal(price),
        quantity=quantity,
    )


class TestLineId:
    def test_product_only(self):
        assert make_line_id(7) == "7"

    def test_variant(self):
        assert make_line_id(7, variant_id=3) == "7-v3"

    def test_combination_wins_over_variant(self):
        assert make_line_id(7, variant_id=3, combination_id=9) == "7-c9"


class TestCart:
    def test_subtotal_and_item_count(self):
        cart = Cart(session_id="s1", store_id=1, lines=[_line(1, price="29.99", quantity=2), _line(2, price="1.01")])
        assert cart.subtotal == Decimal("61.99")
        assert cart.item_count == 3

    def test_removing_last_line_clears_store(self):
        cart = Cart(session_id="s1", store_id=1, lines=[_line(1)])
        assert cart.remove_line("1") is True
        assert cart.is_empty
        assert cart.store_id is None

    def test_removing_unknown_line(self):
        cart = Cart(session_id="s1", store_id=1, lines=[_line(1)])
        assert cart.remove_line("99") is False
        assert cart.store_id == 1

    def test_json_round_trip_keeps_decimal_prices(self):
        cart = Cart(session_id="s1", store_id=1, lines=[_line(1, price="0.10", quantity=3)])
        restored = Cart.model_validate_json(cart.model_dump_json())
        assert restored.subtotal == Decimal("0.30")
