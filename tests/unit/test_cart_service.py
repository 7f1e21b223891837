"""
Unit tests for the Cart aggregate.
"""

import pytest
from decimal import Decimal

from retail_pos.exceptions import (
    NotFoundError, OutOfStockError, InsufficientStockError,
    DiscountScopeError, DuplicateDiscountError, ValidationError
)
from retail_pos.models import DiscountType, DiscountScope
from retail_pos.services.cart_service import Cart, ProductRef, ReturnCart


def product(id=1, name='Maglia', price='20.00', stock=5):
    return ProductRef(id=id, name=name, sale_price=Decimal(price), stock=stock, barcode=f'B{id}')


class TestAddOrIncrement:

    def test_new_line_with_quantity_one(self):
        cart = Cart()
        line = cart.add_or_increment(product())
        assert len(cart.lines) == 1
        assert line.quantity == 1
        assert line.unit_price == Decimal('20.00')

    def test_same_product_increments(self):
        cart = Cart()
        cart.add_or_increment(product())
        cart.add_or_increment(product())
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2

    def test_out_of_stock_rejected_without_change(self):
        cart = Cart()
        with pytest.raises(OutOfStockError):
            cart.add_or_increment(product(stock=0))
        assert cart.is_empty

    def test_increment_beyond_stock_rejected(self):
        cart = Cart()
        cart.add_or_increment(product(stock=1))
        with pytest.raises(InsufficientStockError):
            cart.add_or_increment(product(stock=1))
        assert cart.lines[0].quantity == 1

    def test_explicit_price_list(self):
        cart = Cart(price_overrides={(3, 1): Decimal('15.00')})
        line = cart.add_or_increment(product(), price_list_id=3)
        assert line.unit_price == Decimal('15.00')

    def test_selected_price_list(self):
        cart = Cart(price_overrides={(3, 1): Decimal('15.00')}, price_list_id=3)
        assert cart.add_or_increment(product()).unit_price == Decimal('15.00')

    def test_default_price_list_when_none_selected(self):
        cart = Cart(price_overrides={(9, 1): Decimal('18.00')}, default_price_list_id=9)
        assert cart.add_or_increment(product()).unit_price == Decimal('18.00')

    def test_price_list_change_keeps_existing_prices(self):
        cart = Cart(price_overrides={(3, 1): Decimal('15.00')})
        cart.add_or_increment(product())
        cart.set_price_list(3)
        cart.add_or_increment(product())
        assert cart.lines[0].unit_price == Decimal('20.00')


class TestSetQuantity:

    def test_update(self):
        cart = Cart()
        cart.add_or_increment(product(stock=5))
        cart.set_quantity(0, 4)
        assert cart.lines[0].quantity == 4

    @pytest.mark.parametrize('qty', [0, -2])
    def test_zero_or_negative_removes(self, qty):
        cart = Cart()
        cart.add_or_increment(product())
        assert cart.set_quantity(0, qty) is None
        assert cart.is_empty

    def test_above_stock_snapshot_rejected(self):
        cart = Cart()
        cart.add_or_increment(product(stock=3))
        with pytest.raises(InsufficientStockError) as exc:
            cart.set_quantity(0, 4)
        assert exc.value.status_code == 409
        assert cart.lines[0].quantity == 1

    def test_unknown_line(self):
        with pytest.raises(NotFoundError):
            Cart().set_quantity(0, 1)

    def test_non_numeric_quantity(self):
        cart = Cart()
        cart.add_or_increment(product())
        with pytest.raises(ValidationError):
            cart.set_quantity(0, 'due')


class TestDiscounts:

    def test_line_discount(self, discount_code):
        cart = Cart()
        cart.add_or_increment(product())
        cart.apply_line_discount(0, discount_code('P10', applies_to=DiscountScope.PRODUCT))
        assert [d.code for d in cart.lines[0].discounts] == ['P10']
        assert cart.lines[0].discounts[0].amount is None

    def test_cart_code_on_line_rejected(self, discount_code):
        cart = Cart()
        cart.add_or_increment(product())
        with pytest.raises(DiscountScopeError):
            cart.apply_line_discount(0, discount_code('C5', applies_to=DiscountScope.CART))
        assert cart.lines[0].discounts == []

    def test_product_code_on_cart_rejected(self, discount_code):
        cart = Cart()
        with pytest.raises(DiscountScopeError):
            cart.apply_cart_discount(discount_code('P10', applies_to=DiscountScope.PRODUCT))
        assert cart.cart_discounts == []

    def test_duplicate_cart_code_rejected(self, discount_code):
        cart = Cart()
        cart.apply_cart_discount(discount_code('C5'))
        with pytest.raises(DuplicateDiscountError):
            cart.apply_cart_discount(discount_code('c5'))
        assert len(cart.cart_discounts) == 1

    def test_same_code_on_two_lines_allowed(self, discount_code):
        cart = Cart()
        cart.add_or_increment(product(id=1))
        cart.add_or_increment(product(id=2))
        code = discount_code('P10', applies_to=DiscountScope.PRODUCT)
        cart.apply_line_discount(0, code)
        cart.apply_line_discount(1, code)
        assert all(len(line.discounts) == 1 for line in cart.lines)

    def test_remove(self, discount_code):
        cart = Cart()
        cart.add_or_increment(product())
        cart.apply_line_discount(0, discount_code('P10', applies_to=DiscountScope.PRODUCT))
        cart.apply_cart_discount(discount_code('C5', discount_type=DiscountType.FIXED, value='5'))
        cart.remove_line_discount(0, 'p10')
        cart.remove_cart_discount('C5')
        assert cart.lines[0].discounts == []
        assert cart.cart_discounts == []

    def test_totals(self, discount_code):
        cart = Cart()
        cart.add_or_increment(product(price='20.00'))
        cart.add_or_increment(product(price='20.00'))
        cart.apply_line_discount(0, discount_code('P10', applies_to=DiscountScope.PRODUCT))
        cart.apply_cart_discount(discount_code('C5', discount_type=DiscountType.FIXED, value='5'))
        assert cart.totals().total == Decimal('31.00')


class TestClearAndSerialization:

    def test_clear_keeps_price_list_drops_customer(self, discount_code):
        cart = Cart(price_list_id=3, customer_id=8)
        cart.add_or_increment(product())
        cart.apply_cart_discount(discount_code('C5'))
        cart.clear()
        assert cart.is_empty
        assert cart.cart_discounts == []
        assert cart.price_list_id == 3
        assert cart.customer_id is None

    def test_round_trip_through_session_dict(self, discount_code):
        cart = Cart(price_list_id=3, default_price_list_id=1, customer_id=8)
        cart.add_or_increment(product())
        cart.apply_line_discount(0, discount_code('P10', applies_to=DiscountScope.PRODUCT))
        cart.apply_cart_discount(discount_code('C5', discount_type=DiscountType.FIXED, value='5'))

        restored = Cart.from_dict(cart.to_dict())

        assert restored.to_dict() == cart.to_dict()
        assert restored.totals() == cart.totals()

    def test_from_empty_session(self):
        cart = Cart.from_dict(None)
        assert cart.is_empty
        assert cart.price_list_id is None


class TestReturnCart:

    def test_add_ignores_stock_and_uses_list_price(self):
        cart = ReturnCart()
        line = cart.add(product(stock=0, price='12.50'))
        assert line.unit_price == Decimal('12.50')

    def test_add_same_product_increments(self):
        cart = ReturnCart()
        cart.add(product())
        cart.add(product(), 2)
        assert cart.lines[0].quantity == 3
        assert cart.total() == Decimal('60.00')

    def test_set_quantity_and_remove(self):
        cart = ReturnCart()
        cart.add(product(id=1))
        cart.add(product(id=2))
        cart.set_quantity(0, 0)
        assert [line.product.id for line in cart.lines] == [2]
        cart.remove_line(0)
        assert cart.is_empty

    def test_clear(self):
        cart = ReturnCart(customer_id=4)
        cart.add(product())
        cart.clear()
        assert cart.is_empty
        assert cart.customer_id is None
