"""
Integration tests for price lists and discount codes.
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from retail_pos.exceptions import (
    NotFoundError, ValidationError, InvalidDiscountCodeError, StoreError
)
from retail_pos.models import DiscountType, DiscountScope
from retail_pos.services import price_list_service, discount_code_service
from retail_pos.services.cart_service import Cart


class TestPriceLists:
    """Tests for price list management."""

    def test_create_requires_name(self, store):
        with pytest.raises(ValidationError):
            price_list_service.create_price_list(store, '   ')

    def test_only_one_default(self, store):
        retail = price_list_service.create_price_list(store, 'Dettaglio')
        wholesale = price_list_service.create_price_list(store, 'Ingrosso')

        price_list_service.set_default_price_list(store, retail.id)
        price_list_service.set_default_price_list(store, wholesale.id)

        defaults = store.find_all('price_list', is_default=True)
        assert [p.id for p in defaults] == [wholesale.id]
        assert price_list_service.get_default_price_list(store).id == wholesale.id

    def test_set_default_twice_is_stable(self, store):
        retail = price_list_service.create_price_list(store, 'Dettaglio')
        price_list_service.set_default_price_list(store, retail.id)
        price_list_service.set_default_price_list(store, retail.id)
        assert len(store.find_all('price_list', is_default=True)) == 1

    def test_set_default_unknown(self, store):
        with pytest.raises(NotFoundError):
            price_list_service.set_default_price_list(store, 999)

    def test_update_cannot_touch_default_flag(self, store):
        retail = price_list_service.create_price_list(store, 'Dettaglio')
        with pytest.raises(ValidationError):
            price_list_service.update_price_list(store, retail.id, is_default=True)

    def test_update_and_list_active(self, store):
        retail = price_list_service.create_price_list(store, 'Dettaglio')
        price_list_service.create_price_list(store, 'Ingrosso')

        price_list_service.update_price_list(store, retail.id, is_active=False, description='vecchio')

        assert [p.name for p in price_list_service.list_active_price_lists(store)] == ['Ingrosso']
        assert [p.name for p in price_list_service.list_price_lists(store)] == ['Dettaglio', 'Ingrosso']

    def test_delete(self, store):
        retail = price_list_service.create_price_list(store, 'Dettaglio')
        price_list_service.delete_price_list(store, retail.id)
        assert store.find_by_id('price_list', retail.id) is None
        with pytest.raises(NotFoundError):
            price_list_service.delete_price_list(store, retail.id)

    def test_set_price_upserts(self, store, make_product):
        product = make_product(sale_price='20.00')
        wholesale = price_list_service.create_price_list(store, 'Ingrosso')

        price_list_service.set_price_for_product(store, wholesale.id, product.id, '15')
        price_list_service.set_price_for_product(store, wholesale.id, product.id, Decimal('14.50'))

        items = store.find_all('price_list_item')
        assert len(items) == 1
        assert items[0].custom_price == Decimal('14.50')
        assert price_list_service.load_price_overrides(store) == {
            (wholesale.id, product.id): Decimal('14.50')
        }

    @pytest.mark.parametrize('price', ['-1', 'abc', None])
    def test_set_price_rejects_bad_values(self, store, make_product, price):
        product = make_product()
        wholesale = price_list_service.create_price_list(store, 'Ingrosso')
        with pytest.raises(ValidationError):
            price_list_service.set_price_for_product(store, wholesale.id, product.id, price)

    def test_set_price_unknown_product(self, store):
        wholesale = price_list_service.create_price_list(store, 'Ingrosso')
        with pytest.raises(NotFoundError):
            price_list_service.set_price_for_product(store, wholesale.id, 999, '1.00')

    def test_default_list_prices_new_lines(self, store, make_product):
        product = make_product(sale_price='20.00')
        wholesale = price_list_service.create_price_list(store, 'Ingrosso')
        price_list_service.set_default_price_list(store, wholesale.id)
        price_list_service.set_price_for_product(store, wholesale.id, product.id, '16.00')

        cart = Cart(
            price_overrides=price_list_service.load_price_overrides(store),
            default_price_list_id=price_list_service.get_default_price_list(store).id,
        )
        line = cart.add_or_increment(product)

        assert line.unit_price == Decimal('16.00')


class TestDiscountCodes:
    """Tests for discount code management and lookup."""

    def test_code_stored_upper_case(self, store):
        code = discount_code_service.create_discount_code(store, ' estate10 ', 'percentage', '10')
        assert code.code == 'ESTATE10'
        assert code.type == DiscountType.PERCENTAGE
        assert code.applies_to == DiscountScope.CART

    def test_duplicate_code_any_case(self, store):
        discount_code_service.create_discount_code(store, 'ESTATE10', 'percentage', '10')
        with pytest.raises(StoreError):
            discount_code_service.create_discount_code(store, 'Estate10', 'fixed', '5')

    def test_percentage_over_100_rejected(self, store):
        with pytest.raises(ValidationError):
            discount_code_service.create_discount_code(store, 'TROPPO', 'percentage', '150')

    @pytest.mark.parametrize('discount_type, value, applies_to', [
        ('gift', '10', 'cart'),
        ('fixed', '-5', 'cart'),
        ('fixed', '5', 'shelf'),
    ])
    def test_invalid_fields_rejected(self, store, discount_type, value, applies_to):
        with pytest.raises(ValidationError):
            discount_code_service.create_discount_code(store, 'X', discount_type, value, applies_to)

    def test_expiry_from_iso_string(self, store):
        code = discount_code_service.create_discount_code(
            store, 'NATALE', 'fixed', '5', expiry_date='2024-12-31T23:59:00'
        )
        assert code.expiry_date.year == 2024

    def test_find_valid_case_insensitive(self, store, make_code, now):
        make_code('SCONTO5', discount_type=DiscountType.FIXED, value='5')
        found = discount_code_service.find_valid_code(store, 'sconto5', now)
        assert found is not None
        assert found.code == 'SCONTO5'

    def test_expired_and_inactive_not_found(self, store, make_code, now):
        make_code('VECCHIO', expiry_date=(now - timedelta(days=1)).replace(tzinfo=None))
        make_code('SPENTO', is_active=False)
        make_code('FUTURO', expiry_date=(now + timedelta(days=1)).replace(tzinfo=None))

        assert discount_code_service.find_valid_code(store, 'VECCHIO', now) is None
        assert discount_code_service.find_valid_code(store, 'SPENTO', now) is None
        assert discount_code_service.find_valid_code(store, 'FUTURO', now) is not None

    def test_require_valid_code_raises(self, store):
        with pytest.raises(InvalidDiscountCodeError):
            discount_code_service.require_valid_code(store, 'NESSUNO')

    def test_update_value_checks_existing_type(self, store, make_code):
        code = make_code('P20', value='20')
        with pytest.raises(ValidationError):
            discount_code_service.update_discount_code(store, code.id, value='120')

        updated = discount_code_service.update_discount_code(store, code.id, value='25', is_active=False)
        assert updated.value == Decimal('25')
        assert updated.is_active is False

    def test_update_unknown_field(self, store, make_code):
        code = make_code('P20')
        with pytest.raises(ValidationError):
            discount_code_service.update_discount_code(store, code.id, created_at=datetime.now())

    def test_delete_and_list(self, store, make_code):
        keep = make_code('BETA')
        gone = make_code('ALFA')
        assert discount_code_service.delete_discount_code(store, gone.id) is True
        assert [c.code for c in discount_code_service.list_discount_codes(store)] == [keep.code]
        assert discount_code_service.delete_discount_code(store, gone.id) is False
