"""
Unit tests for AppliedDiscount and its column type.
"""

import json
from decimal import Decimal

import pytest

from retail_pos.models import AppliedDiscount, AppliedDiscountList, DiscountType


class TestAppliedDiscountList:
    """Decoding stored discount lists."""

    @pytest.mark.parametrize('stored', [None, '', '  ', 'null', json.dumps('null'), []])
    def test_empty_values_decode_to_empty_list(self, stored):
        assert AppliedDiscountList().process_result_value(stored, None) == []

    def test_text_encoded_twice(self):
        stored = json.dumps(json.dumps([{'code': 'C5', 'type': 'fixed', 'value': '5', 'amount': '5.00'}]))

        decoded = AppliedDiscountList().process_result_value(stored, None)

        assert decoded == [AppliedDiscount('C5', DiscountType.FIXED, Decimal('5'), Decimal('5.00'))]

    def test_bind_accepts_value_objects_and_dicts(self):
        bound = AppliedDiscountList().process_bind_param([
            AppliedDiscount('P10', DiscountType.PERCENTAGE, Decimal('10')),
            {'code': 'C5', 'type': 'fixed', 'value': '5'},
        ], None)

        assert bound == [
            {'code': 'P10', 'type': 'percentage', 'value': '10', 'amount': None},
            {'code': 'C5', 'type': 'fixed', 'value': '5', 'amount': None},
        ]


class TestAppliedDiscount:

    def test_unknown_type_kept_as_text(self):
        discount = AppliedDiscount.from_dict({'code': 'X', 'type': 'gift', 'value': '3'})
        assert discount.type == 'gift'
        assert discount.to_dict()['type'] == 'gift'

    def test_matches_ignores_case_and_spaces(self):
        discount = AppliedDiscount('ESTATE', DiscountType.PERCENTAGE, Decimal('10'))
        assert discount.matches(' estate ')
        assert not discount.matches('inverno')
