"""
Tests — line-item validation, sign convention and aggregation.

@file documents/tests/test_validators.py
"""

import uuid
from datetime import date

import pytest

from core.exceptions import BusinessRuleViolation
from core.validators import QUANTITY_MESSAGE, validate_quantity
from documents.numbering import OPERATION_DECREMENT, OPERATION_INCREMENT
from documents.validators import aggregate_lines, parse_line_items, validate_item_date


def _item(quantity, product_id=None):
    return {'producto': str(product_id or uuid.uuid4()), 'cantidad': quantity, 'codprod': 'P1'}


class TestValidateQuantity:

    @pytest.mark.parametrize('value', [0, -1.5, 1.5, '0', 'abc', None, True, False, [], '1.5'])
    def test_rejected(self, value):
        with pytest.raises(BusinessRuleViolation) as exc:
            validate_quantity(value)
        assert str(exc.value.detail) == QUANTITY_MESSAGE

    @pytest.mark.parametrize('value, expected', [(3, 3), (-3, -3), ('7', 7), (' -2 ', -2), (4.0, 4)])
    def test_accepted(self, value, expected):
        assert validate_quantity(value) == expected

    @pytest.mark.parametrize('value', [2_147_483_648, -2_147_483_648, 10**19, '99999999999', 1e20])
    def test_out_of_integer_range_rejected(self, value):
        with pytest.raises(BusinessRuleViolation) as exc:
            validate_quantity(value)
        assert str(exc.value.detail) == QUANTITY_MESSAGE

    def test_range_limits_accepted(self):
        assert validate_quantity(2_147_483_647) == 2_147_483_647
        assert validate_quantity(-2_147_483_647) == -2_147_483_647

    def test_message_text(self):
        assert QUANTITY_MESSAGE == 'La cantidad debe ser un entero distinto de cero'


class TestParseLineItems:

    def test_empty_items_rejected(self):
        with pytest.raises(BusinessRuleViolation) as exc:
            parse_line_items([], 'NR')
        assert 'al menos un ítem' in str(exc.value.detail)

    def test_negative_quantity_rejected_for_reception(self):
        with pytest.raises(BusinessRuleViolation):
            parse_line_items([_item(-3)], 'NR')

    def test_negative_quantity_accepted_for_adjustment(self):
        lines = parse_line_items([_item(-3)], 'AJ')
        assert lines[0].quantity == -3

    def test_increment_operation_forces_positive(self):
        lines = parse_line_items([_item(-3), _item(2)], 'AJ', OPERATION_INCREMENT)
        assert [line.quantity for line in lines] == [3, 2]

    def test_decrement_operation_forces_negative(self):
        lines = parse_line_items([_item(3), _item(-2)], 'AJ', OPERATION_DECREMENT)
        assert [line.quantity for line in lines] == [-3, -2]

    def test_malformed_product_id_rejected(self):
        with pytest.raises(BusinessRuleViolation):
            parse_line_items([{'producto': 'xyz', 'cantidad': 1}], 'R')

    def test_product_ids_are_canonicalised(self):
        product_id = uuid.uuid4()
        lines = parse_line_items([{'producto': str(product_id).upper(), 'cantidad': 1}], 'R')
        assert lines[0].product_id == str(product_id)


class TestAggregateLines:

    def test_sums_per_product_in_first_seen_order(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        lines = parse_line_items([_item(2, a), _item(5, b), _item(3, a)], 'NR')
        assert aggregate_lines(lines) == {str(a): 5, str(b): 5}
        assert list(aggregate_lines(lines)) == [str(a), str(b)]

    def test_total_beyond_integer_range_rejected(self):
        a = uuid.uuid4()
        lines = parse_line_items([_item(2_000_000_000, a), _item(2_000_000_000, a)], 'NR')
        with pytest.raises(BusinessRuleViolation) as exc:
            aggregate_lines(lines)
        assert str(exc.value.detail) == QUANTITY_MESSAGE

    def test_signed_adjustment_nets_out(self):
        a = uuid.uuid4()
        lines = parse_line_items([_item(4, a), _item(-6, a)], 'AJ')
        assert aggregate_lines(lines) == {str(a): -2}


class TestValidateItemDate:

    def test_iso_date(self):
        assert validate_item_date('2026-03-01') == date(2026, 3, 1)

    def test_iso_datetime(self):
        assert validate_item_date('2026-03-01T10:30:00Z') == date(2026, 3, 1)

    @pytest.mark.parametrize('raw', ['2026-02-30', 'ayer', '01/03/2026'])
    def test_invalid_dates(self, raw):
        with pytest.raises(BusinessRuleViolation):
            validate_item_date(raw)

    def test_missing_date(self):
        with pytest.raises(BusinessRuleViolation):
            validate_item_date(None)
