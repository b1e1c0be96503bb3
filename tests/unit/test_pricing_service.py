"""
Unit tests for price level selection.
"""

import pytest
from decimal import Decimal

from despos.exceptions import NoPriceLevelError
from despos.services.pricing_service import resolve_price, select_price_level


def _entry(level_name, price):
    return {'item_price_level': {'id': 1}, 'price_level': {'level_name': level_name, 'price': price}}


class TestSelectPriceLevel:
    """Tests for select_price_level / resolve_price."""

    def test_lowest_level_name_wins(self):
        levels = [_entry('B', '100.00'), _entry('A', '50.00')]

        assert select_price_level(levels)['price_level']['level_name'] == 'A'
        assert resolve_price(levels) == Decimal('50.00')

    def test_level_names_compare_as_text(self):
        levels = [_entry('Level 2', '8.00'), _entry('Level 10', '5.00'), _entry('Level 1', '10.00')]

        # "Level 1" < "Level 10" < "Level 2"
        assert resolve_price(levels) == Decimal('10.00')

    def test_float_price_converted_exactly(self):
        assert resolve_price([_entry('Level 1', 19.99)]) == Decimal('19.99')

    def test_no_price_level_raises(self):
        with pytest.raises(NoPriceLevelError) as exc:
            resolve_price([], 'Coffee')

        assert exc.value.status_code == 400
        assert 'Coffee' in exc.value.message

    def test_entries_without_price_level_ignored(self):
        with pytest.raises(NoPriceLevelError):
            select_price_level([{'item_price_level': {'id': 3}, 'price_level': None}])

    def test_none_treated_as_empty(self):
        with pytest.raises(NoPriceLevelError):
            select_price_level(None)
