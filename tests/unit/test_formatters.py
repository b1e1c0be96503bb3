"""
Unit tests for date and amount formatting helpers.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from despos.services.contact_service import normalize_contact
from despos.utils.formatters import calendar_date, parse_calendar_date, to_decimal
from despos.utils.invoice_number import compose_invoice_no


class TestCalendarDate:

    def test_month_padded_day_not(self):
        assert calendar_date('1990-01-05') == '1990-01-5'

    def test_two_digit_day(self):
        assert calendar_date(date(2024, 11, 23)) == '2024-11-23'

    def test_datetime_string(self):
        assert calendar_date('2021-03-04T10:15:00') == '2021-03-4'

    def test_date_only_string_not_shifted(self):
        assert parse_calendar_date('2020-02-01') == date(2020, 2, 1)

    def test_unpadded_day_parsed(self):
        assert parse_calendar_date('1990-01-5') == date(1990, 1, 5)

    def test_unpadded_month_and_day_parsed(self):
        assert parse_calendar_date('2024-3-9') == date(2024, 3, 9)

    def test_formatted_date_parses_back(self):
        assert parse_calendar_date(calendar_date(date(2001, 2, 3))) == date(2001, 2, 3)

    def test_impossible_day_raises(self):
        with pytest.raises(ValueError):
            parse_calendar_date('1990-02-30')

    def test_naive_datetime(self):
        assert calendar_date(datetime(2000, 12, 9, 23, 59)) == '2000-12-9'

    @pytest.mark.parametrize('value', [None, ''])
    def test_empty(self, value):
        assert calendar_date(value) is None

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_calendar_date('not a date')


class TestNormalizeContact:

    def test_dates_normalized(self):
        contact = {'id': 1, 'first_name': 'Ana', 'date_open': '2023-07-01', 'birthdate': '1990-01-05'}

        normalized = normalize_contact(contact)

        assert normalized['date_open'] == '2023-07-1'
        assert normalized['birthdate'] == '1990-01-5'
        assert normalized['first_name'] == 'Ana'
        # Input left untouched
        assert contact['birthdate'] == '1990-01-05'

    def test_missing_birthdate_stays_none(self):
        normalized = normalize_contact({'date_open': '2023-07-01', 'birthdate': None})
        assert normalized['birthdate'] is None


class TestToDecimal:

    def test_comma_decimal_separator(self):
        assert to_decimal('12,50') == Decimal('12.50')

    def test_empty_uses_default(self):
        assert to_decimal('', Decimal('1')) == Decimal('1')

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            to_decimal('abc')


class TestInvoiceNumber:

    def test_sum_followed_by_prefix_of_first(self):
        assert compose_invoice_no(123456789, 1) == '12345679012345'

    def test_short_first_number(self):
        assert compose_invoice_no(42, 8) == '5042'
