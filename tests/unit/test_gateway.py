"""
Unit tests for the data access gateway helpers.
"""

import pytest

from despos.exceptions import ValidationError
from despos.services import gateway


class TestPageRange:

    @pytest.mark.parametrize('page_number,item_count,expected', [
        (0, 10, (0, 9)),
        (1, 10, (10, 19)),
        (2, 10, (19, 29)),
        (0, 1, (0, 0)),
    ])
    def test_window(self, page_number, item_count, expected):
        assert gateway.page_range(page_number, item_count) == expected


class TestEntityGateway:

    def test_unknown_filter_rejected(self, session):
        with pytest.raises(ValidationError):
            gateway.products.list(session, filters={'no_such_column': 1})

    def test_unknown_field_rejected(self, session):
        with pytest.raises(ValidationError):
            gateway.locations.upsert(session, {'location_name': 'Main', 'color': 'red'})

    def test_upsert_inserts_then_updates(self, session):
        location = gateway.locations.upsert(session, {'id': None, 'location_name': 'Main'})
        session.commit()
        location_id = location.id

        gateway.locations.upsert(session, {'id': location_id, 'location_name': 'Downtown'})
        session.commit()

        assert gateway.locations.count(session) == 1
        assert gateway.locations.get_by_id(session, location_id).location_name == 'Downtown'

    def test_list_paginates(self, session, make_product):
        for index in range(5):
            make_product(f'Product {index}')

        first_page = gateway.products.list(session, page=(0, 2))
        second_page = gateway.products.list(session, page=(1, 2))

        assert [p.item_name for p in first_page] == ['Product 0', 'Product 1']
        # page 1 of 2 covers rows 2..3
        assert [p.item_name for p in second_page] == ['Product 2', 'Product 3']

    def test_row_to_dict_dates_are_strings(self, session, make_contact):
        contact_id = make_contact('Ana')
        data = gateway.row_to_dict(gateway.contacts.get_by_id(session, contact_id))

        assert isinstance(data['date_open'], str)
        assert data['first_name'] == 'Ana'
