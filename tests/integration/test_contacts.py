"""
Integration tests for contacts (customers, staff and dealers).
"""

import pytest
from datetime import date

from despos.exceptions import NotFoundError, ValidationError
from despos.models import Contact, ContactType
from despos.services import contact_service


class TestContactReads:

    def test_get_contact_is_normalized(self, session, make_contact):
        contact_id = make_contact('Ana', date_open=date(2023, 7, 1), birthdate=date(1990, 1, 5))

        contact = contact_service.get_contact(session, contact_id)

        assert contact['birthdate'] == '1990-01-5'
        assert contact['date_open'] == '2023-07-1'
        assert contact['full_name'] == 'Ana Reyes'

    def test_missing_birthdate_stays_none(self, session, make_contact):
        contact_id = make_contact('Ana')
        assert contact_service.get_contact(session, contact_id)['birthdate'] is None

    def test_grouped_by_type(self, session, make_contact):
        make_contact('Ana', ContactType.CUSTOMER)
        make_contact('Luis', ContactType.STAFF)
        make_contact('Acme', ContactType.DEALER)
        make_contact('Eva', ContactType.CUSTOMER)

        grouped = contact_service.get_grouped_contacts(session)

        assert sorted(c['first_name'] for c in grouped['customers']) == ['Ana', 'Eva']
        assert [c['first_name'] for c in grouped['staffs']] == ['Luis']
        assert [c['first_name'] for c in grouped['dealers']] == ['Acme']
        assert contact_service.count_contacts(session, 'customer') == 2

    def test_unknown_type_rejected(self, session):
        with pytest.raises(ValidationError):
            contact_service.list_contacts(session, 'supplier')

    def test_missing_contact(self, session):
        with pytest.raises(NotFoundError):
            contact_service.get_contact(session, 404)


class TestSaveContact:

    def test_insert_parses_dates(self, session):
        saved = contact_service.save_contact(session, {
            'first_name': 'Ana',
            'contact_type': 'customer',
            'date_open': '2024-03-09',
            'birthdate': '1990-01-05',
            'full_name': 'ignored',
        })

        assert saved['id'] is not None
        assert saved['birthdate'] == '1990-01-5'
        assert saved['date_open'] == '2024-03-9'
        session.expire_all()
        assert session.get(Contact, saved['id']).birthdate == date(1990, 1, 5)

    def test_empty_birthdate_dropped(self, session):
        saved = contact_service.save_contact(session, {'first_name': 'Ana', 'birthdate': ''})
        assert saved['birthdate'] is None

    def test_update_keeps_id(self, session, make_contact):
        contact_id = make_contact('Ana')

        saved = contact_service.save_contact(session, {'id': contact_id, 'phone': '555-0101'})

        assert saved['id'] == contact_id
        assert saved['phone'] == '555-0101'
        assert session.query(Contact).count() == 1

    def test_contact_read_can_be_saved_back(self, session, make_contact):
        contact_id = make_contact('Ana', date_open=date(2023, 7, 1), birthdate=date(1990, 1, 5))
        contact = contact_service.get_contact(session, contact_id)
        contact['first_name'] = 'Anna'

        saved = contact_service.save_contact(session, contact)

        assert saved['first_name'] == 'Anna'
        assert saved['birthdate'] == '1990-01-5'
        session.expire_all()
        stored = session.get(Contact, contact_id)
        assert stored.birthdate == date(1990, 1, 5)
        assert stored.date_open == date(2023, 7, 1)

    def test_invalid_date_rejected(self, session):
        with pytest.raises(ValidationError):
            contact_service.save_contact(session, {'first_name': 'Ana', 'birthdate': '31/31/1990'})


class TestDeleteContact:

    def test_delete_removes_profile_picture(self, session, make_contact, storage):
        contact_id = make_contact('Ana', profile_url='contacts/ana.png')

        contact_service.delete_contact(session, contact_id)

        assert session.query(Contact).count() == 0
        assert storage.deleted == ['contacts/ana.png']

    def test_delete_without_picture_skips_storage(self, session, make_contact, storage):
        contact_id = make_contact('Ana')

        contact_service.delete_contact(session, contact_id)

        assert storage.deleted == []
