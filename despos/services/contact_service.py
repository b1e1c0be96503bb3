"""Contact service - customers, staff and dealers."""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from despos.exceptions import ValidationError
from despos.models import Contact, ContactType
from despos.services import gateway
from despos.services.storage_service import remove_image
from despos.utils.formatters import calendar_date, parse_calendar_date

logger = logging.getLogger(__name__)


def normalize_contact(contact: Dict[str, Any]) -> Dict[str, Any]:
    """
    Canonicalize the date fields of a contact record.
    
    ``date_open`` and ``birthdate`` are rendered as ``YYYY-MM-D`` calendar
    dates (month zero-padded, day not). Returns a new dict.
    """
    normalized = dict(contact)
    for key in ('date_open', 'birthdate'):
        if key in normalized:
            normalized[key] = calendar_date(normalized[key])
    return normalized


def serialize_contact(contact: Contact) -> Dict[str, Any]:
    data = gateway.row_to_dict(contact)
    data['full_name'] = contact.full_name
    return normalize_contact(data)


def _contact_filters(contact_type: Optional[str]) -> Dict[str, Any]:
    if not contact_type:
        return {}
    try:
        return {'contact_type': ContactType(contact_type).value}
    except ValueError:
        raise ValidationError(f'Unknown contact type "{contact_type}"')


def list_contacts(
    session: Session,
    contact_type: Optional[str] = None,
    page_number: Optional[int] = None,
    item_count: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Contacts newest first, optionally filtered by type and paginated."""
    page = (page_number or 0, item_count) if item_count else None
    rows = gateway.contacts.list(session, filters=_contact_filters(contact_type), page=page)
    return [serialize_contact(c) for c in rows]


def count_contacts(session: Session, contact_type: Optional[str] = None) -> int:
    return gateway.contacts.count(session, filters=_contact_filters(contact_type))


def get_contact(session: Session, contact_id: int) -> Dict[str, Any]:
    return serialize_contact(gateway.contacts.get_by_id(session, contact_id))


def get_customers(session: Session, **page) -> List[Dict[str, Any]]:
    return list_contacts(session, ContactType.CUSTOMER.value, **page)


def get_staffs(session: Session, **page) -> List[Dict[str, Any]]:
    return list_contacts(session, ContactType.STAFF.value, **page)


def get_dealers(session: Session, **page) -> List[Dict[str, Any]]:
    return list_contacts(session, ContactType.DEALER.value, **page)


def get_grouped_contacts(session: Session, **page) -> Dict[str, List[Dict[str, Any]]]:
    """Customers, staff and dealers in separate lists."""
    return {
        'customers': get_customers(session, **page),
        'staffs': get_staffs(session, **page),
        'dealers': get_dealers(session, **page),
    }


def _coerce_date(value: Any, field_name: str) -> Optional[date]:
    try:
        return parse_calendar_date(value)
    except ValueError:
        raise ValidationError(f'Invalid date for {field_name}: {value!r}')


def save_contact(session: Session, contact_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insert or update a contact and return it normalized.
    
    An empty ``birthdate`` is dropped; date strings are parsed to dates.
    """
    data = dict(contact_data)
    data.pop('full_name', None)
    data.pop('date_added', None)
    
    if data.get('birthdate') == '':
        del data['birthdate']
    elif 'birthdate' in data:
        data['birthdate'] = _coerce_date(data['birthdate'], 'birthdate')
    
    if 'date_open' in data:
        data['date_open'] = _coerce_date(data['date_open'], 'date_open')
    
    if data.get('contact_type'):
        data.update(_contact_filters(data['contact_type']))
    
    contact = gateway.contacts.upsert(session, data)
    session.commit()
    logger.info(f"[CONTACTS] Saved contact #{contact.id} ({contact.contact_type})")
    return serialize_contact(contact)


def delete_contact(session: Session, contact_id: int) -> None:
    """Delete a contact and its profile picture, if any."""
    contact = gateway.contacts.delete(session, contact_id)
    profile_url = contact.profile_url
    session.commit()
    remove_image(profile_url)
