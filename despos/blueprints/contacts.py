"""Contacts blueprint - customers, staff and dealers."""
from flask import Blueprint, current_app, jsonify, request

from despos.database import get_session
from despos.services import contact_service, loader_service
from despos.utils.request_args import page_args, request_data

contacts_bp = Blueprint('contacts', __name__, url_prefix='/contacts')


@contacts_bp.route('/', methods=['GET'])
def list_contacts():
    """Contacts newest first; ``?type=customer|staff|dealer`` filters them."""
    page_number, item_count = page_args()
    contacts = contact_service.list_contacts(
        get_session(), request.args.get('type'), page_number, item_count
    )
    return jsonify({'contacts': contacts, 'page': page_number, 'count': item_count})


@contacts_bp.route('/count', methods=['GET'])
def count_contacts():
    return jsonify({'count': contact_service.count_contacts(get_session(), request.args.get('type'))})


@contacts_bp.route('/grouped', methods=['GET'])
def grouped_contacts():
    page_number, item_count = page_args()
    return jsonify(contact_service.get_grouped_contacts(
        get_session(), page_number=page_number, item_count=item_count
    ))


@contacts_bp.route('/manager', methods=['GET'])
def contact_manager():
    page_number, item_count = page_args()
    return jsonify(loader_service.contact_manager_page(get_session(), page_number, item_count))


@contacts_bp.route('/<int:contact_id>', methods=['GET'])
def get_contact(contact_id: int):
    return jsonify(contact_service.get_contact(get_session(), contact_id))


@contacts_bp.route('/<int:contact_id>/info', methods=['GET'])
def contact_info(contact_id: int):
    return jsonify(loader_service.contact_info_page(get_session(), contact_id))


@contacts_bp.route('/', methods=['POST'])
def save_contact():
    """Create or update a contact (an ``id`` in the body updates)."""
    data = request_data()
    contact = contact_service.save_contact(get_session(), data)
    current_app.logger.info(f"Contacts: saved contact #{contact['id']}")
    return jsonify({'status': 'success', 'contact': contact}), 200 if data.get('id') else 201


@contacts_bp.route('/<int:contact_id>', methods=['DELETE'])
def delete_contact(contact_id: int):
    contact_service.delete_contact(get_session(), contact_id)
    current_app.logger.info(f"Contacts: deleted contact #{contact_id}")
    return jsonify({'status': 'success', 'message': f'Contact #{contact_id} deleted'})
