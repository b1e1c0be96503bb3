"""Sales blueprint - sales manager: persisted sales and their status changes."""
from flask import Blueprint, current_app, jsonify, request

from despos.database import get_session
from despos.exceptions import ValidationError
from despos.models import SalesStatus
from despos.services import loader_service, sales_service
from despos.services.settlement_service import change_sale_status
from despos.utils.request_args import page_args, request_data

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')


@sales_bp.route('/', methods=['GET'])
def list_sales():
    """Sales newest first; ``?view=manager`` adds the register lookups."""
    db_session = get_session()
    page_number, item_count = page_args()

    if request.args.get('view') == 'manager':
        return jsonify(loader_service.sales_manager_page(db_session, page_number, item_count))

    return jsonify({
        'sales': sales_service.list_sales(db_session, page_number, item_count),
        'page': page_number,
        'count': item_count,
    })


@sales_bp.route('/count', methods=['GET'])
def count_sales():
    return jsonify({'count': sales_service.count_sales(get_session())})


@sales_bp.route('/<int:sale_id>', methods=['GET'])
def get_sale(sale_id: int):
    return jsonify(sales_service.get_sale(get_session(), sale_id))


@sales_bp.route('/<int:sale_id>/selections', methods=['GET'])
def get_sale_selections(sale_id: int):
    return jsonify(sales_service.get_sale_selections(get_session(), sale_id))


@sales_bp.route('/<int:sale_id>/status', methods=['POST'])
def update_status(sale_id: int):
    """Move a sale to another status (paid, refunded, return...) and reconcile inventory."""
    raw_status = (request_data().get('status') or '').strip().lower()
    try:
        status = SalesStatus(raw_status)
    except ValueError:
        raise ValidationError(f'Unknown sales status "{raw_status}"')

    result = change_sale_status(get_session(), sale_id, status)
    current_app.logger.info(f"Sales: sale #{sale_id} moved to {status.value}")

    return jsonify({
        'status': 'success',
        'sales_id': result.sales_id,
        'sales_status': result.status.value,
        'products': {str(k): v for k, v in result.products.items()},
    })


@sales_bp.route('/<int:sale_id>', methods=['DELETE'])
def delete_sale(sale_id: int):
    sales_service.delete_sale(get_session(), sale_id)
    current_app.logger.info(f"Sales: sale #{sale_id} deleted")
    return jsonify({'status': 'success', 'message': f'Sale #{sale_id} deleted'})
