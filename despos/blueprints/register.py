"""Register blueprint - the cashier's sales draft (cart) and its settlement."""
from typing import Any, Dict, Optional

from flask import Blueprint, current_app, jsonify, session

from despos.database import get_session
from despos.exceptions import NotFoundError, PartialSettlementError, ValidationError
from despos.models import ContactType, PaymentMethod, SalesStatus
from despos.services import cart_service, catalog_service, contact_service, loader_service, sales_service
from despos.services.cart_service import SalesDraft
from despos.services.settlement_service import submit
from despos.utils.formatters import to_decimal
from despos.utils.request_args import int_arg, page_args, request_data

register_bp = Blueprint('register', __name__, url_prefix='/register')

DRAFT_SESSION_KEY = 'sales_draft'


def get_draft() -> SalesDraft:
    """Get the register draft from session, creating a default one."""
    data = session.get(DRAFT_SESSION_KEY)
    if not data:
        draft = cart_service.reset_draft()
        save_draft(draft)
        return draft
    return cart_service.draft_from_dict(data)


def save_draft(draft: SalesDraft) -> None:
    """Save the register draft to session."""
    session[DRAFT_SESSION_KEY] = cart_service.draft_to_dict(draft)
    session.modified = True


def _selected_customer(db_session, draft: SalesDraft) -> Optional[Dict[str, Any]]:
    if draft.customer_id is None:
        return None
    try:
        return contact_service.get_contact(db_session, draft.customer_id)
    except NotFoundError:
        return None


def _draft_response(db_session, draft: SalesDraft, status_code: int = 200, **extra):
    customer = _selected_customer(db_session, draft)
    body = {
        'status': 'success',
        'draft': cart_service.draft_to_dict(draft),
        'lines': [cart_service.selection_to_dict(s) for s in draft.sorted_selections()],
        'customer': customer,
        'is_valid': cart_service.is_valid(draft, customer),
    }
    body.update(extra)
    return jsonify(body), status_code


@register_bp.route('/', methods=['GET'])
def register_page():
    """Register page data: products, customers, locations, invoice types and the draft."""
    db_session = get_session()
    page_number, item_count = page_args()
    data = loader_service.sales_register_page(db_session, page_number, item_count)
    draft = get_draft()
    data['draft'] = cart_service.draft_to_dict(draft)
    data['is_valid'] = cart_service.is_valid(draft, _selected_customer(db_session, draft))
    return jsonify(data)


@register_bp.route('/draft', methods=['GET'])
def show_draft():
    return _draft_response(get_session(), get_draft())


@register_bp.route('/draft/lines', methods=['POST'])
def add_line():
    """Add a product (by id or barcode) to the order."""
    db_session = get_session()
    data = request_data()

    if data.get('barcode'):
        product = catalog_service.get_product_by_barcode(db_session, str(data['barcode']))
    else:
        product = catalog_service.get_product(db_session, int_arg(data.get('product_id'), 'product_id'))

    draft = get_draft()
    draft = cart_service.add_line(draft, product)
    draft = cart_service.recompute(draft, draft.customer_id)
    save_draft(draft)

    current_app.logger.info(
        f"Register: added product {product['id']} to invoice {draft.invoice_no} ({draft.line_count} line(s))"
    )
    return _draft_response(db_session, draft)


@register_bp.route('/draft/lines/<int:product_id>', methods=['DELETE'])
def remove_line(product_id: int):
    db_session = get_session()
    draft = get_draft()
    draft = cart_service.remove_line(draft, product_id)
    draft = cart_service.recompute(draft, draft.customer_id)
    save_draft(draft)

    current_app.logger.info(f"Register: removed product {product_id} from invoice {draft.invoice_no}")
    return _draft_response(db_session, draft)


@register_bp.route('/draft/lines/<int:product_id>', methods=['PATCH'])
def update_line(product_id: int):
    """Change the quantity of a product line."""
    db_session = get_session()
    quantity = int_arg(request_data().get('quantity'), 'quantity')

    draft = cart_service.set_quantity(get_draft(), product_id, quantity)
    draft = cart_service.recompute(draft, draft.customer_id)
    save_draft(draft)

    current_app.logger.info(f"Register: product {product_id} set to {quantity} unit(s) on invoice {draft.invoice_no}")
    return _draft_response(db_session, draft)


@register_bp.route('/draft/customer', methods=['POST'])
def select_customer():
    """Attach a customer to the order (empty id clears it)."""
    db_session = get_session()
    customer_id = int_arg(request_data().get('customer_id'), 'customer_id', required=False)

    if customer_id is not None:
        customer = contact_service.get_contact(db_session, customer_id)
        if customer['contact_type'] != ContactType.CUSTOMER.value:
            raise ValidationError(f'Contact #{customer_id} is not a customer')

    draft = cart_service.recompute(get_draft(), customer_id)
    save_draft(draft)
    return _draft_response(db_session, draft)


@register_bp.route('/draft/payment', methods=['POST'])
def update_payment():
    """Set the payment method and tendered amount."""
    data = request_data()
    payment_method = (data.get('payment_method') or '').strip().lower()

    if payment_method and payment_method not in {m.value for m in PaymentMethod}:
        raise ValidationError(f'Unsupported payment method "{payment_method}"')

    try:
        amount_paid = to_decimal(data.get('amount_paid'))
    except ValueError as e:
        raise ValidationError(str(e))

    draft = cart_service.apply_payment(get_draft(), payment_method, amount_paid)
    save_draft(draft)
    return _draft_response(get_session(), draft)


@register_bp.route('/draft/invoice-type', methods=['POST'])
def update_invoice_type():
    db_session = get_session()
    invoice_type_id = int_arg(request_data().get('invoice_type_id'), 'invoice_type_id', required=False)
    draft = cart_service.set_invoice_type(get_draft(), invoice_type_id)
    save_draft(draft)
    return _draft_response(db_session, draft)


def _submit(status: SalesStatus, clear_on_success: bool):
    db_session = get_session()
    draft = get_draft()
    customer = _selected_customer(db_session, draft)

    try:
        result = submit(db_session, draft, customer, status)
    except PartialSettlementError as e:
        # Keep the persisted ids so a retry only replays the failed writes
        save_draft(e.result.draft)
        current_app.logger.error(f"Register: invoice {draft.invoice_no} partially saved: {e.failures}")
        raise

    current_app.logger.info(f"Register: invoice {draft.invoice_no} saved as sale #{result.sales_id} ({status.value})")

    next_draft = cart_service.reset_draft() if clear_on_success else result.draft
    save_draft(next_draft)
    return _draft_response(db_session, next_draft, sales_id=result.sales_id, message='Sale saved')


@register_bp.route('/finish', methods=['POST'])
def finish_transaction():
    """Finish the transaction: save the order as paid and deduct inventory."""
    clear = str(request_data().get('discard_on_success', 'true')).lower() != 'false'
    return _submit(SalesStatus.PAID, clear_on_success=clear)


@register_bp.route('/save', methods=['POST'])
def save_pending():
    """Save the order without finishing it (pending)."""
    return _submit(SalesStatus.PENDING, clear_on_success=False)


@register_bp.route('/discard', methods=['POST'])
def discard():
    """Drop the current order and start a new one with a new invoice number."""
    draft = cart_service.reset_draft()
    save_draft(draft)
    return _draft_response(get_session(), draft)


@register_bp.route('/load/<int:sale_id>', methods=['POST'])
def load_sale(sale_id: int):
    """Load a persisted sale into the register to keep editing it."""
    db_session = get_session()
    draft = sales_service.load_sale_as_draft(db_session, sale_id)
    if draft.status not in cart_service.EDITABLE_STATUSES:
        raise ValidationError(f'Sale #{sale_id} is {draft.status.value} and cannot be edited')
    save_draft(draft)
    return _draft_response(db_session, draft)
