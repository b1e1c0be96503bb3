"""
Cart Service - in-memory sales draft for the register.

Every operation takes a draft and returns a new one; the input draft is never
mutated. Drafts are stored in the Flask session through ``draft_to_dict`` /
``draft_from_dict``.
"""
import copy
from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from despos.exceptions import AlreadyExpiredStockError, LineNotFoundError, ValidationError
from despos.models import SalesStatus
from despos.services.pricing_service import resolve_price, select_price_level
from despos.utils.invoice_number import generate_invoice_no

ZERO = Decimal('0')

# Statuses reachable from each status
TRANSITIONS = {
    SalesStatus.IN_PROGRESS: {SalesStatus.PAID, SalesStatus.PENDING, SalesStatus.CANCELLED},
    SalesStatus.PENDING: {SalesStatus.PAID, SalesStatus.PENDING, SalesStatus.CANCELLED},
    SalesStatus.PAID: {SalesStatus.PAID, SalesStatus.REFUNDED, SalesStatus.RETURN},
}

EDITABLE_STATUSES = {SalesStatus.IN_PROGRESS, SalesStatus.PENDING}

_MONEY_FIELDS = ('discount_amount', 'tax_amount', 'sub_total', 'total_due', 'amount_paid', 'change_due')


@dataclass
class SelectionDraft:
    """One product line of a draft."""
    item_index: int
    product: Dict[str, Any]
    item_id: int
    quantity: int = 1
    unit_cost: Decimal = ZERO
    unit_price: Decimal = ZERO
    price_level_id: Optional[int] = None
    id: Optional[int] = None
    sales_id: Optional[int] = None
    deducted_quantity: int = 0

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class SalesDraft:
    """Sales header being assembled at the register."""
    invoice_no: str
    id: Optional[int] = None
    customer_id: Optional[int] = None
    invoice_type_id: Optional[int] = None
    sales_date: datetime = field(default_factory=datetime.now)
    status: SalesStatus = SalesStatus.IN_PROGRESS
    is_cancelled: bool = False
    discount_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    sub_total: Decimal = ZERO
    total_due: Decimal = ZERO
    amount_paid: Decimal = ZERO
    change_due: Decimal = ZERO
    payment_method: str = ''
    selections: Dict[int, SelectionDraft] = field(default_factory=dict)
    line_count: int = 0
    next_item_index: int = 0
    to_delete: List[SelectionDraft] = field(default_factory=list)

    def sorted_selections(self) -> List[SelectionDraft]:
        """Lines in display order (by item_index)."""
        return sorted(self.selections.values(), key=lambda s: s.item_index)


def reset_draft() -> SalesDraft:
    """Fresh default draft with a newly generated invoice number."""
    return SalesDraft(invoice_no=generate_invoice_no())


def _clone(draft: SalesDraft) -> SalesDraft:
    return copy.deepcopy(draft)


def _ensure_editable(draft: SalesDraft) -> None:
    if draft.status not in EDITABLE_STATUSES:
        raise ValidationError(f'A sale with status "{draft.status.value}" can no longer be edited')


def add_line(draft: SalesDraft, product: Dict[str, Any]) -> SalesDraft:
    """
    Add a product to the order with quantity 1.

    Args:
        draft: Current draft
        product: Serialized product (see catalog_service.serialize_product)

    Raises:
        AlreadyExpiredStockError: If the product has no stock left
        NoPriceLevelError: If the product has no price level
        ValidationError: If the draft is not editable or the line exists
    """
    _ensure_editable(draft)

    product_id = product['id']
    if product_id in draft.selections:
        raise ValidationError(f'"{product.get("item_name")}" is already in the order')

    available = product.get('item_quantity') or 0
    if available <= 0:
        raise AlreadyExpiredStockError(product.get('item_name'), available)

    # Unit cost follows the base price level, not item_cost
    price_levels = product.get('price_levels')
    price = resolve_price(price_levels, product.get('item_name'))
    price_level_id = select_price_level(price_levels)['price_level'].get('id')

    clone = _clone(draft)
    clone.selections[product_id] = SelectionDraft(
        item_index=clone.next_item_index,
        product=copy.deepcopy(product),
        item_id=product_id,
        quantity=1,
        unit_cost=price,
        unit_price=price,
        price_level_id=price_level_id,
    )
    clone.next_item_index += 1
    clone.line_count += 1
    return clone


def remove_line(draft: SalesDraft, product_id: int) -> SalesDraft:
    """
    Remove a product line. Lines already persisted are staged in ``to_delete``
    so settlement can restore their inventory.

    Raises:
        LineNotFoundError: If the product is not in the order
    """
    _ensure_editable(draft)

    if product_id not in draft.selections:
        raise LineNotFoundError(product_id)

    clone = _clone(draft)
    removed = clone.selections.pop(product_id)
    if removed.id is not None:
        clone.to_delete.append(removed)
    clone.line_count -= 1
    return clone


def set_quantity(draft: SalesDraft, product_id: int, quantity: int) -> SalesDraft:
    """
    Change the quantity of a product line. Totals are left to ``recompute``.

    Raises:
        LineNotFoundError: If the product is not in the order
        ValidationError: If the draft is not editable or quantity < 1
    """
    _ensure_editable(draft)

    if product_id not in draft.selections:
        raise LineNotFoundError(product_id)
    if quantity < 1:
        raise ValidationError('Quantity must be at least 1')

    clone = _clone(draft)
    clone.selections[product_id].quantity = quantity
    return clone


def recompute(draft: SalesDraft, customer_id: Optional[int]) -> SalesDraft:
    """
    Recalculate totals after any change to lines or customer.

    Each line contributes unit_price * quantity to the subtotal.
    """
    clone = _clone(draft)
    clone.customer_id = customer_id
    clone.sub_total = ZERO
    clone.discount_amount = ZERO
    clone.tax_amount = ZERO
    clone.total_due = ZERO

    for selection in clone.selections.values():
        clone.sub_total += selection.line_total

    clone.total_due = clone.sub_total + clone.tax_amount - clone.discount_amount
    return clone


def apply_payment(draft: SalesDraft, payment_method: str, amount_paid: Decimal) -> SalesDraft:
    """
    Record the tendered payment and the change to give back.

    Raises:
        ValidationError: If the amount is negative
    """
    if amount_paid < 0:
        raise ValidationError('Amount paid cannot be negative')

    clone = _clone(draft)
    clone.payment_method = payment_method or ''
    clone.amount_paid = amount_paid
    clone.change_due = max(amount_paid - clone.total_due, ZERO)
    return clone


def set_invoice_type(draft: SalesDraft, invoice_type_id: Optional[int]) -> SalesDraft:
    clone = _clone(draft)
    clone.invoice_type_id = invoice_type_id
    return clone


def is_valid(draft: SalesDraft, selected_customer: Optional[Any]) -> bool:
    """True when the draft can be submitted as a finished transaction."""
    return bool(
        draft.payment_method
        and selected_customer is not None
        and draft.selections
        and draft.amount_paid >= draft.total_due
    )


def transition(draft: SalesDraft, target: SalesStatus) -> SalesDraft:
    """
    Move the draft to ``target`` status.

    Raises:
        ValidationError: If the status machine does not allow it
    """
    target = SalesStatus(target)
    allowed = TRANSITIONS.get(draft.status, set())
    if target not in allowed:
        raise ValidationError(
            f'Cannot change a sale from "{draft.status.value}" to "{target.value}"'
        )

    clone = _clone(draft)
    clone.status = target
    clone.is_cancelled = target == SalesStatus.CANCELLED
    return clone


# =====================================================
# SESSION SERIALIZATION
# =====================================================

def selection_to_dict(selection: SelectionDraft) -> Dict[str, Any]:
    data = {f.name: getattr(selection, f.name) for f in fields(selection)}
    data['unit_cost'] = str(selection.unit_cost)
    data['unit_price'] = str(selection.unit_price)
    data['product'] = _jsonable(selection.product)
    return data


def _selection_from_dict(data: Dict[str, Any]) -> SelectionDraft:
    values = dict(data)
    values['unit_cost'] = Decimal(str(values.get('unit_cost', '0')))
    values['unit_price'] = Decimal(str(values.get('unit_price', '0')))
    return SelectionDraft(**values)


def _jsonable(value):
    """Helper to ensure values are JSON serializable for session."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def draft_to_dict(draft: SalesDraft) -> Dict[str, Any]:
    """JSON-safe representation of a draft (session storage and API output)."""
    data = {}
    for f in fields(draft):
        if f.name in ('selections', 'to_delete'):
            continue
        data[f.name] = _jsonable(getattr(draft, f.name))
    data['status'] = draft.status.value
    # JSON object keys are strings
    data['selections'] = {
        str(product_id): selection_to_dict(selection)
        for product_id, selection in draft.selections.items()
    }
    data['to_delete'] = [selection_to_dict(s) for s in draft.to_delete]
    return data


def draft_from_dict(data: Dict[str, Any]) -> SalesDraft:
    """Rebuild a draft stored with ``draft_to_dict``."""
    values = dict(data)
    values['status'] = SalesStatus(values.get('status', SalesStatus.IN_PROGRESS.value))
    values['sales_date'] = datetime.fromisoformat(values['sales_date']) if values.get('sales_date') else datetime.now()
    for name in _MONEY_FIELDS:
        values[name] = Decimal(str(values.get(name, '0')))
    values['selections'] = {
        int(product_id): _selection_from_dict(selection)
        for product_id, selection in (values.get('selections') or {}).items()
    }
    values['to_delete'] = [_selection_from_dict(s) for s in values.get('to_delete') or []]
    return SalesDraft(**values)
