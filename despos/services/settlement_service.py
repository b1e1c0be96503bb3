"""
Settlement service - commits a sales draft and reconciles inventory.

Process:
    1. Upsert the sales header (by id, or by invoice number for a new draft)
    2. Restore inventory for staged deletions and delete those selections
    3. Apply the inventory delta of the header status to every surviving
       selection and upsert it
    4. Commit the header and every write that succeeded

Each line of steps 2-3 runs in its own SAVEPOINT: a failing line is rolled
back alone and reported through PartialSettlementError, siblings go on.
"""
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from despos.exceptions import (
    DesposError, PartialSettlementError, PersistenceError, ValidationError
)
from despos.models import Product, Sale, SalesStatus, Selection
from despos.services import gateway
from despos.services.cart_service import SalesDraft, SelectionDraft, is_valid, transition
from despos.services.sales_service import load_sale_as_draft

logger = logging.getLogger(__name__)

# SalesDraft fields that are columns of the sales table
HEADER_FIELDS = (
    'id', 'customer_id', 'invoice_type_id', 'sales_date', 'is_cancelled',
    'discount_amount', 'tax_amount', 'sub_total', 'total_due',
    'amount_paid', 'change_due', 'invoice_no', 'payment_method',
)


@dataclass
class SettlementResult:
    """Outcome of a settlement."""
    sale: Sale
    sales_id: int
    status: SalesStatus
    # item_id -> persisted selection id / deducted quantity
    selection_ids: Dict[int, int] = field(default_factory=dict)
    deducted: Dict[int, int] = field(default_factory=dict)
    deleted_ids: List[int] = field(default_factory=list)
    # product id -> counters after the settlement
    products: Dict[int, Dict[str, int]] = field(default_factory=dict)
    failures: List[Dict[str, Any]] = field(default_factory=list)
    draft: Optional[SalesDraft] = None

    @property
    def ok(self) -> bool:
        return not self.failures


def build_header(draft: SalesDraft) -> Dict[str, Any]:
    """Sales row for a draft (no customer object, lines or counters)."""
    header = {name: getattr(draft, name) for name in HEADER_FIELDS}
    header['sales_status'] = SalesStatus(draft.status).value
    return header


def _upsert_header(session: Session, draft: SalesDraft) -> Sale:
    header = build_header(draft)
    if header['id'] is None:
        header.pop('id')
        return gateway.sales.upsert(session, header, conflict_key='invoice_no')
    return gateway.sales.upsert(session, header)


def _record_product(result: SettlementResult, product: Product) -> None:
    result.products[product.id] = {
        'item_quantity': product.item_quantity,
        'item_sold': product.item_sold,
        'default_item_quantity': product.default_item_quantity,
    }


def apply_inventory_delta(product: Product, status: SalesStatus, quantity: int, deducted_quantity: int) -> Optional[int]:
    """
    Move the product counters for a line settled with ``status``.

    Returns:
        The line's new deducted quantity, or None when the status carries no
        inventory change
    """
    if status == SalesStatus.PAID:
        product.item_sold += quantity
        product.item_quantity -= quantity
        return quantity

    if status == SalesStatus.REFUNDED:
        product.item_sold -= quantity
        product.item_quantity = product.default_item_quantity + quantity
        return 0

    if status == SalesStatus.RETURN:
        product.item_sold -= deducted_quantity
        product.item_quantity = product.default_item_quantity + deducted_quantity
        return 0

    return None


def _delete_selection(session: Session, sale: Sale, staged: SelectionDraft, result: SettlementResult) -> None:
    """Restore the inventory held by a removed line, then delete it."""
    persisted = session.get(Selection, staged.id)
    if persisted is None:
        # Deleted by an earlier attempt
        result.deleted_ids.append(staged.id)
        return

    if persisted.sales_id != sale.id:
        raise ValidationError(f'Selection #{staged.id} does not belong to sale #{sale.id}')

    deducted = persisted.deducted_quantity or 0
    product = session.get(Product, persisted.item_id)
    if product is not None and deducted:
        product.item_sold -= deducted
        product.item_quantity = product.default_item_quantity + deducted

    gateway.selections.delete(session, persisted.id)

    if product is not None:
        _record_product(result, product)
    result.deleted_ids.append(staged.id)


def _save_selection(session: Session, sale: Sale, selection: SelectionDraft, status: SalesStatus, result: SettlementResult) -> None:
    """Apply the status delta to the line's product, then upsert the line."""
    persisted = session.get(Selection, selection.id) if selection.id is not None else None
    applied_status = persisted.applied_status if persisted is not None else None
    deducted = persisted.deducted_quantity if persisted is not None else selection.deducted_quantity

    product = session.get(Product, selection.item_id)

    # Deltas apply once per status change, never on a plain re-save
    if applied_status != status.value:
        new_deducted = apply_inventory_delta(product, status, selection.quantity, deducted) if product is not None \
            else _deducted_without_product(status, selection.quantity)
        if new_deducted is not None:
            deducted = new_deducted
            applied_status = status.value
        if product is not None:
            session.flush()

    row = gateway.selections.upsert(session, {
        'id': selection.id,
        'sales_id': sale.id,
        'item_id': selection.item_id,
        'price_level_id': selection.price_level_id,
        'quantity': selection.quantity,
        'unit_cost': selection.unit_cost,
        'unit_price': selection.unit_price,
        'deducted_quantity': deducted,
        'applied_status': applied_status,
    })

    if product is not None:
        _record_product(result, product)
    result.selection_ids[selection.item_id] = row.id
    result.deducted[selection.item_id] = deducted


def _deducted_without_product(status: SalesStatus, quantity: int) -> Optional[int]:
    if status == SalesStatus.PAID:
        return quantity
    if status in (SalesStatus.REFUNDED, SalesStatus.RETURN):
        return 0
    return None


def _run_isolated(session: Session, result: SettlementResult, operation: str, key: Any, fn) -> None:
    """Run one batch write inside a SAVEPOINT, collecting its failure."""
    savepoint = session.begin_nested()
    try:
        fn()
        savepoint.commit()
    except (DesposError, SQLAlchemyError) as e:
        savepoint.rollback()
        message = e.message if isinstance(e, DesposError) else str(e)
        logger.warning(f"[SETTLE] ✗ {operation} {key} failed for sale #{result.sales_id}: {message}")
        result.failures.append({
            'operation': operation,
            'key': key,
            'error': message,
        })


def mark_settled(draft: SalesDraft, result: SettlementResult) -> SalesDraft:
    """
    Draft carrying what the settlement persisted: header id, selection ids and
    deducted quantities. Deleted lines leave the staging list, failed ones stay,
    so settling it again only replays what failed.
    """
    clone = copy.deepcopy(draft)
    clone.id = result.sales_id
    clone.status = result.status
    for item_id, selection in clone.selections.items():
        if item_id in result.selection_ids:
            selection.id = result.selection_ids[item_id]
            selection.sales_id = result.sales_id
            selection.deducted_quantity = result.deducted[item_id]
    clone.to_delete = [s for s in clone.to_delete if s.id not in result.deleted_ids]
    return clone


def settle(session: Session, draft: SalesDraft) -> SettlementResult:
    """
    Persist a draft and reconcile inventory.

    Args:
        session: SQLAlchemy session (the whole settlement is one transaction)
        draft: Draft whose status is the target status

    Returns:
        SettlementResult, with ``draft`` set to the settled draft

    Raises:
        PersistenceError: If the header cannot be written (nothing is saved)
        PartialSettlementError: If the header was saved but some lines failed
    """
    logger.info(
        f"[SETTLE] Settling invoice {draft.invoice_no} as '{SalesStatus(draft.status).value}' "
        f"({len(draft.selections)} line(s), {len(draft.to_delete)} removal(s))"
    )

    # Step 1: header first, strictly before any line write
    try:
        sale = _upsert_header(session, draft)
    except (PersistenceError, SQLAlchemyError) as e:
        session.rollback()
        logger.error(f"[SETTLE] ✗ Header write failed for invoice {draft.invoice_no}: {e}")
        if isinstance(e, PersistenceError):
            raise
        raise PersistenceError('Could not save the sale') from e

    status = SalesStatus(sale.sales_status)
    result = SettlementResult(sale=sale, sales_id=sale.id, status=status)

    # Step 2: removals before survivors so shared products are restored first
    for staged in draft.to_delete:
        _run_isolated(
            session, result, 'delete_selection', staged.id,
            lambda staged=staged: _delete_selection(session, sale, staged, result)
        )

    # Step 3: surviving lines
    for selection in draft.sorted_selections():
        _run_isolated(
            session, result, 'save_selection', selection.item_id,
            lambda selection=selection: _save_selection(session, sale, selection, status, result)
        )

    # Step 4: commit header and every successful line together
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[SETTLE] ✗ Commit failed for invoice {draft.invoice_no}: {e}")
        raise PersistenceError('Could not save the sale') from e

    result.draft = mark_settled(draft, result)

    if result.failures:
        logger.error(
            f"[SETTLE] Sale #{result.sales_id} saved with {len(result.failures)} failed write(s)"
        )
        raise PartialSettlementError(result, result.failures)

    logger.info(f"[SETTLE] ✓ Sale #{result.sales_id} settled ({status.value})")
    return result


def submit(session: Session, draft: SalesDraft, customer: Optional[Dict[str, Any]], status: SalesStatus) -> SettlementResult:
    """
    Submit the register draft as ``paid`` (finish transaction) or ``pending``
    (save without finishing).

    Raises:
        ValidationError: If the draft cannot be submitted; nothing is written
    """
    status = SalesStatus(status)

    if status == SalesStatus.PAID and not is_valid(draft, customer):
        raise ValidationError(
            'Select a customer, add at least one product, choose a payment method '
            'and pay at least the total due'
        )
    if customer is None:
        raise ValidationError('Select a customer before saving the sale')
    if not draft.selections:
        raise ValidationError('Add at least one product before saving the sale')

    staged = copy.deepcopy(draft)
    staged.customer_id = customer['id']
    staged = transition(staged, status)
    return settle(session, staged)


def change_sale_status(session: Session, sale_id: int, status: SalesStatus) -> SettlementResult:
    """
    Management flow: move a persisted sale to another status (e.g. paid ->
    refunded or return) and reconcile its inventory.

    Raises:
        NotFoundError: If the sale does not exist
        ValidationError: If the transition is not allowed
    """
    draft = load_sale_as_draft(session, sale_id)
    staged = transition(draft, status)
    return settle(session, staged)
