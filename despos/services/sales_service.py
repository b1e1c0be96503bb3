"""Sales service - reads of persisted sales and their selections."""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from despos.models import Sale, SalesStatus, Selection
from despos.services import gateway
from despos.services.cart_service import SalesDraft, SelectionDraft
from despos.services.catalog_service import serialize_product
from despos.services.contact_service import serialize_contact

logger = logging.getLogger(__name__)


def serialize_selection(selection: Selection, with_product: bool = True) -> Dict[str, Any]:
    data = gateway.row_to_dict(selection)
    if with_product:
        data['product'] = serialize_product(selection.product) if selection.product else None
    return data


def serialize_sale(sale: Sale) -> Dict[str, Any]:
    """Sales header with its customer and selections."""
    data = gateway.row_to_dict(sale)
    data['customer'] = serialize_contact(sale.customer) if sale.customer else None
    data['selections'] = [serialize_selection(s) for s in sale.selections]
    return data


def list_sales(session: Session, page_number: int = 0, item_count: Optional[int] = None) -> List[Dict[str, Any]]:
    """Sales newest first."""
    page = (page_number, item_count) if item_count else None
    return [serialize_sale(s) for s in gateway.sales.list(session, page=page)]


def count_sales(session: Session) -> int:
    return gateway.sales.count(session)


def get_sale(session: Session, sale_id: int) -> Dict[str, Any]:
    return serialize_sale(gateway.sales.get_by_id(session, sale_id))


def get_sale_selections(session: Session, sale_id: int) -> List[Dict[str, Any]]:
    rows = gateway.selections.list(session, filters={'sales_id': sale_id})
    return [serialize_selection(s, with_product=False) for s in rows]


def delete_sale(session: Session, sale_id: int) -> None:
    """
    Delete a sales header; its selections go with it.

    Inventory counters are not touched.
    """
    gateway.sales.delete(session, sale_id)
    session.commit()
    logger.info(f"[SALES] Deleted sale #{sale_id}")


def load_sale_as_draft(session: Session, sale_id: int) -> SalesDraft:
    """
    Rebuild the draft of a persisted sale, for editing or for a status change.

    Raises:
        NotFoundError: If the sale does not exist
    """
    sale = gateway.sales.get_by_id(session, sale_id)

    draft = SalesDraft(
        id=sale.id,
        invoice_no=sale.invoice_no,
        customer_id=sale.customer_id,
        invoice_type_id=sale.invoice_type_id,
        sales_date=sale.sales_date,
        status=SalesStatus(sale.sales_status),
        is_cancelled=bool(sale.is_cancelled),
        discount_amount=Decimal(sale.discount_amount or 0),
        tax_amount=Decimal(sale.tax_amount or 0),
        sub_total=Decimal(sale.sub_total or 0),
        total_due=Decimal(sale.total_due or 0),
        amount_paid=Decimal(sale.amount_paid or 0),
        change_due=Decimal(sale.change_due or 0),
        payment_method=sale.payment_method or '',
    )

    for index, selection in enumerate(sorted(sale.selections, key=lambda s: s.id)):
        draft.selections[selection.item_id] = SelectionDraft(
            id=selection.id,
            sales_id=sale.id,
            item_index=index,
            product=serialize_product(selection.product) if selection.product else {},
            item_id=selection.item_id,
            price_level_id=selection.price_level_id,
            quantity=selection.quantity,
            unit_cost=Decimal(selection.unit_cost or 0),
            unit_price=Decimal(selection.unit_price or 0),
            deducted_quantity=selection.deducted_quantity or 0,
        )

    draft.line_count = len(draft.selections)
    draft.next_item_index = len(draft.selections)
    return draft
