"""Page data loaders - everything a screen needs in a single call."""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from despos.services import catalog_service, contact_service, sales_service


def sales_register_page(session: Session, page_number: int = 0, item_count: Optional[int] = None) -> Dict[str, Any]:
    """Products, customers, locations and invoice types for the register."""
    return {
        'products': catalog_service.list_products(session, page_number, item_count),
        'customers': contact_service.get_customers(session),
        'locations': catalog_service.list_locations(session),
        'invoice_types': catalog_service.list_invoice_types(session),
    }


def sales_manager_page(session: Session, page_number: int = 0, item_count: Optional[int] = None) -> Dict[str, Any]:
    """Sales with customer and selections, plus the register lookups."""
    data = sales_register_page(session, page_number, item_count)
    del data['products']
    data['sales'] = sales_service.list_sales(session, page_number, item_count)
    return data


def contact_manager_page(session: Session, page_number: Optional[int] = None, item_count: Optional[int] = None) -> Dict[str, Any]:
    return {
        'locations': catalog_service.list_locations(session),
        'contacts': contact_service.get_grouped_contacts(session, page_number=page_number, item_count=item_count),
    }


def contact_info_page(session: Session, contact_id: int) -> Dict[str, Any]:
    return {
        'contact': contact_service.get_contact(session, contact_id),
        'locations': catalog_service.list_locations(session),
    }


def item_manager_page(session: Session, page_number: int = 0, item_count: Optional[int] = None) -> Dict[str, Any]:
    return {
        'categories': catalog_service.list_categories(session),
        'dealers': contact_service.get_dealers(session),
        'products': catalog_service.list_products(session, page_number, item_count),
    }


def product_info_page(session: Session, product_id: int, item_name: str, page_number: int = 0, item_count: Optional[int] = None) -> Dict[str, Any]:
    data = item_manager_page(session, page_number, item_count)
    data['product'] = catalog_service.get_product_by_id_and_name(session, product_id, item_name)
    return data
