"""Catalog service - products with their price levels, categories, locations and invoice types."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from despos.exceptions import NotFoundError, ValidationError
from despos.models import Product
from despos.services import gateway
from despos.services.contact_service import serialize_contact
from despos.services.storage_service import remove_image

logger = logging.getLogger(__name__)

# Keys of a serialized product that are not columns of the items table
_PRODUCT_RELATION_KEYS = ('dealer', 'category', 'price_levels', 'date_added')


def serialize_price_levels(product: Product) -> List[Dict[str, Any]]:
    """Price level entries ordered by level name."""
    entries = []
    for join_row in product.item_price_levels:
        entries.append({
            'item_price_level': gateway.row_to_dict(join_row),
            'price_level': gateway.row_to_dict(join_row.price_level),
        })
    return sorted(entries, key=lambda e: str(e['price_level']['level_name']))


def serialize_product(product: Product) -> Dict[str, Any]:
    """Product row joined with dealer, category and price levels."""
    data = gateway.row_to_dict(product)
    data['dealer'] = serialize_contact(product.dealer) if product.dealer else None
    data['category'] = gateway.row_to_dict(product.category) if product.category else None
    data['price_levels'] = serialize_price_levels(product)
    return data


def list_products(session: Session, page_number: int = 0, item_count: Optional[int] = None) -> List[Dict[str, Any]]:
    page = (page_number, item_count) if item_count else None
    return [serialize_product(p) for p in gateway.products.list(session, page=page)]


def count_products(session: Session) -> int:
    return gateway.products.count(session)


def get_product(session: Session, product_id: int) -> Dict[str, Any]:
    return serialize_product(gateway.products.get_by_id(session, product_id))


def get_product_by_barcode(session: Session, barcode: str) -> Dict[str, Any]:
    """
    Raises:
        NotFoundError: If no product carries this barcode
    """
    rows = gateway.products.list(session, filters={'barcode': barcode})
    if not rows:
        raise NotFoundError(f'No product with barcode {barcode}')
    return serialize_product(rows[0])


def get_product_by_id_and_name(session: Session, product_id: int, item_name: str) -> Dict[str, Any]:
    rows = gateway.products.list(session, filters={'id': product_id, 'item_name': item_name})
    if not rows:
        raise NotFoundError(f'Product "{item_name}" (#{product_id}) not found')
    return serialize_product(rows[0])


def save_product(session: Session, product_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insert or update a product together with its price levels.

    Each entry of ``product_data['price_levels']`` is
    ``{'price_level': {...}, 'item_price_level': {...}}``: the price level is
    saved first, then the join row pointing at it.
    """
    price_levels = product_data.get('price_levels') or []
    row = {k: v for k, v in product_data.items() if k not in _PRODUCT_RELATION_KEYS}

    product = gateway.products.upsert(session, row)

    for entry in price_levels:
        if not entry.get('price_level'):
            raise ValidationError('Each price level entry needs a "price_level"')
        saved_level = gateway.price_levels.upsert(session, dict(entry['price_level']))

        join_row = dict(entry.get('item_price_level') or {})
        join_row['item_id'] = product.id
        join_row['price_level_id'] = saved_level.id
        gateway.item_price_levels.upsert(session, join_row)

    session.commit()
    logger.info(f"[CATALOG] Saved product #{product.id} with {len(price_levels)} price level(s)")
    return get_product(session, product.id)


def delete_product(session: Session, product_id: int) -> None:
    """Delete a product and its stored image, if any."""
    product = gateway.products.delete(session, product_id)
    image_url = product.item_image_url
    session.commit()
    remove_image(image_url)


# =====================================================
# LOOKUP ENTITIES
# =====================================================

def list_categories(session: Session) -> List[Dict[str, Any]]:
    return [gateway.row_to_dict(c) for c in gateway.item_categories.list(session)]


def save_category(session: Session, category_data: Dict[str, Any]) -> Dict[str, Any]:
    category = gateway.item_categories.upsert(session, dict(category_data))
    session.commit()
    return gateway.row_to_dict(category)


def delete_category(session: Session, category_id: int) -> None:
    gateway.item_categories.delete(session, category_id)
    session.commit()


def list_locations(session: Session) -> List[Dict[str, Any]]:
    return [gateway.row_to_dict(loc) for loc in gateway.locations.list(session)]


def save_location(session: Session, location_data: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(location_data)
    data.pop('date_added', None)
    location = gateway.locations.upsert(session, data)
    session.commit()
    return gateway.row_to_dict(location)


def delete_location(session: Session, location_id: int) -> None:
    gateway.locations.delete(session, location_id)
    session.commit()


def list_invoice_types(session: Session) -> List[Dict[str, Any]]:
    return [gateway.row_to_dict(t) for t in gateway.invoice_types.list(session)]
