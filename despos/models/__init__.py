"""Models package - exports all SQLAlchemy models."""
from despos.models.location import Location
from despos.models.contact import Contact, ContactType
from despos.models.item_category import ItemCategory
from despos.models.price_level import PriceLevel, ItemPriceLevel
from despos.models.product import Product
from despos.models.invoice_type import InvoiceType
from despos.models.sale import Sale, SalesStatus, PaymentMethod
from despos.models.selection import Selection

__all__ = [
    'Location', 'Contact', 'ContactType', 'ItemCategory',
    'PriceLevel', 'ItemPriceLevel', 'Product', 'InvoiceType',
    'Sale', 'SalesStatus', 'PaymentMethod', 'Selection',
]
