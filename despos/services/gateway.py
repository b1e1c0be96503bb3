"""
Data Access Gateway.

Entity-scoped CRUD over SQLAlchemy models with a uniform shape:
``list`` / ``count`` / ``get_by_id`` / ``upsert`` / ``delete``.
Services flush; callers own the commit.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from despos.exceptions import NotFoundError, PersistenceError, ValidationError
from despos.models import (
    Contact, InvoiceType, ItemCategory, ItemPriceLevel, Location,
    PriceLevel, Product, Sale, Selection
)

logger = logging.getLogger(__name__)

Page = Tuple[int, int]


def page_range(page_number: int, item_count: int) -> Tuple[int, int]:
    """
    Inclusive row window for a page.
    
    Kept identical to the deployed clients:
    ``[page*(count-1) + (1 if page > 0 else 0), count*(page+1) - 1]``.
    
    Examples:
        page_range(0, 10) -> (0, 9)
        page_range(1, 10) -> (10, 19)
        page_range(2, 10) -> (19, 29)
    """
    start = page_number * (item_count - 1) + (1 if page_number > 0 else 0)
    end = item_count * (page_number + 1) - 1
    return start, end


def row_to_dict(obj) -> Dict[str, Any]:
    """Column values of a mapped object, with dates as ISO strings."""
    data = {}
    for column in inspect(obj).mapper.column_attrs:
        value = getattr(obj, column.key)
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        data[column.key] = value
    return data


class EntityGateway:
    """
    CRUD gateway for one entity.
    
    Usage:
        products = EntityGateway(Product, default_order=Product.item_name)
        rows = products.list(session, filters={'item_type_id': 3}, page=(0, 20))
        product = products.upsert(session, {'id': 5, 'item_quantity': 9})
    """
    
    def __init__(self, model, default_order=None, load_options: Sequence = ()):
        self.model = model
        self.default_order = default_order
        self.load_options = tuple(load_options)
        self.name = model.__tablename__
        self._columns = {c.key for c in inspect(model).column_attrs}
    
    def _query(self, session: Session, filters: Optional[Dict[str, Any]] = None, with_options: bool = True):
        query = session.query(self.model)
        if with_options and self.load_options:
            query = query.options(*self.load_options)
        for key, value in (filters or {}).items():
            if key not in self._columns:
                raise ValidationError(f'Unknown filter "{key}" for {self.name}')
            query = query.filter(getattr(self.model, key) == value)
        return query
    
    def list(
        self,
        session: Session,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Iterable] = None,
        page: Optional[Page] = None
    ) -> List[Any]:
        """List rows, optionally filtered by column equality, ordered and paginated."""
        query = self._query(session, filters)
        
        if order is not None:
            query = query.order_by(*order)
        elif self.default_order is not None:
            query = query.order_by(self.default_order)
        
        if page is not None:
            page_number, item_count = page
            start, end = page_range(page_number, item_count)
            query = query.offset(start).limit(end - start + 1)
        
        return query.all()
    
    def count(self, session: Session, filters: Optional[Dict[str, Any]] = None) -> int:
        return self._query(session, filters, with_options=False).count()
    
    def get_by_id(self, session: Session, entity_id) -> Any:
        """
        Raises:
            NotFoundError: If no row has this id
        """
        obj = self._query(session).filter(self.model.id == entity_id).first()
        if obj is None:
            raise NotFoundError(f'{self.name} #{entity_id} not found')
        return obj
    
    def upsert(self, session: Session, row: Dict[str, Any], conflict_key: str = 'id') -> Any:
        """
        Insert or update one row keyed by ``conflict_key``.
        
        Raises:
            ValidationError: If the row carries fields the table does not have
            PersistenceError: If the database rejects the write
        """
        unknown = set(row) - self._columns
        if unknown:
            raise ValidationError(
                f'Unknown field(s) for {self.name}: {", ".join(sorted(unknown))}'
            )
        
        key_value = row.get(conflict_key)
        obj = None
        if key_value is not None:
            obj = session.query(self.model).filter(
                getattr(self.model, conflict_key) == key_value
            ).first()
        
        try:
            if obj is None:
                values = dict(row)
                if values.get('id') is None:
                    values.pop('id', None)
                obj = self.model(**values)
                session.add(obj)
            else:
                for key, value in row.items():
                    setattr(obj, key, value)
            session.flush()
        except SQLAlchemyError as e:
            logger.error(f"[GATEWAY] ✗ Upsert into {self.name} failed: {e}")
            raise PersistenceError(f'Could not save {self.name} row', payload={'table': self.name}) from e
        
        return obj
    
    def delete(self, session: Session, entity_id) -> Any:
        """
        Delete one row by id and return the deleted object.
        
        Raises:
            NotFoundError: If no row has this id
            PersistenceError: If the database rejects the delete
        """
        obj = self.get_by_id(session, entity_id)
        try:
            session.delete(obj)
            session.flush()
        except SQLAlchemyError as e:
            logger.error(f"[GATEWAY] ✗ Delete from {self.name} failed: {e}")
            raise PersistenceError(f'Could not delete {self.name} #{entity_id}', payload={'table': self.name}) from e
        return obj


locations = EntityGateway(Location, default_order=Location.location_name)
contacts = EntityGateway(Contact, default_order=Contact.date_added.desc())
item_categories = EntityGateway(ItemCategory, default_order=ItemCategory.type_name)
products = EntityGateway(
    Product,
    default_order=Product.id,
    load_options=(
        selectinload(Product.dealer),
        selectinload(Product.category),
        selectinload(Product.item_price_levels).selectinload(ItemPriceLevel.price_level),
    )
)
price_levels = EntityGateway(PriceLevel, default_order=PriceLevel.level_name)
item_price_levels = EntityGateway(ItemPriceLevel, default_order=ItemPriceLevel.id)
sales = EntityGateway(
    Sale,
    default_order=Sale.sales_date.desc(),
    load_options=(
        selectinload(Sale.customer),
        selectinload(Sale.selections)
        .selectinload(Selection.product)
        .selectinload(Product.item_price_levels)
        .selectinload(ItemPriceLevel.price_level),
    )
)
selections = EntityGateway(Selection, default_order=Selection.id)
invoice_types = EntityGateway(InvoiceType, default_order=InvoiceType.code)
