import pytest
from decimal import Decimal

from despos import create_app
from despos import database
from despos.database import get_session
from despos.models import (
    Contact, ContactType, InvoiceType, ItemPriceLevel, PriceLevel, Product
)
from despos.services import storage_service


class FakeStorage:
    """Records deleted object keys instead of calling S3."""

    def __init__(self):
        self.deleted = []

    def delete_file(self, path_or_url):
        self.deleted.append(path_or_url)
        return True


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Fresh schema and database session for each test."""
    with app.app_context():
        database.create_all()
        session = get_session()
        yield session
        session.rollback()
        session.remove()
        database.drop_all()


@pytest.fixture(autouse=True)
def storage(monkeypatch):
    """Replace the S3 storage singleton with an in-memory fake."""
    fake = FakeStorage()
    monkeypatch.setattr(storage_service, '_storage_service', fake)
    return fake


@pytest.fixture(scope='function')
def make_product(session):
    """Factory creating a committed product with price levels; returns its id."""

    def _make_product(item_name='Coffee', item_quantity=10, default_item_quantity=10,
                      item_sold=0, prices=None, barcode=None, item_image_url=''):
        product = Product(
            item_name=item_name,
            code=item_name[:3].upper(),
            barcode=barcode,
            item_cost=Decimal('1.00'),
            item_quantity=item_quantity,
            default_item_quantity=default_item_quantity,
            item_sold=item_sold,
            item_image_url=item_image_url,
        )
        session.add(product)
        session.flush()

        for level_name, price in (prices or {'Level 1': '10.00'}).items():
            level = PriceLevel(level_name=level_name, price=Decimal(price))
            session.add(level)
            session.flush()
            session.add(ItemPriceLevel(item_id=product.id, price_level_id=level.id))

        session.commit()
        return product.id

    return _make_product


@pytest.fixture(scope='function')
def make_contact(session):
    """Factory creating a committed contact; returns its id."""

    def _make_contact(first_name='Ana', contact_type=ContactType.CUSTOMER, **extra):
        contact = Contact(
            first_name=first_name,
            last_name=extra.pop('last_name', 'Reyes'),
            contact_type=ContactType(contact_type).value,
            **extra
        )
        session.add(contact)
        session.commit()
        return contact.id

    return _make_contact


@pytest.fixture(scope='function')
def customer_id(make_contact):
    return make_contact('Ana', ContactType.CUSTOMER)


@pytest.fixture(scope='function')
def invoice_type_id(session):
    invoice_type = InvoiceType(code='cash', invoice_name='Cash Invoice')
    session.add(invoice_type)
    session.commit()
    return invoice_type.id
