import pytest
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from retail_pos import create_app
from retail_pos.database import Base, create_all, get_session
from retail_pos.models import DiscountCode, DiscountType, DiscountScope
from retail_pos.store import SqlAlchemyStore


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite, no Redis)."""
    app = create_app('config.TestConfig')
    ctx = app.app_context()
    ctx.push()
    create_all()
    yield app
    ctx.pop()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session; every table is emptied after the test."""
    session = get_session()
    yield session
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.expunge_all()


@pytest.fixture(scope='function')
def store(session):
    return SqlAlchemyStore(session)


@pytest.fixture(scope='function')
def make_product(store):
    """Factory for products."""
    def _make(name='Prodotto', sale_price='20.00', stock=10, min_stock=0,
              purchase_price='8.00', barcode=None):
        return store.insert('product', {
            'name': name,
            'barcode': barcode or f'80{uuid.uuid4().int % 10**11:011d}',
            'sale_price': Decimal(sale_price),
            'purchase_price': Decimal(purchase_price),
            'stock': stock,
            'min_stock': min_stock,
        })
    return _make


@pytest.fixture(scope='function')
def make_code(store):
    """Factory for persisted discount codes."""
    def _make(code, discount_type=DiscountType.PERCENTAGE, value='10',
              applies_to=DiscountScope.CART, expiry_date=None, is_active=True):
        return store.insert('discount_code', {
            'code': code,
            'type': discount_type,
            'value': Decimal(value),
            'applies_to': applies_to,
            'expiry_date': expiry_date,
            'is_active': is_active,
        })
    return _make


@pytest.fixture
def discount_code():
    """Factory for transient DiscountCode objects (no database)."""
    def _make(code, discount_type=DiscountType.PERCENTAGE, value='10',
              applies_to=DiscountScope.CART, expiry_date=None, is_active=True):
        return DiscountCode(
            code=code,
            type=discount_type,
            value=Decimal(value),
            applies_to=applies_to,
            expiry_date=expiry_date,
            is_active=is_active,
        )
    return _make


@pytest.fixture
def now():
    return datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def yesterday(now):
    return now - timedelta(days=1)


@pytest.fixture
def tomorrow(now):
    return now + timedelta(days=1)
