"""
Pytest fixtures for backend tests.

Provides an in-memory database, one user per role and auth header helpers.
"""

from decimal import Decimal

import pytest

from pavan import create_app
from pavan.extensions import db
from pavan.models import Product, User
from pavan.permissions import Role
from pavan.services import session_service
from pavan.services.auth_service import hash_password

TEST_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-jwt-secret',
        'TAX_RATE': '0.18',
        'CLAMP_DISCOUNT': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


def make_user(db_session, password_hash, role: Role, email: str | None = None, **kwargs) -> User:
    user = User(
        email=email or f"{role.value.lower()}@test.local",
        name=f"{role.value} User",
        password_hash=password_hash,
        role=role,
        **kwargs,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session, password_hash):
    return make_user(db_session, password_hash, Role.ADMIN)


@pytest.fixture(scope='function')
def sales_user(db_session, password_hash):
    return make_user(db_session, password_hash, Role.SALES)


@pytest.fixture(scope='function')
def inventory_user(db_session, password_hash):
    return make_user(db_session, password_hash, Role.INVENTORY)


@pytest.fixture(scope='function')
def cashier_user(db_session, password_hash):
    return make_user(db_session, password_hash, Role.CASHIER)


def token_for(user: User) -> str:
    _, token = session_service.create_session(user)
    return token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(token_for(admin_user))


@pytest.fixture(scope='function')
def sales_headers(sales_user):
    return auth_headers(token_for(sales_user))


@pytest.fixture(scope='function')
def inventory_headers(inventory_user):
    return auth_headers(token_for(inventory_user))


@pytest.fixture(scope='function')
def cashier_headers(cashier_user):
    return auth_headers(token_for(cashier_user))


def make_product(db_session, sku: str, *, price="100.00", quantity=10, threshold=10, **kwargs) -> Product:
    product = Product(
        sku=sku,
        name=kwargs.pop("name", f"Product {sku}"),
        cost_price=Decimal(kwargs.pop("cost_price", "50.00")),
        sell_price=Decimal(price),
        quantity=quantity,
        threshold=threshold,
        **kwargs,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product(db_session):
    """Product priced 100.00 with 5 units on hand."""
    return make_product(db_session, "SKU-001", price="100.00", quantity=5, threshold=2)


@pytest.fixture(scope='function')
def issue_token(db_session):
    """Factory: issue a session token for a user."""
    return token_for


@pytest.fixture(scope='function')
def headers_for(db_session):
    """Factory: Authorization headers for a user."""
    def _headers(user: User) -> dict:
        return auth_headers(token_for(user))
    return _headers


@pytest.fixture(scope='function')
def product_factory(db_session):
    """Factory: make_product bound to the test session."""
    def _make(sku: str, **kwargs) -> Product:
        return make_product(db_session, sku, **kwargs)
    return _make
