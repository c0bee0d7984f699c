"""
Pytest fixtures for ShopDesk backend tests.

Provides test database setup, two-shop tenant fixtures, users per role,
and credential helpers.
"""

from contextlib import contextmanager

import pytest
from flask import g

from shopdesk import create_app
from shopdesk.extensions import db
from shopdesk.models import Customer, Product, Shop, User
from shopdesk.models.auth import ROLE_ADMIN, ROLE_MANAGER, ROLE_STAFF, ROLE_SUPER_ADMIN
from shopdesk.services.auth_service import hash_password
from shopdesk.services.token_service import issue_access_token


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'REFRESH_COOKIE_SECURE': False,
        'JWT_SECRET_KEY': 'test-access-secret-0123456789abcdef',
        'JWT_REFRESH_SECRET_KEY': 'test-refresh-secret-0123456789abcdef',
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


def _make_shop(db_session, name: str, slug: str, **fields) -> Shop:
    shop = Shop(name=name, slug=slug, is_active=True, **fields)
    db_session.add(shop)
    db_session.commit()
    return shop


def _make_user(db_session, email: str, role: str, shop: Shop | None, name: str | None = None) -> User:
    user = User(
        shop_id=shop.id if shop else None,
        email=email,
        name=name or email.split("@")[0],
        role=role,
        is_active=True,
        password_hash=hash_password(PASSWORD),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def shop_a(db_session):
    """Shop A (first tenant)."""
    return _make_shop(db_session, "Alpha Mobile", "alpha-mobile", email="hello@alpha.test", phone="0771234567")


@pytest.fixture(scope='function')
def shop_b(db_session):
    """Shop B (second tenant)."""
    return _make_shop(db_session, "Beta Phones", "beta-phones", email="hello@beta.test")


@pytest.fixture(scope='function')
def super_admin(db_session):
    """Platform SUPER_ADMIN (no shop)."""
    return _make_user(db_session, "root@shopdesk.test", ROLE_SUPER_ADMIN, None)


@pytest.fixture(scope='function')
def admin_a(db_session, shop_a):
    return _make_user(db_session, "admin@alpha.test", ROLE_ADMIN, shop_a)


@pytest.fixture(scope='function')
def manager_a(db_session, shop_a):
    return _make_user(db_session, "manager@alpha.test", ROLE_MANAGER, shop_a)


@pytest.fixture(scope='function')
def staff_a(db_session, shop_a):
    return _make_user(db_session, "staff@alpha.test", ROLE_STAFF, shop_a)


@pytest.fixture(scope='function')
def admin_b(db_session, shop_b):
    return _make_user(db_session, "admin@beta.test", ROLE_ADMIN, shop_b)


@pytest.fixture(scope='function')
def staff_b(db_session, shop_b):
    return _make_user(db_session, "staff@beta.test", ROLE_STAFF, shop_b)


@pytest.fixture(scope='function')
def customer_a(db_session, shop_a):
    customer = Customer(shop_id=shop_a.id, name="Nimal Perera", phone="0711111111", email="nimal@example.com")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, shop_b):
    customer = Customer(shop_id=shop_b.id, name="Kamal Silva", phone="0722222222")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def product_a(db_session, shop_a):
    product = Product(shop_id=shop_a.id, sku="A-CASE-01", name="Phone Case", price_cents=1500, stock=10)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, shop_b):
    product = Product(shop_id=shop_b.id, sku="B-CHG-01", name="Charger", price_cents=2500, stock=5)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def acting_as(app):
    """Run service code inside a request with tenant context for a user."""
    @contextmanager
    def _acting_as(user: User):
        with app.test_request_context():
            g.current_user = user
            g.role = user.role
            g.shop_id = user.shop_id
            yield user
    return _acting_as


def auth_headers(user: User) -> dict:
    """Helper to create Authorization headers for a user."""
    return {'Authorization': f'Bearer {issue_access_token(user)}'}


def login(client, email: str, password: str = PASSWORD):
    """Helper to log in through the API."""
    return client.post('/api/v1/auth/login', json={'email': email, 'password': password})
