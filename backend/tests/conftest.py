"""
Pytest fixtures for the cafeteria backend tests.

Each test gets a fresh application bound to its own in-memory SQLite
database, one account per role, and a small menu.
"""

import pytest

from app import create_app
from app.extensions import db
from app.models import Item, User
from app.models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_SUPPLIER, ROLE_USER
from app.models.catalog import ITEM_AVAILABLE, ITEM_OUT_OF_STOCK, ITEM_PENDING_APPROVAL
from app.services.auth_service import hash_password


TEST_PASSWORD = "password123"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'BCRYPT_LOG_ROUNDS': 4,
    'LOG_LEVEL': 'DEBUG',
}


@pytest.fixture(scope='function')
def app():
    """Create application with an empty schema."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


def _make_user(name: str, email: str, role: str) -> User:
    user = User(name=name, email=email, password_hash=hash_password(TEST_PASSWORD), role=role)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def admin(app):
    return _make_user("Admin Pengurus", "pengurus@test.com", ROLE_ADMIN)


@pytest.fixture(scope='function')
def cashier(app):
    return _make_user("Kasir 1", "kasir@test.com", ROLE_CASHIER)


@pytest.fixture(scope='function')
def supplier(app):
    return _make_user("Mitra Supplier", "mitra@test.com", ROLE_SUPPLIER)


@pytest.fixture(scope='function')
def end_user(app):
    return _make_user("User Biasa", "user@test.com", ROLE_USER)


@pytest.fixture(scope='function')
def other_user(app):
    return _make_user("User Lain", "user2@test.com", ROLE_USER)


def _make_item(name, stock, price, status, owner) -> Item:
    item = Item(
        name=name,
        stock_quantity=stock,
        unit_price=price,
        status=status,
        owner_id=owner.id,
        photo_url=f"https://cdn.example.com/{name.lower().replace(' ', '-')}.jpg",
    )
    db.session.add(item)
    db.session.commit()
    return item


@pytest.fixture(scope='function')
def nasi_goreng(supplier):
    """AVAILABLE, stock 5."""
    return _make_item("Nasi Goreng", 5, 15000, ITEM_AVAILABLE, supplier)


@pytest.fixture(scope='function')
def es_teh(supplier):
    """AVAILABLE, stock 30."""
    return _make_item("Es Teh Manis", 30, 5000, ITEM_AVAILABLE, supplier)


@pytest.fixture(scope='function')
def ayam_geprek(supplier):
    """Submitted by the supplier, not yet approved for sale."""
    return _make_item("Ayam Geprek", 10, 18000, ITEM_PENDING_APPROVAL, supplier)


@pytest.fixture(scope='function')
def mie_ayam(supplier):
    """Sold out."""
    return _make_item("Mie Ayam", 0, 12000, ITEM_OUT_OF_STOCK, supplier)


def login(client, email: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    assert response.status_code == 200, response.get_json()
    return response.get_json()['token']


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(login(client, admin.email))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier):
    return auth_headers(login(client, cashier.email))


@pytest.fixture(scope='function')
def supplier_headers(client, supplier):
    return auth_headers(login(client, supplier.email))


@pytest.fixture(scope='function')
def user_headers(client, end_user):
    return auth_headers(login(client, end_user.email))


@pytest.fixture(scope='function')
def other_user_headers(client, other_user):
    return auth_headers(login(client, other_user.email))
