"""
Pytest fixtures for facil backend tests.

Provides the test application (in-memory SQLite, local provider), a fresh
database per test, and helpers for authenticated API calls.
"""

import pytest
from datetime import date
from decimal import Decimal

from facil import create_app
from facil.config import TestingConfig
from facil.extensions import db, get_credentials, get_provider
from facil.records import ExpenseRecord, PaymentRecord, PersonRecord, ProductRecord, ResidentRecord


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

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
        db.session.expire_all()


@pytest.fixture(scope='function')
def provider(db_session):
    return get_provider()


@pytest.fixture(scope='function')
def credentials(db_session):
    return get_credentials()


@pytest.fixture(scope='function')
def admin_user(credentials):
    return credentials.create_user(
        username="admin", email="admin@condo.com", password="admin123", name="Admin", role="admin"
    )


@pytest.fixture(scope='function')
def staff_user(credentials):
    return credentials.create_user(username="staff", email="staff@condo.com", password="staff123", role="staff")


def login(client, identifier, password):
    return client.post("/api/auth/login", json={"identifier": identifier, "password": password})


def auth_headers(client, identifier, password) -> dict:
    response = login(client, identifier, password)
    assert response.status_code == 200, response.get_json()
    return {"Authorization": f"Bearer {response.get_json()['token']}"}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(client, "admin", "admin123")


@pytest.fixture(scope='function')
def staff_headers(client, staff_user):
    return auth_headers(client, "staff", "staff123")


@pytest.fixture(scope='function')
def stocked(provider):
    """One product with 5 units (sku X1) and one person."""
    product = provider.products.insert(
        ProductRecord(id="p1", sku="X1", name="Cabo HDMI", quantity=5, price=Decimal("35.00"))
    )
    person = provider.people.insert(PersonRecord(id="u1", name="Ana"))
    return product, person


@pytest.fixture(scope='function')
def condo(provider):
    """Two apartments; only apartment 1 paid in March 2024."""
    provider.residents.insert(ResidentRecord(id="r1", owner_name="Alice Silva", apartment_number=1))
    provider.residents.insert(ResidentRecord(id="r2", owner_name="Roberto Souza", apartment_number=2))
    provider.payments.insert(
        PaymentRecord(id="pay1", apartment_number=1, amount=Decimal("500.00"), date=date(2024, 3, 5), month=3, year=2024)
    )
    provider.payments.insert(
        PaymentRecord(id="pay2", apartment_number=2, amount=Decimal("500.00"), date=date(2024, 2, 5), month=2, year=2024)
    )
    provider.expenses.insert(
        ExpenseRecord(id="e1", description="Jardim", amount=Decimal("350.00"), category="Jardinagem", date=date(2024, 3, 10))
    )
    provider.expenses.insert(
        ExpenseRecord(id="e2", description="Luz do hall", amount=Decimal("600.00"), category="Eletricidade", date=date(2024, 3, 12))
    )
