"""
Pytest fixtures for salonbook backend tests.

Provides test database setup, tenant fixtures, bearer tokens, and test client.
"""

from datetime import date, timedelta

import pytest
from salonbook import create_app
from salonbook.extensions import db
from salonbook.models import (
    Appointment,
    Customer,
    CustomerPackage,
    CustomerPackageUsage,
    Tenant,
    TenantSettings,
)
from salonbook.services import auth_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-jwt-secret',
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


@pytest.fixture(scope='function')
def tenant(db_session):
    """Tenant A with a blacklist threshold of 3."""
    t = Tenant(name="Salon A", slug="salon-a", is_active=True)
    db_session.add(t)
    db_session.commit()
    db_session.add(TenantSettings(tenant_id=t.id, blacklist_threshold=3))
    db_session.commit()
    return t


@pytest.fixture(scope='function')
def other_tenant(db_session):
    """Tenant B (no settings row)."""
    t = Tenant(name="Salon B", slug="salon-b", is_active=True)
    db_session.add(t)
    db_session.commit()
    return t


@pytest.fixture(scope='function')
def customer(db_session, tenant):
    c = Customer(
        tenant_id=tenant.id,
        first_name="Ayse",
        last_name="Yilmaz",
        phone="5551112233",
    )
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def package_usage(db_session, tenant, customer):
    """Active package with one usage row: 3 of 5 sessions remaining."""
    pkg = CustomerPackage(
        tenant_id=tenant.id,
        customer_id=customer.id,
        package_name="Lazer 5 Seans",
        status="active",
    )
    db_session.add(pkg)
    db_session.commit()

    usage = CustomerPackageUsage(
        customer_package_id=pkg.id,
        item_type="service",
        item_name="Lazer",
        total_quantity=5,
        used_quantity=2,
        remaining_quantity=3,
    )
    db_session.add(usage)
    db_session.commit()
    return usage


@pytest.fixture(scope='function')
def make_appointment(db_session, tenant, customer):
    """Factory for appointments in tenant A, booked by `customer` by default."""
    def _make(**overrides):
        values = {
            "tenant_id": tenant.id,
            "customer_id": customer.id,
            "staff_id": 7,
            "customer_name": customer.full_name,
            "customer_phone": customer.phone,
            "service_name": "Sac Kesimi",
            "date": (date.today() + timedelta(days=3)).isoformat(),
            "time": "14:00",
            "status": "pending",
            "price": 150,
        }
        values.update(overrides)
        appointment = Appointment(**values)
        db_session.add(appointment)
        db_session.commit()
        return appointment

    return _make


@pytest.fixture(scope='function')
def owner_headers(tenant):
    return auth_headers(make_token("owner", tenant.id))


@pytest.fixture(scope='function')
def staff_headers(tenant):
    return auth_headers(make_token("staff", tenant.id, staff_id=7))


@pytest.fixture(scope='function')
def customer_headers(tenant, customer):
    return auth_headers(make_token("customer", tenant.id, customer_id=customer.id, phone=customer.phone))


@pytest.fixture(scope='function')
def other_owner_headers(other_tenant):
    return auth_headers(make_token("owner", other_tenant.id))


def make_token(role: str, tenant_id: int, **claims) -> str:
    """Helper to mint a bearer token (needs an app context)."""
    return auth_service.issue_token(role=role, tenant_id=tenant_id, **claims)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
