"""
Pytest fixtures for fbaops backend tests.

Provides test database setup, tenant fixtures (two organizations with their
own members, suppliers and SKUs) and test client helpers.
"""

import pytest
from fbaops import create_app
from fbaops.extensions import db
from fbaops.models import Membership, Organization, Product, Sku, Supplier, User
from fbaops.services.auth_service import hash_password
from fbaops.services import purchase_order_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'SHIPMENT_REFERENCE_BACKOFF': 0,
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


# =============================================================================
# ORGANIZATIONS AND USERS
# =============================================================================

@pytest.fixture(scope='function')
def org_a(db_session):
    """Create Organization A (first tenant)."""
    org = Organization(name="Org A - Acme Wholesale", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def org_b(db_session):
    """Create Organization B (second tenant)."""
    org = Organization(name="Org B - Beta Trading", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def make_user(db_session):
    """
    Factory: make_user(email, memberships={org_id: role}).

    Without memberships the user is pending approval.
    """
    def _make_user(email, memberships=None, full_name=None, is_active=True):
        user = User(
            email=email,
            full_name=full_name or email.split("@")[0],
            password_hash=hash_password(PASSWORD),
            is_active=is_active,
        )
        db_session.add(user)
        db_session.flush()

        for org_id, role in (memberships or {}).items():
            db_session.add(Membership(user_id=user.id, org_id=org_id, role=role))

        db_session.commit()
        return user

    return _make_user


@pytest.fixture(scope='function')
def admin_a(make_user, org_a):
    return make_user("admin_a@acme.com", {org_a.id: "admin"}, full_name="Ada Admin")


@pytest.fixture(scope='function')
def buyer_a(make_user, org_a):
    return make_user("buyer_a@acme.com", {org_a.id: "purchasing"}, full_name="Bob Buyer")


@pytest.fixture(scope='function')
def other_buyer_a(make_user, org_a):
    return make_user("buyer2_a@acme.com", {org_a.id: "purchasing"}, full_name="Carla Buyer")


@pytest.fixture(scope='function')
def pending_user(make_user):
    return make_user("new_signup@example.com", full_name="Pat Pending")


@pytest.fixture(scope='function')
def admin_b(make_user, org_b):
    return make_user("admin_b@beta.com", {org_b.id: "admin"}, full_name="Bea Admin")


# =============================================================================
# CATALOG
# =============================================================================

@pytest.fixture(scope='function')
def supplier_a(db_session, org_a):
    supplier = Supplier(org_id=org_a.id, name="Acme Supply Co", contact_email="orders@acmesupply.com")
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def supplier_b(db_session, org_b):
    supplier = Supplier(org_id=org_b.id, name="Beta Distributors")
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def skus_a(db_session, org_a):
    """Two SKUs in Organization A: costs 1000 and 500 cents."""
    product = Product(org_id=org_a.id, title="Steel Water Bottle", brand="Acme")
    db_session.add(product)
    db_session.flush()

    sku_1 = Sku(product_id=product.id, code="BOTTLE-750", cost_cents=1000)
    sku_2 = Sku(product_id=product.id, code="BOTTLE-500", cost_cents=500)
    db_session.add_all([sku_1, sku_2])
    db_session.commit()
    return sku_1, sku_2


@pytest.fixture(scope='function')
def sku_b(db_session, org_b):
    product = Product(org_id=org_b.id, title="Yoga Mat", brand="Beta")
    db_session.add(product)
    db_session.flush()

    sku = Sku(product_id=product.id, code="MAT-01", cost_cents=1500)
    db_session.add(sku)
    db_session.commit()
    return sku


# =============================================================================
# PURCHASE ORDERS
# =============================================================================

@pytest.fixture(scope='function')
def make_po(org_a, supplier_a, skus_a):
    """Factory for purchase orders in Organization A (total 4000 cents)."""
    def _make_po(created_by, status="submitted", items=None):
        sku_1, sku_2 = skus_a
        return purchase_order_service.create_purchase_order(
            org_id=org_a.id,
            supplier_id=supplier_a.id,
            items=items or [
                {"sku_id": sku_1.id, "quantity": 3, "unit_cost_cents": 1000},
                {"sku_id": sku_2.id, "quantity": 2, "unit_cost_cents": 500},
            ],
            created_by_user_id=created_by.id,
            status=status,
        )

    return _make_po


@pytest.fixture(scope='function')
def approved_po(make_po, buyer_a, admin_a, org_a):
    po = make_po(buyer_a)
    return purchase_order_service.approve_purchase_order(
        po.id, org_a.id, actor_user_id=admin_a.id, actor_role="admin",
    )


# =============================================================================
# HTTP HELPERS
# =============================================================================

def get_auth_token(client, email, password=PASSWORD, previous_org_id=None):
    """Helper to get auth token for a user."""
    payload = {"email": email, "password": password}
    if previous_org_id is not None:
        payload["previous_org_id"] = previous_org_id
    response = client.post('/api/auth/login', json=payload)
    assert response.status_code == 200, response.get_json()
    return response.get_json()['token']


def auth_headers(token):
    """Helper to create auth headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_a):
    return auth_headers(get_auth_token(client, admin_a.email))


@pytest.fixture(scope='function')
def buyer_headers(client, buyer_a):
    return auth_headers(get_auth_token(client, buyer_a.email))


@pytest.fixture(scope='function')
def pending_headers(client, pending_user):
    return auth_headers(get_auth_token(client, pending_user.email))


@pytest.fixture(scope='function')
def admin_b_headers(client, admin_b):
    return auth_headers(get_auth_token(client, admin_b.email))
