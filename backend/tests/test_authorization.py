"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Pending users get 403 with pending_approval: true
- Non-admin members are denied admin-only operations (403)
- Admins can perform privileged operations
"""

import pytest

from conftest import auth_headers, get_auth_token


PROTECTED_ENDPOINTS = [
    ("GET", "/api/auth/session"),
    ("POST", "/api/auth/active-org"),
    ("GET", "/api/purchase-orders"),
    ("POST", "/api/purchase-orders"),
    ("GET", "/api/purchase-orders/1"),
    ("POST", "/api/purchase-orders/1/submit"),
    ("POST", "/api/purchase-orders/1/approve"),
    ("POST", "/api/purchase-orders/1/reject"),
    ("GET", "/api/shipments"),
    ("GET", "/api/shipments/1"),
    ("POST", "/api/purchase-orders/1/shipments"),
    ("PATCH", "/api/shipments/1"),
    ("GET", "/api/access/users"),
    ("PUT", "/api/access/users/1/role"),
    ("GET", "/api/suppliers"),
    ("GET", "/api/products"),
    ("GET", "/api/skus"),
    ("GET", "/api/warehouses"),
    ("GET", "/api/inventory"),
    ("GET", "/api/dashboard/summary"),
    ("GET", "/api/audit-logs"),
    ("GET", "/api/security-events"),
]


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize("method,path", PROTECTED_ENDPOINTS)
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_bogus_token(self, client, db_session):
        resp = client.get("/api/purchase-orders", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    def test_malformed_header(self, client, db_session):
        resp = client.get("/api/purchase-orders", headers={"Authorization": "Token abc"})
        assert resp.status_code == 401


# =============================================================================
# PENDING APPROVAL (403)
# =============================================================================


class TestPendingUser:
    """Authenticated users without a role reach nothing but their session."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/purchase-orders"),
            ("POST", "/api/purchase-orders"),
            ("GET", "/api/shipments"),
            ("GET", "/api/suppliers"),
            ("GET", "/api/dashboard/summary"),
            ("GET", "/api/access/users"),
        ],
    )
    def test_pending_blocked(self, client, pending_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=pending_headers, json={})
        assert resp.status_code == 403
        assert resp.get_json()["pending_approval"] is True

    def test_pending_can_read_session(self, client, pending_headers):
        resp = client.get("/api/auth/session", headers=pending_headers)
        assert resp.status_code == 200
        assert resp.get_json()["pending_approval"] is True


# =============================================================================
# MEMBERS DENIED ADMIN OPERATIONS (403)
# =============================================================================


class TestMemberDeniedAdminOperations:

    @pytest.mark.parametrize(
        "method,path,permission",
        [
            ("POST", "/api/purchase-orders/1/approve", "approve_po"),
            ("POST", "/api/purchase-orders/1/reject", "approve_po"),
            ("POST", "/api/purchase-orders/1/shipments", "create_shipment"),
            ("PATCH", "/api/shipments/1", "manage_shipments"),
            ("GET", "/api/access/users", "manage_users"),
            ("PUT", "/api/access/users/1/role", "manage_users"),
            ("GET", "/api/audit-logs", "access_settings"),
            ("GET", "/api/security-events", "access_settings"),
        ],
    )
    def test_buyer_denied(self, client, buyer_headers, method, path, permission):
        resp = getattr(client, method.lower())(path, headers=buyer_headers, json={})
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == permission

    @pytest.mark.parametrize("role", ["manager", "warehouse", "accounting", "viewer"])
    def test_every_non_admin_role_denied_approval(self, client, make_user, make_po, buyer_a, org_a, role):
        po = make_po(buyer_a)
        user = make_user(f"{role}@acme.com", {org_a.id: role})
        headers = auth_headers(get_auth_token(client, user.email))

        assert client.post(f"/api/purchase-orders/{po.id}/approve", headers=headers).status_code == 403
        assert client.post("/api/purchase-orders", headers=headers, json={}).status_code == 400


# =============================================================================
# ADMIN CAN PERFORM PRIVILEGED OPERATIONS
# =============================================================================


class TestAdminAllowed:

    @pytest.mark.parametrize(
        "path",
        [
            "/api/access/users",
            "/api/audit-logs",
            "/api/security-events",
            "/api/suppliers",
            "/api/warehouses",
            "/api/dashboard/summary",
        ],
    )
    def test_admin_reads(self, client, admin_headers, path):
        assert client.get(path, headers=admin_headers).status_code == 200

    def test_audit_log_lists_decisions(self, client, admin_headers, approved_po):
        data = client.get(
            f"/api/audit-logs?entity_type=purchase_order&entity_id={approved_po.id}",
            headers=admin_headers,
        ).get_json()
        assert [e["action"] for e in data["items"]] == ["purchase_order.approved", "purchase_order.created"]


# =============================================================================
# SYSTEM
# =============================================================================


class TestSystemEndpoints:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"

    def test_version(self, client, db_session):
        resp = client.get("/version")
        assert resp.status_code == 200
