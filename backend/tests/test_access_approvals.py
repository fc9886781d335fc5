"""
Access approval tests.

Verifies:
- Admins see the organization's members plus users pending approval
- Members of other organizations stay invisible
- Assigning a role creates or updates the membership
- Only admins reach the access endpoints; nobody changes their own role
"""

import json

import pytest

from fbaops.exceptions import NotFoundError, ValidationError
from fbaops.models import AuditLog, Membership, SecurityEvent
from fbaops.services import access_service

from conftest import auth_headers, get_auth_token


# =============================================================================
# SERVICE
# =============================================================================


class TestListUsers:

    def test_members_and_pending_users(self, db_session, org_a, admin_a, buyer_a, pending_user, admin_b):
        users = access_service.list_users(org_a.id)
        by_email = {u["email"]: u for u in users}

        assert set(by_email) == {admin_a.email, buyer_a.email, pending_user.email}
        assert by_email[admin_a.email]["current_role"] == "admin"
        assert by_email[buyer_a.email]["current_role"] == "purchasing"
        assert by_email[pending_user.email]["current_role"] is None
        assert by_email[pending_user.email]["joined_at"].endswith("Z")

    def test_other_org_members_hidden(self, db_session, org_b, admin_a, admin_b, pending_user):
        emails = {u["email"] for u in access_service.list_users(org_b.id)}
        assert emails == {admin_b.email, pending_user.email}

    def test_deactivated_users_hidden(self, db_session, org_a, admin_a, make_user):
        make_user("gone@example.com", is_active=False)
        emails = {u["email"] for u in access_service.list_users(org_a.id)}
        assert "gone@example.com" not in emails


class TestSetRole:

    def test_approves_pending_user(self, db_session, org_a, admin_a, pending_user):
        membership = access_service.set_role(
            org_id=org_a.id, user_id=pending_user.id, role="purchasing", actor_user_id=admin_a.id,
        )
        assert membership.role == "purchasing"
        assert membership.org_id == org_a.id

        audit = db_session.query(AuditLog).filter_by(action="membership.role_assigned").one()
        assert audit.entity_id == pending_user.id
        assert json.loads(audit.details) == {"from": None, "to": "purchasing"}

    def test_updates_existing_membership(self, db_session, org_a, admin_a, buyer_a):
        access_service.set_role(org_id=org_a.id, user_id=buyer_a.id, role="manager", actor_user_id=admin_a.id)

        memberships = db_session.query(Membership).filter_by(user_id=buyer_a.id).all()
        assert [m.role for m in memberships] == ["manager"]

    def test_role_is_per_organization(self, db_session, org_a, org_b, buyer_a):
        access_service.set_role(
            org_id=org_b.id, user_id=buyer_a.id, role="viewer", actor_user_id=None, allow_other_org_members=True,
        )

        roles = {m.org_id: m.role for m in db_session.query(Membership).filter_by(user_id=buyer_a.id)}
        assert roles == {org_a.id: "purchasing", org_b.id: "viewer"}

    def test_invalid_role(self, db_session, org_a, admin_a, pending_user):
        with pytest.raises(ValidationError):
            access_service.set_role(org_id=org_a.id, user_id=pending_user.id, role="owner", actor_user_id=admin_a.id)
        assert db_session.query(Membership).filter_by(user_id=pending_user.id).count() == 0

    def test_unknown_user(self, db_session, org_a, admin_a):
        with pytest.raises(NotFoundError):
            access_service.set_role(org_id=org_a.id, user_id=99999, role="viewer", actor_user_id=admin_a.id)

    def test_other_org_member_not_found(self, db_session, org_a, org_b, admin_b, buyer_a):
        """Only users list_users would show can be given a role."""
        with pytest.raises(NotFoundError, match="User not found"):
            access_service.set_role(org_id=org_b.id, user_id=buyer_a.id, role="viewer", actor_user_id=admin_b.id)

        roles = {m.org_id: m.role for m in db_session.query(Membership).filter_by(user_id=buyer_a.id)}
        assert roles == {org_a.id: "purchasing"}


# =============================================================================
# API
# =============================================================================


class TestAccessApi:

    def test_admin_lists_users(self, client, admin_headers, pending_user, buyer_a):
        resp = client.get("/api/access/users", headers=admin_headers)
        assert resp.status_code == 200

        data = resp.get_json()
        assert data["count"] == 3
        assert data["pending_count"] == 1
        assert {r["code"] for r in data["roles"]} >= {"admin", "purchasing", "viewer"}

    def test_non_admin_denied(self, client, buyer_headers):
        resp = client.get("/api/access/users", headers=buyer_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "manage_users"

    def test_pending_user_denied(self, client, pending_headers):
        resp = client.get("/api/access/users", headers=pending_headers)
        assert resp.status_code == 403
        assert resp.get_json()["pending_approval"] is True

    def test_approve_then_pending_user_gets_access(self, client, db_session, admin_headers, pending_user):
        token = get_auth_token(client, pending_user.email)
        assert client.get("/api/purchase-orders", headers=auth_headers(token)).status_code == 403

        resp = client.put(
            f"/api/access/users/{pending_user.id}/role",
            json={"role": "purchasing"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["role"] == "purchasing"

        # Same token, no new login
        resp = client.get("/api/purchase-orders", headers=auth_headers(token))
        assert resp.status_code == 200

        session = client.get("/api/auth/session", headers=auth_headers(token)).get_json()
        assert session["pending_approval"] is False
        assert session["role"] == "purchasing"

        assert db_session.query(SecurityEvent).filter_by(event_type="ROLE_ASSIGNED").count() == 1

    def test_other_org_member_indistinguishable_from_unknown(self, client, admin_b_headers, buyer_a):
        foreign = client.put(f"/api/access/users/{buyer_a.id}/role", json={"role": "viewer"}, headers=admin_b_headers)
        unknown = client.put("/api/access/users/99999/role", json={"role": "viewer"}, headers=admin_b_headers)

        assert foreign.status_code == unknown.status_code == 404
        assert foreign.get_json() == unknown.get_json()

    def test_cannot_change_own_role(self, client, admin_headers, admin_a):
        resp = client.put(
            f"/api/access/users/{admin_a.id}/role",
            json={"role": "viewer"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_role_required(self, client, admin_headers, pending_user):
        resp = client.put(f"/api/access/users/{pending_user.id}/role", json={}, headers=admin_headers)
        assert resp.status_code == 400

    def test_invalid_role_rejected(self, client, admin_headers, pending_user):
        resp = client.put(
            f"/api/access/users/{pending_user.id}/role",
            json={"role": "owner"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
