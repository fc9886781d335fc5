"""
Authentication API tests.

Verifies:
- Sign-up creates a pending identity (no membership, no permissions)
- Login/logout issue and revoke bearer tokens; failures are logged
- /session reports memberships, active organization and permission map
- Organization switching is limited to the caller's memberships
"""

import pytest

from fbaops.exceptions import ValidationError
from fbaops.models import Membership, SecurityEvent, User
from fbaops.services import auth_service

from conftest import PASSWORD, auth_headers, get_auth_token


class TestPasswordRules:

    @pytest.mark.parametrize(
        "password",
        ["short1!", "alllowercase1!", "ALLUPPERCASE1!", "NoDigitsHere!", "NoSpecial123"],
    )
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(ValidationError):
            auth_service.validate_password_strength(password)

    def test_strong_password_accepted(self):
        auth_service.validate_password_strength(PASSWORD)

    def test_hash_round_trip(self, app):
        hashed = auth_service.hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert auth_service.verify_password(PASSWORD, hashed) is True
        assert auth_service.verify_password("wrong", hashed) is False


class TestSignup:

    def test_signup_is_pending(self, client, db_session):
        resp = client.post(
            "/api/auth/signup",
            json={"email": "  New.Buyer@Example.com ", "password": PASSWORD, "full_name": "New Buyer"},
        )
        assert resp.status_code == 201

        data = resp.get_json()
        assert data["pending_approval"] is True
        assert data["user"]["email"] == "new.buyer@example.com"

        user = db_session.query(User).filter_by(email="new.buyer@example.com").one()
        assert db_session.query(Membership).filter_by(user_id=user.id).count() == 0

    def test_duplicate_email(self, client, buyer_a):
        resp = client.post("/api/auth/signup", json={"email": buyer_a.email.upper(), "password": PASSWORD})
        assert resp.status_code == 400

    def test_weak_password(self, client, db_session):
        resp = client.post("/api/auth/signup", json={"email": "weak@example.com", "password": "password"})
        assert resp.status_code == 400

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/auth/signup", json={"email": "x@example.com"}).status_code == 400


class TestLogin:

    def test_login_member(self, client, org_a, buyer_a):
        resp = client.post("/api/auth/login", json={"email": buyer_a.email, "password": PASSWORD})
        assert resp.status_code == 200

        data = resp.get_json()
        assert data["token"]
        assert data["org_id"] == org_a.id
        assert data["role"] == "purchasing"
        assert data["pending_approval"] is False
        assert data["permissions"]["create_po"] is True
        assert data["permissions"]["approve_po"] is False
        assert data["memberships"] == [{"org_id": org_a.id, "org_name": org_a.name, "role": "purchasing"}]

    def test_login_pending(self, client, pending_user):
        data = client.post("/api/auth/login", json={"email": pending_user.email, "password": PASSWORD}).get_json()
        assert data["pending_approval"] is True
        assert data["org_id"] is None
        assert data["role"] is None
        assert not any(data["permissions"].values())

    def test_wrong_password_logged(self, client, db_session, buyer_a):
        resp = client.post("/api/auth/login", json={"email": buyer_a.email, "password": "Wrong123!"})
        assert resp.status_code == 401
        assert db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_unknown_email(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
        assert resp.status_code == 401

    def test_deactivated_user(self, client, db_session, buyer_a):
        buyer_a.is_active = False
        db_session.commit()
        resp = client.post("/api/auth/login", json={"email": buyer_a.email, "password": PASSWORD})
        assert resp.status_code == 401

    def test_previous_org_is_restored(self, client, make_user, org_a, org_b):
        user = make_user("multi@example.com", {org_a.id: "admin", org_b.id: "viewer"})
        data = client.post(
            "/api/auth/login",
            json={"email": user.email, "password": PASSWORD, "previous_org_id": org_b.id},
        ).get_json()
        assert data["org_id"] == org_b.id
        assert data["role"] == "viewer"

    def test_logout_revokes_token(self, client, buyer_a):
        token = get_auth_token(client, buyer_a.email)
        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/session", headers=auth_headers(token)).status_code == 401
        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 401


class TestSessionEndpoint:

    def test_session_payload(self, client, org_a, admin_a, admin_headers):
        data = client.get("/api/auth/session", headers=admin_headers).get_json()
        assert data["user"]["id"] == admin_a.id
        assert data["org_id"] == org_a.id
        assert data["role"] == "admin"
        assert all(data["permissions"].values())

    def test_switch_active_org(self, client, make_user, org_a, org_b):
        user = make_user("multi@example.com", {org_a.id: "admin", org_b.id: "viewer"})
        headers = auth_headers(get_auth_token(client, user.email))

        resp = client.post("/api/auth/active-org", json={"org_id": org_b.id}, headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["role"] == "viewer"

        data = client.get("/api/auth/session", headers=headers).get_json()
        assert data["org_id"] == org_b.id

    def test_switch_to_foreign_org_denied(self, client, org_b, buyer_headers):
        resp = client.post("/api/auth/active-org", json={"org_id": org_b.id}, headers=buyer_headers)
        assert resp.status_code == 403

    def test_switch_requires_org_id(self, client, buyer_headers):
        assert client.post("/api/auth/active-org", json={}, headers=buyer_headers).status_code == 400
