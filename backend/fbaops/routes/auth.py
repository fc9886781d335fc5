# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/fbaops/routes/auth.py
"""
Authentication API routes

- Sign-up creates a user with no role (pending approval)
- Login returns a bearer token; the session picks an active organization,
  preferring the client's previous selection
- /session tells the client who it is, where it works and what it may do
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..exceptions import FbaOpsError
from ..permissions import permission_map
from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..validation import coerce_id, require_fields


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(context: session_service.SessionContext) -> dict:
    """Identity, memberships and permissions of a validated session."""
    return {
        "user": context.user.to_dict(),
        "memberships": [
            {"org_id": org.id, "org_name": org.name, "role": role.value}
            for org, role in context.memberships
        ],
        "org_id": context.org_id,
        "role": context.role.value if context.role else None,
        "pending_approval": context.pending_approval,
        "permissions": permission_map(context.role),
        "session": context.session.to_dict(),
    }


@auth_bp.post("/signup")
def signup_route():
    """
    Self-service sign-up.

    Request body:
    {
        "email": "buyer@example.com",   // required
        "password": "Str0ng!Pass",      // required
        "full_name": "Jane Buyer"       // optional
    }

    The account has no role until an admin approves it.
    """
    data = request.get_json(silent=True) or {}

    try:
        require_fields(data, "email", "password")
        user = auth_service.sign_up(data["email"], data["password"], data.get("full_name"))
        permission_service.log_security_event(
            user_id=user.id,
            event_type="USER_SIGNED_UP",
            success=True,
            resource=request.path,
            action=request.method,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        current_app.logger.info("User %s signed up (pending approval)", user.id)
        return jsonify({"user": user.to_dict(), "pending_approval": True}), 201
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to sign up user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Request body:
    {
        "email": "...",
        "password": "...",
        "previous_org_id": 2   // optional, organization selected last time
    }

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        user = auth_service.authenticate(email, password)

        if not user:
            permission_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=request.path,
                action=request.method,
                reason="Invalid credentials",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            previous_org_id=coerce_id(data.get("previous_org_id")),
            user_agent=user_agent,
            ip_address=ip_address,
        )
        context = session_service.validate_session(token)

        permission_service.log_security_event(
            user_id=user.id,
            event_type="LOGIN_SUCCESS",
            success=True,
            resource=request.path,
            action=request.method,
            ip_address=ip_address,
            user_agent=user_agent,
            org_id=context.org_id,
        )

        payload = _session_payload(context)
        payload["token"] = token
        payload["message"] = "Login successful"
        return jsonify(payload), 200

    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/session")
@require_auth
def session_route():
    """
    Current session: user, memberships, active organization, role,
    pending_approval flag and the {action: allowed} map for UI gating.
    """
    return jsonify(_session_payload(g.session_context)), 200


@auth_bp.post("/active-org")
@require_auth
def set_active_org_route():
    """
    Switch the organization this session works in.

    Request body: {"org_id": 2}
    """
    data = request.get_json(silent=True) or {}
    org_id = coerce_id(data.get("org_id"))
    if org_id is None:
        return jsonify({"error": "org_id required"}), 400

    try:
        context = session_service.set_active_org(g.session_context, org_id)
        return jsonify(_session_payload(context)), 200
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to switch organization")
        return jsonify({"error": "Internal server error"}), 500
