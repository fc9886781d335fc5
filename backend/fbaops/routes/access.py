# Overview: Flask API routes for access approvals; parses input and returns JSON responses.

"""
Access-Approval Routes

SECURITY: manage_users required.
- Lists members of the active organization and pending sign-ups
- Assigns roles (approval of a pending user is the first assignment)
- Admins cannot change their own role here
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_action
from ..exceptions import FbaOpsError
from ..permissions import Action, Role, ROLE_DESCRIPTIONS
from ..services import access_service, permission_service


access_bp = Blueprint("access", __name__, url_prefix="/api/access")


@access_bp.get("/users")
@require_auth
@require_action(Action.MANAGE_USERS)
def list_users_route():
    """
    Returns:
        {items: [{id, full_name, email, joined_at, current_role}], roles: [...]}

    current_role is null for users pending approval.
    """
    users = access_service.list_users(g.org_id)
    return jsonify({
        "items": users,
        "count": len(users),
        "pending_count": sum(1 for u in users if u["current_role"] is None),
        "roles": [
            {"code": role.value, "description": ROLE_DESCRIPTIONS[role]}
            for role in Role
        ],
    })


@access_bp.put("/users/<int:user_id>/role")
@require_auth
@require_action(Action.MANAGE_USERS)
def set_role_route(user_id: int):
    """
    Assign a role in the active organization.

    Request body: {"role": "purchasing"}
    """
    if user_id == g.current_user.id:
        return jsonify({"error": "You cannot change your own role"}), 400

    data = request.get_json(silent=True) or {}
    role = data.get("role")
    if not role:
        return jsonify({"error": "role required"}), 400

    try:
        membership = access_service.set_role(
            org_id=g.org_id,
            user_id=user_id,
            role=role,
            actor_user_id=g.current_user.id,
        )
        permission_service.log_security_event(
            user_id=g.current_user.id,
            event_type="ROLE_ASSIGNED",
            success=True,
            resource=request.path,
            action=request.method,
            reason=f"User {user_id} -> {membership.role}",
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
            org_id=g.org_id,
        )
        current_app.logger.info(
            "Role %s assigned to user %s in org %s by user %s",
            membership.role, user_id, g.org_id, g.current_user.id,
        )
        return jsonify(membership.to_dict())
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to assign role")
        return jsonify({"error": "Internal server error"}), 500
