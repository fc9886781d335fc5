# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .exceptions import ForbiddenError, PendingApprovalError
from .permissions import Action
from .services import session_service, permission_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'session_context')


def _pending_response():
    return jsonify({
        "error": "Your account is pending approval",
        "pending_approval": True,
    }), 403


def require_auth(f):
    """
    Require authentication and establish request context.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.org_id: Active organization of the session (None while pending)
    - g.role: Role held in g.org_id (None while pending)
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired, idle or revoked token
    - User account deactivated

    Pending users pass; member routes add @require_member or @require_action.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.org_id = context.org_id
        g.role = context.role
        g.session_context = context
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_member(f):
    """
    Require a role in the active organization.

    Users without one are pending approval and get 403 with
    pending_approval: true so clients show the holding screen.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401

        if g.org_id is None or g.role is None:
            permission_service.log_security_event(
                user_id=g.current_user.id,
                event_type="PENDING_APPROVAL",
                success=False,
                resource=request.path,
                action=request.method,
                reason="No role assigned",
                ip_address=request.remote_addr,
                user_agent=request.headers.get("User-Agent"),
                org_id=g.org_id,
            )
            return _pending_response()

        return f(*args, **kwargs)

    return decorated_function


def require_action(action: Action):
    """
    Require that the caller's role may perform action.

    Denials are logged to security_events by permission_service.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_action(
                    user_id=g.current_user.id,
                    role=g.role,
                    action=action,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                    org_id=g.org_id,
                )
            except PendingApprovalError:
                return _pending_response()
            except ForbiddenError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": Action(action).value,
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
