# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission Checking and Security Event Logging

WHY: Enforce role-based access control and create audit trail.
Denied checks are logged for security monitoring.

The decision itself is the pure permissions.can_perform; this module adds
the side effects (security events) and the exception mapping:
- no role (pending approval) -> PendingApprovalError
- role without the action      -> ForbiddenError

DESIGN PRINCIPLES:
- Fail closed: Deny by default, require explicit grant in ROLE_ACTIONS
- Log denials only: Permission grants are not logged
- Tenant isolation: Security events carry the active org_id
"""

from ..exceptions import ForbiddenError, PendingApprovalError
from ..extensions import db
from ..models import SecurityEvent
from ..permissions import Action, Role, can_perform
from fbaops.time_utils import utcnow


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    org_id: int | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    Commits immediately. Call it before a request's own writes, never in
    the middle of them.

    event_type examples:
    - PERMISSION_DENIED
    - PENDING_APPROVAL
    - LOGIN_FAILED
    - LOGIN_SUCCESS
    - LOGOUT
    - ROLE_ASSIGNED
    - CROSS_TENANT_ACCESS_DENIED
    """
    event = SecurityEvent(
        user_id=user_id,
        org_id=org_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def require_action(
    user_id: int,
    role: Role | str | None,
    action: Action,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    org_id: int | None = None,
) -> None:
    """
    Require that role may perform action.

    Raises PendingApprovalError when role is None, ForbiddenError when the
    role lacks the action. Both cases are logged as security events.
    """
    if role is None:
        log_security_event(
            user_id=user_id,
            event_type="PENDING_APPROVAL",
            success=False,
            resource=resource,
            action=Action(action).value,
            reason="No role assigned",
            ip_address=ip_address,
            user_agent=user_agent,
            org_id=org_id,
        )
        raise PendingApprovalError("Your account is pending approval")

    if not can_perform(role, action):
        log_security_event(
            user_id=user_id,
            event_type="PERMISSION_DENIED",
            success=False,
            resource=resource,
            action=Action(action).value,
            reason=f"Role {getattr(role, 'value', role)} lacks {Action(action).value}",
            ip_address=ip_address,
            user_agent=user_agent,
            org_id=org_id,
        )
        raise ForbiddenError(f"Missing permission: {Action(action).value}")


def list_security_events(org_id: int, *, limit: int = 100, event_type: str | None = None) -> list[SecurityEvent]:
    query = db.session.query(SecurityEvent).filter_by(org_id=org_id)
    if event_type:
        query = query.filter_by(event_type=event_type)
    return query.order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc()).limit(limit).all()
