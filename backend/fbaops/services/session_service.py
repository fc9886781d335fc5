# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service with Organization Selection

WHY: Secure session management with automatic timeout and revocation.
Tokens are cryptographically secure, hashed in database, and time-limited.

MULTI-TENANT: A user may belong to several organizations. Each session
remembers which one it is working in (SessionToken.active_org_id). The
selection is re-checked against the user's memberships on every
validation, so:
- a pending user who gets approved gains access on the next request
- a membership that disappears moves the session to another org (or none)

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_ABSOLUTE_TIMEOUT_HOURS, default 24)
- Idle timeout (SESSION_IDLE_TIMEOUT_HOURS, default 2)
- Revocable on logout or security events
- Tracks client IP and user agent for security monitoring
"""

import secrets
import hashlib
from dataclasses import dataclass, field
from datetime import timedelta

from flask import current_app

from ..exceptions import ForbiddenError, NotAuthenticatedError
from ..extensions import db
from ..models import SessionToken, User, Organization
from ..permissions import Role
from . import membership_service
from fbaops.time_utils import utcnow


@dataclass
class SessionContext:
    """
    Complete session context returned by validate_session.

    org_id and role are None while the user is pending approval.
    memberships holds every (organization, role) pair, for org switching.
    """
    user: User
    session: SessionToken
    org_id: int | None
    role: Role | None
    memberships: list[tuple[Organization, Role]] = field(default_factory=list)

    @property
    def pending_approval(self) -> bool:
        return not self.memberships


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_TIMEOUT_HOURS", 2))


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _role_for(memberships, org_id: int | None) -> Role | None:
    for org, role in memberships:
        if org.id == org_id:
            return role
    return None


def create_session(
    user_id: int,
    previous_org_id: int | None = None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    The active organization is chosen from the user's memberships,
    preferring previous_org_id (the client's remembered selection).
    Pending users get a session with no active organization.

    Returns (session_record, plaintext_token).

    Raises NotAuthenticatedError if the user is unknown or inactive.
    """
    memberships = membership_service.resolve_memberships(user_id)
    active_org = membership_service.select_active_organization(memberships, previous_org_id)

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        active_org_id=active_org.id if active_org else None,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if:
    - Token is invalid, expired, or revoked
    - Session has been idle too long (auto-revoked)
    - User account is deactivated (auto-revoked)

    Memberships are resolved fresh on every call and the active
    organization re-selected from them; last_used_at is updated.
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    memberships = membership_service.resolve_memberships(user.id)
    active_org = membership_service.select_active_organization(memberships, session.active_org_id)
    org_id = active_org.id if active_org else None

    session.active_org_id = org_id
    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        org_id=org_id,
        role=_role_for(memberships, org_id),
        memberships=memberships,
    )


def set_active_org(context: SessionContext, org_id: int) -> SessionContext:
    """
    Switch the organization a session works in.

    Raises ForbiddenError if the user has no membership in org_id.
    """
    if context is None:
        raise NotAuthenticatedError("Authentication required")

    role = _role_for(context.memberships, org_id)
    if role is None:
        raise ForbiddenError("Not a member of this organization")

    context.session.active_org_id = org_id
    db.session.commit()

    context.org_id = org_id
    context.role = role
    return context


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """
    Revoke session token.

    Returns True if session was revoked, False if not found.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    """
    Revoke all active sessions for a user.

    Returns count of sessions revoked.
    """
    now = utcnow()

    sessions = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False,
    ).all()

    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason

    db.session.commit()
    return len(sessions)


def cleanup_expired_sessions(older_than_days: int = 30) -> int:
    """
    Delete expired and revoked sessions older than older_than_days.

    Returns count of sessions deleted. Run periodically
    (flask maintenance cleanup-sessions).
    """
    now = utcnow()
    cutoff = now - timedelta(days=older_than_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
