# Overview: Service-layer operations for access approval; assigns roles to members and pending sign-ups.

"""
Access-Approval Administration

Admins see the members of their organization together with every user who
signed up but was never given a role anywhere (pending approval). Assigning
a role is an upsert of the (user, organization) membership:
- no membership yet -> insert (this is the approval of a pending user)
- membership exists -> role replaced, any role to any role

There are no transition restrictions between roles. The only guard, not
letting admins change their own role, lives in the route.
"""

from __future__ import annotations

from sqlalchemy import and_, or_
from sqlalchemy.orm import aliased
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import NotFoundError, StorageError, ValidationError
from ..extensions import db
from ..models import Membership, User
from ..permissions import Role
from . import audit_service
from .tenant_service import validate_org_active
from fbaops.time_utils import to_utc_z


def list_users(org_id: int) -> list[dict]:
    """
    Users an admin of org_id can manage, oldest sign-up first.

    Returns [{id, full_name, email, joined_at, current_role}], where
    current_role is None for pending users.
    """
    other = aliased(Membership)
    any_membership = db.session.query(other.id).filter(other.user_id == User.id).exists()

    rows = (
        db.session.query(User, Membership.role)
        .outerjoin(
            Membership,
            and_(Membership.user_id == User.id, Membership.org_id == org_id),
        )
        .filter(
            User.is_active.is_(True),
            or_(Membership.id.isnot(None), ~any_membership),
        )
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )

    return [
        {
            "id": user.id,
            "full_name": user.full_name,
            "email": user.email,
            "joined_at": to_utc_z(user.created_at),
            "current_role": role,
        }
        for user, role in rows
    ]


def set_role(
    *,
    org_id: int,
    user_id: int,
    role: Role | str,
    actor_user_id: int | None,
    allow_other_org_members: bool = False,
) -> Membership:
    """
    Give user_id the role in org_id, creating the membership if needed.

    Only users list_users(org_id) would show can be targeted: members of
    org_id and users with no membership anywhere. Members of other
    organizations are reported as not found, like unknown ids.
    allow_other_org_members lifts that for operator bootstrap (CLI).

    Raises:
        ValidationError: unknown role
        NotFoundError: user or organization does not exist or is deactivated,
            or the user belongs only to other organizations
        StorageError: database failure
    """
    try:
        role = Role.parse(role)
    except ValueError:
        raise ValidationError(
            f"Invalid role '{role}'. Must be one of: {', '.join(r.value for r in Role)}"
        )
    if role is None:
        raise ValidationError("role is required")

    validate_org_active(org_id)

    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        raise NotFoundError("User not found")

    membership = db.session.query(Membership).filter_by(user_id=user_id, org_id=org_id).first()
    if membership is None and not allow_other_org_members:
        if db.session.query(Membership.id).filter_by(user_id=user_id).first() is not None:
            raise NotFoundError("User not found")
    previous = membership.role if membership else None

    try:
        if membership:
            membership.role = role.value
        else:
            membership = Membership(user_id=user_id, org_id=org_id, role=role.value)
            db.session.add(membership)
        db.session.flush()

        audit_service.record(
            org_id=org_id,
            user_id=actor_user_id,
            action="membership.role_assigned",
            entity_type="user",
            entity_id=user_id,
            details={"from": previous, "to": role.value},
        )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e

    return membership
