# Overview: Service-layer operations for memberships; resolves organizations and roles for a user.

"""
Identity & Membership Resolver

Turns an authenticated user into:
- the organizations they belong to, each with the role held there
- the organization the current session works in

An empty membership list is not an error. It is the pending-approval
state of a freshly signed-up user.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from ..exceptions import NotAuthenticatedError
from ..extensions import db
from ..models import Membership, Organization, User
from ..permissions import Role


def resolve_memberships(user_id: int | None) -> list[tuple[Organization, Role]]:
    """
    List (organization, role) pairs for a user.

    Only active organizations are returned, ordered by organization id so
    the "first" organization is stable across calls.

    Raises:
        NotAuthenticatedError: user_id is missing, unknown or deactivated
    """
    if user_id is None:
        raise NotAuthenticatedError("Authentication required")

    user = db.session.query(User).filter_by(id=user_id).first()
    if not user or not user.is_active:
        raise NotAuthenticatedError("Authentication required")

    rows = (
        db.session.query(Membership, Organization)
        .join(Organization, Organization.id == Membership.org_id)
        .filter(
            Membership.user_id == user_id,
            Organization.is_active.is_(True),
        )
        .order_by(Organization.id.asc())
        .all()
    )

    return [(org, Role.parse(membership.role)) for membership, org in rows]


def select_active_organization(
    candidates: Sequence[Organization] | Iterable[tuple[Organization, Role]],
    previous_selection_id: int | None = None,
) -> Organization | None:
    """
    Pick the organization a session works in.

    Reuses previous_selection_id when it is still among the candidates,
    otherwise takes the first candidate. No candidates -> None.

    Accepts either plain organizations or the (organization, role) pairs
    returned by resolve_memberships.
    """
    orgs = [c[0] if isinstance(c, tuple) else c for c in candidates]
    if not orgs:
        return None

    if previous_selection_id is not None:
        for org in orgs:
            if org.id == previous_selection_id:
                return org

    return orgs[0]


def get_membership(user_id: int, org_id: int) -> Membership | None:
    return db.session.query(Membership).filter_by(user_id=user_id, org_id=org_id).first()


def get_role(user_id: int, org_id: int | None) -> Role | None:
    """Role held in one organization, or None (pending / not a member)."""
    if org_id is None:
        return None
    membership = get_membership(user_id, org_id)
    if not membership:
        return None
    return Role.parse(membership.role)


def is_pending(user_id: int) -> bool:
    """True when the user holds no membership anywhere."""
    return not db.session.query(Membership.id).filter_by(user_id=user_id).first()


def list_members(org_id: int) -> list[Membership]:
    return (
        db.session.query(Membership)
        .filter_by(org_id=org_id)
        .order_by(Membership.created_at.asc(), Membership.id.asc())
        .all()
    )
