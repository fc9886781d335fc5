# Overview: Static role -> action table and the pure can_perform decision.

"""
Permission policy.

Authorization is binary for every privileged action: admins may do
everything, every other role may only create purchase orders and view the
dashboard. Members without a role (pending approval) may do nothing.

The enumerated roles are kept for display and audit; widening a role's
rights means editing ROLE_ACTIONS, nothing else.
"""

from __future__ import annotations

from .actions import Action
from .roles import Role


MEMBER_ACTIONS = frozenset({
    Action.CREATE_PO,
    Action.VIEW_DASHBOARD,
})

ROLE_ACTIONS: dict[Role, frozenset[Action]] = {
    Role.ADMIN: frozenset(Action),
    Role.MANAGER: MEMBER_ACTIONS,
    Role.PURCHASING: MEMBER_ACTIONS,
    Role.WAREHOUSE: MEMBER_ACTIONS,
    Role.ACCOUNTING: MEMBER_ACTIONS,
    Role.VIEWER: MEMBER_ACTIONS,
}


def can_perform(role: Role | str | None, action: Action | str) -> bool:
    """
    Decide whether a role may perform an action.

    No side effects. A missing role denies everything, including the
    dashboard. Unknown role or action values deny rather than raise.
    """
    if role is None:
        return False
    try:
        role = Role.parse(role)
        action = Action(action)
    except ValueError:
        return False
    return action in ROLE_ACTIONS.get(role, frozenset())


def allowed_actions(role: Role | str | None) -> list[Action]:
    """Actions permitted for a role, in declaration order."""
    return [action for action in Action if can_perform(role, action)]


def permission_map(role: Role | str | None) -> dict[str, bool]:
    """{action_code: allowed} for every action; shape consumed by clients to gate UI."""
    return {action.value: can_perform(role, action) for action in Action}
