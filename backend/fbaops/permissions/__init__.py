# Overview: Permission system package.
# Re-exports all public APIs.

from .actions import Action, ACTION_DEFINITIONS, get_action_definition
from .roles import Role, ROLE_DESCRIPTIONS
from .policy import ROLE_ACTIONS, MEMBER_ACTIONS, can_perform, allowed_actions, permission_map

__all__ = [
    "Action",
    "ACTION_DEFINITIONS",
    "get_action_definition",
    "Role",
    "ROLE_DESCRIPTIONS",
    "ROLE_ACTIONS",
    "MEMBER_ACTIONS",
    "can_perform",
    "allowed_actions",
    "permission_map",
]
