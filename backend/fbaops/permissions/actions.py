# Overview: Action definitions checked by the permission policy.
# Each definition is: (action, name, description)

from __future__ import annotations

from enum import Enum


class Action(str, Enum):
    """Every gated operation in the system."""
    CREATE_PO = "create_po"
    VIEW_ALL_POS = "view_all_pos"
    APPROVE_PO = "approve_po"
    EDIT_PO = "edit_po"
    DELETE_PO = "delete_po"
    CREATE_SHIPMENT = "create_shipment"
    MANAGE_SHIPMENTS = "manage_shipments"
    MANAGE_USERS = "manage_users"
    ACCESS_SETTINGS = "access_settings"
    VIEW_DASHBOARD = "view_dashboard"


ACTION_DEFINITIONS = [
    (Action.CREATE_PO, "Create Purchase Order", "Draft or submit a purchase order"),
    (Action.VIEW_ALL_POS, "View All Purchase Orders", "See every purchase order in the organization, not just your own"),
    (Action.APPROVE_PO, "Approve Purchase Order", "Approve or reject submitted purchase orders"),
    (Action.EDIT_PO, "Edit Purchase Order", "Change purchase orders created by others"),
    (Action.DELETE_PO, "Delete Purchase Order", "Remove purchase orders"),
    (Action.CREATE_SHIPMENT, "Create Shipment", "Create an inbound shipment from an approved purchase order"),
    (Action.MANAGE_SHIPMENTS, "Manage Shipments", "Update inbound shipment status"),
    (Action.MANAGE_USERS, "Manage Users", "Approve sign-ups and assign roles"),
    (Action.ACCESS_SETTINGS, "Access Settings", "Organization settings and audit history"),
    (Action.VIEW_DASHBOARD, "View Dashboard", "Operational dashboard"),
]


def get_action_definition(action):
    """Get full definition for an action."""
    for act, name, description in ACTION_DEFINITIONS:
        if act == action:
            return {
                "code": act.value,
                "name": name,
                "description": description,
            }
    return None
