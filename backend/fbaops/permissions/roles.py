# Overview: Organization roles a member can hold.

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Membership role within one organization. One role per (user, organization)."""
    ADMIN = "admin"
    MANAGER = "manager"
    PURCHASING = "purchasing"
    WAREHOUSE = "warehouse"
    ACCOUNTING = "accounting"
    VIEWER = "viewer"

    @classmethod
    def parse(cls, value: "Role | str | None") -> "Role | None":
        """
        Coerce a stored or client-supplied value into a Role.

        None stays None (pending approval). Unknown strings raise ValueError.
        """
        if value is None or isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


ROLE_DESCRIPTIONS = {
    Role.ADMIN: "Full access: approvals, shipments, users and settings",
    Role.MANAGER: "Team lead; creates purchase orders",
    Role.PURCHASING: "Buyer; creates purchase orders",
    Role.WAREHOUSE: "Receiving and stock handling",
    Role.ACCOUNTING: "Finance and cost tracking",
    Role.VIEWER: "Read-mostly member",
}
