# Overview: Service-layer operations for purchase orders; encapsulates business logic and database work.

"""
Purchase Order Lifecycle Service

================================================================================
PURPOSE: Enforce the purchase order state machine
================================================================================

STATE MACHINE:
    draft -> submitted -> approved
                      \\-> cancelled   (rejection)

    draft:     Being prepared by its creator
    submitted: Waiting for an approver
    approved:  Terminal here; inbound shipments are derived from it
    cancelled: Terminal; rejected by an approver
    received:  Part of the status domain, no transition leads to it yet

RULES:
1. A purchase order is created as draft or submitted, never in another state
2. approve and reject only leave submitted; anything else is InvalidTransition
3. Nothing leaves approved, received or cancelled
4. total_cost_cents = sum(quantity * unit_cost_cents), computed once at creation
5. Header and items are written in one transaction

CONCURRENCY:
    Status changes are conditional updates (WHERE status = <expected>).
    When two approvers race on one submitted order, exactly one update
    matches a row; the other gets TransitionConflictError.

================================================================================
"""

from __future__ import annotations

from typing import Iterable, Literal

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    TransitionConflictError,
    ValidationError,
)
from ..extensions import db
from ..models import Product, PurchaseOrder, PurchaseOrderItem, Sku, Supplier
from ..permissions import Action, Role, can_perform
from . import audit_service
from .tenant_service import require_in_org
from ..validation import MAX_PRICE_CENTS, MAX_QUANTITY
from fbaops.time_utils import utcnow


PurchaseOrderStatus = Literal["draft", "submitted", "approved", "received", "cancelled"]

VALID_STATUSES = ("draft", "submitted", "approved", "received", "cancelled")
INITIAL_STATUSES = ("draft", "submitted")
OPEN_STATUSES = ("submitted", "approved")

# from_status -> statuses reachable from it
TRANSITIONS: dict[str, frozenset[str]] = {
    "draft": frozenset({"submitted"}),
    "submitted": frozenset({"approved", "cancelled"}),
    "approved": frozenset(),
    "received": frozenset(),
    "cancelled": frozenset(),
}


def validate_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(VALID_STATUSES)}"
        )


def can_transition(from_status: str, to_status: str) -> bool:
    """True when the state machine has an edge from_status -> to_status."""
    return to_status in TRANSITIONS.get(from_status, frozenset())


# =============================================================================
# ITEMS
# =============================================================================

def normalize_items(raw_items: Iterable[dict] | None, sku_costs: dict[int, int]) -> list[dict]:
    """
    Clean purchase order lines before insert.

    Each raw line is {"sku_id", "quantity", "unit_cost_cents"}.
    - lines without a sku_id, or with quantity <= 0, are dropped
    - a missing unit_cost_cents takes the SKU's default cost
    - a negative unit_cost_cents becomes 0

    Returns [{"sku_id", "quantity", "unit_cost_cents"}, ...] in input order.
    """
    items = []
    for raw in raw_items or []:
        sku_id = raw.get("sku_id")
        quantity = raw.get("quantity")
        if not sku_id or quantity is None or quantity <= 0:
            continue

        unit_cost_cents = raw.get("unit_cost_cents")
        if unit_cost_cents is None:
            unit_cost_cents = sku_costs.get(sku_id, 0)
        if unit_cost_cents < 0:
            unit_cost_cents = 0

        items.append({
            "sku_id": sku_id,
            "quantity": quantity,
            "unit_cost_cents": unit_cost_cents,
        })
    return items


def compute_total_cents(items: Iterable[dict]) -> int:
    return sum(item["quantity"] * item["unit_cost_cents"] for item in items)


def _sku_costs_in_org(sku_ids: set[int], org_id: int) -> dict[int, int]:
    if not sku_ids:
        return {}
    rows = (
        db.session.query(Sku.id, Sku.cost_cents)
        .join(Product, Product.id == Sku.product_id)
        .filter(Sku.id.in_(sku_ids), Product.org_id == org_id)
        .all()
    )
    return {sku_id: cost_cents for sku_id, cost_cents in rows}


# =============================================================================
# CREATE
# =============================================================================

def create_purchase_order(
    *,
    org_id: int,
    supplier_id: int | None,
    items: Iterable[dict] | None,
    created_by_user_id: int,
    status: str = "draft",
) -> PurchaseOrder:
    """
    Create a purchase order with its items in one transaction.

    Raises:
        ValidationError: bad initial status, missing/unknown supplier,
            no valid items, a SKU outside the organization, or a quantity,
            unit cost or total above the limits
        StorageError: database failure (nothing is written)
    """
    if status not in INITIAL_STATUSES:
        raise ValidationError("Purchase orders are created as draft or submitted")

    if not supplier_id:
        raise ValidationError("supplier_id is required")

    supplier = db.session.query(Supplier).filter_by(id=supplier_id, org_id=org_id).first()
    if not supplier:
        raise ValidationError("Supplier not found")

    raw_items = list(items or [])
    candidate_ids = {raw.get("sku_id") for raw in raw_items if raw.get("sku_id")}
    sku_costs = _sku_costs_in_org(candidate_ids, org_id)

    lines = normalize_items(raw_items, sku_costs)
    if not lines:
        raise ValidationError("At least one item with a SKU and a positive quantity is required")

    unknown = sorted({line["sku_id"] for line in lines} - set(sku_costs))
    if unknown:
        raise ValidationError(f"SKU not found: {', '.join(str(s) for s in unknown)}")

    for line in lines:
        if line["quantity"] > MAX_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")
        if line["unit_cost_cents"] > MAX_PRICE_CENTS:
            raise ValidationError("unit cost is too large")

    total_cost_cents = compute_total_cents(lines)
    if total_cost_cents > MAX_PRICE_CENTS:
        raise ValidationError("Purchase order total is too large")

    try:
        po = PurchaseOrder(
            org_id=org_id,
            supplier_id=supplier.id,
            status=status,
            total_cost_cents=total_cost_cents,
            created_by_user_id=created_by_user_id,
        )
        db.session.add(po)
        db.session.flush()

        for line in lines:
            db.session.add(PurchaseOrderItem(purchase_order_id=po.id, **line))

        audit_service.record(
            org_id=org_id,
            user_id=created_by_user_id,
            action="purchase_order.created",
            entity_type="purchase_order",
            entity_id=po.id,
            details={"status": status, "total_cost_cents": po.total_cost_cents, "items": len(lines)},
        )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e
    except Exception:
        db.session.rollback()
        raise

    return po


# =============================================================================
# READ
# =============================================================================

def get_purchase_order(
    po_id: int,
    org_id: int,
    *,
    viewer_user_id: int | None = None,
    can_view_all: bool = True,
) -> PurchaseOrder:
    """
    Load a purchase order of the organization.

    When can_view_all is False only the viewer's own orders are visible;
    anything else is reported as not found.
    """
    po = require_in_org(PurchaseOrder, po_id, org_id, "Purchase order")
    if not can_view_all and po.created_by_user_id != viewer_user_id:
        raise NotFoundError("Purchase order not found")
    return po


def list_purchase_orders(
    org_id: int,
    *,
    status: str | None = None,
    created_by_user_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[PurchaseOrder], int]:
    """Newest first. Returns (orders, total)."""
    query = db.session.query(PurchaseOrder).filter(PurchaseOrder.org_id == org_id)

    if status:
        validate_status(status)
        query = query.filter(PurchaseOrder.status == status)
    if created_by_user_id is not None:
        query = query.filter(PurchaseOrder.created_by_user_id == created_by_user_id)

    total = query.count()
    orders = (
        query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return orders, total


# =============================================================================
# TRANSITIONS
# =============================================================================

def transition_status(
    po_id: int,
    org_id: int,
    from_status: str,
    to_status: str,
    *,
    actor_user_id: int,
    audit_action: str,
    stamp_approval: bool = False,
    notes: str | None = None,
) -> PurchaseOrder:
    """
    Move a purchase order from_status -> to_status with a conditional update.

    The UPDATE only matches while the row is still in from_status; a lost
    race (zero rows) raises TransitionConflictError and writes nothing.
    With stamp_approval, approved_by/approved_at/approval_notes are set in
    the same statement.
    """
    validate_status(from_status)
    validate_status(to_status)
    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(f"Cannot move purchase order from {from_status} to {to_status}")

    now = utcnow()
    values = {
        "status": to_status,
        "updated_at": now,
        "version_id": PurchaseOrder.version_id + 1,
    }
    if stamp_approval:
        values.update(
            approved_by_user_id=actor_user_id,
            approved_at=now,
            approval_notes=notes,
        )

    stmt = (
        update(PurchaseOrder)
        .where(
            PurchaseOrder.id == po_id,
            PurchaseOrder.org_id == org_id,
            PurchaseOrder.status == from_status,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )

    try:
        result = db.session.execute(stmt)
        if result.rowcount != 1:
            db.session.rollback()
            raise TransitionConflictError(
                f"Purchase order {po_id} is no longer {from_status}"
            )

        audit_service.record(
            org_id=org_id,
            user_id=actor_user_id,
            action=audit_action,
            entity_type="purchase_order",
            entity_id=po_id,
            details={"from": from_status, "to": to_status, "notes": notes} if notes else {"from": from_status, "to": to_status},
        )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e

    po = db.session.get(PurchaseOrder, po_id)
    db.session.refresh(po)
    return po


def _require_status(po: PurchaseOrder, expected: str, verb: str) -> None:
    if po.status != expected:
        raise InvalidTransitionError(
            f"Cannot {verb} a purchase order in status '{po.status}' (must be {expected})"
        )


def submit_purchase_order(
    po_id: int,
    org_id: int,
    *,
    actor_user_id: int,
    actor_role: Role | str | None,
) -> PurchaseOrder:
    """
    draft -> submitted.

    The creator may submit their own draft; anyone else needs edit_po.
    """
    po = get_purchase_order(po_id, org_id)

    if po.created_by_user_id != actor_user_id and not can_perform(actor_role, Action.EDIT_PO):
        raise ForbiddenError("Only the creator can submit this purchase order")

    _require_status(po, "draft", "submit")
    return transition_status(
        po.id,
        org_id,
        "draft",
        "submitted",
        actor_user_id=actor_user_id,
        audit_action="purchase_order.submitted",
    )


def approve_purchase_order(
    po_id: int,
    org_id: int,
    *,
    actor_user_id: int,
    actor_role: Role | str | None,
    notes: str | None = None,
) -> PurchaseOrder:
    """submitted -> approved, stamping the approver, time and notes."""
    po = get_purchase_order(po_id, org_id)

    if not can_perform(actor_role, Action.APPROVE_PO):
        raise ForbiddenError("Missing permission: approve_po")

    _require_status(po, "submitted", "approve")
    return transition_status(
        po.id,
        org_id,
        "submitted",
        "approved",
        actor_user_id=actor_user_id,
        audit_action="purchase_order.approved",
        stamp_approval=True,
        notes=notes,
    )


def reject_purchase_order(
    po_id: int,
    org_id: int,
    *,
    actor_user_id: int,
    actor_role: Role | str | None,
    notes: str | None = None,
) -> PurchaseOrder:
    """
    submitted -> cancelled.

    Rejection stamps the same approval fields as approve; approval_notes
    holds the rejection reason.
    """
    po = get_purchase_order(po_id, org_id)

    if not can_perform(actor_role, Action.APPROVE_PO):
        raise ForbiddenError("Missing permission: approve_po")

    _require_status(po, "submitted", "reject")
    return transition_status(
        po.id,
        org_id,
        "submitted",
        "cancelled",
        actor_user_id=actor_user_id,
        audit_action="purchase_order.rejected",
        stamp_approval=True,
        notes=notes,
    )


def can_create_shipment(po: PurchaseOrder) -> bool:
    """Approved and without a shipment yet."""
    return po.status == "approved" and not po.shipments
