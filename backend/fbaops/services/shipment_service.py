# Overview: Service-layer operations for inbound shipments; encapsulates business logic and database work.

"""
Inbound Shipment Service

Derives inbound (FBA) shipments from approved purchase orders.

RULES:
1. The purchase order must belong to the organization and be approved
2. At most one shipment per purchase order (unique on purchase_order_id)
3. 1 <= cartons <= MAX_QUANTITY; weight_per_carton, length, width, height finite and >= 0
4. New shipments start in status "created"
5. reference = "SHIP-" + base36(epoch milliseconds), upper-cased, globally unique

Status moves freely between created, in_transit and delivered (no ordering
is enforced, delivered -> created is allowed).

REFERENCE COLLISIONS:
    The unique constraint on inbound_shipments.reference is the source of
    truth. On a collision the insert is rolled back, a new reference is
    generated and the insert retried, up to SHIPMENT_REFERENCE_ATTEMPTS
    times; after that DuplicateReferenceError is raised.
"""

from __future__ import annotations

import math

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..exceptions import (
    DuplicateReferenceError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..extensions import db
from ..models import InboundShipment, PurchaseOrder
from ..validation import MAX_QUANTITY
from . import audit_service
from .concurrency import run_with_retry
from .tenant_service import require_in_org
from fbaops.time_utils import epoch_millis, to_base36


SHIPMENT_STATUSES = ("created", "in_transit", "delivered")
REFERENCE_PREFIX = "SHIP-"
ALREADY_SHIPPED = "This purchase order already has a shipment"


def generate_shipment_reference(now_ms: int | None = None) -> str:
    """SHIP- followed by the upper-cased base36 epoch-millisecond timestamp."""
    if now_ms is None:
        now_ms = epoch_millis()
    return REFERENCE_PREFIX + to_base36(now_ms).upper()


def _is_reference_collision(exc: Exception) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return "reference" in message


def _is_second_shipment(exc: Exception) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return (
        "uq_inbound_shipments_purchase_order_id" in message
        or "inbound_shipments.purchase_order_id" in message
    )


def _has_shipment(po: PurchaseOrder) -> bool:
    return bool(po.shipments)


def _validate_measurements(cartons, weight_per_carton, length, width, height) -> None:
    if cartons is None or cartons < 1:
        raise ValidationError("cartons must be at least 1")
    if cartons > MAX_QUANTITY:
        raise ValidationError(f"cartons cannot exceed {MAX_QUANTITY}")
    for name, value in (
        ("weight_per_carton", weight_per_carton),
        ("length", length),
        ("width", width),
        ("height", height),
    ):
        if value is None or not math.isfinite(value) or value < 0:
            raise ValidationError(f"{name} must be zero or greater")


def create_shipment(
    *,
    po_id: int,
    org_id: int,
    created_by_user_id: int,
    cartons: int,
    weight_per_carton: float = 0,
    length: float = 0,
    width: float = 0,
    height: float = 0,
    reference_factory=generate_shipment_reference,
) -> InboundShipment:
    """
    Create the inbound shipment of an approved purchase order.

    Raises:
        NotFoundError: purchase order missing or in another organization
        InvalidTransitionError: order not approved, or already has a shipment
        ValidationError: cartons/weight/dimensions out of range
        DuplicateReferenceError: every generated reference collided
        StorageError: any other database failure
    """
    po = require_in_org(PurchaseOrder, po_id, org_id, "Purchase order")

    if po.status != "approved":
        raise InvalidTransitionError(
            f"Shipments can only be created from approved purchase orders (status is '{po.status}')"
        )

    if _has_shipment(po):
        raise InvalidTransitionError(ALREADY_SHIPPED)

    _validate_measurements(cartons, weight_per_carton, length, width, height)

    attempts = current_app.config.get("SHIPMENT_REFERENCE_ATTEMPTS", 3)
    backoff = current_app.config.get("SHIPMENT_REFERENCE_BACKOFF", 0.05)

    def _insert() -> InboundShipment:
        shipment = InboundShipment(
            purchase_order_id=po_id,
            org_id=org_id,
            status="created",
            reference=reference_factory(),
            cartons=cartons,
            weight_per_carton=weight_per_carton,
            length=length,
            width=width,
            height=height,
            created_by_user_id=created_by_user_id,
        )
        db.session.add(shipment)
        db.session.flush()

        audit_service.record(
            org_id=org_id,
            user_id=created_by_user_id,
            action="shipment.created",
            entity_type="inbound_shipment",
            entity_id=shipment.id,
            details={"purchase_order_id": po_id, "reference": shipment.reference, "cartons": cartons},
        )
        db.session.commit()
        return shipment

    try:
        return run_with_retry(
            _insert,
            attempts=attempts,
            backoff_base=backoff,
            retry_on=(IntegrityError,),
            should_retry=_is_reference_collision,
        )
    except IntegrityError as e:
        if _is_reference_collision(e):
            raise DuplicateReferenceError(
                f"Could not generate a unique shipment reference after {attempts} attempts"
            ) from e
        if _is_second_shipment(e):
            # lost a race with a concurrent create for the same order
            raise InvalidTransitionError(ALREADY_SHIPPED) from e
        raise StorageError(str(e.orig)) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e


def get_shipment(
    shipment_id: int,
    org_id: int,
    *,
    viewer_user_id: int | None = None,
    can_view_all: bool = True,
) -> InboundShipment:
    """
    Load a shipment of the organization.

    When can_view_all is False only shipments of the viewer's own purchase
    orders are visible; anything else is reported as not found.
    """
    shipment = require_in_org(InboundShipment, shipment_id, org_id, "Shipment")
    if not can_view_all and shipment.purchase_order.created_by_user_id != viewer_user_id:
        raise NotFoundError("Shipment not found")
    return shipment


def list_shipments(
    org_id: int,
    *,
    purchase_order_id: int | None = None,
    status: str | None = None,
    created_by_user_id: int | None = None,
) -> list[InboundShipment]:
    """
    Shipments of the organization, newest first.

    created_by_user_id restricts the list to shipments of that user's
    purchase orders.
    """
    query = db.session.query(InboundShipment).filter(InboundShipment.org_id == org_id)
    if purchase_order_id is not None:
        query = query.filter(InboundShipment.purchase_order_id == purchase_order_id)
    if status:
        if status not in SHIPMENT_STATUSES:
            raise ValidationError(f"Invalid shipment status '{status}'")
        query = query.filter(InboundShipment.status == status)
    if created_by_user_id is not None:
        query = query.join(PurchaseOrder, PurchaseOrder.id == InboundShipment.purchase_order_id).filter(
            PurchaseOrder.created_by_user_id == created_by_user_id
        )
    return query.order_by(InboundShipment.created_at.desc(), InboundShipment.id.desc()).all()


def update_shipment_status(
    *,
    shipment_id: int,
    org_id: int,
    status: str,
    actor_user_id: int,
) -> InboundShipment:
    """
    Set a shipment's status.

    Any of created/in_transit/delivered may follow any other.
    """
    if status not in SHIPMENT_STATUSES:
        raise ValidationError(
            f"Invalid shipment status '{status}'. Must be one of: {', '.join(SHIPMENT_STATUSES)}"
        )

    shipment = get_shipment(shipment_id, org_id)
    previous = shipment.status

    try:
        shipment.status = status
        audit_service.record(
            org_id=org_id,
            user_id=actor_user_id,
            action="shipment.status_changed",
            entity_type="inbound_shipment",
            entity_id=shipment.id,
            details={"from": previous, "to": status},
        )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e

    return shipment
