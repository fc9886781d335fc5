# Overview: Service-layer operations for the dashboard summary.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import InboundShipment, PurchaseOrder
from .purchase_order_service import OPEN_STATUSES, VALID_STATUSES
from .shipment_service import SHIPMENT_STATUSES


def get_summary(org_id: int, *, created_by_user_id: int | None = None) -> dict:
    """
    Headline figures for the dashboard.

    created_by_user_id limits every figure to that user's purchase orders
    (and the shipments derived from them).
    """
    po_query = db.session.query(PurchaseOrder.status, func.count(PurchaseOrder.id), func.coalesce(func.sum(PurchaseOrder.total_cost_cents), 0)).filter(
        PurchaseOrder.org_id == org_id
    )
    if created_by_user_id is not None:
        po_query = po_query.filter(PurchaseOrder.created_by_user_id == created_by_user_id)
    po_rows = po_query.group_by(PurchaseOrder.status).all()

    po_counts = {status: 0 for status in VALID_STATUSES}
    open_value_cents = 0
    for status, count, value in po_rows:
        po_counts[status] = count
        if status in OPEN_STATUSES:
            open_value_cents += int(value)

    shipment_query = db.session.query(InboundShipment.status, func.count(InboundShipment.id)).filter(
        InboundShipment.org_id == org_id
    )
    if created_by_user_id is not None:
        shipment_query = shipment_query.join(
            PurchaseOrder, PurchaseOrder.id == InboundShipment.purchase_order_id
        ).filter(PurchaseOrder.created_by_user_id == created_by_user_id)
    shipment_rows = shipment_query.group_by(InboundShipment.status).all()

    shipment_counts = {status: 0 for status in SHIPMENT_STATUSES}
    for status, count in shipment_rows:
        shipment_counts[status] = count

    return {
        "purchase_orders": {
            "total": sum(po_counts.values()),
            "by_status": po_counts,
            "open_value_cents": open_value_cents,
            "pending_approval": po_counts["submitted"],
        },
        "shipments": {
            "total": sum(shipment_counts.values()),
            "by_status": shipment_counts,
        },
    }
