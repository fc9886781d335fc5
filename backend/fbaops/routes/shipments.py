# Overview: Flask API routes for inbound shipment operations; parses input and returns JSON responses.

"""
Inbound Shipment Routes

SECURITY:
- Listing and reading require a role in the active organization; members without
  view_all_pos only see shipments of their own purchase orders
- Creating a shipment requires create_shipment
- Changing a shipment's status requires manage_shipments
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_member, require_action
from ..exceptions import FbaOpsError
from ..permissions import Action, can_perform
from ..services import shipment_service
from ..validation import coerce_int, coerce_float


shipments_bp = Blueprint("shipments", __name__, url_prefix="/api")


def _measurement(data: dict, name: str):
    # absent means 0; unparsable or non-finite stays None and fails validation
    if data.get(name) is None:
        return 0.0
    return coerce_float(data.get(name))


@shipments_bp.get("/shipments")
@require_auth
@require_member
def list_shipments_route():
    """
    Query parameters:
    - purchase_order_id: only shipments of this order
    - status: created|in_transit|delivered
    """
    own_only = None if can_perform(g.role, Action.VIEW_ALL_POS) else g.current_user.id
    try:
        shipments = shipment_service.list_shipments(
            g.org_id,
            purchase_order_id=request.args.get("purchase_order_id", type=int),
            status=request.args.get("status") or None,
            created_by_user_id=own_only,
        )
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code

    return jsonify({"items": [s.to_dict() for s in shipments], "count": len(shipments)})


@shipments_bp.get("/shipments/<int:shipment_id>")
@require_auth
@require_member
def get_shipment_route(shipment_id: int):
    """Shipment detail. Members without view_all_pos only see their own orders' shipments."""
    try:
        shipment = shipment_service.get_shipment(
            shipment_id,
            g.org_id,
            viewer_user_id=g.current_user.id,
            can_view_all=can_perform(g.role, Action.VIEW_ALL_POS),
        )
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code

    return jsonify(shipment.to_dict())


@shipments_bp.post("/purchase-orders/<int:po_id>/shipments")
@require_auth
@require_action(Action.CREATE_SHIPMENT)
def create_shipment_route(po_id: int):
    """
    Create the inbound shipment of an approved purchase order.

    Request body:
    {
        "cartons": 5,              // >= 1, defaults to 1
        "weight_per_carton": 10,   // >= 0
        "length": 12, "width": 10, "height": 8   // >= 0
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        shipment = shipment_service.create_shipment(
            po_id=po_id,
            org_id=g.org_id,
            created_by_user_id=g.current_user.id,
            cartons=coerce_int(data.get("cartons"), default=1),
            weight_per_carton=_measurement(data, "weight_per_carton"),
            length=_measurement(data, "length"),
            width=_measurement(data, "width"),
            height=_measurement(data, "height"),
        )
        current_app.logger.info(
            "Shipment %s (%s) created for purchase order %s by user %s",
            shipment.id, shipment.reference, po_id, g.current_user.id,
        )
        return jsonify(shipment.to_dict()), 201
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create shipment")
        return jsonify({"error": "Internal server error"}), 500


@shipments_bp.patch("/shipments/<int:shipment_id>")
@require_auth
@require_action(Action.MANAGE_SHIPMENTS)
def update_shipment_route(shipment_id: int):
    """
    Set shipment status.

    Request body: {"status": "in_transit"}
    """
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not status:
        return jsonify({"error": "status required"}), 400

    try:
        shipment = shipment_service.update_shipment_status(
            shipment_id=shipment_id,
            org_id=g.org_id,
            status=status,
            actor_user_id=g.current_user.id,
        )
        current_app.logger.info(
            "Shipment %s status set to %s by user %s", shipment.id, status, g.current_user.id
        )
        return jsonify(shipment.to_dict())
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update shipment")
        return jsonify({"error": "Internal server error"}), 500
