# Overview: Flask API routes for purchase order operations; parses input and returns JSON responses.

"""
Purchase Order Routes

SECURITY: All routes require authentication and a role in the active organization.
- Any member may create purchase orders and submit their own drafts
- Only holders of view_all_pos see other members' orders
- Approve / reject require approve_po

Status codes:
- 400 ValidationError (missing supplier, no valid items)
- 404 not found / not visible
- 409 invalid transition or lost race with another approver
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_member, require_action
from ..exceptions import FbaOpsError
from ..permissions import Action, can_perform
from ..services import purchase_order_service
from ..validation import coerce_id, parse_purchase_order_items


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")


def _own_only() -> int | None:
    """created_by filter for callers who may only see their own orders."""
    if can_perform(g.role, Action.VIEW_ALL_POS):
        return None
    return g.current_user.id


@purchase_orders_bp.get("")
@require_auth
@require_member
def list_purchase_orders_route():
    """
    List purchase orders, newest first.

    Query parameters:
    - status: draft|submitted|approved|received|cancelled
    - limit: Maximum results (default: 100, max 500)
    - offset: Pagination offset (default: 0)
    """
    limit = max(1, min(request.args.get("limit", 100, type=int), 500))
    offset = max(0, request.args.get("offset", 0, type=int))

    try:
        orders, total = purchase_order_service.list_purchase_orders(
            g.org_id,
            status=request.args.get("status") or None,
            created_by_user_id=_own_only(),
            limit=limit,
            offset=offset,
        )
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code

    return jsonify({
        "items": [po.to_dict() for po in orders],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@purchase_orders_bp.get("/<int:po_id>")
@require_auth
@require_member
def get_purchase_order_route(po_id: int):
    """Purchase order with supplier, items (with SKU and product) and shipments."""
    try:
        po = purchase_order_service.get_purchase_order(
            po_id,
            g.org_id,
            viewer_user_id=g.current_user.id,
            can_view_all=_own_only() is None,
        )
        data = po.to_dict(include_details=True)
        data["can_create_shipment"] = purchase_order_service.can_create_shipment(po)
        return jsonify(data)
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code


@purchase_orders_bp.post("")
@require_auth
@require_action(Action.CREATE_PO)
def create_purchase_order_route():
    """
    Create a purchase order.

    Request body:
    {
        "supplier_id": 1,              // required
        "status": "draft",             // draft (default) or submitted
        "items": [
            {"sku_id": 3, "quantity": 2, "unit_cost": "10.00"},
            {"sku_id": 4, "quantity": 1, "unit_cost_cents": 500},
            {"sku_id": 5, "quantity": 6}   // cost defaults to the SKU's cost
        ]
    }

    Lines without a SKU or with quantity <= 0 are dropped.
    """
    data = request.get_json(silent=True) or {}

    try:
        po = purchase_order_service.create_purchase_order(
            org_id=g.org_id,
            supplier_id=coerce_id(data.get("supplier_id")),
            items=parse_purchase_order_items(data.get("items")),
            created_by_user_id=g.current_user.id,
            status=data.get("status") or "draft",
        )
        current_app.logger.info(
            "Purchase order %s created (%s, %s cents) by user %s",
            po.id, po.status, po.total_cost_cents, g.current_user.id,
        )
        return jsonify(po.to_dict(include_details=True)), 201
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create purchase order")
        return jsonify({"error": "Internal server error"}), 500


@purchase_orders_bp.post("/<int:po_id>/submit")
@require_auth
@require_member
def submit_purchase_order_route(po_id: int):
    """draft -> submitted. Creator, or a holder of edit_po."""
    try:
        po = purchase_order_service.submit_purchase_order(
            po_id,
            g.org_id,
            actor_user_id=g.current_user.id,
            actor_role=g.role,
        )
        current_app.logger.info("Purchase order %s submitted by user %s", po.id, g.current_user.id)
        return jsonify(po.to_dict())
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to submit purchase order")
        return jsonify({"error": "Internal server error"}), 500


@purchase_orders_bp.post("/<int:po_id>/approve")
@require_auth
@require_action(Action.APPROVE_PO)
def approve_purchase_order_route(po_id: int):
    """
    submitted -> approved.

    Request body (optional): {"notes": "ok"}
    """
    data = request.get_json(silent=True) or {}

    try:
        po = purchase_order_service.approve_purchase_order(
            po_id,
            g.org_id,
            actor_user_id=g.current_user.id,
            actor_role=g.role,
            notes=data.get("notes"),
        )
        current_app.logger.info("Purchase order %s approved by user %s", po.id, g.current_user.id)
        return jsonify(po.to_dict())
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to approve purchase order")
        return jsonify({"error": "Internal server error"}), 500


@purchase_orders_bp.post("/<int:po_id>/reject")
@require_auth
@require_action(Action.APPROVE_PO)
def reject_purchase_order_route(po_id: int):
    """
    submitted -> cancelled.

    Request body (optional): {"notes": "price too high"}
    """
    data = request.get_json(silent=True) or {}

    try:
        po = purchase_order_service.reject_purchase_order(
            po_id,
            g.org_id,
            actor_user_id=g.current_user.id,
            actor_role=g.role,
            notes=data.get("notes"),
        )
        current_app.logger.info("Purchase order %s rejected by user %s", po.id, g.current_user.id)
        return jsonify(po.to_dict())
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to reject purchase order")
        return jsonify({"error": "Internal server error"}), 500
