# Overview: Flask API routes for warehouse and inventory operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_member
from ..exceptions import FbaOpsError
from ..services import warehouse_service
from ..validation import coerce_id, coerce_int


warehouses_bp = Blueprint("warehouses", __name__, url_prefix="/api")


@warehouses_bp.get("/warehouses")
@require_auth
@require_member
def list_warehouses_route():
    warehouses = warehouse_service.list_warehouses(org_id=g.org_id)
    return jsonify({"items": [w.to_dict() for w in warehouses], "count": len(warehouses)})


@warehouses_bp.post("/warehouses")
@require_auth
@require_member
def create_warehouse_route():
    """Request body: {"name": "Main", "location": "Reno, NV"}"""
    data = request.get_json(silent=True) or {}
    try:
        warehouse = warehouse_service.create_warehouse(
            org_id=g.org_id,
            name=data.get("name"),
            location=data.get("location"),
        )
        return jsonify(warehouse.to_dict()), 201
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create warehouse")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.get("/inventory")
@require_auth
@require_member
def list_inventory_route():
    """
    Query parameters:
    - warehouse_id
    - sku_id
    """
    levels = warehouse_service.list_inventory_levels(
        org_id=g.org_id,
        warehouse_id=request.args.get("warehouse_id", type=int),
        sku_id=request.args.get("sku_id", type=int),
    )
    return jsonify({"items": [level.to_dict() for level in levels], "count": len(levels)})


@warehouses_bp.put("/inventory")
@require_auth
@require_member
def set_inventory_route():
    """Request body: {"warehouse_id": 1, "sku_id": 3, "quantity": 120}"""
    data = request.get_json(silent=True) or {}

    warehouse_id = coerce_id(data.get("warehouse_id"))
    sku_id = coerce_id(data.get("sku_id"))
    quantity = coerce_int(data.get("quantity"))
    if warehouse_id is None or sku_id is None or quantity is None:
        return jsonify({"error": "warehouse_id, sku_id and quantity required"}), 400

    try:
        level = warehouse_service.set_inventory_level(
            org_id=g.org_id,
            warehouse_id=warehouse_id,
            sku_id=sku_id,
            quantity=quantity,
        )
        return jsonify(level.to_dict())
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to set inventory level")
        return jsonify({"error": "Internal server error"}), 500
