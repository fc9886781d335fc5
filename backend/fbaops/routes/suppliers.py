# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

"""
Supplier Routes

SECURITY: All routes require authentication and a role in the active
organization. Suppliers are scoped to organizations (multi-tenant).
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_member
from ..exceptions import FbaOpsError
from ..services import supplier_service
from ..validation import require_fields


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_member
def list_suppliers_route():
    """
    Query parameters:
    - search: Search term for name or contact email
    - limit: Maximum results (default: 100)
    - offset: Pagination offset (default: 0)

    Returns:
        {items: Supplier[], count: int, limit: int, offset: int}
    """
    search = request.args.get("search")
    limit = request.args.get("limit", 100, type=int)
    offset = request.args.get("offset", 0, type=int)

    # Clamp limit
    if limit < 1:
        limit = 1
    if limit > 500:
        limit = 500
    if offset < 0:
        offset = 0

    suppliers, total = supplier_service.list_suppliers(
        org_id=g.org_id,
        search=search,
        limit=limit,
        offset=offset,
    )

    return jsonify({
        "items": [s.to_dict() for s in suppliers],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_member
def get_supplier_route(supplier_id: int):
    try:
        return jsonify(supplier_service.get_supplier(supplier_id, g.org_id).to_dict())
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code


@suppliers_bp.post("")
@require_auth
@require_member
def create_supplier_route():
    """
    Request body:
    {
        "name": "Acme Wholesale",       // required
        "contact_email": "...",         // optional
        "payment_terms": "Net 30"       // optional
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        require_fields(data, "name")
        supplier = supplier_service.create_supplier(
            org_id=g.org_id,
            name=data["name"],
            contact_email=data.get("contact_email"),
            payment_terms=data.get("payment_terms"),
        )
        return jsonify(supplier.to_dict()), 201
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.patch("/<int:supplier_id>")
@require_auth
@require_member
def update_supplier_route(supplier_id: int):
    data = request.get_json(silent=True) or {}
    fields = {k: data[k] for k in ("name", "contact_email", "payment_terms") if k in data}

    try:
        supplier = supplier_service.update_supplier(
            supplier_id=supplier_id,
            org_id=g.org_id,
            fields=fields,
        )
        return jsonify(supplier.to_dict())
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Internal server error"}), 500
