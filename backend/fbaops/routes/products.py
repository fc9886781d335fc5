# Overview: Flask API routes for product and SKU operations; parses input and returns JSON responses.

"""
Product & SKU Routes

SECURITY: All routes require authentication and a role in the active organization.

Costs may be sent as integer cents ("cost_cents") or as a decimal amount ("cost").
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_member
from ..exceptions import FbaOpsError
from ..services import catalog_service
from ..validation import parse_cost_cents


products_bp = Blueprint("products", __name__, url_prefix="/api")


@products_bp.get("/products")
@require_auth
@require_member
def list_products_route():
    products = catalog_service.list_products(org_id=g.org_id, search=request.args.get("search"))
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)})


@products_bp.post("/products")
@require_auth
@require_member
def create_product_route():
    """
    Request body: {"title": "Widget", "brand": "Acme"}

    With a "sku" object ({"code", "asin", "fnsku", "cost"}), the product and
    its first SKU are created together and the SKU is returned.
    """
    data = request.get_json(silent=True) or {}

    try:
        sku_data = data.get("sku")
        if isinstance(sku_data, dict):
            sku = catalog_service.create_product_with_sku(
                org_id=g.org_id,
                title=data.get("title"),
                brand=data.get("brand"),
                code=sku_data.get("code"),
                asin=sku_data.get("asin"),
                fnsku=sku_data.get("fnsku"),
                cost_cents=parse_cost_cents(sku_data, "cost_cents", "cost"),
            )
            return jsonify(sku.to_dict(include_product=True)), 201

        product = catalog_service.create_product(
            org_id=g.org_id,
            title=data.get("title"),
            brand=data.get("brand"),
        )
        return jsonify(product.to_dict()), 201
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/skus")
@require_auth
@require_member
def list_skus_route():
    """
    Query parameters:
    - product_id: only SKUs of this product
    - search: code, ASIN, FNSKU or product title
    """
    skus = catalog_service.list_skus(
        org_id=g.org_id,
        product_id=request.args.get("product_id", type=int),
        search=request.args.get("search"),
    )
    return jsonify({"items": [s.to_dict(include_product=True) for s in skus], "count": len(skus)})


@products_bp.post("/products/<int:product_id>/skus")
@require_auth
@require_member
def create_sku_route(product_id: int):
    """Request body: {"code": "WID-RED", "asin": "...", "fnsku": "...", "cost": "4.50"}"""
    data = request.get_json(silent=True) or {}

    try:
        sku = catalog_service.create_sku(
            org_id=g.org_id,
            product_id=product_id,
            code=data.get("code"),
            asin=data.get("asin"),
            fnsku=data.get("fnsku"),
            cost_cents=parse_cost_cents(data, "cost_cents", "cost"),
        )
        return jsonify(sku.to_dict(include_product=True)), 201
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create SKU")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/skus/<int:sku_id>")
@require_auth
@require_member
def get_sku_route(sku_id: int):
    try:
        sku = catalog_service.get_sku(sku_id, g.org_id)
        return jsonify(sku.to_dict(include_product=True))
    except FbaOpsError as e:
        return jsonify({"error": str(e)}), e.status_code
