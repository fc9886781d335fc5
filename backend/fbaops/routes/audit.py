# Overview: Flask API routes for audit history and security events.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_action
from ..permissions import Action
from ..services import audit_service, permission_service


audit_bp = Blueprint("audit", __name__, url_prefix="/api")


@audit_bp.get("/audit-logs")
@require_auth
@require_action(Action.ACCESS_SETTINGS)
def list_audit_logs_route():
    """
    Query parameters:
    - entity_type: purchase_order | inbound_shipment | user
    - entity_id
    - limit (default 100, max 500) / offset
    """
    limit = max(1, min(request.args.get("limit", 100, type=int), 500))
    offset = max(0, request.args.get("offset", 0, type=int))

    entries, total = audit_service.list_entries(
        g.org_id,
        entity_type=request.args.get("entity_type") or None,
        entity_id=request.args.get("entity_id", type=int),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [e.to_dict() for e in entries],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@audit_bp.get("/security-events")
@require_auth
@require_action(Action.ACCESS_SETTINGS)
def list_security_events_route():
    limit = max(1, min(request.args.get("limit", 100, type=int), 500))
    events = permission_service.list_security_events(
        g.org_id,
        limit=limit,
        event_type=request.args.get("event_type") or None,
    )
    return jsonify({"items": [e.to_dict() for e in events], "count": len(events)})
