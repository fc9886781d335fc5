# Overview: Flask API routes for the dashboard summary.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_action
from ..permissions import Action, can_perform
from ..services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/summary")
@require_auth
@require_action(Action.VIEW_DASHBOARD)
def summary_route():
    """
    Purchase order and shipment counts, open order value and approvals
    waiting. Members without view_all_pos see figures for their own orders.
    """
    own_only = None if can_perform(g.role, Action.VIEW_ALL_POS) else g.current_user.id
    summary = dashboard_service.get_summary(g.org_id, created_by_user_id=own_only)
    summary["scope"] = "organization" if own_only is None else "own"
    return jsonify(summary)
