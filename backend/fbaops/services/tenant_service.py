"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

WHY: Centralize tenant validation logic for reuse across services and routes.
Every request is scoped to the session's active organization, and
cross-tenant access must be explicitly denied.

SECURITY INVARIANTS:
1. Every member route runs with g.org_id set from the session
2. Ids from client input are validated against g.org_id before use
3. A row owned by another organization answers exactly like a missing one
4. Cross-tenant access attempts are logged as security events

USAGE:
    from fbaops.services.tenant_service import require_in_org

    supplier = require_in_org(Supplier, supplier_id, g.org_id)
"""

from flask import g, has_request_context, request

from ..exceptions import NotFoundError
from ..extensions import db
from ..models import Organization, Product, Sku
from .permission_service import log_security_event


def require_in_org(model, entity_id: int, org_id: int, label: str | None = None):
    """
    Load an org-scoped row or raise NotFoundError.

    model must carry an org_id column. Lookups that hit another
    organization's row are logged, then reported as "not found" so the
    caller cannot probe for existence.

    Call this before any writes of the current request: the security event
    is committed on its own.
    """
    label = label or model.__name__
    entity = db.session.get(model, entity_id) if entity_id is not None else None

    if entity is None:
        raise NotFoundError(f"{label} not found")

    if entity.org_id != org_id:
        _log_cross_tenant_attempt(
            f"{label} {entity_id} belongs to org {entity.org_id}, not {org_id}",
            org_id=org_id,
        )
        raise NotFoundError(f"{label} not found")

    return entity


def require_sku_in_org(sku_id: int, org_id: int) -> Sku:
    """SKUs are scoped through their product."""
    sku = (
        db.session.query(Sku)
        .join(Product, Product.id == Sku.product_id)
        .filter(Sku.id == sku_id)
        .first()
    )
    if sku is None:
        raise NotFoundError("SKU not found")
    if sku.product.org_id != org_id:
        _log_cross_tenant_attempt(
            f"SKU {sku_id} belongs to org {sku.product.org_id}, not {org_id}",
            org_id=org_id,
        )
        raise NotFoundError("SKU not found")
    return sku


def validate_org_active(org_id: int) -> Organization:
    org = db.session.get(Organization, org_id)
    if not org or not org.is_active:
        raise NotFoundError("Organization not found")
    return org


def _log_cross_tenant_attempt(reason: str, org_id: int | None = None) -> None:
    """
    Log a cross-tenant access attempt as a security event.

    SECURITY: Critical audit trail for detecting unauthorized access attempts.
    """
    user = getattr(g, "current_user", None) if has_request_context() else None

    if has_request_context():
        resource, method = request.path, request.method
        ip_address, user_agent = request.remote_addr, request.headers.get("User-Agent")
    else:
        resource = method = ip_address = user_agent = None

    log_security_event(
        user_id=user.id if user is not None else None,
        event_type="CROSS_TENANT_ACCESS_DENIED",
        success=False,
        resource=resource,
        action=method,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        org_id=org_id,
    )
