# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier Service

WHY: Every purchase order is placed with exactly one supplier.

MULTI-TENANT: Suppliers are scoped to organizations via org_id. A supplier
of another organization is reported as not found.
"""

from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import StorageError, ValidationError
from ..extensions import db
from ..models import Supplier
from .tenant_service import require_in_org


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def get_supplier(supplier_id: int, org_id: int) -> Supplier:
    return require_in_org(Supplier, supplier_id, org_id)


def list_suppliers(
    *,
    org_id: int,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[Supplier], int]:
    """
    List suppliers of an organization by name.

    Returns (suppliers, total) where total ignores limit/offset.
    """
    query = db.session.query(Supplier).filter(Supplier.org_id == org_id)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Supplier.name.ilike(pattern),
            Supplier.contact_email.ilike(pattern),
        ))

    total = query.count()
    suppliers = query.order_by(Supplier.name.asc(), Supplier.id.asc()).limit(limit).offset(offset).all()
    return suppliers, total


def create_supplier(
    *,
    org_id: int,
    name: str,
    contact_email: str | None = None,
    payment_terms: str | None = None,
) -> Supplier:
    """
    Create a supplier.

    Raises:
        ValidationError: name missing
    """
    name = _clean(name)
    if not name:
        raise ValidationError("Supplier name is required")

    supplier = Supplier(
        org_id=org_id,
        name=name,
        contact_email=_clean(contact_email),
        payment_terms=_clean(payment_terms),
    )
    db.session.add(supplier)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e
    return supplier


def update_supplier(
    *,
    supplier_id: int,
    org_id: int,
    fields: dict,
) -> Supplier:
    """
    Patch a supplier. Only name, contact_email and payment_terms are writable;
    keys absent from fields are left unchanged.
    """
    supplier = get_supplier(supplier_id, org_id)

    if "name" in fields:
        name = _clean(fields["name"])
        if not name:
            raise ValidationError("Supplier name cannot be empty")
        supplier.name = name
    if "contact_email" in fields:
        supplier.contact_email = _clean(fields["contact_email"])
    if "payment_terms" in fields:
        supplier.payment_terms = _clean(fields["payment_terms"])

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e
    return supplier
