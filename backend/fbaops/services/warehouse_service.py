# Overview: Service-layer operations for warehouses and inventory levels.

"""
Warehouse & Inventory Service

Plain bookkeeping of on-hand quantities per (SKU, warehouse). Quantities
are set, not adjusted: set_inventory_level upserts the row.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import StorageError, ValidationError
from ..extensions import db
from ..models import InventoryLevel, Product, Sku, Warehouse
from . import catalog_service
from .tenant_service import require_in_org
from ..validation import MAX_QUANTITY


def get_warehouse(warehouse_id: int, org_id: int) -> Warehouse:
    return require_in_org(Warehouse, warehouse_id, org_id)


def list_warehouses(*, org_id: int) -> list[Warehouse]:
    return (
        db.session.query(Warehouse)
        .filter(Warehouse.org_id == org_id)
        .order_by(Warehouse.name.asc(), Warehouse.id.asc())
        .all()
    )


def create_warehouse(*, org_id: int, name: str, location: str | None = None) -> Warehouse:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Warehouse name is required")

    warehouse = Warehouse(org_id=org_id, name=name, location=(location or "").strip() or None)
    db.session.add(warehouse)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e
    return warehouse


def list_inventory_levels(
    *,
    org_id: int,
    warehouse_id: int | None = None,
    sku_id: int | None = None,
) -> list[InventoryLevel]:
    query = (
        db.session.query(InventoryLevel)
        .join(Warehouse, Warehouse.id == InventoryLevel.warehouse_id)
        .join(Sku, Sku.id == InventoryLevel.sku_id)
        .join(Product, Product.id == Sku.product_id)
        .filter(Warehouse.org_id == org_id, Product.org_id == org_id)
    )
    if warehouse_id is not None:
        query = query.filter(InventoryLevel.warehouse_id == warehouse_id)
    if sku_id is not None:
        query = query.filter(InventoryLevel.sku_id == sku_id)
    return query.order_by(Warehouse.name.asc(), Sku.code.asc()).all()


def set_inventory_level(
    *,
    org_id: int,
    warehouse_id: int,
    sku_id: int,
    quantity: int,
) -> InventoryLevel:
    """
    Set the on-hand quantity of a SKU in a warehouse.

    Raises:
        NotFoundError: warehouse or SKU not in organization
        ValidationError: negative or oversized quantity
    """
    if quantity is None or quantity < 0:
        raise ValidationError("quantity must be zero or greater")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")

    warehouse = get_warehouse(warehouse_id, org_id)
    sku = catalog_service.get_sku(sku_id, org_id)

    level = db.session.query(InventoryLevel).filter_by(
        warehouse_id=warehouse.id,
        sku_id=sku.id,
    ).first()

    if level:
        level.quantity = quantity
    else:
        level = InventoryLevel(warehouse_id=warehouse.id, sku_id=sku.id, quantity=quantity)
        db.session.add(level)

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e
    return level
