from __future__ import annotations

from ..extensions import db
from fbaops.time_utils import to_utc_z


# =============================================================================
# PURCHASE ORDERS
# =============================================================================

class PurchaseOrder(db.Model):
    """
    Purchase order header placed with one supplier.

    LIFECYCLE:
        draft -> submitted -> approved
                          \\-> cancelled
        received is part of the status domain but nothing transitions into it yet.

    total_cost_cents is computed once, at creation, from the items. Items
    are never edited afterwards, so it stays in sync.

    approved_by/approved_at are stamped together and only when leaving
    submitted, by approval or by rejection (approval_notes then carries the
    rejection reason).
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_org_status", "org_id", "status"),
        db.Index("ix_purchase_orders_org_created_by", "org_id", "created_by_user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="draft", index=True)
    total_cost_cents = db.Column(db.Integer, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    approved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approval_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    organization = db.relationship("Organization", backref=db.backref("purchase_orders", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("purchase_orders", lazy=True))
    created_by = db.relationship("User", foreign_keys=[created_by_user_id])
    approved_by = db.relationship("User", foreign_keys=[approved_by_user_id])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<PurchaseOrder id={self.id} status={self.status} org_id={self.org_id}>"

    def to_dict(self, include_details: bool = False) -> dict:
        data = {
            "id": self.id,
            "org_id": self.org_id,
            "supplier_id": self.supplier_id,
            "status": self.status,
            "total_cost_cents": self.total_cost_cents,
            "created_by_user_id": self.created_by_user_id,
            "approved_by_user_id": self.approved_by_user_id,
            "approved_at": to_utc_z(self.approved_at) if self.approved_at else None,
            "approval_notes": self.approval_notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_details:
            data["supplier"] = (
                {"id": self.supplier.id, "name": self.supplier.name} if self.supplier else None
            )
            data["items"] = [item.to_dict(include_sku=True) for item in self.items]
            data["shipments"] = [s.to_dict() for s in self.shipments]
        return data


class PurchaseOrderItem(db.Model):
    """
    Line of a purchase order.

    Created in the same transaction as its header and never on its own.
    quantity is always positive; lines without a SKU or with a
    non-positive quantity are dropped before insert.
    """
    __tablename__ = "purchase_order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_purchase_order_items_quantity_positive"),
        db.CheckConstraint("unit_cost_cents >= 0", name="ck_purchase_order_items_cost_nonnegative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    sku_id = db.Column(db.Integer, db.ForeignKey("skus.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)

    purchase_order = db.relationship("PurchaseOrder", backref=db.backref("items", lazy=True, order_by="PurchaseOrderItem.id"))
    sku = db.relationship("Sku")

    @property
    def line_cost_cents(self) -> int:
        return self.quantity * self.unit_cost_cents

    def to_dict(self, include_sku: bool = False) -> dict:
        data = {
            "id": self.id,
            "purchase_order_id": self.purchase_order_id,
            "sku_id": self.sku_id,
            "quantity": self.quantity,
            "unit_cost_cents": self.unit_cost_cents,
            "line_cost_cents": self.line_cost_cents,
        }
        if include_sku:
            data["sku"] = self.sku.to_dict(include_product=True) if self.sku else None
        return data


# =============================================================================
# INBOUND SHIPMENTS
# =============================================================================

class InboundShipment(db.Model):
    """
    Inbound (FBA) shipment derived from an approved purchase order.

    reference is generated at creation and globally unique. A purchase order
    has at most one shipment. Status moves between created, in_transit and
    delivered without ordering rules.
    """
    __tablename__ = "inbound_shipments"
    __table_args__ = (
        db.UniqueConstraint("reference", name="uq_inbound_shipments_reference"),
        db.UniqueConstraint("purchase_order_id", name="uq_inbound_shipments_purchase_order_id"),
        db.Index("ix_inbound_shipments_org_status", "org_id", "status"),
        db.CheckConstraint("cartons >= 1", name="ck_inbound_shipments_cartons_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="created", index=True)
    reference = db.Column(db.String(64), nullable=False)

    cartons = db.Column(db.Integer, nullable=False, default=1)
    weight_per_carton = db.Column(db.Float, nullable=False, default=0)
    length = db.Column(db.Float, nullable=False, default=0)
    width = db.Column(db.Float, nullable=False, default=0)
    height = db.Column(db.Float, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    purchase_order = db.relationship("PurchaseOrder", backref=db.backref("shipments", lazy=True, order_by="InboundShipment.id"))
    organization = db.relationship("Organization")
    created_by = db.relationship("User", foreign_keys=[created_by_user_id])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<InboundShipment id={self.id} reference={self.reference!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_order_id": self.purchase_order_id,
            "org_id": self.org_id,
            "status": self.status,
            "reference": self.reference,
            "cartons": self.cartons,
            "weight_per_carton": self.weight_per_carton,
            "length": self.length,
            "width": self.width,
            "height": self.height,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
