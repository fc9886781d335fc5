from __future__ import annotations

from ..extensions import db
from fbaops.time_utils import to_utc_z


class Supplier(db.Model):
    """
    Supplier purchase orders are placed with.

    MULTI-TENANT: scoped to organizations via org_id.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_org_name", "org_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    contact_email = db.Column(db.String(255), nullable=True)
    payment_terms = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    organization = db.relationship("Organization", backref=db.backref("suppliers", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r} org_id={self.org_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "contact_email": self.contact_email,
            "payment_terms": self.payment_terms,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class Product(db.Model):
    """Catalog product owned by an organization. Sellable variants live in Sku."""
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_org_title", "org_id", "title"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} title={self.title!r} org_id={self.org_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "title": self.title,
            "brand": self.brand,
            "created_at": to_utc_z(self.created_at),
        }


class Sku(db.Model):
    """
    Stock keeping unit of a product.

    cost_cents is the default unit cost when the SKU is added to a
    purchase order. asin/fnsku are marketplace identifiers kept as opaque
    strings.
    """
    __tablename__ = "skus"
    __table_args__ = (
        db.UniqueConstraint("product_id", "code", name="uq_skus_product_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    code = db.Column(db.String(64), nullable=False, index=True)
    asin = db.Column(db.String(32), nullable=True)
    fnsku = db.Column(db.String(32), nullable=True)
    cost_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("skus", lazy=True))

    def __repr__(self) -> str:
        return f"<Sku id={self.id} code={self.code!r} product_id={self.product_id}>"

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "code": self.code,
            "asin": self.asin,
            "fnsku": self.fnsku,
            "cost_cents": self.cost_cents,
            "created_at": to_utc_z(self.created_at),
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data


class Warehouse(db.Model):
    __tablename__ = "warehouses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("warehouses", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "location": self.location,
            "created_at": to_utc_z(self.created_at),
        }


class InventoryLevel(db.Model):
    """On-hand quantity of one SKU in one warehouse."""
    __tablename__ = "inventory_levels"
    __table_args__ = (
        db.UniqueConstraint("sku_id", "warehouse_id", name="uq_inventory_levels_sku_warehouse"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku_id = db.Column(db.Integer, db.ForeignKey("skus.id"), nullable=False, index=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    sku = db.relationship("Sku", backref=db.backref("inventory_levels", lazy=True))
    warehouse = db.relationship("Warehouse", backref=db.backref("inventory_levels", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku_id": self.sku_id,
            "warehouse_id": self.warehouse_id,
            "quantity": self.quantity,
            "updated_at": to_utc_z(self.updated_at),
            "sku": self.sku.to_dict(include_product=True) if self.sku else None,
            "warehouse": self.warehouse.to_dict() if self.warehouse else None,
        }
