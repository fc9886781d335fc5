# Overview: Service-layer operations for products and SKUs; encapsulates business logic and database work.

"""
Catalog Service

Products belong to an organization; SKUs belong to a product and inherit
its organization. A SKU's cost_cents is the default unit cost used when it
is added to a purchase order.

SKU codes are unique per product.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..exceptions import NotFoundError, StorageError, ValidationError
from ..extensions import db
from ..models import Product, Sku
from .tenant_service import require_in_org, require_sku_in_org
from ..validation import MAX_PRICE_CENTS


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _validate_cost(cost_cents: int | None) -> int:
    if cost_cents is None:
        return 0
    if cost_cents < 0:
        raise ValidationError("cost_cents must be zero or greater")
    if cost_cents > MAX_PRICE_CENTS:
        raise ValidationError("cost_cents is too large")
    return cost_cents


# =============================================================================
# PRODUCTS
# =============================================================================

def get_product(product_id: int, org_id: int) -> Product:
    return require_in_org(Product, product_id, org_id)


def list_products(*, org_id: int, search: str | None = None) -> list[Product]:
    query = db.session.query(Product).filter(Product.org_id == org_id)
    if search:
        query = query.filter(Product.title.ilike(f"%{search.strip()}%"))
    return query.order_by(Product.title.asc(), Product.id.asc()).all()


def create_product(*, org_id: int, title: str, brand: str | None = None, commit: bool = True) -> Product:
    title = _clean(title)
    if not title:
        raise ValidationError("Product title is required")

    product = Product(org_id=org_id, title=title, brand=_clean(brand))
    db.session.add(product)
    if commit:
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError(str(e)) from e
    else:
        db.session.flush()
    return product


# =============================================================================
# SKUS
# =============================================================================

def get_sku(sku_id: int, org_id: int) -> Sku:
    return require_sku_in_org(sku_id, org_id)


def list_skus(*, org_id: int, product_id: int | None = None, search: str | None = None) -> list[Sku]:
    """SKUs of the organization, with their product loaded for display."""
    query = (
        db.session.query(Sku)
        .join(Product, Product.id == Sku.product_id)
        .filter(Product.org_id == org_id)
    )
    if product_id is not None:
        query = query.filter(Sku.product_id == product_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Sku.code.ilike(pattern),
            Sku.asin.ilike(pattern),
            Sku.fnsku.ilike(pattern),
            Product.title.ilike(pattern),
        ))
    return query.order_by(Sku.code.asc(), Sku.id.asc()).all()


def create_sku(
    *,
    org_id: int,
    product_id: int,
    code: str,
    asin: str | None = None,
    fnsku: str | None = None,
    cost_cents: int | None = None,
    commit: bool = True,
) -> Sku:
    """
    Create a SKU under a product of the organization.

    Raises:
        NotFoundError: product not in organization
        ValidationError: code missing, negative cost, or code already used on the product
    """
    product = get_product(product_id, org_id)

    code = _clean(code)
    if not code:
        raise ValidationError("SKU code is required")

    existing = db.session.query(Sku.id).filter_by(product_id=product.id, code=code).first()
    if existing:
        raise ValidationError(f"SKU code '{code}' already exists for this product")

    sku = Sku(
        product_id=product.id,
        code=code,
        asin=_clean(asin),
        fnsku=_clean(fnsku),
        cost_cents=_validate_cost(cost_cents),
    )
    db.session.add(sku)

    if not commit:
        db.session.flush()
        return sku

    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ValidationError(f"SKU code '{code}' already exists for this product") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e
    return sku


def create_product_with_sku(
    *,
    org_id: int,
    title: str,
    code: str,
    brand: str | None = None,
    asin: str | None = None,
    fnsku: str | None = None,
    cost_cents: int | None = None,
) -> Sku:
    """
    Create a product and its first SKU together, as done from the
    purchase order form. Either both rows are written or neither.
    """
    try:
        product = create_product(org_id=org_id, title=title, brand=brand, commit=False)
        sku = create_sku(
            org_id=org_id,
            product_id=product.id,
            code=code,
            asin=asin,
            fnsku=fnsku,
            cost_cents=cost_cents,
            commit=False,
        )
        db.session.commit()
    except (ValidationError, NotFoundError):
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e)) from e
    return sku
