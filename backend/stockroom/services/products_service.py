# Overview: Service-layer operations for products; catalog creation, reads with stock status, and patches.

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from ..errors import NotFoundError, conflict_from_integrity_error
from ..extensions import db
from ..models import CATEGORY_MODELS, Product, Stock
from ..validation import ProductFilters, ProductInput
from .concurrency import READ_COMMITTED, run_in_transaction


logger = logging.getLogger(__name__)

# Total stock at or below this is reported as "last units"
STOCK_THRESHOLD = 3

STATUS_IN_STOCK = "in stock"
STATUS_LAST_UNITS = "last units"
STATUS_SOLD_OUT = "sold out"
STATUS_NO_INFO = "no info"

PRODUCT_CONSTRAINT_FIELDS = {
    column: {"name": f"tags.{column}", "message": "A product with these attributes already exists."}
    for column in ("size", "colour", "design", "title", "author", "publisher", "year")
}


def product_status(product: Product) -> str:
    stock = product.stock
    if not product.is_active or not stock:
        return STATUS_NO_INFO
    total = sum(row.quantity for row in stock)
    if total == 0:
        return STATUS_SOLD_OUT
    if total <= STOCK_THRESHOLD:
        return STATUS_LAST_UNITS
    return STATUS_IN_STOCK


def public_info(product: Product, *, with_tags: bool = False) -> dict:
    info = {
        "productId": product.id,
        "name": product.name,
        "description": product.description,
        "price": product.price_cents,
        "status": product_status(product),
        "category": product.category,
    }
    if with_tags:
        info["tags"] = product.category_tags()
    return info


def protected_info(product: Product) -> dict:
    """Public info plus the fields only store managers see."""
    info = public_info(product, with_tags=True)
    info["active"] = product.is_active
    info["stock"] = [row.to_dict() for row in sorted(product.stock, key=lambda r: r.location_id)]
    return info


def create_product(data: ProductInput) -> int:
    """
    Create a product of the given category together with its category row.

    Raises ConflictError when another product of the category already has
    the same attributes.
    """
    model = CATEGORY_MODELS[data.category]

    def _op():
        product = model(
            name=data.name,
            description=data.description,
            price_cents=data.price_cents,
            is_active=True,
            **data.tags,
        )
        db.session.add(product)
        db.session.flush()
        return product.id

    try:
        product_id = run_in_transaction(_op, isolation_level=READ_COMMITTED)
    except IntegrityError as exc:
        raise conflict_from_integrity_error(exc, PRODUCT_CONSTRAINT_FIELDS) from exc

    logger.info("Product %s created in category %s", product_id, data.category.value)
    return product_id


def list_products(filters: ProductFilters) -> list[Product]:
    query = (
        db.session.query(Product)
        .options(selectinload(Product.stock))
        .filter(Product.price_cents >= filters.price_min, Product.price_cents <= filters.price_max)
    )
    if filters.category is not None:
        query = query.filter(Product.category == filters.category.value)
    if filters.in_stock:
        query = query.filter(Product.is_active.is_(True), Product.stock.any(Stock.quantity >= 1))

    return (
        query.order_by(Product.id.asc())
        .limit(filters.limit)
        .offset(filters.page * filters.limit)
        .all()
    )


def get_product(product_id: int) -> Product:
    product = (
        db.session.query(Product)
        .options(selectinload(Product.stock))
        .filter(Product.id == product_id)
        .first()
    )
    if product is None:
        raise NotFoundError("Product not found.")
    return product


def update_product(product_id: int, changes: dict) -> None:
    """Apply a patch of name/description/price_cents/is_active."""
    def _op():
        product = db.session.get(Product, product_id)
        if product is None:
            return False
        for field, value in changes.items():
            setattr(product, field, value)
        return True

    if not run_in_transaction(_op, isolation_level=READ_COMMITTED):
        raise NotFoundError("Product not found.")
    logger.info("Product %s updated: %s", product_id, ", ".join(sorted(changes)))
