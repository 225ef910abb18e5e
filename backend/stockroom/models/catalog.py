from __future__ import annotations

from enum import Enum

from ..extensions import db

# Product price in Euro cents.
MAX_PRICE_CENTS = 200_000


class ProductCategory(str, Enum):
    TSHIRT = "tshirt"
    BAG = "bag"
    BOOK = "book"


TSHIRT_SIZES = ("kid", "xs", "s", "m", "l", "xl")
TSHIRT_COLOURS = ("red", "green", "blue", "yellow", "orange", "purple")
BAG_COLOURS = ("red", "green", "blue", "white", "black")


class Product(db.Model):
    """
    Product master data.

    CATEGORY DESIGN: joined-table inheritance keyed by `category`.
    A product is only ever created as one of the concrete subclasses below,
    so the product row and its single category row are written in the same
    flush and the category can never change afterwards.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint(
            f"price_cents >= 0 AND price_cents <= {MAX_PRICE_CENTS}",
            name="ck_products_price_range",
        ),
        db.Index("ix_products_category_active", "category", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=False)

    category = db.Column(db.String(16), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    stock = db.relationship("Stock", back_populates="product", lazy=True)

    __mapper_args__ = {"polymorphic_on": category}

    # Category attribute names, overridden by each subclass
    TAG_FIELDS: tuple[str, ...] = ()

    def __repr__(self) -> str:
        return f"<Product id={self.id} category={self.category!r} name={self.name!r}>"

    def category_tags(self) -> dict:
        return {field: getattr(self, field) for field in self.TAG_FIELDS}


class Tshirt(Product):
    __tablename__ = "product_tshirt"
    __table_args__ = (
        db.UniqueConstraint("size", "colour", "design", name="uq_product_tshirt"),
    )

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    size = db.Column(db.String(8), nullable=False)
    colour = db.Column(db.String(16), nullable=False)
    design = db.Column(db.String(255), nullable=False)

    TAG_FIELDS = ("size", "colour", "design")
    __mapper_args__ = {"polymorphic_identity": ProductCategory.TSHIRT.value, "polymorphic_load": "selectin"}


class Bag(Product):
    __tablename__ = "product_bag"
    __table_args__ = (
        db.UniqueConstraint("colour", "design", name="uq_product_bag"),
    )

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    colour = db.Column(db.String(16), nullable=False)
    design = db.Column(db.String(255), nullable=False)

    TAG_FIELDS = ("colour", "design")
    __mapper_args__ = {"polymorphic_identity": ProductCategory.BAG.value, "polymorphic_load": "selectin"}


class Book(Product):
    __tablename__ = "product_book"
    __table_args__ = (
        db.UniqueConstraint("title", "author", "publisher", "year", name="uq_product_book"),
    )

    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    author = db.Column(db.String(255), nullable=True)
    publisher = db.Column(db.String(255), nullable=True)
    year = db.Column(db.String(8), nullable=True)

    TAG_FIELDS = ("title", "author", "publisher", "year")
    __mapper_args__ = {"polymorphic_identity": ProductCategory.BOOK.value, "polymorphic_load": "selectin"}


CATEGORY_MODELS: dict[ProductCategory, type[Product]] = {
    ProductCategory.TSHIRT: Tshirt,
    ProductCategory.BAG: Bag,
    ProductCategory.BOOK: Book,
}


class Location(db.Model):
    """Point of sale / storage location."""
    __tablename__ = "locations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    address = db.Column(db.String(255), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"locationId": self.id, "address": self.address}


class Stock(db.Model):
    """
    Available units of a product at a location.

    Quantity is a mutable counter; the check constraint is the last line
    behind the sale engine's own pre-write check.
    """
    __tablename__ = "stock"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
    )

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), primary_key=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), primary_key=True, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product", back_populates="stock")
    location = db.relationship("Location", backref=db.backref("stock", lazy=True))

    def __repr__(self) -> str:
        return f"<Stock product_id={self.product_id} location_id={self.location_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "locationId": self.location_id,
            "quantity": self.quantity,
        }
