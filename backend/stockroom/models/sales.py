from __future__ import annotations

from enum import Enum

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class SaleStatus(str, Enum):
    COMPLETED = "completed"


class Sale(db.Model):
    """
    Completed sale at a location.

    Immutable once committed: its items match stock decrements that were
    verified in the same transaction.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_location_updated", "location_id", "updated_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=SaleStatus.COMPLETED.value)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    seller = db.relationship("User")
    location = db.relationship("Location")
    items = db.relationship("SaleItem", back_populates="sale", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "saleId": self.id,
            "sellerId": self.seller_id,
            "locationId": self.location_id,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        }


class SaleItem(db.Model):
    """Individual product line on a sale."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_sale_items_quantity_positive"),
    )

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), primary_key=True, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {"productId": self.product_id, "quantity": self.quantity}
