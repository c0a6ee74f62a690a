from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


# Item availability states
ITEM_AVAILABLE = "AVAILABLE"
ITEM_PENDING_APPROVAL = "PENDING_APPROVAL"   # submitted by a supplier, not yet reviewed
ITEM_OUT_OF_STOCK = "OUT_OF_STOCK"
ITEM_REJECTED = "REJECTED"

ITEM_STATUSES = (ITEM_AVAILABLE, ITEM_PENDING_APPROVAL, ITEM_OUT_OF_STOCK, ITEM_REJECTED)


class Item(db.Model):
    """
    Menu item with price and stock.

    INVARIANTS:
    - stock_quantity never goes below zero (enforced by a CHECK constraint and
      by the guarded decrement in catalog_service)
    - an AVAILABLE item whose stock reaches zero flips to OUT_OF_STOCK in the
      same statement that consumed the last unit

    stock_quantity and status must only be changed through
    catalog_service.decrement_stock; never assign them on a loaded instance.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_items_stock_non_negative"),
        db.CheckConstraint("unit_price > 0", name="ck_items_unit_price_positive"),
        db.Index("ix_items_status_name", "status", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Opaque reference to the uploaded photo; never interpreted here
    photo_url = db.Column(db.String(1024), nullable=True)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)

    # Whole rupiah
    unit_price = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(24), nullable=False, default=ITEM_PENDING_APPROVAL, index=True)

    # Supplying partner
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("User", backref=db.backref("items", lazy=True))

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} stock={self.stock_quantity} status={self.status}>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "unit_price": self.unit_price,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "photo_url": self.photo_url,
            "stock_quantity": self.stock_quantity,
            "unit_price": self.unit_price,
            "status": self.status,
            "owner_id": self.owner_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
