from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


# Transaction lifecycle states
TXN_PENDING = "PENDING"
TXN_APPROVED = "APPROVED"
TXN_COMPLETED = "COMPLETED"
TXN_REJECTED = "REJECTED"

TRANSACTION_STATUSES = (TXN_PENDING, TXN_APPROVED, TXN_COMPLETED, TXN_REJECTED)


class Transaction(db.Model):
    """
    Customer order.

    total_amount is fixed at creation and always equals the sum of the
    detail subtotals. Status only moves through transaction_service.set_status.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.CheckConstraint("total_amount >= 0", name="ck_transactions_total_non_negative"),
        # Listing is always newest-first, optionally by requester and status
        db.Index("ix_transactions_status_created", "status", "created_at"),
        db.Index("ix_transactions_requester_created", "requester_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    requester_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    total_amount = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=TXN_PENDING, index=True)

    # Pickup information, required for end-user orders only
    customer_name = db.Column(db.String(255), nullable=True)
    customer_location = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Approval decision audit trail
    decided_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    decided_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejection_reason = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    requester = db.relationship("User", foreign_keys=[requester_id])
    decided_by = db.relationship("User", foreign_keys=[decided_by_user_id])
    details = db.relationship(
        "TransactionDetail",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionDetail.id",
        lazy="selectin",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} status={self.status} total={self.total_amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requester_id": self.requester_id,
            "user": self.requester.to_summary() if self.requester else None,
            "total_amount": self.total_amount,
            "status": self.status,
            "customer_name": self.customer_name,
            "customer_location": self.customer_location,
            "notes": self.notes,
            "decided_by_user_id": self.decided_by_user_id,
            "decided_at": to_utc_z(self.decided_at) if self.decided_at else None,
            "rejection_reason": self.rejection_reason,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
            "details": [detail.to_dict() for detail in self.details],
        }


class TransactionDetail(db.Model):
    """
    One line of an order: item, quantity and the price snapshot taken when
    the order was placed. subtotal is never recomputed.
    """
    __tablename__ = "transaction_details"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_transaction_details_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(
        db.Integer,
        db.ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Lookup only; deleting a detail never touches the item
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_at_order = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Integer, nullable=False)

    transaction = db.relationship("Transaction", back_populates="details")
    item = db.relationship("Item", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "item_id": self.item_id,
            "item": self.item.to_summary() if self.item else None,
            "quantity": self.quantity,
            "unit_price_at_order": self.unit_price_at_order,
            "subtotal": self.subtotal,
        }
