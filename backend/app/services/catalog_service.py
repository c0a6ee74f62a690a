# Overview: Catalog store; item reads and the guarded stock decrement.

"""
Catalog Store

Source of truth for item stock and availability.

Stock invariant:
- stock_quantity >= 0 at all times.
- The only mutation performed here is decrement_stock, a single conditional
  UPDATE that checks and consumes stock in one statement. There is no
  read-check-write window for a concurrent request to slip through.
- When the last unit of an AVAILABLE item is consumed it flips to
  OUT_OF_STOCK in that same statement. Any other status belongs to the item
  review flow and is left alone. Restocking (and resurrecting the status)
  is not handled here.

decrement_stock does not commit; it always runs inside the caller's unit of
work so a failure on a later line rolls back earlier decrements.
"""

from __future__ import annotations

from sqlalchemy import and_, case, func, select, update

from ..extensions import DB_INTEGER_MAX, DB_INTEGER_MIN, db
from ..models import Item, Transaction, TransactionDetail
from ..models.catalog import ITEM_AVAILABLE, ITEM_OUT_OF_STOCK, ITEM_STATUSES
from ..models.orders import TXN_APPROVED, TXN_COMPLETED
from app.time_utils import utcnow
from .errors import InsufficientStockError, NotFoundError, OrderValidationError


# Orders whose lines count as sold for best-seller ranking
SOLD_STATUSES = (TXN_APPROVED, TXN_COMPLETED)


def get_item(item_id: int, *, refresh: bool = False) -> Item:
    """Point read. Raises NotFoundError for unknown ids."""
    item = None
    if DB_INTEGER_MIN <= item_id <= DB_INTEGER_MAX:
        item = db.session.get(Item, item_id, populate_existing=refresh)
    if item is None:
        raise NotFoundError(f"Item {item_id} not found", details={"item_id": item_id})
    return item


def decrement_stock(item_id: int, amount: int) -> Item:
    """
    Consume `amount` units of an item.

    Single round-trip guarded update:

        UPDATE items
           SET status = CASE WHEN stock_quantity = :amount AND status = 'AVAILABLE'
                           THEN 'OUT_OF_STOCK' ELSE status END,
               stock_quantity = stock_quantity - :amount
         WHERE id = :id AND stock_quantity >= :amount

    The status expression compares against the pre-update stock so the result
    is the same whether the backend evaluates SET clauses against the old row
    (SQLite, PostgreSQL) or left to right (MySQL).

    Raises InsufficientStockError (naming the item and what is left) when the
    guard rejects the update, NotFoundError when the item does not exist.
    """
    if amount <= 0:
        raise OrderValidationError("Decrement amount must be > 0", details={"item_id": item_id})

    stmt = (
        update(Item)
        .where(Item.id == item_id, Item.stock_quantity >= amount)
        .ordered_values(
            (Item.status, case(
                (and_(Item.stock_quantity == amount, Item.status == ITEM_AVAILABLE), ITEM_OUT_OF_STOCK),
                else_=Item.status,
            )),
            (Item.stock_quantity, Item.stock_quantity - amount),
            (Item.updated_at, utcnow()),
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    # Reload so callers (and the identity map) see the post-update row
    item = db.session.get(Item, item_id, populate_existing=True)
    if item is None:
        raise NotFoundError(f"Item {item_id} not found", details={"item_id": item_id})

    if result.rowcount != 1:
        raise InsufficientStockError(
            item_id=item.id,
            item_name=item.name,
            available=item.stock_quantity,
            requested=amount,
        )

    return item


def list_items(
    *,
    status: str | None = None,
    best_seller: bool = False,
    limit: int | None = None,
) -> list[Item]:
    """
    Catalog listing for the menu pages.

    best_seller orders by total quantity sold on APPROVED and COMPLETED
    orders (items never sold rank last), ties broken by name.
    """
    if status is not None and status not in ITEM_STATUSES:
        raise OrderValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(ITEM_STATUSES)}"
        )

    query = select(Item)
    if status is not None:
        query = query.where(Item.status == status)

    if best_seller:
        sold = (
            select(
                TransactionDetail.item_id.label("item_id"),
                func.sum(TransactionDetail.quantity).label("sold_quantity"),
            )
            .join(Transaction, Transaction.id == TransactionDetail.transaction_id)
            .where(Transaction.status.in_(SOLD_STATUSES))
            .group_by(TransactionDetail.item_id)
            .subquery()
        )
        query = (
            query.outerjoin(sold, sold.c.item_id == Item.id)
            .order_by(func.coalesce(sold.c.sold_quantity, 0).desc(), Item.name.asc())
        )
    else:
        query = query.order_by(Item.name.asc())

    if limit is not None:
        query = query.limit(limit)

    return list(db.session.execute(query).scalars())
