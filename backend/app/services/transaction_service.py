# Overview: Transaction ledger; persistence, reads and the status state machine for orders.

"""
Transaction Ledger

Persists orders (transactions) and their lines (details) and owns the order
lifecycle. It does not decide whether an order is valid; that is the approval
workflow's job.

STATE MACHINE:
    PENDING -> APPROVED
    PENDING -> REJECTED
    COMPLETED is only ever an initial state (cashier sales).

    APPROVED, REJECTED and COMPLETED are terminal.

RULE R1 (initial status):
    requester has COMPLETE_SALE  -> COMPLETED
    otherwise                    -> PENDING

Nothing in this module commits. Callers wrap it in a unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy import select, update

from ..extensions import DB_INTEGER_MAX, DB_INTEGER_MIN, db
from ..models import Transaction, TransactionDetail
from ..models.auth import ROLE_CASHIER
from ..models.orders import (
    TRANSACTION_STATUSES,
    TXN_APPROVED,
    TXN_COMPLETED,
    TXN_PENDING,
    TXN_REJECTED,
)
from ..permissions import has_permission
from app.time_utils import utcnow
from . import catalog_service
from .concurrency import lock_for_update
from .errors import ForbiddenError, InvalidStateError, NotFoundError, OrderValidationError


VALID_TRANSITIONS = {
    (TXN_PENDING, TXN_APPROVED),
    (TXN_PENDING, TXN_REJECTED),
}


@dataclass(frozen=True)
class OrderLine:
    item_id: int
    quantity: int


@dataclass(frozen=True)
class CustomerInfo:
    name: str | None = None
    location: str | None = None
    notes: str | None = None


def initial_status_for(role: str) -> str:
    """Rule R1: cashier sales complete immediately, everything else waits."""
    return TXN_COMPLETED if has_permission(role, "COMPLETE_SALE") else TXN_PENDING


def can_transition(from_status: str, to_status: str) -> bool:
    return (from_status, to_status) in VALID_TRANSITIONS


def create_transaction(
    requester_role: str,
    requester_id: int,
    lines: Iterable[OrderLine],
    customer: CustomerInfo | None = None,
) -> Transaction:
    """
    Build and persist an order with its details.

    Prices are snapshotted from the current item rows; total_amount is the
    sum of the line subtotals. The order is flushed (ids assigned) but not
    committed.
    """
    customer = customer or CustomerInfo()
    lines = list(lines)
    if not lines:
        raise OrderValidationError("Items array is required")

    details: list[TransactionDetail] = []
    total_amount = 0
    for line in lines:
        item = catalog_service.get_item(line.item_id)
        subtotal = item.unit_price * line.quantity
        total_amount += subtotal
        details.append(TransactionDetail(
            item=item,
            quantity=line.quantity,
            unit_price_at_order=item.unit_price,
            subtotal=subtotal,
        ))

    transaction = Transaction(
        requester_id=requester_id,
        total_amount=total_amount,
        status=initial_status_for(requester_role),
        customer_name=customer.name,
        customer_location=customer.location,
        notes=customer.notes,
        created_at=utcnow(),
        details=details,
    )

    db.session.add(transaction)
    db.session.flush()
    return transaction


def get_transaction(transaction_id: int, *, for_update: bool = False, refresh: bool = False) -> Transaction:
    """Point read with details. Raises NotFoundError for unknown ids."""
    if not DB_INTEGER_MIN <= transaction_id <= DB_INTEGER_MAX:
        raise NotFoundError(
            f"Transaction {transaction_id} not found",
            details={"transaction_id": transaction_id},
        )

    query = select(Transaction).where(Transaction.id == transaction_id)
    if for_update:
        query = lock_for_update(query)
    if refresh or for_update:
        query = query.execution_options(populate_existing=True)

    transaction = db.session.execute(query).scalars().first()
    if transaction is None:
        raise NotFoundError(
            f"Transaction {transaction_id} not found",
            details={"transaction_id": transaction_id},
        )
    return transaction


def can_view(viewer_role: str, viewer_id: int, transaction: Transaction) -> bool:
    if has_permission(viewer_role, "VIEW_ALL_TRANSACTIONS"):
        return True
    if transaction.requester_id == viewer_id:
        return True
    # Cashiers see the approval queue
    return viewer_role == ROLE_CASHIER and transaction.status == TXN_PENDING


def get_visible_transaction(transaction_id: int, viewer_role: str, viewer_id: int) -> Transaction:
    """Like get_transaction, but hides transactions the viewer may not see."""
    transaction = get_transaction(transaction_id)
    if not can_view(viewer_role, viewer_id, transaction):
        raise NotFoundError(
            f"Transaction {transaction_id} not found",
            details={"transaction_id": transaction_id},
        )
    return transaction


def list_transactions(
    *,
    viewer_role: str,
    viewer_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
    requester_id: int | None = None,
    status: str | None = None,
) -> list[Transaction]:
    """
    Filtered listing, newest first.

    Visibility:
    - VIEW_ALL_TRANSACTIONS: everything.
    - cashier: every PENDING order when filtering by status=PENDING,
      otherwise only their own orders.
    - anyone else: FORBIDDEN.

    Unknown status values are ignored rather than rejected.
    """
    if not has_permission(viewer_role, "VIEW_TRANSACTIONS"):
        raise ForbiddenError("Role cannot view transactions", details={"role": viewer_role})

    if status is not None and status not in TRANSACTION_STATUSES:
        status = None

    if not has_permission(viewer_role, "VIEW_ALL_TRANSACTIONS") and status != TXN_PENDING:
        requester_id = viewer_id

    query = select(Transaction)
    if start is not None:
        query = query.where(Transaction.created_at >= start)
    if end is not None:
        query = query.where(Transaction.created_at <= end)
    if requester_id is not None:
        query = query.where(Transaction.requester_id == requester_id)
    if status is not None:
        query = query.where(Transaction.status == status)

    query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return list(db.session.execute(query).scalars())


def set_status(
    transaction_id: int,
    new_status: str,
    *,
    decided_by_user_id: int | None = None,
    reason: str | None = None,
) -> Transaction:
    """
    Move a transaction along the state machine.

    The write is a compare-and-swap on the current status, so of several
    concurrent callers only one can leave PENDING; the others get
    INVALID_STATE.
    """
    if new_status not in TRANSACTION_STATUSES:
        raise OrderValidationError(f"Invalid status '{new_status}'")

    current = get_transaction(transaction_id)
    from_status = current.status
    if not can_transition(from_status, new_status):
        raise InvalidStateError(
            f"Transaction is not pending (status {from_status})",
            details={"transaction_id": transaction_id, "status": from_status},
        )

    values = {
        "status": new_status,
        "decided_by_user_id": decided_by_user_id,
        "decided_at": utcnow(),
        "version_id": Transaction.version_id + 1,
    }
    if new_status == TXN_REJECTED:
        values["rejection_reason"] = reason

    result = db.session.execute(
        update(Transaction)
        .where(Transaction.id == transaction_id, Transaction.status == from_status)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        latest = get_transaction(transaction_id, refresh=True)
        raise InvalidStateError(
            f"Transaction is not pending (status {latest.status})",
            details={"transaction_id": transaction_id, "status": latest.status},
        )

    return get_transaction(transaction_id, refresh=True)
