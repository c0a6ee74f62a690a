# Overview: Approval workflow; order creation, approval and rejection as atomic units of work.

"""
Approval Workflow

Coordinates the catalog store and the transaction ledger. Every public
operation here is one atomic unit of work: either all of its reads, checks
and writes commit, or none do.

ORDER CREATION (rule R1):
- Cashier (COMPLETE_SALE): order is COMPLETED and every line's stock is
  consumed in the same unit of work. Any line failing the guarded decrement
  aborts the whole order with INSUFFICIENT_STOCK.
- End-user: order is PENDING, stock is untouched. Pickup name and location
  are mandatory.

APPROVAL:
- PENDING -> APPROVED, then every line's stock is consumed. If stock was
  taken by other sales in the meantime the approval fails with
  INSUFFICIENT_STOCK and the order stays PENDING. Concurrent pending orders
  may compete for the same stock; losing that race at approval time is an
  expected outcome, not a fault.

REJECTION:
- PENDING -> REJECTED, no stock change. The reason is stored as-is.

Callers pass the requester identity (id and role) explicitly; nothing here
reads request or session state.
"""

from __future__ import annotations

from typing import Any, Iterable

from ..extensions import db
from ..models import Transaction
from ..models.catalog import ITEM_AVAILABLE
from ..models.orders import TXN_APPROVED, TXN_COMPLETED, TXN_PENDING, TXN_REJECTED
from ..permissions import has_permission
from ..validation import parse_customer_info, parse_order_lines
from . import catalog_service, transaction_service
from .concurrency import begin_write_transaction, run_with_retry
from .errors import (
    ForbiddenError,
    InsufficientStockError,
    InvalidStateError,
    OrderValidationError,
)
from .transaction_service import OrderLine


REJECTION_REASON_MAX_LENGTH = 500


def _validate_availability(lines: list[OrderLine]) -> None:
    """
    Every requested item must be AVAILABLE with enough stock for the total
    quantity requested across all lines of the order.
    """
    requested: dict[int, int] = {}
    for line in lines:
        requested[line.item_id] = requested.get(line.item_id, 0) + line.quantity

    for item_id, quantity in requested.items():
        item = catalog_service.get_item(item_id, refresh=True)

        if item.status != ITEM_AVAILABLE:
            raise OrderValidationError(
                f"Item {item.name} is not available",
                details={"item_id": item.id, "item_name": item.name, "status": item.status},
            )

        if item.stock_quantity < quantity:
            raise InsufficientStockError(
                item_id=item.id,
                item_name=item.name,
                available=item.stock_quantity,
                requested=quantity,
            )


def _require_approver(role: str) -> None:
    if not has_permission(role, "APPROVE_TRANSACTION"):
        raise ForbiddenError(
            "Only cashiers can approve or reject transactions",
            details={"role": role},
        )


def place_order(
    requester_id: int,
    requester_role: str,
    lines: Iterable[Any],
    *,
    customer_name: str | None = None,
    customer_location: str | None = None,
    notes: str | None = None,
) -> Transaction:
    """
    Create an order for the requester.

    `lines` holds OrderLine values or {"itemId", "quantity"} mappings.
    Returns the committed transaction with its details.
    """
    if not has_permission(requester_role, "CREATE_TRANSACTION"):
        raise ForbiddenError(
            "Only cashiers and users can create transactions",
            details={"role": requester_role},
        )

    order_lines = parse_order_lines(list(lines) if lines is not None else None)
    customer = parse_customer_info(customer_name, customer_location, notes)

    if transaction_service.initial_status_for(requester_role) == TXN_PENDING:
        if not customer.name or not customer.location:
            raise OrderValidationError("Customer name and location are required for user orders")

    def _op():
        begin_write_transaction()
        _validate_availability(order_lines)

        transaction = transaction_service.create_transaction(
            requester_role,
            requester_id,
            order_lines,
            customer,
        )

        if transaction.status == TXN_COMPLETED:
            # Re-checked by the guarded decrement at commit time
            for line in order_lines:
                catalog_service.decrement_stock(line.item_id, line.quantity)

        db.session.commit()
        return transaction

    return run_with_retry(_op)


def approve(transaction_id: int, approver_role: str, approver_id: int | None = None) -> Transaction:
    """
    Approve a PENDING order and consume its stock.

    Raises ForbiddenError, NotFoundError, InvalidStateError or
    InsufficientStockError; on any of them nothing is changed.
    """
    _require_approver(approver_role)

    def _op():
        begin_write_transaction()
        transaction = transaction_service.get_transaction(transaction_id, for_update=True)
        if transaction.status != TXN_PENDING:
            raise InvalidStateError(
                f"Transaction is not pending (status {transaction.status})",
                details={"transaction_id": transaction_id, "status": transaction.status},
            )

        lines = [(detail.item_id, detail.quantity) for detail in transaction.details]

        transaction = transaction_service.set_status(
            transaction_id,
            TXN_APPROVED,
            decided_by_user_id=approver_id,
        )
        for item_id, quantity in lines:
            catalog_service.decrement_stock(item_id, quantity)

        db.session.commit()
        return transaction

    return run_with_retry(_op)


def reject(
    transaction_id: int,
    approver_role: str,
    approver_id: int | None = None,
    reason: str | None = None,
) -> Transaction:
    """Reject a PENDING order. Stock is never touched."""
    _require_approver(approver_role)

    if reason is not None:
        reason = str(reason).strip() or None
    if reason and len(reason) > REJECTION_REASON_MAX_LENGTH:
        raise OrderValidationError(f"reason exceeds max length {REJECTION_REASON_MAX_LENGTH}")

    def _op():
        begin_write_transaction()
        transaction = transaction_service.get_transaction(transaction_id, for_update=True)
        if transaction.status != TXN_PENDING:
            raise InvalidStateError(
                f"Transaction is not pending (status {transaction.status})",
                details={"transaction_id": transaction_id, "status": transaction.status},
            )

        transaction = transaction_service.set_status(
            transaction_id,
            TXN_REJECTED,
            decided_by_user_id=approver_id,
            reason=reason,
        )

        db.session.commit()
        return transaction

    return run_with_retry(_op)
