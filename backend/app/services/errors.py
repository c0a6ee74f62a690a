# Overview: Domain error hierarchy shared by the catalog, ledger and approval services.

"""
Every failure the order services report is an OrderError subclass. Each one
carries a stable machine-readable code and the HTTP status the API layer
answers with, plus a details dict naming the offending entity.
"""

from __future__ import annotations


class OrderError(Exception):
    """Base class for order and stock errors (INTERNAL when raised directly)."""
    code = "INTERNAL"
    http_status = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class OrderValidationError(OrderError):
    """Missing required fields, malformed quantities, unavailable items."""
    code = "VALIDATION_ERROR"
    http_status = 400


class NotFoundError(OrderError):
    code = "NOT_FOUND"
    http_status = 404


class ForbiddenError(OrderError):
    """The caller's role lacks the privilege for the operation."""
    code = "FORBIDDEN"
    http_status = 403


class InvalidStateError(OrderError):
    """A lifecycle precondition was violated, e.g. approving a non-PENDING order."""
    code = "INVALID_STATE"
    http_status = 400


class InsufficientStockError(OrderError):
    code = "INSUFFICIENT_STOCK"
    http_status = 400

    def __init__(self, item_id: int, item_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {item_name}. Available: {available}",
            details={
                "item_id": item_id,
                "item_name": item_name,
                "available": available,
                "requested": requested,
            },
        )
        self.item_id = item_id
        self.available = available
        self.requested = requested
