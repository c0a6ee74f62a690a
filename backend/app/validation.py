from __future__ import annotations

from typing import Any

from app.extensions import DB_INTEGER_MAX, DB_INTEGER_MIN
from app.services.errors import OrderValidationError
from app.services.transaction_service import CustomerInfo, OrderLine
from app.time_utils import parse_iso_datetime, parse_range_end


# Upper bound on a single line; prevents integer overflow in subtotal math
MAX_LINE_QUANTITY = 10_000

# Column widths of the free-text order fields
CUSTOMER_FIELD_MAX_LENGTH = 255
NOTES_MAX_LENGTH = 2000


def _in_db_range(value: int, field: str) -> int:
    if value < DB_INTEGER_MIN or value > DB_INTEGER_MAX:
        raise OrderValidationError(f"{field} is out of range")
    return value


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for JSON and query-string input.

    Accepts ints and plain digit strings within the 64-bit column range.
    Rejects booleans, floats, decimals and scientific notation.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return _in_db_range(value, field)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise OrderValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e3")
        if 'e' in stripped.lower():
            raise OrderValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise OrderValidationError(f"{field} must be an integer (no decimals)")
        try:
            parsed = int(stripped)
        except ValueError:
            raise OrderValidationError(f"{field} must be an integer")
        return _in_db_range(parsed, field)
    if isinstance(value, float):
        raise OrderValidationError(f"{field} must be an integer, not a decimal")
    raise OrderValidationError(f"{field} must be an integer")


def parse_order_lines(raw_lines: Any) -> list[OrderLine]:
    """
    Normalize the requested lines of an order.

    Each entry is an OrderLine or a mapping with itemId (or item_id) and
    quantity. Quantities must be positive integers.
    """
    if not isinstance(raw_lines, (list, tuple)) or not raw_lines:
        raise OrderValidationError("Items array is required")

    lines: list[OrderLine] = []
    for index, raw in enumerate(raw_lines):
        if isinstance(raw, OrderLine):
            item_id, quantity = raw.item_id, raw.quantity
        elif isinstance(raw, dict):
            item_id = raw.get("itemId", raw.get("item_id"))
            quantity = raw.get("quantity")
        else:
            raise OrderValidationError(f"items[{index}] must be an object")

        if item_id is None or quantity is None:
            raise OrderValidationError(f"items[{index}] requires itemId and quantity")

        item_id = coerce_int(item_id, f"items[{index}].itemId")
        quantity = coerce_int(quantity, f"items[{index}].quantity")

        if quantity <= 0:
            raise OrderValidationError(f"items[{index}].quantity must be > 0")
        if quantity > MAX_LINE_QUANTITY:
            raise OrderValidationError(f"items[{index}].quantity cannot exceed {MAX_LINE_QUANTITY}")

        lines.append(OrderLine(item_id=item_id, quantity=quantity))

    return lines


def _clean_text(value: Any, field: str, max_length: int) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if len(text) > max_length:
        raise OrderValidationError(f"{field} exceeds max length {max_length}")
    return text


def parse_customer_info(customer_name: Any = None, customer_location: Any = None, notes: Any = None) -> CustomerInfo:
    """Blank strings collapse to None; required-ness is decided by the workflow."""
    return CustomerInfo(
        name=_clean_text(customer_name, "customerName", CUSTOMER_FIELD_MAX_LENGTH),
        location=_clean_text(customer_location, "customerLocation", CUSTOMER_FIELD_MAX_LENGTH),
        notes=_clean_text(notes, "notes", NOTES_MAX_LENGTH),
    )


def parse_date_range(start: str | None, end: str | None):
    """Parse inclusive listing bounds; a bare end date covers the whole day."""
    try:
        start_at = parse_iso_datetime(start)
        end_at = parse_range_end(end)
    except ValueError:
        raise OrderValidationError("startDate and endDate must be ISO-8601 dates")

    if start_at and end_at and start_at > end_at:
        raise OrderValidationError("startDate must not be after endDate")
    return start_at, end_at
