# Overview: Flask API routes for orders; parses input and returns JSON responses.

# backend/app/routes/transactions.py
"""
Transaction (order) API routes.

The authenticated user's id and role are handed to the services explicitly.
Domain errors come back as {"error", "code", "details"} with the error's
HTTP status; anything unexpected is logged and answered with 500.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import approval_service, transaction_service
from ..services.errors import OrderError, OrderValidationError
from ..models.orders import TXN_COMPLETED
from ..validation import coerce_int, parse_date_range
from ..decorators import require_auth, require_permission


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _domain_error(e: OrderError, action: str):
    current_app.logger.warning(
        "%s failed for user=%s: %s %s",
        action, g.current_user.id, e.code, e,
    )
    return jsonify(e.to_dict()), e.http_status


def _json_object() -> dict:
    """Optional JSON body; anything other than an object is a validation error."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise OrderValidationError("Request body must be a JSON object")
    return data


@transactions_bp.get("")
@require_auth
@require_permission("VIEW_TRANSACTIONS")
def list_transactions_route():
    """
    List transactions newest first.

    Query params: startDate, endDate (ISO-8601, inclusive), userId, status.

    Requires: VIEW_TRANSACTIONS permission
    Available to: PENGURUS (everything), KASIR (own orders, or the whole
    PENDING queue when status=PENDING)
    """
    try:
        start, end = parse_date_range(request.args.get("startDate"), request.args.get("endDate"))
        user_id = request.args.get("userId")
        requester_id = coerce_int(user_id, "userId") if user_id else None

        transactions = transaction_service.list_transactions(
            viewer_role=g.current_user.role,
            viewer_id=g.current_user.id,
            start=start,
            end=end,
            requester_id=requester_id,
            status=request.args.get("status") or None,
        )
        return jsonify({"transactions": [t.to_dict() for t in transactions]}), 200

    except OrderError as e:
        return _domain_error(e, "List transactions")
    except Exception:
        current_app.logger.exception("Failed to list transactions")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.post("")
@require_auth
@require_permission("CREATE_TRANSACTION")
def create_transaction_route():
    """
    Place an order.

    Body: {items: [{itemId, quantity}], customerName?, customerLocation?, notes?}

    Requires: CREATE_TRANSACTION permission
    Available to: KASIR (completed immediately), USER (pending approval,
    customerName and customerLocation required)
    """
    try:
        data = _json_object()

        transaction = approval_service.place_order(
            g.current_user.id,
            g.current_user.role,
            data.get("items"),
            customer_name=data.get("customerName"),
            customer_location=data.get("customerLocation"),
            notes=data.get("notes"),
        )

        if transaction.status == TXN_COMPLETED:
            current_app.logger.info(
                "Sale %s completed by user=%s total=%s",
                transaction.id, g.current_user.id, transaction.total_amount,
            )
        else:
            current_app.logger.info(
                "Order %s placed by user=%s awaiting approval",
                transaction.id, g.current_user.id,
            )

        return jsonify({"transaction": transaction.to_dict()}), 201

    except OrderError as e:
        return _domain_error(e, "Create transaction")
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.get("/<int:transaction_id>")
@require_auth
def get_transaction_route(transaction_id: int):
    """
    Get one transaction with its details.

    PENGURUS sees any, KASIR sees PENDING ones and their own, everyone
    else only their own. Hidden transactions answer 404.
    """
    try:
        transaction = transaction_service.get_visible_transaction(
            transaction_id,
            g.current_user.role,
            g.current_user.id,
        )
        return jsonify({"transaction": transaction.to_dict()}), 200
    except OrderError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to get transaction")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.post("/<int:transaction_id>/approve")
@require_auth
@require_permission("APPROVE_TRANSACTION")
def approve_transaction_route(transaction_id: int):
    """
    Approve a PENDING order and consume its stock.

    Requires: APPROVE_TRANSACTION permission
    Available to: KASIR
    """
    try:
        transaction = approval_service.approve(
            transaction_id,
            g.current_user.role,
            approver_id=g.current_user.id,
        )
        current_app.logger.info("Transaction %s approved by user=%s", transaction_id, g.current_user.id)
        return jsonify({"transaction": transaction.to_dict()}), 200

    except OrderError as e:
        return _domain_error(e, f"Approve transaction {transaction_id}")
    except Exception:
        current_app.logger.exception("Failed to approve transaction")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.post("/<int:transaction_id>/reject")
@require_auth
@require_permission("APPROVE_TRANSACTION")
def reject_transaction_route(transaction_id: int):
    """
    Reject a PENDING order. Optional body: {reason}.

    Requires: APPROVE_TRANSACTION permission
    Available to: KASIR
    """
    try:
        data = _json_object()

        transaction = approval_service.reject(
            transaction_id,
            g.current_user.role,
            approver_id=g.current_user.id,
            reason=data.get("reason"),
        )
        current_app.logger.info("Transaction %s rejected by user=%s", transaction_id, g.current_user.id)
        return jsonify({"transaction": transaction.to_dict()}), 200

    except OrderError as e:
        return _domain_error(e, f"Reject transaction {transaction_id}")
    except Exception:
        current_app.logger.exception("Failed to reject transaction")
        return jsonify({"error": "Internal server error"}), 500
