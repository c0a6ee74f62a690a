# Overview: Flask API routes for the public menu catalog.

# backend/app/routes/items.py
"""
Catalog read routes.

Public: the guest and menu pages list items before anyone logs in.
Item creation, supplier submissions and item approval are handled elsewhere.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import catalog_service
from ..services.errors import OrderError


items_bp = Blueprint("items", __name__, url_prefix="/api/items")

MAX_LIST_LIMIT = 100


@items_bp.get("")
def list_items_route():
    """
    List catalog items.

    Query params:
    - status: AVAILABLE | PENDING_APPROVAL | OUT_OF_STOCK | REJECTED (optional)
    - bestSeller: "true" to rank by quantity sold
    - limit: int (optional, max 100)
    """
    status = request.args.get("status") or None
    best_seller = request.args.get("bestSeller", "").lower() == "true"
    limit = request.args.get("limit", type=int)

    if limit is not None and (limit <= 0 or limit > MAX_LIST_LIMIT):
        return jsonify({"error": f"limit must be between 1 and {MAX_LIST_LIMIT}"}), 400

    try:
        items = catalog_service.list_items(status=status, best_seller=best_seller, limit=limit)
        return jsonify({"items": [item.to_dict() for item in items]}), 200
    except OrderError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list items")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.get("/<int:item_id>")
def get_item_route(item_id: int):
    try:
        item = catalog_service.get_item(item_id)
        return jsonify({"item": item.to_dict()}), 200
    except OrderError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to get item")
        return jsonify({"error": "Internal server error"}), 500
