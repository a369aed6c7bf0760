# Overview: Flask API routes for cart operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import cart_service
from ..services.cart_service import CartOwner
from ..validation import ValidationError, NotFoundError
from ..decorators import current_user_id


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


def _resolve_owner(data: dict | None = None) -> CartOwner | None:
    """Logged-in user, else the anonymous session_id from the body or query string."""
    session_id = (data or {}).get("session_id") or request.args.get("session_id")
    return CartOwner.resolve(current_user_id(), session_id)


def _missing_owner():
    return jsonify({"message": "session_id is required for anonymous carts"}), 400


@cart_bp.get("")
def list_cart_route():
    try:
        owner = _resolve_owner()
        if owner is None:
            return jsonify({"items": [], "total_cents": 0}), 200
        items = cart_service.list_items(owner)
        total = sum(item["line_total_cents"] for item in items)
        return jsonify({"items": items, "total_cents": total}), 200
    except Exception:
        current_app.logger.exception("Failed to list cart")
        return jsonify({"message": "Internal server error"}), 500


@cart_bp.post("")
def add_cart_item_route():
    data = request.get_json(silent=True) or {}
    try:
        owner = _resolve_owner(data)
        if owner is None:
            return _missing_owner()
        item = cart_service.add_item(owner, data)
        return jsonify({"item": item.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add cart item")
        return jsonify({"message": "Internal server error"}), 500


@cart_bp.patch("/<int:cart_item_id>")
def update_cart_item_route(cart_item_id: int):
    data = request.get_json(silent=True) or {}
    try:
        owner = _resolve_owner(data)
        if owner is None:
            return _missing_owner()
        item = cart_service.update_item(owner, cart_item_id, data)
        return jsonify({"item": item.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update cart item")
        return jsonify({"message": "Internal server error"}), 500


@cart_bp.delete("/<int:cart_item_id>")
def remove_cart_item_route(cart_item_id: int):
    data = request.get_json(silent=True) or {}
    try:
        owner = _resolve_owner(data)
        if owner is None:
            return _missing_owner()
        cart_service.remove_item(owner, cart_item_id)
        return jsonify({"message": "Item removed from cart"}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to remove cart item")
        return jsonify({"message": "Internal server error"}), 500


@cart_bp.delete("/clear")
def clear_cart_route():
    data = request.get_json(silent=True) or {}
    try:
        owner = _resolve_owner(data)
        if owner is None:
            return _missing_owner()
        deleted = cart_service.clear(owner)
        return jsonify({"message": "Cart cleared", "deleted": deleted}), 200
    except Exception:
        current_app.logger.exception("Failed to clear cart")
        return jsonify({"message": "Internal server error"}), 500
