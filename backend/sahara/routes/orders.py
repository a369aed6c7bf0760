# Overview: Flask API routes for orders operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import order_service
from ..services.cart_service import CartOwner
from ..services.order_service import EmptyCartError
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth, current_user_id


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
def checkout_route():
    """
    Convert the caller's cart into an order.

    Anonymous callers identify their cart with session_id in the body.
    """
    data = request.get_json(silent=True) or {}
    try:
        owner = CartOwner.resolve(current_user_id(), data.get("session_id"))
        if owner is None:
            return jsonify({"message": "session_id is required for anonymous checkout"}), 400

        order = order_service.create_order(owner, data)
        current_app.logger.info(
            "Order %s created: %s item(s), %s cents",
            order.order_number, len(order.items), order.total_amount_cents,
        )
        return jsonify({
            "order_number": order.order_number,
            "order_id": order.id,
            "order": order.to_dict(include_items=True),
        }), 201
    except EmptyCartError as e:
        return jsonify({"message": str(e)}), 400
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"message": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
def list_orders_route():
    try:
        orders = order_service.list_orders(g.current_user.id)
        return jsonify({"orders": [o.to_dict() for o in orders]}), 200
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"message": "Internal server error"}), 500


@orders_bp.get("/<string:order_number>")
def get_order_route(order_number: str):
    try:
        order = order_service.get_order(order_number)
        return jsonify({"order": order.to_dict(include_items=True)}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to get order")
        return jsonify({"message": "Internal server error"}), 500
