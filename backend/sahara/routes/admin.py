# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import booking_service
from ..validation import ValidationError
from ..decorators import require_admin


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/bookings")
@require_admin
def list_all_bookings_route():
    """
    List bookings across all users, newest first.

    Query params:
    - status, payment_status: exact-match filters
    - date_from, date_to: creation date range (YYYY-MM-DD, inclusive)
    - page, per_page: optional pagination (per_page defaults to 15, max 100)
    """
    try:
        result = booking_service.list_all_bookings(
            status=request.args.get("status"),
            payment_status=request.args.get("payment_status"),
            date_from=request.args.get("date_from"),
            date_to=request.args.get("date_to"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
        return jsonify(result), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list bookings for admin")
        return jsonify({"message": "Internal server error"}), 500
