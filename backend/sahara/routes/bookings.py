# Overview: Flask API routes for bookings operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import booking_service
from ..services.booking_service import BookingError
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth, require_admin


bookings_bp = Blueprint("bookings", __name__, url_prefix="/api/bookings")


@bookings_bp.post("")
@require_auth
def create_booking_route():
    data = request.get_json(silent=True) or {}
    try:
        booking = booking_service.create_booking(g.current_user.id, data)
        current_app.logger.info(
            "Booking %s created by user %s (%s cents)",
            booking.booking_number, g.current_user.id, booking.total_amount_cents,
        )
        return jsonify({"booking": booking.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except BookingError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create booking")
        return jsonify({"message": "Internal server error"}), 500


@bookings_bp.get("")
@require_auth
def list_bookings_route():
    try:
        bookings = booking_service.list_bookings(g.current_user.id, status=request.args.get("status"))
        return jsonify({"bookings": [b.to_dict() for b in bookings]}), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list bookings")
        return jsonify({"message": "Internal server error"}), 500


@bookings_bp.get("/<int:booking_id>")
@require_auth
def get_booking_route(booking_id: int):
    try:
        booking = booking_service.get_booking(g.current_user.id, booking_id)
        return jsonify({"booking": booking.to_dict(include_payments=True)}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to get booking")
        return jsonify({"message": "Internal server error"}), 500


@bookings_bp.put("/<int:booking_id>")
@require_auth
def update_booking_route(booking_id: int):
    data = request.get_json(silent=True) or {}
    try:
        booking = booking_service.update_booking(g.current_user.id, booking_id, data)
        return jsonify({"booking": booking.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except BookingError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update booking")
        return jsonify({"message": "Internal server error"}), 500


@bookings_bp.post("/<int:booking_id>/cancel")
@require_auth
def cancel_booking_route(booking_id: int):
    data = request.get_json(silent=True) or {}
    try:
        booking = booking_service.cancel_booking(
            g.current_user.id, booking_id, data.get("cancellation_reason") or data.get("reason"),
        )
        return jsonify({"booking": booking.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except BookingError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to cancel booking")
        return jsonify({"message": "Internal server error"}), 500


@bookings_bp.patch("/<int:booking_id>/status")
@require_admin
def update_booking_status_route(booking_id: int):
    data = request.get_json(silent=True) or {}
    try:
        booking = booking_service.update_booking_status(booking_id, data.get("status"))
        current_app.logger.info(
            "Booking %s set to %s by admin %s", booking.booking_number, booking.status, g.current_user.id,
        )
        return jsonify({"booking": booking.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update booking status")
        return jsonify({"message": "Internal server error"}), 500
