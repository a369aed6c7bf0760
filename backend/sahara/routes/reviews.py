# Overview: Flask API routes for reviews operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import review_service
from ..services.review_service import ReviewError
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth, require_admin


reviews_bp = Blueprint("reviews", __name__, url_prefix="/api/reviews")


@reviews_bp.post("")
@require_auth
def add_review_route():
    data = request.get_json(silent=True) or {}
    try:
        review = review_service.add_review(g.current_user.id, data.get("booking_id"), data)
        return jsonify({"review": review.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except ReviewError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to add review")
        return jsonify({"message": "Internal server error"}), 500


@reviews_bp.get("")
def list_reviews_route():
    """Public listing of verified reviews for one tour, package or hotel."""
    try:
        reviews = review_service.list_reviews(
            tour_id=request.args.get("tour_id"),
            package_id=request.args.get("package_id"),
            hotel_id=request.args.get("hotel_id"),
        )
        ratings = [r.rating for r in reviews]
        return jsonify({
            "reviews": [r.to_dict() for r in reviews],
            "count": len(ratings),
            "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else None,
        }), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list reviews")
        return jsonify({"message": "Internal server error"}), 500


@reviews_bp.put("/<int:review_id>")
@require_auth
def update_review_route(review_id: int):
    data = request.get_json(silent=True) or {}
    try:
        review = review_service.update_review(g.current_user.id, review_id, data)
        return jsonify({"review": review.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update review")
        return jsonify({"message": "Internal server error"}), 500


@reviews_bp.delete("/<int:review_id>")
@require_auth
def delete_review_route(review_id: int):
    try:
        review_service.delete_review(g.current_user.id, review_id)
        return jsonify({"message": "Review deleted"}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete review")
        return jsonify({"message": "Internal server error"}), 500


@reviews_bp.patch("/<int:review_id>/verify")
@require_admin
def verify_review_route(review_id: int):
    data = request.get_json(silent=True) or {}
    try:
        is_verified = data.get("is_verified", True)
        is_featured = data.get("is_featured")
        if not isinstance(is_verified, bool) or (is_featured is not None and not isinstance(is_featured, bool)):
            return jsonify({"message": "is_verified and is_featured must be true or false"}), 400

        review = review_service.verify_review(review_id, is_verified=is_verified, is_featured=is_featured)
        return jsonify({"review": review.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to verify review")
        return jsonify({"message": "Internal server error"}), 500
