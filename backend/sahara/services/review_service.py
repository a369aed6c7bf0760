# Overview: Service-layer operations for review; encapsulates business logic and database work.

"""
Review Service

One review per completed booking. The unique constraint on
reviews.booking_id is the arbiter: two concurrent submissions for the same
booking cannot both commit, and the loser gets a ConflictError.

Reviews are hidden from public listings until an admin verifies them.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Booking, Review
from ..models.bookings import BOOKING_STATUS_COMPLETED
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    coerce_int,
    validate_payload,
)
from .concurrency import atomic


MAX_PHOTOS = 5
MAX_COMMENT_LENGTH = 1000

REVIEW_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"rating", "title", "comment", "photos"}),
    required_on_create=frozenset({"rating"}),
    ignored_fields=frozenset({"booking_id"}),
)


class ReviewError(Exception):
    """Review not allowed for this booking (400)."""


def _is_url(value) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def _enforce_rules(patch: dict) -> None:
    if "rating" in patch:
        rating = patch["rating"]
        if rating is None or not 1 <= rating <= 5:
            raise ValidationError("rating must be between 1 and 5")
    if patch.get("comment") and len(patch["comment"]) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"comment exceeds max length {MAX_COMMENT_LENGTH}")
    photos = patch.get("photos")
    if photos is not None:
        if not isinstance(photos, list) or not all(_is_url(p) for p in photos):
            raise ValidationError("photos must be a list of URLs")
        if len(photos) > MAX_PHOTOS:
            raise ValidationError(f"photos cannot contain more than {MAX_PHOTOS} entries")


def add_review(user_id: int, booking_id, payload: dict) -> Review:
    """
    Review a completed booking owned by user_id.

    Raises:
        NotFoundError: booking missing or not owned
        ReviewError: booking not completed
        ConflictError: booking already reviewed
    """
    if booking_id is None:
        raise ValidationError("Missing required fields: booking_id")
    booking_id = coerce_int("booking_id", booking_id)
    patch = validate_payload(model=Review, payload=payload, policy=REVIEW_POLICY, partial=False)
    _enforce_rules(patch)

    booking = db.session.query(Booking).filter_by(id=booking_id, user_id=user_id).first()
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.status != BOOKING_STATUS_COMPLETED:
        raise ReviewError("Only completed bookings can be reviewed")

    review = Review(
        user_id=user_id,
        booking_id=booking.id,
        tour_id=booking.tour_id,
        package_id=booking.package_id,
        hotel_id=booking.hotel_id,
        is_verified=False,
        is_featured=False,
        **patch,
    )
    try:
        with atomic() as session:
            session.add(review)
    except IntegrityError:
        raise ConflictError("This booking has already been reviewed")
    return review


def _owned_review(user_id: int, review_id: int) -> Review:
    review = db.session.query(Review).filter_by(id=review_id, user_id=user_id).first()
    if not review:
        raise NotFoundError("Review not found")
    return review


def update_review(user_id: int, review_id: int, payload: dict) -> Review:
    """Edits send the review back for verification."""
    patch = validate_payload(model=Review, payload=payload, policy=REVIEW_POLICY, partial=True)
    _enforce_rules(patch)

    review = _owned_review(user_id, review_id)
    for key, value in patch.items():
        setattr(review, key, value)
    if patch:
        review.is_verified = False
        review.verified_at = None
    review.updated_at = utcnow()
    db.session.commit()
    return review


def delete_review(user_id: int, review_id: int) -> None:
    review = _owned_review(user_id, review_id)
    with atomic() as session:
        session.delete(review)


def list_reviews(*, tour_id=None, package_id=None, hotel_id=None, limit: int = 50) -> list[Review]:
    """Verified reviews for exactly one tour, package or hotel; newest first."""
    filters = {
        key: coerce_int(key, value)
        for key, value in (("tour_id", tour_id), ("package_id", package_id), ("hotel_id", hotel_id))
        if value is not None
    }
    if len(filters) != 1:
        raise ValidationError("Exactly one of tour_id, package_id or hotel_id is required")

    return (
        db.session.query(Review)
        .filter_by(is_verified=True, **filters)
        .order_by(Review.is_featured.desc(), Review.created_at.desc(), Review.id.desc())
        .limit(limit)
        .all()
    )


def verify_review(review_id: int, *, is_verified: bool = True, is_featured: bool | None = None) -> Review:
    """Admin moderation: publish/unpublish and optionally feature a review."""
    review = db.session.get(Review, review_id)
    if not review:
        raise NotFoundError("Review not found")

    review.is_verified = is_verified
    review.verified_at = utcnow() if is_verified else None
    if is_featured is not None:
        review.is_featured = is_featured
    review.updated_at = utcnow()
    db.session.commit()
    return review
