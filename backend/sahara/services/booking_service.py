# Overview: Service-layer operations for booking; encapsulates business logic and database work.

"""
Booking Service

A booking reserves a tour, a package, or a room in a hotel for one user.
It starts pending/unpaid; its balance is only ever moved by
payment_service. Customers may edit a booking while it is pending and may
cancel it with a reason. Status transitions beyond that are admin-driven
(update_booking_status) and stamp confirmed_at / cancelled_at.
"""

from __future__ import annotations

import secrets
from datetime import datetime, time, timedelta

from ..extensions import db
from ..models import Booking, Hotel, Package, Room, Tour
from ..models.bookings import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_PENDING,
    BOOKING_STATUSES,
    PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_PARTIAL,
    PAYMENT_STATUS_UNPAID,
    payment_status_for,
)
from ..time_utils import parse_iso_date, today, utcnow
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    coerce_int,
    enforce_rules_booking,
    validate_payload,
)
from .concurrency import lock_for_update, run_with_retry


BOOKING_TYPES = ("tour", "package", "hotel")
PAYMENT_STATUSES = (PAYMENT_STATUS_UNPAID, PAYMENT_STATUS_PARTIAL, PAYMENT_STATUS_PAID)

_EDITABLE_FIELDS = frozenset({
    "travel_date", "return_date",
    "adults", "children", "infants",
    "special_requests",
})

BOOKING_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=_EDITABLE_FIELDS | {"customer_details", "payment_method"},
    required_on_create=frozenset({"travel_date"}),
    ignored_fields=frozenset({"type", "item_id", "room_id"}),
)

BOOKING_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=_EDITABLE_FIELDS | {"customer_details"},
)


class BookingError(Exception):
    """Booking rule violated (wrong state, room mismatch, capacity)."""


def generate_booking_number() -> str:
    return "SJB" + secrets.token_hex(6).upper()


def _nights(travel_date, return_date) -> int:
    if return_date is None:
        return 1
    return max(1, (return_date - travel_date).days)


def _price_booking(booking: Booking) -> int:
    """Total in cents for the booking's current target and occupancy."""
    if booking.tour_id is not None:
        item = booking.tour or db.session.get(Tour, booking.tour_id)
        return item.effective_price_cents * (booking.adults + booking.children)
    if booking.package_id is not None:
        item = booking.package or db.session.get(Package, booking.package_id)
        return item.effective_price_cents * (booking.adults + booking.children)

    room = booking.room or db.session.get(Room, booking.room_id)
    if room.max_adults is not None and booking.adults > room.max_adults:
        raise BookingError(f"Room allows at most {room.max_adults} adults")
    if booking.children > (room.max_children or 0):
        raise BookingError(f"Room allows at most {room.max_children or 0} children")
    if booking.infants > (room.max_infants or 0):
        raise BookingError(f"Room allows at most {room.max_infants or 0} infants")
    return room.effective_price_cents * _nights(booking.travel_date, booking.return_date)


def _resolve_target(payload: dict) -> dict:
    """Map {type, item_id, room_id} onto the booking's foreign keys."""
    booking_type = payload.get("type")
    if booking_type not in BOOKING_TYPES:
        raise ValidationError(f"type must be one of {', '.join(BOOKING_TYPES)}")
    if payload.get("item_id") is None:
        raise ValidationError("Missing required fields: item_id")
    item_id = coerce_int("item_id", payload["item_id"])

    if booking_type == "tour":
        if not db.session.get(Tour, item_id):
            raise NotFoundError("Tour not found")
        return {"tour_id": item_id}

    if booking_type == "package":
        if not db.session.get(Package, item_id):
            raise NotFoundError("Package not found")
        return {"package_id": item_id}

    if not db.session.get(Hotel, item_id):
        raise NotFoundError("Hotel not found")
    if payload.get("room_id") is None:
        raise ValidationError("room_id is required for hotel bookings")
    room_id = coerce_int("room_id", payload["room_id"])
    room = db.session.get(Room, room_id)
    if not room or room.hotel_id != item_id:
        raise NotFoundError("Room not found for this hotel")
    return {"hotel_id": item_id, "room_id": room_id}


def create_booking(user_id: int, payload: dict) -> Booking:
    """
    Create a pending, unpaid booking.

    Raises:
        ValidationError: bad payload or dates
        NotFoundError: tour/package/hotel/room missing
        BookingError: room capacity exceeded
    """
    patch = validate_payload(model=Booking, payload=payload, policy=BOOKING_CREATE_POLICY, partial=False)
    patch.setdefault("adults", 1)
    patch.setdefault("children", 0)
    patch.setdefault("infants", 0)
    enforce_rules_booking(patch, today=today())
    target = _resolve_target(payload)

    booking = Booking(
        booking_number=generate_booking_number(),
        user_id=user_id,
        status=BOOKING_STATUS_PENDING,
        booking_date=utcnow(),
        paid_amount_cents=0,
        payment_status=PAYMENT_STATUS_UNPAID,
        **target,
        **patch,
    )
    booking.total_amount_cents = _price_booking(booking)

    db.session.add(booking)
    db.session.commit()
    return booking


def list_bookings(user_id: int, status: str | None = None) -> list[Booking]:
    query = db.session.query(Booking).filter(Booking.user_id == user_id)
    if status:
        if status not in BOOKING_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(BOOKING_STATUSES)}")
        query = query.filter(Booking.status == status)
    return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


def _parse_filter_date(key: str, value: str | None):
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an ISO-8601 date (YYYY-MM-DD)")


def list_all_bookings(
    status: str | None = None,
    payment_status: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Admin listing across every user, newest first.

    date_from / date_to bound the creation date and are both inclusive.
    Without page every match is returned; with it, per_page defaults to 15
    (max 100).

    Returns:
        Dict with 'bookings', 'count', and pagination metadata if paginated.
    """
    query = db.session.query(Booking)
    if status:
        if status not in BOOKING_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(BOOKING_STATUSES)}")
        query = query.filter(Booking.status == status)
    if payment_status:
        if payment_status not in PAYMENT_STATUSES:
            raise ValidationError(f"payment_status must be one of {', '.join(PAYMENT_STATUSES)}")
        query = query.filter(Booking.payment_status == payment_status)

    start = _parse_filter_date("date_from", date_from)
    end = _parse_filter_date("date_to", date_to)
    if start and end and end < start:
        raise ValidationError("date_to must not be before date_from")
    if start:
        query = query.filter(Booking.created_at >= datetime.combine(start, time.min))
    if end:
        query = query.filter(Booking.created_at < datetime.combine(end + timedelta(days=1), time.min))

    query = query.order_by(Booking.created_at.desc(), Booking.id.desc())

    if page is None:
        bookings = query.all()
        return {"bookings": [b.to_dict() for b in bookings], "count": len(bookings)}

    per_page = min(per_page or 15, 100)
    page = max(page, 1)
    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    bookings = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "bookings": [b.to_dict() for b in bookings],
        "count": len(bookings),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_booking(user_id: int, booking_id: int) -> Booking:
    """Booking owned by user_id; NotFoundError for missing or foreign rows."""
    booking = db.session.query(Booking).filter_by(id=booking_id, user_id=user_id).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def update_booking(user_id: int, booking_id: int, payload: dict) -> Booking:
    """
    Edit dates, occupancy or requests of a pending booking and reprice it.

    Raises:
        BookingError: booking not pending, or new total below amount already paid
    """
    patch = validate_payload(model=Booking, payload=payload, policy=BOOKING_UPDATE_POLICY, partial=True)

    def _do_update():
        booking = lock_for_update(
            db.session.query(Booking).filter_by(id=booking_id, user_id=user_id)
        ).first()
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.status != BOOKING_STATUS_PENDING:
            raise BookingError("Only pending bookings can be modified")

        enforce_rules_booking(patch, today=today())
        travel_date = patch.get("travel_date", booking.travel_date)
        return_date = patch.get("return_date", booking.return_date)
        if return_date is not None and return_date <= travel_date:
            raise ValidationError("return_date must be after travel_date")

        for key, value in patch.items():
            setattr(booking, key, value)

        total = _price_booking(booking)
        if total < booking.paid_amount_cents:
            raise BookingError("Updated total cannot be less than the amount already paid")
        booking.total_amount_cents = total
        booking.payment_status = payment_status_for(booking.paid_amount_cents, total)
        booking.updated_at = utcnow()
        db.session.commit()
        return booking

    try:
        return run_with_retry(_do_update)
    except Exception:
        db.session.rollback()
        raise


def cancel_booking(user_id: int, booking_id: int, reason: str | None) -> Booking:
    reason = (reason or "").strip() if isinstance(reason, str) else ""
    if not reason:
        raise ValidationError("cancellation_reason is required")
    if len(reason) > 500:
        raise ValidationError("cancellation_reason exceeds max length 500")

    def _do_cancel():
        booking = lock_for_update(
            db.session.query(Booking).filter_by(id=booking_id, user_id=user_id)
        ).first()
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.status == BOOKING_STATUS_CANCELLED:
            raise BookingError("Booking is already cancelled")

        now = utcnow()
        booking.status = BOOKING_STATUS_CANCELLED
        booking.cancellation_reason = reason
        booking.cancelled_at = now
        booking.updated_at = now
        db.session.commit()
        return booking

    try:
        return run_with_retry(_do_cancel)
    except Exception:
        db.session.rollback()
        raise


def update_booking_status(booking_id: int, status: str) -> Booking:
    """
    Admin status change. Any of the four statuses may follow any other.

    Entering confirmed stamps confirmed_at; entering cancelled stamps
    cancelled_at. The other timestamp is left as it was.
    """
    if status not in BOOKING_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(BOOKING_STATUSES)}")

    def _do_update():
        booking = lock_for_update(db.session.query(Booking).filter_by(id=booking_id)).first()
        if not booking:
            raise NotFoundError("Booking not found")

        now = utcnow()
        booking.status = status
        if status == BOOKING_STATUS_CONFIRMED:
            booking.confirmed_at = now
        elif status == BOOKING_STATUS_CANCELLED:
            booking.cancelled_at = now
        booking.updated_at = now
        db.session.commit()
        return booking

    try:
        return run_with_retry(_do_update)
    except Exception:
        db.session.rollback()
        raise
