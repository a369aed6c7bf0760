from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date

BOOKING_STATUS_PENDING = "pending"
BOOKING_STATUS_CONFIRMED = "confirmed"
BOOKING_STATUS_CANCELLED = "cancelled"
BOOKING_STATUS_COMPLETED = "completed"

BOOKING_STATUSES = (
    BOOKING_STATUS_PENDING,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_COMPLETED,
)

PAYMENT_STATUS_UNPAID = "unpaid"
PAYMENT_STATUS_PARTIAL = "partial"
PAYMENT_STATUS_PAID = "paid"


def payment_status_for(paid_cents: int, total_cents: int) -> str:
    if paid_cents >= total_cents:
        return PAYMENT_STATUS_PAID
    if paid_cents > 0:
        return PAYMENT_STATUS_PARTIAL
    return PAYMENT_STATUS_UNPAID


class Booking(db.Model):
    """
    Reservation against a tour, package or hotel room.

    Carries its own balance: paid_amount_cents only grows through
    payment_service and never exceeds total_amount_cents.
    """
    __tablename__ = "bookings"
    __table_args__ = (
        db.CheckConstraint("paid_amount_cents >= 0", name="ck_bookings_paid_non_negative"),
        db.CheckConstraint("paid_amount_cents <= total_amount_cents", name="ck_bookings_not_overpaid"),
        db.Index("ix_bookings_user_status", "user_id", "status"),
        db.Index("ix_bookings_travel_status", "travel_date", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    booking_number = db.Column(db.String(32), nullable=False, unique=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    tour_id = db.Column(db.Integer, db.ForeignKey("tours.id"), nullable=True, index=True)
    package_id = db.Column(db.Integer, db.ForeignKey("packages.id"), nullable=True, index=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=True, index=True)
    room_id = db.Column(db.Integer, db.ForeignKey("rooms.id"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=BOOKING_STATUS_PENDING)
    booking_date = db.Column(db.DateTime, nullable=False)
    travel_date = db.Column(db.Date, nullable=False)
    return_date = db.Column(db.Date, nullable=True)

    adults = db.Column(db.Integer, nullable=False, default=1)
    children = db.Column(db.Integer, nullable=False, default=0)
    infants = db.Column(db.Integer, nullable=False, default=0)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_STATUS_UNPAID, index=True)
    payment_method = db.Column(db.String(32), nullable=True)

    special_requests = db.Column(db.Text, nullable=True)
    customer_details = db.Column(db.JSON, nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)

    confirmed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", backref=db.backref("bookings", lazy=True))
    tour = db.relationship("Tour")
    package = db.relationship("Package")
    hotel = db.relationship("Hotel")
    room = db.relationship("Room")
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def participants(self) -> int:
        return self.adults + self.children + self.infants

    @property
    def remaining_amount_cents(self) -> int:
        return self.total_amount_cents - self.paid_amount_cents

    @property
    def item_name(self) -> str | None:
        for item in (self.tour, self.package, self.hotel):
            if item is not None:
                return item.display_name
        return None

    def to_dict(self, include_payments: bool = False) -> dict:
        data = {
            "id": self.id,
            "booking_number": self.booking_number,
            "user_id": self.user_id,
            "tour_id": self.tour_id,
            "package_id": self.package_id,
            "hotel_id": self.hotel_id,
            "room_id": self.room_id,
            "item_name": self.item_name,
            "status": self.status,
            "booking_date": to_utc_z(self.booking_date),
            "travel_date": to_iso_date(self.travel_date),
            "return_date": to_iso_date(self.return_date),
            "adults": self.adults,
            "children": self.children,
            "infants": self.infants,
            "participants": self.participants,
            "total_amount_cents": self.total_amount_cents,
            "paid_amount_cents": self.paid_amount_cents,
            "remaining_amount_cents": self.remaining_amount_cents,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "special_requests": self.special_requests,
            "customer_details": self.customer_details,
            "cancellation_reason": self.cancellation_reason,
            "confirmed_at": to_utc_z(self.confirmed_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_payments:
            data["payments"] = [p.to_dict() for p in self.payments]
        return data


class Payment(db.Model):
    """
    Single monetary transaction applied against a booking balance.

    Created as pending; gateway verification moves it to completed or
    failed. A failed payment gives its amount back to the booking balance.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_payments_amount_positive"),
        db.Index("ix_payments_booking_status", "booking_id", "status"),
        db.Index("ix_payments_method_status", "payment_method", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)
    payment_gateway_id = db.Column(db.String(255), nullable=True, index=True)
    payment_details = db.Column(db.JSON, nullable=True)

    transaction_id = db.Column(db.String(64), nullable=False, unique=True, index=True)
    status = db.Column(db.String(16), nullable=False, default="pending")
    gateway_response = db.Column(db.JSON, nullable=True)
    verified_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    booking = db.relationship(
        "Booking",
        backref=db.backref("payments", lazy=True, order_by="Payment.id"),
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "user_id": self.user_id,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "payment_gateway_id": self.payment_gateway_id,
            "payment_details": self.payment_details,
            "transaction_id": self.transaction_id,
            "status": self.status,
            "gateway_response": self.gateway_response,
            "verified_at": to_utc_z(self.verified_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Review(db.Model):
    """One review per completed booking; booking_id is unique."""
    __tablename__ = "reviews"
    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        db.Index("ix_reviews_tour_verified", "tour_id", "is_verified"),
        db.Index("ix_reviews_package_verified", "package_id", "is_verified"),
        db.Index("ix_reviews_hotel_verified", "hotel_id", "is_verified"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    booking_id = db.Column(
        db.Integer,
        db.ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    tour_id = db.Column(db.Integer, db.ForeignKey("tours.id"), nullable=True)
    package_id = db.Column(db.Integer, db.ForeignKey("packages.id"), nullable=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=True)

    rating = db.Column(db.Integer, nullable=False, index=True)
    title = db.Column(db.String(255), nullable=True)
    comment = db.Column(db.Text, nullable=True)
    photos = db.Column(db.JSON, nullable=True)

    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    verified_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", backref=db.backref("reviews", lazy=True))
    booking = db.relationship("Booking", backref=db.backref("review", uselist=False))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.user.username if self.user else None,
            "booking_id": self.booking_id,
            "tour_id": self.tour_id,
            "package_id": self.package_id,
            "hotel_id": self.hotel_id,
            "rating": self.rating,
            "title": self.title,
            "comment": self.comment,
            "photos": self.photos or [],
            "is_verified": self.is_verified,
            "is_featured": self.is_featured,
            "verified_at": to_utc_z(self.verified_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
