from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date

ITEM_TYPES = ("package", "tour", "hotel", "room", "visa")


class CartItem(db.Model):
    """
    Prospective purchase line, owned by a user or by an anonymous session.

    Prices are captured when the item is added so the cart total does not
    drift while the customer shops. Rows are consumed at checkout.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        db.CheckConstraint(
            "(user_id IS NULL) <> (session_id IS NULL)",
            name="ck_cart_items_single_owner",
        ),
        db.CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    session_id = db.Column(db.String(128), nullable=True, index=True)

    item_type = db.Column(db.String(16), nullable=False)
    item_id = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    price_at_add_cents = db.Column(db.Integer, nullable=False)
    discounted_price_at_add_cents = db.Column(db.Integer, nullable=True)

    adults = db.Column(db.Integer, nullable=False, default=1)
    children = db.Column(db.Integer, nullable=False, default=0)
    infants = db.Column(db.Integer, nullable=False, default=0)

    check_in_date = db.Column(db.Date, nullable=True)
    check_out_date = db.Column(db.Date, nullable=True)
    travel_date = db.Column(db.Date, nullable=True)

    configuration = db.Column(db.JSON, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=True)

    @property
    def unit_price_cents(self) -> int:
        if self.discounted_price_at_add_cents is not None:
            return self.discounted_price_at_add_cents
        return self.price_at_add_cents

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "item_type": self.item_type,
            "item_id": self.item_id,
            "quantity": self.quantity,
            "price_at_add_cents": self.price_at_add_cents,
            "discounted_price_at_add_cents": self.discounted_price_at_add_cents,
            "adults": self.adults,
            "children": self.children,
            "infants": self.infants,
            "check_in_date": to_iso_date(self.check_in_date),
            "check_out_date": to_iso_date(self.check_out_date),
            "travel_date": to_iso_date(self.travel_date),
            "configuration": self.configuration,
            "notes": self.notes,
            "line_total_cents": self.line_total_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Order(db.Model):
    """
    Immutable snapshot of a cart at checkout time.

    order_number is unique at the database level; generation retries on
    the (unlikely) collision.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(
            "(user_id IS NULL) <> (session_id IS NULL)",
            name="ck_orders_single_owner",
        ),
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(64), nullable=False, unique=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    session_id = db.Column(db.String(128), nullable=True, index=True)

    # pending, paid, cancelled
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    currency = db.Column(db.String(8), nullable=False, default="usd")

    customer_name = db.Column(db.String(255), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    billing_address = db.Column(db.Text, nullable=True)
    special_requests = db.Column(db.Text, nullable=True)

    payment_method = db.Column(db.String(32), nullable=True)
    payment_intent_id = db.Column(db.String(255), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    paid_at = db.Column(db.DateTime, nullable=True)

    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "status": self.status,
            "total_amount_cents": self.total_amount_cents,
            "currency": self.currency,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "billing_address": self.billing_address,
            "special_requests": self.special_requests,
            "payment_method": self.payment_method,
            "payment_intent_id": self.payment_intent_id,
            "created_at": to_utc_z(self.created_at),
            "paid_at": to_utc_z(self.paid_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """Denormalized line snapshot; later catalog edits never touch it."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    item_type = db.Column(db.String(16), nullable=False)
    item_id = db.Column(db.Integer, nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    adults = db.Column(db.Integer, nullable=False, default=1)
    children = db.Column(db.Integer, nullable=False, default=0)
    infants = db.Column(db.Integer, nullable=False, default=0)
    check_in_date = db.Column(db.Date, nullable=True)
    check_out_date = db.Column(db.Date, nullable=True)
    travel_date = db.Column(db.Date, nullable=True)
    configuration = db.Column(db.JSON, nullable=True)

    # unit_price_cents is the price actually charged (discount applied)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    discounted_price_cents = db.Column(db.Integer, nullable=True)
    total_price_cents = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "item_type": self.item_type,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "adults": self.adults,
            "children": self.children,
            "infants": self.infants,
            "check_in_date": to_iso_date(self.check_in_date),
            "check_out_date": to_iso_date(self.check_out_date),
            "travel_date": to_iso_date(self.travel_date),
            "configuration": self.configuration,
            "unit_price_cents": self.unit_price_cents,
            "discounted_price_cents": self.discounted_price_cents,
            "total_price_cents": self.total_price_cents,
            "notes": self.notes,
        }
