# Overview: Service-layer operations for order; encapsulates business logic and database work.

"""
Order Service

Checkout converts the owner's cart into an Order with OrderItem snapshots.
Lock cart rows, insert order + items, delete cart rows: one transaction.
If anything fails before commit the cart is left untouched.
"""

from __future__ import annotations

import secrets
import string
import time

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CartItem, Order, OrderItem
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    coerce_int,
    validate_payload,
)
from . import catalog_service
from .cart_service import CartOwner
from .concurrency import lock_for_update


ORDER_NUMBER_ATTEMPTS = 3

_BASE36 = string.digits + string.ascii_uppercase

ORDER_STATUS_PENDING = "pending"
ORDER_STATUS_PAID = "paid"

CHECKOUT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "customer_name", "customer_email", "customer_phone",
        "billing_address", "special_requests", "payment_method",
    }),
    ignored_fields=frozenset({"session_id"}),
)


class EmptyCartError(Exception):
    """Checkout attempted with no cart rows."""


def generate_order_number() -> str:
    """SJ<epoch millis>-<6 base36 chars>, upper case."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"SJ{int(time.time() * 1000)}-{suffix}"


def _snapshot(order: Order, row: CartItem) -> OrderItem:
    unit_price = row.unit_price_cents
    return OrderItem(
        order=order,
        item_type=row.item_type,
        item_id=row.item_id,
        item_name=catalog_service.display_name(row.item_type, row.item_id)[:255],
        quantity=row.quantity,
        adults=row.adults,
        children=row.children,
        infants=row.infants,
        check_in_date=row.check_in_date,
        check_out_date=row.check_out_date,
        travel_date=row.travel_date,
        configuration=row.configuration,
        unit_price_cents=unit_price,
        discounted_price_cents=row.discounted_price_at_add_cents,
        total_price_cents=unit_price * row.quantity,
        notes=row.notes,
    )


def _checkout_once(owner: CartOwner, fields: dict) -> Order:
    rows = lock_for_update(
        db.session.query(CartItem).filter(owner.clause()).order_by(CartItem.id)
    ).all()
    if not rows:
        raise EmptyCartError("Cart is empty")

    order = Order(
        order_number=generate_order_number(),
        **owner.columns(),
        status=ORDER_STATUS_PENDING,
        currency=current_app.config.get("STRIPE_CURRENCY", "usd"),
        **fields,
    )
    db.session.add(order)

    total = 0
    for row in rows:
        item = _snapshot(order, row)
        total += item.total_price_cents
        db.session.add(item)
        db.session.delete(row)
    order.total_amount_cents = total

    db.session.commit()
    return order


def _is_order_number_collision(exc: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed: orders.order_number"; PostgreSQL names ix_orders_order_number
    return "order_number" in str(exc.orig)


def create_order(owner: CartOwner, payload: dict | None = None) -> Order:
    """
    Check out the owner's cart.

    Raises:
        ValidationError: bad customer fields
        EmptyCartError: owner has no cart rows
        IntegrityError: order number collided on every attempt, or another constraint failed (not retried)
    """
    fields = validate_payload(model=Order, payload=payload or {}, policy=CHECKOUT_POLICY, partial=True)

    for attempt in range(ORDER_NUMBER_ATTEMPTS):
        try:
            return _checkout_once(owner, fields)
        except IntegrityError as exc:
            db.session.rollback()
            if not _is_order_number_collision(exc) or attempt >= ORDER_NUMBER_ATTEMPTS - 1:
                raise
            current_app.logger.warning("Order number collision, retrying checkout (attempt %s)", attempt + 1)
        except Exception:
            db.session.rollback()
            raise


def get_order(order_number: str) -> Order:
    order = db.session.query(Order).filter_by(order_number=order_number).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def list_orders(user_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def payable_amount(order: Order, amount_cents=None) -> int:
    """
    Amount a PaymentIntent for this order must charge: always the order total.

    Raises:
        ConflictError: order is no longer pending
        ValidationError: amount_cents given and different from the total
    """
    if order.status != ORDER_STATUS_PENDING:
        raise ConflictError(f"Order is already {order.status}")
    if amount_cents is not None and coerce_int("amount_cents", amount_cents) != order.total_amount_cents:
        raise ValidationError("amount_cents must equal the order total")
    return order.total_amount_cents


def attach_payment_intent(order_number: str, intent_id: str) -> Order:
    order = lock_for_update(db.session.query(Order).filter_by(order_number=order_number)).first()
    if not order:
        raise NotFoundError("Order not found")
    if order.status != ORDER_STATUS_PENDING:
        db.session.rollback()
        raise ConflictError(f"Order is already {order.status}")
    order.payment_intent_id = intent_id
    order.payment_method = "stripe"
    db.session.commit()
    return order


def mark_paid_by_intent(intent_id: str, amount_cents: int | None) -> int:
    """
    Flag pending orders linked to a succeeded PaymentIntent as paid.

    An order is only marked paid when the captured amount equals its total.
    Returns count updated.
    """
    orders = (
        db.session.query(Order)
        .filter(Order.payment_intent_id == intent_id, Order.status == ORDER_STATUS_PENDING)
        .all()
    )
    now = utcnow()
    updated = 0
    for order in orders:
        if amount_cents != order.total_amount_cents:
            current_app.logger.warning(
                "PaymentIntent %s captured %s cents but order %s totals %s; left pending",
                intent_id, amount_cents, order.order_number, order.total_amount_cents,
            )
            continue
        order.status = ORDER_STATUS_PAID
        order.paid_at = now
        updated += 1
    db.session.commit()
    return updated
