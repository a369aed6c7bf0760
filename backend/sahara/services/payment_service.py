# Overview: Service-layer operations for payment; encapsulates business logic and database work.

"""
Payment Service

Payments are applied against a booking's outstanding balance. The booking
row is locked while the payment is inserted and the balance moved, so
concurrent payments can never push paid_amount_cents past the total.

A payment starts pending and counts toward the balance immediately.
Verification (manual, or a Stripe webhook) moves it to completed, or to
failed, which releases its amount back to the booking.

Stripe is reached through the official SDK; the secret key is passed per
call from app config rather than set globally.
"""

from __future__ import annotations

import secrets

import stripe
from flask import current_app

from ..extensions import db
from ..models import Booking, Payment, User
from ..models.bookings import BOOKING_STATUS_CANCELLED, payment_status_for
from ..time_utils import utcnow
from ..validation import MAX_PRICE_CENTS, NotFoundError, ValidationError, coerce_int
from . import order_service
from .concurrency import lock_for_update, run_with_retry


PAYMENT_METHODS = ("stripe", "paypal", "bank_transfer", "cash")

PAYMENT_STATUS_PENDING = "pending"
PAYMENT_STATUS_COMPLETED = "completed"
PAYMENT_STATUS_FAILED = "failed"

EVENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_INTENT_FAILED = "payment_intent.payment_failed"


class PaymentError(Exception):
    """Base class for payment rule violations (400)."""


class OverPaymentError(PaymentError):
    """Amount exceeds the booking's remaining balance."""


class InvalidPaymentStateError(PaymentError):
    """Booking or payment is in a state that does not accept this operation."""


class WebhookSignatureError(PaymentError):
    """Stripe webhook payload or signature could not be verified."""


class StripeNotConfiguredError(RuntimeError):
    """STRIPE_SECRET_KEY / STRIPE_WEBHOOK_SECRET missing (503)."""


class StripeGatewayError(RuntimeError):
    """Stripe API call failed (502)."""


def generate_transaction_id() -> str:
    return "TXN_" + secrets.token_hex(8).upper()


def _validate_amount(value) -> int:
    amount = coerce_int("amount_cents", value)
    if amount <= 0:
        raise ValidationError("amount_cents must be > 0")
    if amount > MAX_PRICE_CENTS:
        raise ValidationError(f"amount_cents cannot exceed {MAX_PRICE_CENTS}")
    return amount


def apply_payment(
    user_id: int,
    booking_id: int,
    amount_cents,
    payment_method: str,
    payment_gateway_id: str | None = None,
    payment_details: dict | None = None,
) -> Payment:
    """
    Apply a payment to the caller's booking.

    Raises:
        ValidationError: bad amount, method or details
        NotFoundError: booking missing or not owned by user_id
        InvalidPaymentStateError: booking cancelled
        OverPaymentError: amount greater than remaining balance
    """
    amount = _validate_amount(amount_cents)
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}")
    if payment_gateway_id is not None:
        if not isinstance(payment_gateway_id, str) or len(payment_gateway_id) > 255:
            raise ValidationError("payment_gateway_id must be a string of at most 255 characters")
    if payment_details is not None and not isinstance(payment_details, dict):
        raise ValidationError("payment_details must be an object")

    def _do_apply():
        booking = lock_for_update(
            db.session.query(Booking).filter_by(id=booking_id, user_id=user_id)
        ).first()
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.status == BOOKING_STATUS_CANCELLED:
            raise InvalidPaymentStateError("Cannot pay for a cancelled booking")

        remaining = booking.remaining_amount_cents
        if amount > remaining:
            raise OverPaymentError(
                f"Payment amount exceeds remaining balance of {remaining} cents"
            )

        now = utcnow()
        payment = Payment(
            booking_id=booking.id,
            user_id=user_id,
            amount_cents=amount,
            payment_method=payment_method,
            payment_gateway_id=payment_gateway_id,
            payment_details=payment_details,
            transaction_id=generate_transaction_id(),
            status=PAYMENT_STATUS_PENDING,
        )
        db.session.add(payment)

        booking.paid_amount_cents += amount
        booking.payment_status = payment_status_for(booking.paid_amount_cents, booking.total_amount_cents)
        booking.payment_method = payment_method
        booking.updated_at = now

        db.session.commit()
        return payment

    try:
        return run_with_retry(_do_apply)
    except Exception:
        db.session.rollback()
        raise


def list_booking_payments(user_id: int, booking_id: int) -> list[Payment]:
    booking = db.session.query(Booking).filter_by(id=booking_id, user_id=user_id).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return (
        db.session.query(Payment)
        .filter(Payment.booking_id == booking.id)
        .order_by(Payment.id)
        .all()
    )


def _settle(payment: Payment, succeeded: bool, gateway_response: dict) -> None:
    """Move a pending payment to completed/failed. Caller commits."""
    now = utcnow()
    payment.gateway_response = gateway_response
    payment.updated_at = now

    if succeeded:
        payment.status = PAYMENT_STATUS_COMPLETED
        payment.verified_at = now
        return

    payment.status = PAYMENT_STATUS_FAILED
    booking = lock_for_update(db.session.query(Booking).filter_by(id=payment.booking_id)).first()
    booking.paid_amount_cents = max(0, booking.paid_amount_cents - payment.amount_cents)
    booking.payment_status = payment_status_for(booking.paid_amount_cents, booking.total_amount_cents)
    booking.updated_at = now


def verify_payment(transaction_id: str, gateway_response, actor: User) -> Payment:
    """
    Record the gateway verdict for a pending payment.

    gateway_response["status"] == "success" completes the payment; any
    other value fails it. Only the payer or an admin may verify.
    """
    if not transaction_id or not isinstance(transaction_id, str):
        raise ValidationError("transaction_id is required")
    if not isinstance(gateway_response, dict):
        raise ValidationError("gateway_response must be an object")

    def _do_verify():
        payment = lock_for_update(
            db.session.query(Payment).filter_by(transaction_id=transaction_id)
        ).first()
        if not payment or (not actor.is_admin and payment.user_id != actor.id):
            raise NotFoundError("Payment not found")
        if payment.status != PAYMENT_STATUS_PENDING:
            raise InvalidPaymentStateError(f"Payment is already {payment.status}")

        _settle(payment, gateway_response.get("status") == "success", gateway_response)
        db.session.commit()
        return payment

    try:
        return run_with_retry(_do_verify)
    except Exception:
        db.session.rollback()
        raise


def _stripe_secret() -> str:
    key = current_app.config.get("STRIPE_SECRET_KEY")
    if not key:
        raise StripeNotConfiguredError("Stripe is not configured")
    return key


def create_payment_intent(amount_cents, currency: str | None = None, metadata: dict | None = None) -> dict:
    """
    Create a Stripe PaymentIntent for amount_cents.

    Returns {"client_secret", "payment_intent_id"}.
    """
    amount = _validate_amount(amount_cents)
    if metadata is not None and not isinstance(metadata, dict):
        raise ValidationError("metadata must be an object")
    currency = (currency or current_app.config.get("STRIPE_CURRENCY") or "usd").lower()
    api_key = _stripe_secret()

    try:
        intent = stripe.PaymentIntent.create(
            amount=amount,
            currency=currency,
            metadata={str(k): str(v) for k, v in (metadata or {}).items()},
            automatic_payment_methods={"enabled": True},
            api_key=api_key,
        )
    except stripe.StripeError as exc:
        current_app.logger.error("Stripe PaymentIntent creation failed: %s", exc)
        raise StripeGatewayError("Payment provider error") from exc

    return {"client_secret": intent["client_secret"], "payment_intent_id": intent["id"]}


def construct_webhook_event(payload: bytes, sig_header: str | None):
    """Verify the Stripe-Signature header and parse the event."""
    secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not secret:
        raise StripeNotConfiguredError("Stripe webhook secret is not configured")
    if not sig_header:
        raise WebhookSignatureError("Missing Stripe-Signature header")
    try:
        return stripe.Webhook.construct_event(payload, sig_header, secret)
    except ValueError as exc:
        raise WebhookSignatureError("Invalid webhook payload") from exc
    except stripe.SignatureVerificationError as exc:
        raise WebhookSignatureError("Invalid webhook signature") from exc


def _intent_amount(intent) -> int | None:
    """Captured amount of a PaymentIntent; falls back to the requested amount."""
    for key in ("amount_received", "amount"):
        try:
            value = intent[key]
        except KeyError:
            continue
        if value is not None:
            return value
    return None


def handle_stripe_event(event) -> dict:
    """
    Apply a verified Stripe event.

    payment_intent.succeeded completes pending payments carrying the intent
    id and marks linked orders paid when the captured amount matches their
    total; payment_intent.payment_failed fails those payments. Other event
    types are acknowledged and ignored.
    """
    event_type = event["type"]
    if event_type not in (EVENT_INTENT_SUCCEEDED, EVENT_INTENT_FAILED):
        return {"type": event_type, "handled": False}

    intent = event["data"]["object"]
    intent_id = intent["id"]
    succeeded = event_type == EVENT_INTENT_SUCCEEDED
    gateway_response = {
        "source": "stripe_webhook",
        "event_id": event["id"],
        "event_type": event_type,
        "payment_intent_id": intent_id,
        "status": intent["status"],
    }

    def _do_settle():
        payments = lock_for_update(
            db.session.query(Payment).filter_by(
                payment_gateway_id=intent_id, status=PAYMENT_STATUS_PENDING
            )
        ).all()
        for payment in payments:
            _settle(payment, succeeded, gateway_response)
        db.session.commit()
        return len(payments)

    try:
        settled = run_with_retry(_do_settle)
    except Exception:
        db.session.rollback()
        raise

    orders = order_service.mark_paid_by_intent(intent_id, _intent_amount(intent)) if succeeded else 0
    current_app.logger.info(
        "Stripe %s for %s: %s payment(s), %s order(s) updated",
        event_type, intent_id, settled, orders,
    )
    return {"type": event_type, "handled": True, "payments": settled, "orders": orders}
