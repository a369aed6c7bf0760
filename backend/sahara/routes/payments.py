# Overview: Flask API routes for payments operations; parses input and returns JSON responses.

"""
Payment API routes

- POST /api/payments: apply a payment to the caller's booking
- POST /api/payments/verify: record a gateway verdict
- POST /api/create-payment-intent: Stripe PaymentIntent (amount in cents)
- POST /api/webhooks/stripe: signature-verified Stripe events
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import payment_service, order_service
from ..services.payment_service import (
    PaymentError,
    StripeGatewayError,
    StripeNotConfiguredError,
)
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth


payments_bp = Blueprint("payments", __name__, url_prefix="/api")


@payments_bp.post("/payments")
@require_auth
def apply_payment_route():
    data = request.get_json(silent=True) or {}
    try:
        if data.get("booking_id") is None or data.get("amount_cents") is None:
            return jsonify({"message": "booking_id and amount_cents are required"}), 400

        payment = payment_service.apply_payment(
            g.current_user.id,
            data["booking_id"],
            data["amount_cents"],
            data.get("payment_method"),
            payment_gateway_id=data.get("payment_gateway_id"),
            payment_details=data.get("payment_details"),
        )
        booking = payment.booking
        current_app.logger.info(
            "Payment %s of %s cents applied to booking %s",
            payment.transaction_id, payment.amount_cents, booking.booking_number,
        )
        return jsonify({
            "payment": payment.to_dict(),
            "booking": booking.to_dict(),
        }), 201
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except PaymentError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to apply payment")
        return jsonify({"message": "Internal server error"}), 500


@payments_bp.get("/bookings/<int:booking_id>/payments")
@require_auth
def list_booking_payments_route(booking_id: int):
    try:
        payments = payment_service.list_booking_payments(g.current_user.id, booking_id)
        return jsonify({"payments": [p.to_dict() for p in payments]}), 200
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list payments")
        return jsonify({"message": "Internal server error"}), 500


@payments_bp.post("/payments/verify")
@require_auth
def verify_payment_route():
    data = request.get_json(silent=True) or {}
    try:
        payment = payment_service.verify_payment(
            data.get("transaction_id"),
            data.get("gateway_response"),
            g.current_user,
        )
        return jsonify({
            "payment": payment.to_dict(),
            "booking": payment.booking.to_dict(),
        }), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except PaymentError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to verify payment")
        return jsonify({"message": "Internal server error"}), 500


@payments_bp.post("/create-payment-intent")
def create_payment_intent_route():
    """
    Create a Stripe PaymentIntent.

    Body: {amount_cents, currency?, order_number?}. When order_number is
    given the intent charges exactly the order total and is linked to that
    pending order so the webhook can mark it paid.
    """
    data = request.get_json(silent=True) or {}
    try:
        order_number = data.get("order_number")
        order = order_service.get_order(order_number) if order_number else None

        amount = data.get("amount_cents")
        if order is not None:
            amount = order_service.payable_amount(order, amount)
        if amount is None:
            return jsonify({"message": "amount_cents is required"}), 400

        metadata = {"source": "sahara_journeys"}
        if order is not None:
            metadata["order_number"] = order.order_number

        intent = payment_service.create_payment_intent(amount, data.get("currency"), metadata)
        if order is not None:
            order_service.attach_payment_intent(order.order_number, intent["payment_intent_id"])
        return jsonify(intent), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except StripeNotConfiguredError as e:
        return jsonify({"message": str(e)}), 503
    except StripeGatewayError as e:
        return jsonify({"message": str(e)}), 502
    except Exception:
        current_app.logger.exception("Failed to create payment intent")
        return jsonify({"message": "Internal server error"}), 500


@payments_bp.post("/webhooks/stripe")
def stripe_webhook_route():
    """Stripe webhook. The raw body is needed for signature verification."""
    try:
        event = payment_service.construct_webhook_event(
            request.get_data(),
            request.headers.get("Stripe-Signature"),
        )
        result = payment_service.handle_stripe_event(event)
        return jsonify({"received": True, **result}), 200
    except PaymentError as e:
        current_app.logger.warning("Rejected Stripe webhook: %s", e)
        return jsonify({"message": str(e)}), 400
    except StripeNotConfiguredError as e:
        return jsonify({"message": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to process Stripe webhook")
        return jsonify({"message": "Internal server error"}), 500
