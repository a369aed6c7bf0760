# backend/sahara/routes/system.py
"""
System health and version endpoints.

Health checks the database and the session table; version exposes
non-sensitive deployment info.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import User, SessionToken, Booking
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    """Check database connectivity with a few cheap counts."""
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        booking_count = db.session.query(Booking).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "bookings": booking_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        now = utcnow()
        active_sessions = db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False),
            SessionToken.expires_at > now,
        ).count()
        expired_sessions = db.session.query(SessionToken).filter(
            SessionToken.expires_at <= now,
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "active_sessions": active_sessions,
                "expired_pending_cleanup": expired_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session service health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session service error"
        }


def check_payment_gateway_config() -> dict:
    """Stripe is optional; missing keys degrade the service rather than fail it."""
    missing = [
        key for key in ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET")
        if not current_app.config.get(key)
    ]
    if missing:
        return {"status": "degraded", "warning": f"Not configured: {', '.join(missing)}"}
    return {"status": "healthy"}


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded (still operational)
    - 503: database or session table unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    session_health = check_session_service_health()
    stripe_health = check_payment_gateway_config()

    all_checks = [database_health, session_health, stripe_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "session_service": session_health,
            "payment_gateway": stripe_health,
        }
    }

    return response, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info. Never exposes keys, credentials or paths."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
