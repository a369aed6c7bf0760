# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Self-registration with password strength validation
- Login by username or email; the session token is returned in the body
  (for Authorization: Bearer) and stored in the signed session cookie
- Logout revokes the token server-side
"""

from flask import Blueprint, request, jsonify, current_app, g, session

from ..services import auth_service
from ..services import session_service
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api")

_PROFILE_KEYS = ("full_name", "display_name", "first_name", "last_name", "phone_number", "bio", "avatar_url")


def _start_session(user):
    record, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    session["token"] = token
    return record, token


@auth_bp.post("/register")
def register_route():
    """Create an account and log it in."""
    data = request.get_json(silent=True) or {}
    try:
        profile = {k: data[k] for k in _PROFILE_KEYS if k in data}
        user = auth_service.register_user(
            data.get("username"),
            data.get("email"),
            data.get("password"),
            profile=profile,
        )
        record, token = _start_session(user)
        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "expires_at": record.to_dict()["expires_at"],
        }), 201
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except ConflictError as e:
        return jsonify({"message": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    Token goes back in the body for API clients and into the session
    cookie for the browser.
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("username") or data.get("email")
        password = data.get("password")

        if not identifier or not password:
            return jsonify({"message": "username/email and password required"}), 400

        user = auth_service.authenticate(identifier, password)
        if not user:
            current_app.logger.info("Failed login for %s from %s", identifier, request.remote_addr)
            return jsonify({"message": "Invalid credentials"}), 401

        record, token = _start_session(user)
        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "expires_at": record.to_dict()["expires_at"],
            "message": "Login successful",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the current token (if any) and clear the cookie."""
    try:
        token = g.session_token
        if token:
            session_service.revoke_session(token)
        session.pop("token", None)
        return jsonify({"message": "Logout successful"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"message": "Internal server error"}), 500


@auth_bp.get("/user")
@require_auth
def current_user_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.patch("/user")
@require_auth
def update_current_user_route():
    try:
        user = auth_service.update_profile(g.current_user.id, request.get_json(silent=True) or {})
        return jsonify({"user": user.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"message": "Internal server error"}), 500
