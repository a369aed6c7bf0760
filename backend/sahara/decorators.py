# Overview: Request context and access decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, session

from .services import session_service


def _request_token() -> str | None:
    """Bearer header first (API clients), then the signed session cookie (browser)."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return session.get("token")


def load_current_user():
    """
    before_request hook.

    Resolves the caller on every request so optional-auth routes (cart,
    checkout) can scope by user when one is logged in. Always sets:
    - g.current_user: the active User, or None
    - g.session_token: the plaintext token that resolved, or None
    """
    token = _request_token()
    user = session_service.validate_session(token) if token else None
    g.current_user = user
    g.session_token = token if user else None


def current_user_id() -> int | None:
    user = getattr(g, "current_user", None)
    return user.id if user else None


def require_auth(f):
    """
    Require an authenticated, active user.

    SECURITY: Returns 401 if no token, or the token is unknown, expired,
    revoked, or belongs to a deactivated account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if getattr(g, "current_user", None) is None:
            return jsonify({"message": "Authentication required"}), 401
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require an authenticated admin. 401 when anonymous, 403 for non-admins."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = getattr(g, "current_user", None)
        if user is None:
            return jsonify({"message": "Authentication required"}), 401
        if not user.is_admin:
            return jsonify({"message": "Admin access required"}), 403
        return f(*args, **kwargs)

    return decorated_function
