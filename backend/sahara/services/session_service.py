# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

Tokens are cryptographically secure, hashed in the database, and
time-limited. The plaintext token travels either in the signed Flask
session cookie (browser clients) or in an Authorization: Bearer header
(API clients); both resolve through validate_session.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- 7-day absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- Revocable on logout
"""

import hashlib
import secrets
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(days=7)

# last_used_at is only rewritten when older than this, to keep reads cheap
LAST_USED_RESOLUTION = timedelta(minutes=5)


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Never stored in plaintext."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    user = db.session.get(User, user_id)
    if not user:
        raise ValueError("User not found")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> User | None:
    """
    Resolve a plaintext token to its active user.

    Returns None if the token is unknown, expired or revoked, or if the
    user account is no longer active.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session or session.is_revoked:
        return None

    now = utcnow()
    if session.expires_at <= now:
        return None

    user = db.session.get(User, session.user_id)
    if not user or not user.is_active:
        return None

    if now - session.last_used_at > LAST_USED_RESOLUTION:
        session.last_used_at = now
        db.session.commit()

    return user


def revoke_session(token: str) -> bool:
    """Revoke a session by its plaintext token. Returns False when nothing matched."""
    if not token:
        return False

    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session or session.is_revoked:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    db.session.commit()
    return True


def purge_expired_sessions() -> int:
    """Delete expired or revoked session rows. Returns count deleted."""
    now = utcnow()
    count = (
        db.session.query(SessionToken)
        .filter(db.or_(SessionToken.expires_at <= now, SessionToken.is_revoked.is_(True)))
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return count
