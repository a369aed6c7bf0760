# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Accounts are created through self-registration and authenticated with
username (or email) + password. Passwords are bcrypt-hashed; there are no
shortcut or shared development passwords, every login goes through
bcrypt.checkpw.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..models.auth import ROLE_ADMIN, ROLE_USER
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)


BCRYPT_ROUNDS = 12

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Profile fields a user may change on their own account.
# password, username, email and role are deliberately absent.
PROFILE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "full_name", "display_name", "first_name", "last_name",
        "phone_number", "bio", "avatar_url",
    }),
)


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>_\-+=?]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt. Returns the hash as str for storage."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw is constant-time. A malformed stored hash (anything that
    is not a bcrypt string) never matches.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def register_user(
    username: str,
    email: str,
    password: str,
    *,
    role: str = ROLE_USER,
    profile: dict | None = None,
) -> User:
    """
    Create a new account.

    Raises:
        ValidationError: missing/invalid username, email or profile fields
        PasswordValidationError: weak password
        ConflictError: username or email already taken
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()

    if not username:
        raise ValidationError("username is required")
    if len(username) > 64:
        raise ValidationError("username exceeds max length 64")
    if not EMAIL_RE.match(email):
        raise ValidationError("A valid email is required")
    if role not in (ROLE_USER, ROLE_ADMIN):
        raise ValidationError(f"Unknown role: {role}")

    fields = validate_payload(model=User, payload=profile or {}, policy=PROFILE_POLICY, partial=True)

    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing:
        raise ConflictError("Username or email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        **fields,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same name
        db.session.rollback()
        raise ConflictError("Username or email already exists")
    return user


def authenticate(identifier: str, password: str) -> User | None:
    """
    Authenticate by username or email.

    Returns the User if credentials are valid and the account is active,
    None otherwise. Updates last_login_at on success.
    """
    if not identifier or not password:
        return None

    user = db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == identifier.strip().lower())
    ).first()

    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def update_profile(user_id: int, payload: dict) -> User:
    """Patch profile fields. Credentials and role are never accepted here."""
    patch = validate_payload(model=User, payload=payload, policy=PROFILE_POLICY, partial=True)

    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    for key, value in patch.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    db.session.commit()
    return user
