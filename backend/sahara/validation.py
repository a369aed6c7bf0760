from __future__ import annotations
from datetime import date, datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_date, parse_iso_datetime


# Maximum price: $9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

MAX_QUANTITY = 100


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level: row missing, or not owned by the caller."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate username, second review)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - ignored_fields: accepted in the body but never written (e.g. session_id)
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()
    ignored_fields: frozenset[str] = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be true or false")

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
            if d is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
            return d
        raise ValidationError(f"{col.key} must be a date")

    if isinstance(coltype, JSON):
        if isinstance(value, (dict, list)):
            return value
        raise ValidationError(f"{col.key} must be an object or a list")

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k in policy.ignored_fields:
            continue
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        if k in policy.ignored_fields:
            continue
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None:
        price = patch[key]
        if price < 0:
            raise ValidationError(f"{key} must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")


def _check_occupancy(patch: dict) -> None:
    if "adults" in patch and patch["adults"] is not None and patch["adults"] < 1:
        raise ValidationError("adults must be >= 1")
    for key in ("children", "infants"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")


def enforce_rules_cart_item(patch: dict, *, item_types: tuple[str, ...] | None = None) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if item_types is not None and "item_type" in patch:
        if patch["item_type"] not in item_types:
            raise ValidationError(f"item_type must be one of {', '.join(item_types)}")

    if "item_id" in patch and patch["item_id"] is not None and patch["item_id"] <= 0:
        raise ValidationError("item_id must be > 0")

    if "quantity" in patch:
        qty = patch["quantity"]
        if qty is None or qty < 1:
            raise ValidationError("quantity must be >= 1")
        if qty > MAX_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")

    _check_price(patch, "price_at_add_cents")
    _check_price(patch, "discounted_price_at_add_cents")
    _check_occupancy(patch)

    check_in = patch.get("check_in_date")
    check_out = patch.get("check_out_date")
    if check_in and check_out and check_out <= check_in:
        raise ValidationError("check_out_date must be after check_in_date")


def enforce_rules_booking(patch: dict, *, today: date) -> None:
    _check_occupancy(patch)

    travel_date = patch.get("travel_date")
    if travel_date is not None and travel_date <= today:
        raise ValidationError("travel_date must be after today")

    return_date = patch.get("return_date")
    if travel_date is not None and return_date is not None and return_date <= travel_date:
        raise ValidationError("return_date must be after travel_date")

    requests = patch.get("special_requests")
    if requests and len(requests) > 1000:
        raise ValidationError("special_requests exceeds max length 1000")
