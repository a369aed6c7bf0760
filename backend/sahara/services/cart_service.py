# Overview: Service-layer operations for cart; encapsulates business logic and database work.

"""
Cart Service

A cart is the set of CartItem rows owned by one CartOwner: either an
authenticated user or an anonymous client-supplied session id, never both.
Every read and write is scoped by the owner in the WHERE clause, so a row
that belongs to someone else is indistinguishable from a missing row.

Each add creates a new row; identical (item_type, item_id) lines are not
merged.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import CartItem
from ..models.commerce import ITEM_TYPES
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_cart_item,
    validate_payload,
)
from . import catalog_service


_MUTABLE_FIELDS = frozenset({
    "quantity",
    "adults", "children", "infants",
    "check_in_date", "check_out_date", "travel_date",
    "configuration", "notes",
})

CART_ITEM_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=_MUTABLE_FIELDS | {
        "item_type", "item_id",
        "price_at_add_cents", "discounted_price_at_add_cents",
    },
    required_on_create=frozenset({"item_type", "item_id"}),
    ignored_fields=frozenset({"session_id"}),
)

CART_ITEM_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=_MUTABLE_FIELDS,
    ignored_fields=frozenset({"session_id"}),
)


@dataclass(frozen=True)
class CartOwner:
    """Scoping key for cart rows: exactly one of user_id / session_id."""
    user_id: int | None = None
    session_id: str | None = None

    def __post_init__(self):
        if (self.user_id is None) == (self.session_id is None):
            raise ValidationError("Exactly one of user_id or session_id must identify the cart owner")
        if self.session_id is not None and not self.session_id.strip():
            raise ValidationError("session_id cannot be blank")

    @classmethod
    def resolve(cls, user_id: int | None, session_id: str | None) -> "CartOwner | None":
        """Authenticated user wins over a session id; None when neither is present."""
        if user_id is not None:
            return cls(user_id=user_id)
        if isinstance(session_id, str) and session_id.strip():
            return cls(session_id=session_id.strip())
        return None

    def clause(self, model=CartItem):
        if self.user_id is not None:
            return model.user_id == self.user_id
        return model.session_id == self.session_id

    def columns(self) -> dict:
        return {"user_id": self.user_id, "session_id": self.session_id}


def _owned(owner: CartOwner):
    return db.session.query(CartItem).filter(owner.clause())


def add_item(owner: CartOwner, payload: dict) -> CartItem:
    """
    Add a line to the owner's cart.

    price_at_add_cents may be omitted, in which case the catalog's current
    price (and discount) is captured.

    Raises:
        ValidationError: bad payload, or no price available
    """
    patch = validate_payload(
        model=CartItem,
        payload=payload,
        policy=CART_ITEM_CREATE_POLICY,
        partial=False,
    )
    patch.setdefault("quantity", 1)
    enforce_rules_cart_item(patch, item_types=ITEM_TYPES)

    if patch.get("price_at_add_cents") is None:
        prices = catalog_service.current_prices(patch["item_type"], patch["item_id"])
        if prices is None:
            raise ValidationError(
                f"price_at_add_cents is required: no catalog price for "
                f"{catalog_service.fallback_label(patch['item_type'], patch['item_id'])}"
            )
        patch["price_at_add_cents"], catalog_discount = prices
        patch.setdefault("discounted_price_at_add_cents", catalog_discount)

    item = CartItem(**owner.columns(), **patch)
    db.session.add(item)
    db.session.commit()
    return item


def get_items(owner: CartOwner) -> list[CartItem]:
    return _owned(owner).order_by(CartItem.id).all()


def update_item(owner: CartOwner, cart_item_id: int, payload: dict) -> CartItem:
    """
    Patch quantity, occupancy, dates, configuration or notes.

    Raises:
        NotFoundError: no row with this id for this owner
        ValidationError: bad payload
    """
    patch = validate_payload(
        model=CartItem,
        payload=payload,
        policy=CART_ITEM_UPDATE_POLICY,
        partial=True,
    )
    enforce_rules_cart_item(patch)

    item = _owned(owner).filter(CartItem.id == cart_item_id).first()
    if not item:
        raise NotFoundError("Cart item not found")

    check_in = patch.get("check_in_date", item.check_in_date)
    check_out = patch.get("check_out_date", item.check_out_date)
    if check_in and check_out and check_out <= check_in:
        raise ValidationError("check_out_date must be after check_in_date")

    for key, value in patch.items():
        setattr(item, key, value)
    item.updated_at = utcnow()
    db.session.commit()
    return item


def remove_item(owner: CartOwner, cart_item_id: int) -> None:
    """
    Raises:
        NotFoundError: no row with this id for this owner
    """
    deleted = _owned(owner).filter(CartItem.id == cart_item_id).delete(synchronize_session=False)
    if not deleted:
        db.session.rollback()
        raise NotFoundError("Cart item not found")
    db.session.commit()


def clear(owner: CartOwner) -> int:
    """Delete every row in the owner's cart. Returns count deleted."""
    deleted = _owned(owner).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def list_items(owner: CartOwner) -> list[dict]:
    """
    Cart rows enriched with the current catalog snapshot.

    A missing catalog row does not fail the listing; the line gets the
    "{item_type} #{item_id}" label and item=None.
    """
    enriched = []
    for row in get_items(owner):
        item = catalog_service.get_item(row.item_type, row.item_id)
        data = row.to_dict()
        data["item_name"] = catalog_service.display_name(row.item_type, row.item_id, item)
        data["item"] = item.to_dict() if item is not None else None
        enriched.append(data)
    return enriched


def cart_total_cents(owner: CartOwner) -> int:
    return sum(row.line_total_cents for row in get_items(owner))
