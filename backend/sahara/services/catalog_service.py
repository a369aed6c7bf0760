# Overview: Read-side catalog lookups shared by cart, checkout and bookings.

from __future__ import annotations

from ..extensions import db
from ..models import Package, Tour, Hotel, Room, Visa


CATALOG_MODELS = {
    "package": Package,
    "tour": Tour,
    "hotel": Hotel,
    "room": Room,
    "visa": Visa,
}


def get_item(item_type: str, item_id: int):
    """Current catalog row for (item_type, item_id), or None."""
    model = CATALOG_MODELS.get(item_type)
    if model is None or item_id is None:
        return None
    return db.session.get(model, item_id)


def fallback_label(item_type: str, item_id: int) -> str:
    return f"{item_type} #{item_id}"


def display_name(item_type: str, item_id: int, item=None) -> str:
    """
    Human label for a cart/order line.

    Falls back to "{item_type} #{item_id}" when the catalog row is gone,
    so one deleted product never breaks a whole cart listing.
    """
    if item is None:
        item = get_item(item_type, item_id)
    if item is None:
        return fallback_label(item_type, item_id)
    return item.display_name or fallback_label(item_type, item_id)


def current_prices(item_type: str, item_id: int) -> tuple[int, int | None] | None:
    """(price_cents, discounted_price_cents) from the catalog, or None if unpriced/missing."""
    item = get_item(item_type, item_id)
    if item is None or not hasattr(item, "price_cents"):
        return None
    return item.price_cents, item.discounted_price_cents
