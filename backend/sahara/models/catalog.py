from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class PricedMixin:
    """Catalog rows that can be put in a cart carry a price and an optional discount."""

    @property
    def effective_price_cents(self) -> int:
        if self.discounted_price_cents is not None:
            return self.discounted_price_cents
        return self.price_cents


class Country(db.Model):
    __tablename__ = "countries"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(8), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    @property
    def display_name(self) -> str:
        return self.name

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "image_url": self.image_url,
            "active": self.active,
        }


class City(db.Model):
    __tablename__ = "cities"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    country_id = db.Column(db.Integer, db.ForeignKey("countries.id"), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    active = db.Column(db.Boolean, nullable=False, default=True)

    country = db.relationship("Country", backref=db.backref("cities", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "country_id": self.country_id,
            "description": self.description,
            "active": self.active,
        }


class Destination(db.Model):
    __tablename__ = "destinations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    country = db.Column(db.String(120), nullable=False)
    country_id = db.Column(db.Integer, db.ForeignKey("countries.id"), nullable=True, index=True)
    city_id = db.Column(db.Integer, db.ForeignKey("cities.id"), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "country_id": self.country_id,
            "city_id": self.city_id,
            "description": self.description,
            "image_url": self.image_url,
            "featured": self.featured,
        }


class Package(PricedMixin, db.Model):
    __tablename__ = "packages"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=True, unique=True)
    description = db.Column(db.Text, nullable=False, default="")
    price_cents = db.Column(db.Integer, nullable=False)
    discounted_price_cents = db.Column(db.Integer, nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    duration = db.Column(db.Integer, nullable=False, default=1)
    destination_id = db.Column(db.Integer, db.ForeignKey("destinations.id"), nullable=True, index=True)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    type = db.Column(db.String(64), nullable=True)
    inclusions = db.Column(db.JSON, nullable=True)
    rating = db.Column(db.Float, nullable=True)
    review_count = db.Column(db.Integer, nullable=False, default=0)

    @property
    def display_name(self) -> str:
        return self.title

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "price_cents": self.price_cents,
            "discounted_price_cents": self.discounted_price_cents,
            "image_url": self.image_url,
            "duration": self.duration,
            "destination_id": self.destination_id,
            "featured": self.featured,
            "type": self.type,
            "inclusions": self.inclusions,
            "rating": self.rating,
            "review_count": self.review_count,
        }


class Tour(PricedMixin, db.Model):
    __tablename__ = "tours"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    destination_id = db.Column(db.Integer, db.ForeignKey("destinations.id"), nullable=True, index=True)
    trip_type = db.Column(db.String(64), nullable=True)
    duration = db.Column(db.Integer, nullable=False, default=1)
    price_cents = db.Column(db.Integer, nullable=False)
    discounted_price_cents = db.Column(db.Integer, nullable=True)
    max_group_size = db.Column(db.Integer, nullable=True)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    rating = db.Column(db.Float, nullable=True)
    review_count = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="active")
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    @property
    def display_name(self) -> str:
        return self.name

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image_url": self.image_url,
            "destination_id": self.destination_id,
            "trip_type": self.trip_type,
            "duration": self.duration,
            "price_cents": self.price_cents,
            "discounted_price_cents": self.discounted_price_cents,
            "max_group_size": self.max_group_size,
            "featured": self.featured,
            "rating": self.rating,
            "review_count": self.review_count,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class Hotel(db.Model):
    """Hotels are not priced directly; bookings and carts price one of their rooms."""
    __tablename__ = "hotels"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    destination_id = db.Column(db.Integer, db.ForeignKey("destinations.id"), nullable=True, index=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    country = db.Column(db.String(120), nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    stars = db.Column(db.Integer, nullable=True)
    check_in_time = db.Column(db.String(16), nullable=True)
    check_out_time = db.Column(db.String(16), nullable=True)
    featured = db.Column(db.Boolean, nullable=False, default=False)
    rating = db.Column(db.Float, nullable=True)
    review_count = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="active")

    @property
    def display_name(self) -> str:
        return self.name

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "destination_id": self.destination_id,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "image_url": self.image_url,
            "stars": self.stars,
            "check_in_time": self.check_in_time,
            "check_out_time": self.check_out_time,
            "featured": self.featured,
            "rating": self.rating,
            "review_count": self.review_count,
            "status": self.status,
        }


class Room(PricedMixin, db.Model):
    __tablename__ = "rooms"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    type = db.Column(db.String(64), nullable=False, default="standard")
    max_occupancy = db.Column(db.Integer, nullable=False, default=2)
    max_adults = db.Column(db.Integer, nullable=False, default=2)
    max_children = db.Column(db.Integer, nullable=False, default=0)
    max_infants = db.Column(db.Integer, nullable=False, default=0)
    price_cents = db.Column(db.Integer, nullable=False)
    discounted_price_cents = db.Column(db.Integer, nullable=True)
    available = db.Column(db.Boolean, nullable=False, default=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    hotel = db.relationship("Hotel", backref=db.backref("rooms", lazy=True))

    @property
    def display_name(self) -> str:
        return self.name

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "hotel_id": self.hotel_id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "max_occupancy": self.max_occupancy,
            "max_adults": self.max_adults,
            "max_children": self.max_children,
            "max_infants": self.max_infants,
            "price_cents": self.price_cents,
            "discounted_price_cents": self.discounted_price_cents,
            "available": self.available,
            "status": self.status,
        }


class Visa(PricedMixin, db.Model):
    __tablename__ = "visas"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    country_id = db.Column(db.Integer, db.ForeignKey("countries.id"), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    price_cents = db.Column(db.Integer, nullable=False)
    discounted_price_cents = db.Column(db.Integer, nullable=True)
    processing_days = db.Column(db.Integer, nullable=True)
    active = db.Column(db.Boolean, nullable=False, default=True)

    @property
    def display_name(self) -> str:
        return self.title

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "country_id": self.country_id,
            "description": self.description,
            "price_cents": self.price_cents,
            "discounted_price_cents": self.discounted_price_cents,
            "processing_days": self.processing_days,
            "active": self.active,
        }
