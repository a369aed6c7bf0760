"""
Pytest fixtures for Sahara Journeys backend tests.

Provides test database setup, users, a small catalog, and test client.
"""

import secrets
from datetime import timedelta

import pytest
from sahara import create_app
from sahara.extensions import db
from sahara.models import Booking, Hotel, Package, Room, Tour
from sahara.models.auth import ROLE_ADMIN
from sahara.models.bookings import BOOKING_STATUS_PENDING, PAYMENT_STATUS_UNPAID
from sahara.services.auth_service import register_user
from sahara.services import session_service
from sahara.time_utils import today, utcnow


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STRIPE_SECRET_KEY': None,
        'STRIPE_WEBHOOK_SECRET': 'whsec_test',
        'STRIPE_CURRENCY': 'usd',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def user(db_session):
    return register_user("traveler", "traveler@example.com", PASSWORD)


@pytest.fixture(scope='function')
def other_user(db_session):
    return register_user("wanderer", "wanderer@example.com", PASSWORD)


@pytest.fixture(scope='function')
def admin(db_session):
    return register_user("admin", "admin@example.com", PASSWORD, role=ROLE_ADMIN)


@pytest.fixture(scope='function')
def tour(db_session):
    tour = Tour(id=5, name="Pyramids Day Tour", duration=1, price_cents=100, discounted_price_cents=80)
    db_session.add(tour)
    db_session.commit()
    return tour


@pytest.fixture(scope='function')
def package(db_session):
    package = Package(title="Classic Egypt", slug="classic-egypt", description="", price_cents=150000, duration=8)
    db_session.add(package)
    db_session.commit()
    return package


@pytest.fixture(scope='function')
def hotel_room(db_session):
    """Hotel with one family room (2 adults, 2 children) at 150.00 discounted."""
    hotel = Hotel(name="Nile View Hotel", city="Cairo", country="Egypt")
    db_session.add(hotel)
    db_session.flush()
    room = Room(
        hotel_id=hotel.id, name="Family Suite", max_adults=2, max_children=2, max_infants=1,
        price_cents=18000, discounted_price_cents=15000,
    )
    db_session.add(room)
    db_session.commit()
    return hotel, room


@pytest.fixture(scope='function')
def make_booking(db_session):
    """Factory inserting a booking directly with a fixed total."""
    def _make(owner, *, total_cents=50000, status=BOOKING_STATUS_PENDING, tour=None):
        booking = Booking(
            booking_number=f"SJB{secrets.token_hex(6).upper()}",
            user_id=owner.id,
            tour_id=tour.id if tour else None,
            status=status,
            booking_date=utcnow(),
            travel_date=today() + timedelta(days=30),
            adults=1,
            total_amount_cents=total_cents,
            paid_amount_cents=0,
            payment_status=PAYMENT_STATUS_UNPAID,
        )
        db_session.add(booking)
        db_session.commit()
        return booking
    return _make


def _headers_for(user) -> dict:
    _, token = session_service.create_session(user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def user_headers(user):
    return _headers_for(user)


@pytest.fixture(scope='function')
def other_headers(other_user):
    return _headers_for(other_user)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return _headers_for(admin)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
