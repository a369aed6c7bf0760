# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/sahara/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables (when not using migrations) and the default admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --username admin --email admin@sahara.local --password "Password123!" --role admin
#
# Catalog:
# - python -m flask catalog seed
#   Insert demo countries, destinations, tours, packages, hotels, rooms and visas (skips if present).
#
# Maintenance:
# - python -m flask sessions cleanup
#   Delete expired and revoked session tokens.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Country, City, Destination, Package, Tour, Hotel, Room, Visa
from .models.auth import ROLE_ADMIN, ROLE_USER
from .services.auth_service import register_user, PasswordValidationError
from .services import session_service
from .validation import ValidationError, ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-username', default='admin', show_default=True)
@click.option('--admin-email', default='admin@sahara.local', show_default=True)
@click.option('--admin-password', default='Password123!', show_default=True)
@with_appcontext
def init_system(admin_username, admin_email, admin_password):
    """
    Initialize the API: create tables and a default admin account.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing Sahara Journeys API...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(username=admin_username).first()
    if existing:
        click.echo(f"PASS Using existing admin: {existing.username} (ID: {existing.id})")
        return

    try:
        user = register_user(admin_username, admin_email, admin_password, role=ROLE_ADMIN)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Could not create admin: {str(e)}")
        return

    click.echo(f"PASS Created admin: {user.username} ({user.email})")
    click.echo("SECURITY Change the default admin password before going live")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([ROLE_USER, ROLE_ADMIN]), default=ROLE_USER, show_default=True)
@with_appcontext
def create_user_cli(username, email, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = register_user(username, email, password, role=role)
        click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{role}'")
        click.echo("SECURITY Password securely hashed with bcrypt")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<35} {'Role':<8} {'Active'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<35} {user.role:<8} {active_str}")

    click.echo("="*90 + "\n")


@click.group('catalog')
def catalog_group():
    """Catalog seeding commands."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Insert a small demo catalog. Skips when countries already exist."""
    if db.session.query(Country).first():
        click.echo("SKIP Catalog already seeded")
        return

    egypt = Country(name="Egypt", code="EG", description="Land of the pharaohs")
    morocco = Country(name="Morocco", code="MA", description="Gateway to the Sahara")
    db.session.add_all([egypt, morocco])
    db.session.flush()

    cairo = City(name="Cairo", country_id=egypt.id)
    marrakesh = City(name="Marrakesh", country_id=morocco.id)
    db.session.add_all([cairo, marrakesh])
    db.session.flush()

    giza = Destination(name="Giza Plateau", country="Egypt", country_id=egypt.id, city_id=cairo.id, featured=True)
    merzouga = Destination(name="Merzouga Dunes", country="Morocco", country_id=morocco.id, city_id=marrakesh.id)
    db.session.add_all([giza, merzouga])
    db.session.flush()

    db.session.add_all([
        Tour(
            name="Pyramids Day Tour", destination_id=giza.id, trip_type="day-trip",
            duration=1, price_cents=10000, discounted_price_cents=8000, max_group_size=12,
        ),
        Tour(
            name="Sahara Camel Trek", destination_id=merzouga.id, trip_type="adventure",
            duration=3, price_cents=45000, max_group_size=8,
        ),
        Package(
            title="Classic Egypt", slug="classic-egypt", description="Cairo, Luxor and a Nile cruise",
            price_cents=189900, discounted_price_cents=169900, duration=8, destination_id=giza.id,
            inclusions=["hotels", "domestic flights", "guide"],
        ),
        Visa(title="Egypt Tourist e-Visa", country_id=egypt.id, price_cents=2500, processing_days=7),
    ])

    hotel = Hotel(name="Nile View Hotel", destination_id=giza.id, city="Cairo", country="Egypt", stars=4)
    db.session.add(hotel)
    db.session.flush()
    db.session.add_all([
        Room(hotel_id=hotel.id, name="Standard Double", max_occupancy=2, max_adults=2, price_cents=9000),
        Room(
            hotel_id=hotel.id, name="Family Suite", type="suite", max_occupancy=4, max_adults=2,
            max_children=2, max_infants=1, price_cents=18000, discounted_price_cents=15000,
        ),
    ])

    db.session.commit()
    click.echo("PASS Seeded demo catalog")


@click.group('sessions')
def sessions_group():
    """Session maintenance commands."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked session tokens."""
    deleted = session_service.purge_expired_sessions()
    click.echo(f"Deleted {deleted} expired or revoked session tokens.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(sessions_group)
