# Overview: Flask CLI command groups for bootstrap and catalog inspection.

# backend/app/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system seed [--password "password123"]
#   Idempotent demo data: one account per role and the sample menu.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-sessions
#   Delete expired/revoked sessions older than 30 days.
#
# Users:
# - python -m flask users list
# - python -m flask users create --name "Kasir 2" --email kasir2@test.com --password "password123" --role KASIR
#
# Catalog:
# - python -m flask items list [--status AVAILABLE]

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Item, User
from .models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_SUPPLIER, ROLE_USER, VALID_ROLES
from .models.catalog import ITEM_AVAILABLE, ITEM_PENDING_APPROVAL, ITEM_STATUSES
from .services import catalog_service, session_service
from .services.auth_service import create_user, PasswordValidationError


DEFAULT_ACCOUNTS = [
    # (name, email, role)
    ("Admin Pengurus", "pengurus@test.com", ROLE_ADMIN),
    ("Kasir 1", "kasir@test.com", ROLE_CASHIER),
    ("Mitra Supplier", "mitra@test.com", ROLE_SUPPLIER),
    ("User Biasa", "user@test.com", ROLE_USER),
]

SAMPLE_MENU = [
    # (name, photo_url, stock, unit_price, status)
    ("Nasi Goreng", "https://images.unsplash.com/photo-1603133872878-684f208fb84b?w=400&h=300&fit=crop", 20, 15000, ITEM_AVAILABLE),
    ("Mie Ayam", "https://images.unsplash.com/photo-1569718212165-3a8278d5f624?w=400&h=300&fit=crop", 15, 12000, ITEM_AVAILABLE),
    ("Es Teh Manis", "https://images.unsplash.com/photo-1556679343-c7306c1976bc?w=400&h=300&fit=crop", 30, 5000, ITEM_AVAILABLE),
    ("Ayam Geprek", "https://images.unsplash.com/photo-1598103442097-8b74394b95c6?w=400&h=300&fit=crop", 10, 18000, ITEM_PENDING_APPROVAL),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' to load demo data.")


@system_group.command('seed')
@click.option('--password', default='password123', show_default=True, help='Password for seeded accounts')
@with_appcontext
def seed(password):
    """Create the default accounts and sample menu (idempotent)."""
    click.echo("START Seeding cafeteria data...")

    accounts = {}
    for name, email, role in DEFAULT_ACCOUNTS:
        user = db.session.query(User).filter_by(email=email).first()
        if user:
            click.echo(f"SKIP  {email} already exists")
        else:
            try:
                user = create_user(name, email, password, role)
            except PasswordValidationError as e:
                raise click.ClickException(str(e))
            click.echo(f"PASS Created {role:<8} {email}")
        accounts[role] = user

    supplier = accounts[ROLE_SUPPLIER]
    for name, photo_url, stock, unit_price, status in SAMPLE_MENU:
        if db.session.query(Item).filter_by(name=name).first():
            click.echo(f"SKIP  Item {name} already exists")
            continue
        db.session.add(Item(
            name=name,
            photo_url=photo_url,
            stock_quantity=stock,
            unit_price=unit_price,
            status=status,
            owner_id=supplier.id,
        ))
        click.echo(f"PASS Created item {name} (stock {stock}, {status})")

    db.session.commit()
    click.echo("PASS Seeding complete.")


@system_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    """Delete expired or revoked sessions older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} session(s).")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """Create a user account."""
    try:
        user = create_user(name, email, password, role)
    except (ValueError, PasswordValidationError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role and active status."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<30} {'Role':<10} {'Active':<8}")
    click.echo("=" * 80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<20} {user.email:<30} {user.role:<10} {active_str:<8}")
    click.echo("=" * 80 + "\n")


@click.group('items')
def items_group():
    """Catalog inspection."""


@items_group.command('list')
@click.option('--status', type=click.Choice(list(ITEM_STATUSES)), help='Filter by item status')
@with_appcontext
def list_items_cli(status):
    """List catalog items with stock and status."""
    items = catalog_service.list_items(status=status)
    if not items:
        click.echo("No items found.")
        return

    click.echo(f"{'ID':<5} {'Name':<25} {'Stock':>6} {'Price':>10}  {'Status'}")
    for item in items:
        click.echo(f"{item.id:<5} {item.name:<25} {item.stock_quantity:>6} {item.unit_price:>10}  {item.status}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(items_group)
