# Overview: Flask CLI command groups for bootstrap, inspection and demo data.

# backend/pavan/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and one user per role.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role Sales]
#   List all users with role and active status.
# - python -m flask users create --email a@b.c --name "Asha" --password "Password123" --role Admin
#   Create a user (prompts if options are omitted).
#
# Demo data:
# - python -m flask demo seed
#   Insert a few categories, products and leads for local development.

import click
from decimal import Decimal
from flask.cli import with_appcontext

from .errors import AppError
from .extensions import db
from .models import Category, Lead, Product, Supplier, User
from .permissions import Role
from .services.auth_service import create_user, PasswordValidationError

DEFAULT_PASSWORD = "Password123"

DEFAULT_USERS = (
    ("admin@pavan.local", "Admin", Role.ADMIN),
    ("sales@pavan.local", "Sales", Role.SALES),
    ("inventory@pavan.local", "Inventory", Role.INVENTORY),
    ("cashier@pavan.local", "Cashier", Role.CASHIER),
)

ROLE_CHOICES = [r.value for r in Role]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create the schema and one account per role.

    All passwords default to "Password123". Change them immediately outside
    local development.
    """
    click.echo("START Initializing system...")
    db.create_all()

    for email, name, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        try:
            create_user(email=email, password=DEFAULT_PASSWORD, name=name, role=role)
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed for '{email}': {e}")
            continue
        click.echo(f"PASS Created user: {email} with role '{role.value}'")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for email, _, role in DEFAULT_USERS:
        click.echo(f"   {role.value:<10} -> {email} / {DEFAULT_PASSWORD}")


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
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLE_CHOICES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, name, password, role):
    """
    Create a new user.

    Password must be at least 8 characters with at least one letter and one digit.
    """
    try:
        user = create_user(email=email, password=password, name=name, role=role)
    except AppError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.email} (ID: {user.id}) with role '{user.role.value}'")


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLE_CHOICES), default=None, help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with role and active status."""
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == Role.parse(role))
    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<32} {'Name':<20} {'Role':<10} {'Active'}")
    click.echo("="*80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<32} {user.name:<20} {user.role.value:<10} {active_str}")
    click.echo("="*80 + "\n")


@click.group('demo')
def demo_group():
    """Local development data."""


@demo_group.command('seed')
@with_appcontext
def seed_demo():
    """Insert sample categories, a supplier, products and leads (skips if products exist)."""
    if db.session.query(Product).count():
        click.echo("WARN  Products already exist, skipping demo seed.")
        return

    electronics = Category(name="Electronics", description="Phones and accessories")
    stationery = Category(name="Stationery")
    supplier = Supplier(name="Sharma Traders", contact="R. Sharma", phone="+91-98200-00000")
    db.session.add_all([electronics, stationery, supplier])
    db.session.flush()

    products = [
        ("ELEC-001", "USB-C Cable", electronics, "120.00", "249.00", 40, 10),
        ("ELEC-002", "Wireless Mouse", electronics, "450.00", "799.00", 6, 10),
        ("STAT-001", "A5 Notebook", stationery, "35.00", "60.00", 150, 25),
        ("STAT-002", "Gel Pen (Blue)", stationery, "8.00", "15.00", 0, 50),
    ]
    for sku, name, category, cost, sell, qty, threshold in products:
        db.session.add(Product(
            sku=sku,
            name=name,
            category_id=category.id,
            supplier_id=supplier.id,
            cost_price=Decimal(cost),
            sell_price=Decimal(sell),
            quantity=qty,
            threshold=threshold,
        ))

    admin = db.session.query(User).filter_by(role=Role.ADMIN).first()
    leads = [
        ("Meera Iyer", "Iyer Stores", "New", "25000.00"),
        ("Kabir Khan", "Khan & Sons", "Contacted", "12000.00"),
        ("Lena D'Souza", None, "Converted", "8000.00"),
    ]
    for name, company, status, value in leads:
        db.session.add(Lead(
            name=name,
            company=company,
            status=status,
            value=Decimal(value),
            assigned_to=admin.id if admin else None,
        ))

    db.session.commit()
    click.echo(f"PASS Seeded {len(products)} products and {len(leads)} leads")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(demo_group)
