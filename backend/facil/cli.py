# Overview: Flask CLI command groups for bootstrap, demo data and account maintenance.

# backend/facil/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init --email admin@condo.com --password "changeme"
#   Create local tables (sessions always live here) and the first admin account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all local tables (deletes all data).
# - python -m flask system seed-demo
#   Load the demo condominium and stock data (idempotent).
#
# User inspection/maintenance:
# - python -m flask users list
#   List all users with role and password state.
# - python -m flask users create --email bob@condo.com --password "secret1" --role staff
#   Create a user (prompts if options are omitted).
# - python -m flask users migrate-passwords [--dry-run]
#   Hash every legacy plaintext password now instead of at next login.

import click
from datetime import date
from decimal import Decimal
from flask.cli import with_appcontext

from .errors import ConflictError, ValidationError
from .extensions import db, get_credentials, get_provider
from .records import ExpenseRecord, PaymentRecord, PersonRecord, ProductRecord, ResidentRecord
from .services.auth_service import ROLES
from .services.password_service import is_hashed


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default='admin@condo.com', help='Admin email')
@click.option('--username', default=None, help='Admin username (optional)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
@with_appcontext
def init_system(email, username, password):
    """
    Create the local tables and the first admin account.

    Safe to re-run: existing tables and an existing account are left alone.
    """
    click.echo("START Initializing facil...")

    db.create_all()
    click.echo("PASS Local tables ready")

    provider = get_provider()
    if provider.find_user(email) or (username and provider.find_user(username)):
        click.echo(f"WARN  User '{username or email}' already exists, skipping...")
        return

    try:
        user = get_credentials().create_user(
            email=email,
            username=username,
            password=password,
            name="Administrator",
            role="admin",
        )
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create admin: {str(e)}")
        return

    click.echo(f"PASS Created admin: {user.display_identifier}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all local tables and recreate schema.

    This will DELETE ALL DATA in the local database! A hosted backend is
    not touched.
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


def _insert_missing(store, records) -> int:
    created = 0
    for record in records:
        if store.get(record.id) is not None:
            continue
        store.insert(record)
        created += 1
    return created


@system_group.command('seed-demo')
@click.option('--password', default='demo123', show_default=True, help='Password for the demo accounts')
@with_appcontext
def seed_demo(password):
    """Load demo residents, payments, expenses, stock and accounts."""
    provider = get_provider()
    today = date.today()
    last_month = date(today.year - 1, 12, 1) if today.month == 1 else date(today.year, today.month - 1, 1)

    counts = {
        "residents": _insert_missing(provider.residents, [
            ResidentRecord(id="res-1", owner_name="Alice Silva", apartment_number=1, tenant_name="João da Silva"),
            ResidentRecord(id="res-2", owner_name="Roberto Souza", apartment_number=2),
        ]),
        "payments": _insert_missing(provider.payments, [
            PaymentRecord(id="pay-1", apartment_number=1, amount=Decimal("500.00"), date=last_month,
                          month=last_month.month, year=last_month.year),
            PaymentRecord(id="pay-2", apartment_number=2, amount=Decimal("500.00"), date=last_month,
                          month=last_month.month, year=last_month.year),
            PaymentRecord(id="pay-3", apartment_number=1, amount=Decimal("500.00"), date=today,
                          month=today.month, year=today.year),
        ]),
        "expenses": _insert_missing(provider.expenses, [
            ExpenseRecord(id="exp-1", description="Manutenção do Jardim", amount=Decimal("350.00"), category="Jardinagem", date=today),
            ExpenseRecord(id="exp-2", description="Eletricidade do Hall", amount=Decimal("600.00"), category="Eletricidade", date=today),
        ]),
        "products": _insert_missing(provider.products, [
            ProductRecord(id="prd-1", sku="CABO-HDMI-2M", name="Cabo HDMI 2m", quantity=12, price=Decimal("35.00")),
            ProductRecord(id="prd-2", sku="NB-DELL-5420", name="Notebook Dell Latitude 5420", quantity=2,
                          price=Decimal("4200.00"), serial_number="SN5420X01", asset_tag="PAT-0001"),
        ]),
        "people": _insert_missing(provider.people, [
            PersonRecord(id="per-1", name="Carlos Pereira", email="carlos@condo.com"),
        ]),
    }
    for kind, created in counts.items():
        click.echo(f"PASS {kind}: {created} created")

    credentials = get_credentials()
    demo_users = [
        ("admin@condo.com", "Usuário Administrador", "admin", None),
        ("alice@email.com", "Alice Silva", "resident", 1),
    ]
    for email, name, role, apartment in demo_users:
        if provider.find_user(email):
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        try:
            credentials.create_user(email=email, name=name, role=role, apartment_number=apartment, password=password)
        except (ValidationError, ConflictError) as e:
            click.echo(f"FAIL Failed to create user '{email}': {str(e)}")
            continue
        click.echo(f"PASS Created user: {email} with role '{role}'")


@click.group('users')
def users_group():
    """User inspection and maintenance commands."""


@users_group.command('create')
@click.option('--username', default=None, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', default=None, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES), default='staff', show_default=True, help='Role')
@click.option('--apartment', 'apartment_number', type=int, default=None, help='Apartment number (residents)')
@with_appcontext
def create_user_cli(username, email, name, password, role, apartment_number):
    """Create a user. The password is stored as a bcrypt hash."""
    try:
        user = get_credentials().create_user(
            username=username,
            email=email or None,
            name=name,
            password=password,
            role=role,
            apartment_number=apartment_number,
        )
    except ValidationError as e:
        click.echo(f"FAIL Validation failed: {str(e)}")
        return
    except ConflictError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.display_identifier} with role '{role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role and password state."""
    users = get_provider().users.list()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<34} {'Username':<16} {'Email':<28} {'Role':<10} {'Password'}")
    click.echo("="*100)

    for user in users:
        if not user.password:
            secret = "none"
        elif is_hashed(user.password):
            secret = "bcrypt"
        else:
            secret = "PLAINTEXT"
        click.echo(f"{user.id:<34} {user.username or '-':<16} {user.email or '-':<28} {user.role:<10} {secret}")

    click.echo("="*100 + "\n")


@users_group.command('migrate-passwords')
@click.option('--dry-run', is_flag=True, help='Only report the affected accounts')
@with_appcontext
def migrate_passwords(dry_run):
    """Hash every legacy plaintext password."""
    migrated = get_credentials().migrate_all_plaintext(dry_run=dry_run)
    verb = "Would migrate" if dry_run else "Migrated"
    click.echo(f"PASS {verb} {len(migrated)} password(s)")
    for user_id in migrated:
        click.echo(f"     {user_id}")


def register_commands(app):
    """Register CLI command groups with the Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
