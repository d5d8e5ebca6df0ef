# Overview: Flask CLI command groups for bootstrap and user management.

# backend/partsdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Shop bootstrap:
# - python -m flask shop init
#   Idempotent: creates tables, the default letterhead and the sample catalogue.
# - python -m flask shop seed-products
#   Insert the five sample products if the catalogue is empty.
#
# Users:
# - python -m flask users create --username admin --password "Password123!"
#   Create a staff login (prompts if options are omitted).
# - python -m flask users list
#   List all users.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import products_service, settings_service
from .services.auth_service import create_user, PasswordValidationError
from .storage import get_store


@click.group('shop')
def shop_group():
    """Shop bootstrap commands."""


@shop_group.command('init')
@with_appcontext
def init_shop():
    """
    Initialize the shop database.

    Creates:
    - All tables (no-op for tables that already exist)
    - Default shop settings (letterhead printed on invoices)
    - Sample products, only when the catalogue is empty

    Use `flask db upgrade` instead of this in deployments that track migrations.
    """
    click.echo("START Initializing shop...")

    if get_store().backend_name == "sql":
        db.create_all()
        click.echo("PASS Tables created")

    settings = settings_service.get_settings()
    click.echo(f"PASS Shop settings: {settings.shop_name}")

    created = products_service.seed_default_products()
    if created:
        click.echo(f"PASS Seeded {created} products")
    else:
        click.echo("WARN  Catalogue not empty, skipping sample products")

    click.echo("DONE Shop initialized. Create a login with 'flask users create'.")


@shop_group.command('seed-products')
@with_appcontext
def seed_products():
    """Insert the sample catalogue if there are no products yet."""
    created = products_service.seed_default_products()
    if created:
        click.echo(f"PASS Seeded {created} products")
    else:
        click.echo("WARN  Catalogue not empty, nothing to do")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(username, password):
    """
    Create a new staff login.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(username=username, password=password)
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e}")
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user: {user.username} (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = get_store().list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'ID':<5} {'Username':<30} {'Created'}")
    click.echo("="*60)

    for user in users:
        created = user.created_at.strftime("%Y-%m-%d %H:%M") if user.created_at else "-"
        click.echo(f"{user.id:<5} {user.username:<30} {created}")

    click.echo("="*60 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(shop_group)
    app.cli.add_command(users_group)
