# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--username admin --password secret123]
#   Idempotent bootstrap: creates the schema and the admin account
#   (falls back to ADMIN_USERNAME / ADMIN_PASSWORD from the environment).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role manager]
#   List users with their roles.
# - python -m flask users create --username seller1 --password secret123 --name "Front Desk" --role seller
#   Create a user (prompts if options are omitted).
#
# Locations:
# - python -m flask locations create --address "Main Street 1"
#   Create a point of sale / storage location.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import AppError
from .extensions import db
from .roles import Role
from .services import auth_service, location_service


def _fail(error: AppError):
    """Print an AppError with its field details and exit non-zero."""
    click.echo(f"FAIL {error.message or error.__class__.__name__}")
    for field, detail in (error.fields or {}).items():
        click.echo(f"     {field}: {detail['message']}")
    raise SystemExit(1)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--username', help='Admin username (default: ADMIN_USERNAME)')
@click.option('--password', help='Admin password (default: ADMIN_PASSWORD)')
@with_appcontext
def init_system(username, password):
    """
    Create all tables and make sure the admin account exists.

    Safe to run repeatedly: existing tables and accounts are kept.
    """
    click.echo("START Initializing stockroom...")

    db.create_all()
    click.echo("PASS Schema ready")

    username = username or current_app.config.get("ADMIN_USERNAME")
    password = password or current_app.config.get("ADMIN_PASSWORD")
    if not username or not password:
        click.echo("FAIL Admin credentials missing. Pass --username/--password or set ADMIN_USERNAME and ADMIN_PASSWORD.")
        raise SystemExit(1)

    try:
        user_id, created = auth_service.ensure_admin_account(username, password)
    except AppError as e:
        _fail(e)

    if created:
        click.echo(f"PASS Created admin '{username}' (ID: {user_id})")
    else:
        click.echo(f"PASS Admin '{username}' already exists (ID: {user_id})")


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
    click.echo("BUILD Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete. Run 'python -m flask system init' to create the admin account.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--name', prompt=True, help='Display name')
@click.option('--role', type=click.Choice([r.value for r in Role]), default=Role.BASIC.value, show_default=True,
              help='Role')
@with_appcontext
def create_user_cli(username, password, name, role):
    """Create a new user."""
    try:
        user_id = auth_service.create_user(username, password, name, role)
    except AppError as e:
        _fail(e)
    click.echo(f"PASS Created user '{username}' with role {role} (ID: {user_id})")


@users_group.command('list')
@click.option('--role', type=click.Choice([r.value for r in Role]), help='Only users with this role')
@with_appcontext
def list_users_cli(role):
    """List users with their roles."""
    users = auth_service.list_users(role)
    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<6} {'Username':<22} {'Role':<9} Name")
    for user in users:
        click.echo(f"{user.id:<6} {user.username:<22} {user.role:<9} {user.name}")


@click.group('locations')
def locations_group():
    """Location management commands."""


@locations_group.command('create')
@click.option('--address', prompt=True, help='Street address (unique)')
@with_appcontext
def create_location_cli(address):
    """Create a location."""
    try:
        location_id = location_service.create_location(address.strip())
    except AppError as e:
        _fail(e)
    click.echo(f"PASS Created location '{address.strip()}' (ID: {location_id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(locations_group)
