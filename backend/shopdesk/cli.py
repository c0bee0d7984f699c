# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/shopdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--super-admin-email root@shopdesk.local --super-admin-password "Password123!"]
#   Idempotent bootstrap: creates tables, default categories/brands and optionally a SUPER_ADMIN.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Shop management (MULTI-TENANT):
# - python -m flask shops list
#   List all shops with user/invoice counts.
# - python -m flask shops create --name "Acme Phones" --email shop@acme.test --admin-name "Ada" --admin-email ada@acme.test
#   Create a shop and its ADMIN user (prompts for the admin password).
#
# User inspection/bootstrap:
# - python -m flask users list [--shop-id 1]
#   List users with role, shop and active status.
# - python -m flask users create-super-admin --email root@shopdesk.local --name "Root"
#   Create a platform SUPER_ADMIN (no shop).
#
# Maintenance:
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

import click
from flask.cli import with_appcontext

from .errors import ApiError
from .extensions import db
from .models import User
from .models.auth import ROLE_SUPER_ADMIN
from .services.auth_service import create_user, PasswordValidationError
from .services import product_service, security_service, shop_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--super-admin-email', help='Create a SUPER_ADMIN with this email if missing')
@click.option('--super-admin-name', default='Platform Admin', show_default=True)
@click.option('--super-admin-password', help='Password for the SUPER_ADMIN')
@with_appcontext
def init_system(super_admin_email, super_admin_name, super_admin_password):
    """
    Initialize the database and reference data.

    Creates:
    - All tables (no-op for existing ones)
    - Default product categories and brands
    - Optionally a SUPER_ADMIN account

    Safe to run repeatedly.
    """
    click.echo("START Initializing ShopDesk...")

    db.create_all()
    click.echo("PASS Tables ready")

    added = product_service.seed_catalog()
    click.echo(f"PASS Catalog seeded ({added} new categories/brands)")

    if super_admin_email:
        existing = db.session.query(User).filter_by(email=super_admin_email.strip().lower()).first()
        if existing:
            click.echo(f"PASS Using existing user: {existing.email} ({existing.role})")
        elif not super_admin_password:
            click.echo("FAIL --super-admin-password is required to create a SUPER_ADMIN")
            return
        else:
            try:
                user = create_user(
                    email=super_admin_email,
                    name=super_admin_name,
                    password=super_admin_password,
                    role=ROLE_SUPER_ADMIN,
                )
            except ApiError as e:
                db.session.rollback()
                click.echo(f"FAIL Could not create SUPER_ADMIN: {e.message}")
                return
            click.echo(f"PASS Created SUPER_ADMIN: {user.email} (ID: {user.id})")

    click.echo("DONE ShopDesk initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    product_service.seed_catalog()
    click.echo("PASS Database reset")


# =============================================================================
# SHOP MANAGEMENT COMMANDS
# =============================================================================

@click.group('shops')
def shops_group():
    """Shop (tenant) management commands."""


@shops_group.command('list')
@with_appcontext
def list_shops():
    """List all shops."""
    shops = shop_service.list_shops_with_counts()
    if not shops:
        click.echo("No shops found. Create one with 'python -m flask shops create'.")
        return

    click.echo(f"\n{'ID':<5} {'Slug':<25} {'Name':<30} {'Active':<8} {'Users':<6} {'Invoices':<8}")
    click.echo("-" * 86)
    for shop in shops:
        active = "Yes" if shop["is_active"] else "No"
        click.echo(
            f"{shop['id']:<5} {shop['slug']:<25} {shop['name']:<30} {active:<8} "
            f"{shop['user_count']:<6} {shop['invoice_count']:<8}"
        )
    click.echo(f"\nTotal: {len(shops)} shop(s)")


@shops_group.command('create')
@click.option('--name', required=True, help='Shop name')
@click.option('--email', required=True, help='Shop contact email')
@click.option('--admin-name', required=True, help='Shop admin display name')
@click.option('--admin-email', required=True, help='Shop admin login email')
@click.option('--admin-password', prompt=True, hide_input=True, confirmation_prompt=True, help='Shop admin password')
@with_appcontext
def create_shop_cli(name, email, admin_name, admin_email, admin_password):
    """Create a shop together with its ADMIN user."""
    try:
        shop, admin = shop_service.register_shop({
            "shop_name": name,
            "shop_email": email,
            "admin_name": admin_name,
            "admin_email": admin_email,
            "admin_password": admin_password,
        })
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e.message}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return
    except ApiError as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create shop: {e.message}")
        return

    click.echo(f"PASS Created shop: {shop.name} (ID: {shop.id}, Slug: {shop.slug})")
    click.echo(f"PASS Created ADMIN: {admin.email} (ID: {admin.id})")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--shop-id', type=int, help='Only users of this shop')
@with_appcontext
def list_users(shop_id):
    """List users with role, shop and status."""
    query = db.session.query(User)
    if shop_id is not None:
        query = query.filter(User.shop_id == shop_id)
    users = query.order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo(f"\n{'ID':<5} {'Email':<35} {'Role':<12} {'Shop':<6} {'Active':<6}")
    click.echo("-" * 68)
    for user in users:
        shop_label = str(user.shop_id) if user.shop_id is not None else "-"
        active = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.role:<12} {shop_label:<6} {active:<6}")


@users_group.command('create-super-admin')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_super_admin_cli(email, name, password):
    """
    Create a platform SUPER_ADMIN.

    SUPER_ADMIN users have no shop and may act on any shop via ?shopId=.
    """
    try:
        user = create_user(email=email, name=name, password=password, role=ROLE_SUPER_ADMIN)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e.message}")
        return
    except ApiError as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create user: {e.message}")
        return
    click.echo(f"PASS Created SUPER_ADMIN: {user.email} (ID: {user.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


# =============================================================================
# MAINTENANCE COMMANDS
# =============================================================================

@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """Delete security events older than the retention window."""
    deleted = security_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(shops_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
