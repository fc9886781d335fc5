# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/fbaops/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Organization management (MULTI-TENANT):
# - python -m flask orgs list
# - python -m flask orgs create --name "Acme Wholesale"
#
# User inspection/bootstrap:
# - python -m flask users list [--org-id 1]
# - python -m flask users roles
#   Show what each role may do.
# - python -m flask users deactivate --email buyer@example.com
#   Block sign-in and revoke every open session.
# - python -m flask users create --email admin@example.com --password "Password123!" --full-name "Admin"
#   Creates the identity only (pending approval until a role is granted).
# - python -m flask users grant-role --email admin@example.com --org-id 1 --role admin
#   Bootstrap the first admin; later role changes go through /api/access.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --older-than-days 30
#   Delete expired/revoked sessions older than the window.

import click
from flask.cli import with_appcontext

from .exceptions import FbaOpsError
from .extensions import db
from .models import Organization, User
from .permissions import ROLE_DESCRIPTIONS, Role, allowed_actions, get_action_definition
from .services import access_service, auth_service, membership_service, session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Database tables created")


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

    click.echo("PASS Database reset complete")


@click.group('orgs')
def orgs_group():
    """Organization (tenant) management commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = db.session.query(Organization).order_by(Organization.id).all()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'ID':<5} {'Name':<35} {'Active':<8} {'Members'}")
    click.echo("="*60)
    for org in orgs:
        click.echo(f"{org.id:<5} {org.name:<35} {str(org.is_active):<8} {len(org.memberships)}")
    click.echo("="*60 + "\n")


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@with_appcontext
def create_org_cli(name):
    """Create a new organization (tenant)."""
    name = name.strip()
    if not name:
        raise click.BadParameter("name cannot be empty", param_hint="--name")

    org = Organization(name=name, is_active=True)
    db.session.add(org)
    db.session.commit()
    click.echo(f"PASS Created organization: {org.name} (ID: {org.id})")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--full-name', default=None, help='Display name')
@with_appcontext
def create_user_cli(email, password, full_name):
    """Create a user identity (pending approval)."""
    try:
        user = auth_service.sign_up(email, password, full_name)
    except FbaOpsError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user: {user.email} (ID: {user.id}), pending approval")


@users_group.command('grant-role')
@click.option('--email', required=True, help='Email address')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--role', type=click.Choice([r.value for r in Role]), required=True, help='Role')
@with_appcontext
def grant_role_cli(email, org_id, role):
    """Assign a role to a user in an organization."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        raise click.ClickException(f"User '{email}' not found")

    org = db.session.get(Organization, org_id)
    if not org:
        raise click.ClickException(f"Organization ID {org_id} not found")

    try:
        membership = access_service.set_role(
            org_id=org.id,
            user_id=user.id,
            role=role,
            actor_user_id=None,
            allow_other_org_members=True,
        )
    except FbaOpsError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {user.email} is now '{membership.role}' in {org.name}")


@users_group.command('list')
@click.option('--org-id', type=int, help='Filter by organization ID')
@with_appcontext
def list_users_cli(org_id):
    """List users with their memberships."""
    if org_id:
        users = [m.user for m in membership_service.list_members(org_id)]
    else:
        users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Active':<8} {'Memberships'}")
    click.echo("="*80)
    for user in users:
        if membership_service.is_pending(user.id):
            memberships = "(pending)"
        else:
            memberships = ", ".join(f"{m.org_id}:{m.role}" for m in user.memberships)
        click.echo(f"{user.id:<5} {user.email:<35} {str(user.is_active):<8} {memberships}")
    click.echo("="*80 + "\n")


@users_group.command('deactivate')
@click.option('--email', required=True, help='Email address')
@with_appcontext
def deactivate_user_cli(email):
    """Deactivate a user and revoke every session they hold."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        raise click.ClickException(f"User '{email}' not found")

    user.is_active = False
    db.session.commit()

    revoked = session_service.revoke_all_user_sessions(user.id, reason="User deactivated")
    click.echo(f"PASS Deactivated {user.email}; revoked {revoked} sessions")


@users_group.command('roles')
def list_roles_cli():
    """Show each role and the actions it may perform."""
    for role in Role:
        click.echo(f"\n{role.value} - {ROLE_DESCRIPTIONS[role]}")
        for action in allowed_actions(role):
            definition = get_action_definition(action)
            click.echo(f"  {definition['code']:<18} {definition['name']}")
    click.echo("")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(older_than_days):
    """Delete expired and revoked sessions."""
    deleted = session_service.cleanup_expired_sessions(older_than_days=older_than_days)
    click.echo(f"Deleted {deleted} sessions older than {older_than_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)  # Multi-tenant organization management
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
