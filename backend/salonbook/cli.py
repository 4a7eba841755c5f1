# Overview: Flask CLI command groups for tenant setup, ledger repair, and token minting.

# backend/salonbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to salonbook (PowerShell: $env:FLASK_APP="salonbook").
# - Use: python -m flask <group> <command> [options]
#
# Tenants:
# - python -m flask tenants create --name "Ayse Kuafor" --slug ayse-kuafor [--blacklist-threshold 3]
#   Create a tenant and its settings row.
# - python -m flask tenants set-threshold --tenant-id 1 --value 5
#   Change the no-show count that triggers blacklisting.
#
# Ledger repair:
# - python -m flask ledger missing --tenant-id 1 [--date 2026-10-18]
#   List settled appointments that have no cash-ledger entry.
# - python -m flask ledger backfill --tenant-id 1 [--date 2026-10-18] [--dry-run]
#   Create the missing entries (dated with the appointment's service date).
#
# Tokens (development):
# - python -m flask tokens issue --role owner --tenant-id 1
#   Print a bearer token for manual API calls.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Tenant
from .services import auth_service, ledger_service, settings_service


@click.group('tenants')
def tenants_group():
    """Tenant setup commands."""


@tenants_group.command('create')
@click.option('--name', required=True, help='Salon name')
@click.option('--slug', required=True, help='Unique URL slug')
@click.option('--blacklist-threshold', type=int, default=None, help='No-shows before blacklisting')
@with_appcontext
def create_tenant(name, slug, blacklist_threshold):
    """Create a tenant with its settings row."""
    if db.session.query(Tenant).filter_by(slug=slug).first():
        click.echo(f"FAIL Tenant slug already exists: {slug}")
        raise SystemExit(1)

    tenant = Tenant(name=name, slug=slug, is_active=True)
    db.session.add(tenant)
    db.session.commit()
    settings_service.set_blacklist_threshold(tenant.id, blacklist_threshold)

    click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id}, Slug: {tenant.slug})")


@tenants_group.command('set-threshold')
@click.option('--tenant-id', type=int, required=True)
@click.option('--value', type=int, required=True, help='No-shows before blacklisting (>= 1)')
@with_appcontext
def set_threshold(tenant_id, value):
    """Change a tenant's blacklist threshold."""
    if db.session.get(Tenant, tenant_id) is None:
        click.echo(f"FAIL Tenant {tenant_id} not found")
        raise SystemExit(1)
    try:
        settings_service.set_blacklist_threshold(tenant_id, value)
    except ValueError as exc:
        click.echo(f"FAIL {exc}")
        raise SystemExit(1)
    click.echo(f"PASS Tenant {tenant_id} blacklist threshold set to {value}")


@click.group('ledger')
def ledger_group():
    """Cash ledger inspection and repair commands."""


@ledger_group.command('missing')
@click.option('--tenant-id', type=int, required=True)
@click.option('--date', default=None, help='Only this service date (YYYY-MM-DD)')
@with_appcontext
def list_missing(tenant_id, date):
    """List settled appointments without a ledger entry."""
    missing = ledger_service.find_missing_appointment_transactions(tenant_id, date)
    if not missing:
        click.echo("PASS No missing transactions")
        return

    for appt in missing:
        click.echo(
            f"  #{appt.id:<6} {appt.date} {appt.time}  {appt.status:<10} "
            f"{float(appt.price):>10.2f}  {appt.customer_name or '-'} / {appt.service_name or '-'}"
        )
    summary = ledger_service.summarize_missing(missing)
    click.echo(f"WARN {summary['missing_count']} missing, total {summary['total_missing_amount']:.2f}")


@ledger_group.command('backfill')
@click.option('--tenant-id', type=int, required=True)
@click.option('--date', default=None, help='Only this service date (YYYY-MM-DD)')
@click.option('--dry-run', is_flag=True, help='Only report what would be created')
@with_appcontext
def backfill(tenant_id, date, dry_run):
    """Create ledger entries for settled appointments that lack one."""
    if dry_run:
        missing = ledger_service.find_missing_appointment_transactions(tenant_id, date)
        click.echo(f"DRY RUN {len(missing)} transactions would be created")
        return

    created = ledger_service.backfill_missing_appointment_transactions(tenant_id, date)
    click.echo(f"PASS Created {len(created)} transactions")


@click.group('tokens')
def tokens_group():
    """Bearer token helpers for development."""


@tokens_group.command('issue')
@click.option('--role', type=click.Choice(sorted(auth_service.VALID_ROLES)), required=True)
@click.option('--tenant-id', type=int, required=True)
@click.option('--customer-id', type=int, default=None)
@click.option('--staff-id', type=int, default=None)
@click.option('--phone', default=None)
@with_appcontext
def issue_token(role, tenant_id, customer_id, staff_id, phone):
    """Print a signed bearer token."""
    token = auth_service.issue_token(
        role=role,
        tenant_id=tenant_id,
        customer_id=customer_id,
        staff_id=staff_id,
        phone=phone,
    )
    click.echo(token)


def register_commands(app):
    app.cli.add_command(tenants_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(tokens_group)
