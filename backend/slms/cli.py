# Overview: Flask CLI command groups for bootstrap, staff and logistics reporting.

# backend/slms/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (or pass --app slms).
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables and the default staff directory (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Staff directory:
# - python -m flask staff list [--active]
# - python -m flask staff create --code LOG-002 --name "Ama Mensah" --role "Logistics Manager"
#
# Logistics reporting:
# - python -m flask materials summary
#   Totals, unreturned and overdue counts, compliance rate.
# - python -m flask materials overdue
#   Issued requests past their expected return date.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import reporting_service, staff_service
from .services.staff_service import StaffError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the SLMS database: tables plus the default staff directory.

    Safe to re-run; existing staff codes are skipped.
    """
    click.echo("START Initializing SLMS...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = staff_service.seed_default_staff()
    db.session.commit()

    for staff in created:
        click.echo(f"PASS Created staff: {staff.staff_code} {staff.name} ({staff.role}) id={staff.id}")
    if not created:
        click.echo("WARN  Default staff already present, nothing to add")

    click.echo("\nDONE SLMS initialized. Send X-Staff-Id: <id> with API calls.")


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


@click.group('staff')
def staff_group():
    """Staff directory commands."""


@staff_group.command('list')
@click.option('--active', 'active_only', is_flag=True, help='Only Active staff')
@with_appcontext
def list_staff(active_only):
    staff = staff_service.list_staff(active_only=active_only)
    if not staff:
        click.echo("No staff members found.")
        return
    for s in staff:
        click.echo(f"{s.id:>4}  {s.staff_code:<10} {s.name:<28} {s.role:<20} {s.status}")


@staff_group.command('create')
@click.option('--code', 'staff_code', prompt=True, help='Unique staff code')
@click.option('--name', prompt=True, help='Display name')
@click.option('--role', prompt=True, help='Role label, e.g. "Store Keeper"')
@click.option('--department', default=None)
@with_appcontext
def create_staff(staff_code, name, role, department):
    try:
        staff = staff_service.create_staff(
            staff_code=staff_code,
            name=name,
            role=role,
            department=department,
        )
        db.session.commit()
    except StaffError as e:
        db.session.rollback()
        raise click.ClickException(str(e))
    click.echo(f"PASS Created staff: {staff.staff_code} {staff.name} ({staff.role}) id={staff.id}")


@click.group('materials')
def materials_group():
    """Material request reporting."""


@materials_group.command('summary')
@with_appcontext
def materials_summary():
    summary = reporting_service.logistics_summary()
    click.echo(f"As of:            {summary['as_of']}")
    click.echo(f"Total requests:   {summary['total_requests']}")
    click.echo(f"Unreturned:       {summary['unreturned']}")
    click.echo(f"Overdue:          {summary['overdue']}")
    click.echo(f"Returned:         {summary['returned']}")
    click.echo(f"Compliance rate:  {summary['compliance_rate']}%")
    for status, count in summary["by_status"].items():
        click.echo(f"  {status:<10} {count}")


@materials_group.command('overdue')
@with_appcontext
def materials_overdue():
    rows = reporting_service.overdue_report()
    if not rows:
        click.echo("PASS No overdue materials.")
        return
    for row in rows:
        click.echo(
            f"{row['reference']:<14} {row['item_name']:<30} {row['staff_name']:<24} "
            f"due {row['expected_return_date']} ({row['days_overdue']} days)"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(staff_group)
    app.cli.add_command(materials_group)
