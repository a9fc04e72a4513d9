# Overview: Flask CLI command groups for bootstrap, event setup, and order reconciliation.

# backend/giftgrab/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system audit
#   Report gifts with half a claim and COMPLETE orders missing gifts without the reconciliation flag.
#
# Event setup:
# - python -m flask events create --name "Winter party" --email org@example.com --applicants applicants.json --approvers approvers.json
#   Import persons from JSON arrays and create one gift per applicant.
# - python -m flask events list
#   List events with applicant/approver/gift counts.
#
# Order inspection/reconciliation:
# - python -m flask orders show <order_public_id>
#   Print an order with per-gift claim outcomes.
# - python -m flask orders reconcile
#   List COMPLETE orders flagged for reconciliation.
# - python -m flask orders compensate <order_public_id> --yes
#   Release the gifts a partially failed order did claim.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import CLAIM_FAILED, CLAIM_RELEASED, Event
from .services import claim_service, event_service, order_service
from .services.collaborators import JsonPersonImporter


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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

    click.echo("PASS Database reset complete.")


@system_group.command('audit')
@with_appcontext
def audit():
    """Check the claim and confirmation invariants against stored data."""
    half_claimed = claim_service.find_claim_pair_violations()
    unflagged = order_service.find_unflagged_incomplete_orders()

    for gift in half_claimed:
        click.echo(f"FAIL Gift {gift.public_id}: applicant/order set independently")
    for order in unflagged:
        click.echo(f"FAIL Order {order.public_id}: COMPLETE with unclaimed gifts and no reconciliation flag")

    if not half_claimed and not unflagged:
        click.echo("PASS No invariant violations found.")


@click.group('events')
def events_group():
    """Event setup commands."""


@events_group.command('create')
@click.option('--name', required=True, help='Event name')
@click.option('--email', required=True, help='Organizer email')
@click.option('--applicants', 'applicants_path', required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--approvers', 'approvers_path', required=True, type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def create_event_cli(name, email, applicants_path, approvers_path):
    """
    Create an event from two JSON person files.

    Example:
        flask events create --name "Winter party" --email org@example.com \\
            --applicants applicants.json --approvers approvers.json
    """
    importer = JsonPersonImporter()
    try:
        applicants = importer.load(applicants_path)
        approvers = importer.load(approvers_path)
    except ValueError as e:
        click.echo(f"FAIL Could not read person file: {e}")
        return

    result = event_service.create_event(name, email, applicants, approvers)
    if result.is_failure:
        click.echo(f"FAIL {result.error.message}")
        return

    event = result.value
    click.echo(f"PASS Event '{event.name}' created")
    click.echo(f"  public_id: {event.public_id}")
    click.echo(f"  event_id:  {event.event_id}")
    click.echo(f"  owner_id:  {event.owner_id}")
    click.echo(f"  applicants: {len(event.applicants)}, approvers: {len(event.approvers)}, gifts: {len(event.gifts)}")


@events_group.command('list')
@with_appcontext
def list_events_cli():
    """List all events."""
    events = db.session.query(Event).order_by(Event.created_at.desc()).all()

    if not events:
        click.echo("No events found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'Public ID':<24} {'Event ID':<12} {'Name':<25} {'Appl.':<6} {'Appr.':<6} {'Gifts'}")
    click.echo("="*90)
    for event in events:
        click.echo(
            f"{event.public_id:<24} {event.event_id:<12} {event.name[:25]:<25} "
            f"{len(event.applicants):<6} {len(event.approvers):<6} {len(event.gifts)}"
        )
    click.echo("="*90 + "\n")


@click.group('orders')
def orders_group():
    """Order inspection and reconciliation commands."""


@orders_group.command('show')
@click.argument('public_id')
@with_appcontext
def show_order_cli(public_id):
    """Print an order and the claim outcome of each gift."""
    result = order_service.get_order(public_id)
    if result.is_failure:
        click.echo(f"FAIL Order {public_id} not found")
        return

    order = result.value
    click.echo(f"Order {order.public_id} ({order.order_id})")
    click.echo(f"  status:     {order.status}")
    click.echo(f"  applicant:  {order.applicant.display_name}")
    if order.confirmed_by_approver is not None:
        click.echo(f"  approver:   {order.confirmed_by_approver.display_name}")
    if order.reconciliation_required:
        click.echo("  WARN reconciliation required")
    for line in order.lines:
        error = f" ({line.claim_error})" if line.claim_error else ""
        click.echo(f"  [{line.position}] {line.gift.public_id:<24} {line.claim_status}{error}")


@orders_group.command('reconcile')
@with_appcontext
def reconcile_cli():
    """List COMPLETE orders that need manual reconciliation."""
    orders = order_service.list_orders_requiring_reconciliation()
    if not orders:
        click.echo("PASS No orders require reconciliation.")
        return

    for order in orders:
        failed = [line for line in order.lines if line.claim_status == CLAIM_FAILED]
        click.echo(
            f"WARN {order.public_id} ({order.order_id}): "
            f"{len(failed)} of {len(order.lines)} gift(s) not claimed"
        )


@orders_group.command('compensate')
@click.argument('public_id')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def compensate_cli(public_id, yes):
    """Release the gifts a partially failed order claimed."""
    if not yes:
        click.confirm(f"WARN Release every gift claimed by order {public_id}?", abort=True)

    result = order_service.compensate_partial_order(public_id)
    if result.is_failure:
        click.echo(f"FAIL {result.error.message}")
        return

    released = [line for line in result.value.lines if line.claim_status == CLAIM_RELEASED]
    click.echo(f"PASS Released {len(released)} gift(s) from order {public_id}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(events_group)
    app.cli.add_command(orders_group)
