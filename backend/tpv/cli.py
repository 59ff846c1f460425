# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/tpv/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to tpv (PowerShell: $env:FLASK_APP="tpv").
# - Set TPV_DATABASE_URL for the store commands.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create missing store tables (use `flask db upgrade` for migrations).
# - python -m flask system seed
#   Upsert the demo catalogue (suppliers, ingredients, products) into the store.
# - python -m flask system sync-status
#   Show the sync indicator and recent write outcomes.
#
# Inspection:
# - python -m flask shifts status
#   Show the open shift and its expected cash.
# - python -m flask inventory low-stock
#   List ingredients at or below their minimum.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import stock_service
from .services.runtime import PosState, catalogue_writes, get_runtime


def _money(cents: int | None) -> str:
    if cents is None:
        return "-"
    return f"{cents / 100:,.2f} EUR"


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create the store tables if they do not exist."""
    if not get_runtime().store.configured:
        click.echo("FAIL TPV_DATABASE_URL is not set; nothing to initialize")
        raise SystemExit(1)

    db.create_all()
    click.echo("PASS Store tables created")


@system_group.command('seed')
@with_appcontext
def seed_store():
    """Upsert the demo suppliers, ingredients and products into the store."""
    runtime = get_runtime()
    if not runtime.store.configured:
        click.echo("FAIL TPV_DATABASE_URL is not set; nothing to seed")
        raise SystemExit(1)

    outcomes = [
        runtime.outbound.submit(write.label, write.entity_id, write.operation, *write.args)
        for write in catalogue_writes(runtime.store, PosState.seeded())
    ]

    failed = [o for o in outcomes if not o.ok]
    click.echo(f"PASS Seeded {len(outcomes) - len(failed)} records")
    for outcome in failed:
        click.echo(f"FAIL {outcome.label} {outcome.entity_id}: {outcome.error}")


@system_group.command('sync-status')
@click.option('--limit', default=20, show_default=True, help='Recent outcomes to show')
@with_appcontext
def sync_status(limit):
    """Show the sync indicator and recent write outcomes."""
    outbound = get_runtime().outbound
    click.echo(f"Sync status: {outbound.sync_status} (failures: {outbound.failure_count})")
    for outcome in outbound.recent(limit):
        error = f" - {outcome.error}" if outcome.error else ""
        click.echo(f"  {outcome.status:<10} {outcome.label} {outcome.entity_id}{error}")


@click.group('shifts')
def shifts_group():
    """Shift inspection commands."""


@shifts_group.command('status')
@with_appcontext
def shift_status():
    """Show the open shift."""
    shift = get_runtime().state.shifts.get_open()
    if shift is None:
        click.echo("No open shift")
        return

    click.echo(f"Shift {shift.id} opened {shift.start_time:%Y-%m-%d %H:%M} by {shift.user_id}")
    click.echo(f"  Initial base:   {_money(shift.initial_base_cents)}")
    click.echo(f"  Sales:          {_money(shift.total_sales_cents)}")
    click.echo(f"  Cash sales:     {_money(shift.total_cash_sales_cents)}")
    click.echo(f"  Card sales:     {_money(shift.total_card_cents)}")
    click.echo(f"  Cash expenses:  {_money(shift.total_expenses_cents)}")
    click.echo(f"  Expected cash:  {_money(shift.running_expected_cash_cents)}")


@click.group('inventory')
def inventory_group():
    """Inventory inspection commands."""


@inventory_group.command('low-stock')
@with_appcontext
def low_stock():
    """List ingredients at or below their minimum."""
    low = stock_service.low_stock(get_runtime().state.ingredients)
    if not low:
        click.echo("PASS No ingredient below its minimum")
        return

    click.echo(f"WARN {len(low)} ingredient(s) at or below minimum:")
    for ing in low:
        click.echo(f"  {ing.id:<20} {ing.name:<30} {ing.stock:>8.2f} {ing.unit} (min {ing.min_stock:g})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(shifts_group)
    app.cli.add_command(inventory_group)
