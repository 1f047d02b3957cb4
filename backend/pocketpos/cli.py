# Overview: Flask CLI command groups for snapshot transfer, ledger inspection and resets.

# backend/pocketpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Snapshots:
# - python -m flask snapshot export [--out HORNET_CONFIG_2026-10-18.json]
#   Write the configuration snapshot to a file ("-" prints it).
# - python -m flask snapshot import HORNET_CONFIG_2026-10-18.json [--yes]
#   Replace products, categories, teams, payment methods and costing.
#
# Ledger:
# - python -m flask ledger summary
#   Cash on hand, profit and per-kind totals.
# - python -m flask ledger undo [--yes]
#   Void the most recent transaction.
#
# System:
# - python -m flask system factory-reset --yes
#   Wipe durable and in-memory state back to defaults.

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .services import admin_service
from .services.snapshot_service import dumps_snapshot, snapshot_filename
from .services.state_service import get_state
from .validation import PersistenceError, PreconditionError, ValidationError


def _echo_warnings(state) -> None:
    for warning in state.take_warnings():
        click.echo(f"WARN  {warning}")


def _confirm_pending(state, pending, yes: bool):
    """Resolve the gate request opened by a request_* call: confirm or cancel."""
    if not yes and not click.confirm(f"WARN  {pending.title} {pending.message}"):
        state.gate.cancel()
        click.echo("CANCEL  Nothing changed.")
        return None
    return state.gate.confirm()


@click.group('snapshot')
def snapshot_group():
    """Configuration snapshot export and import."""


@snapshot_group.command('export')
@click.option('--out', 'out_path', default=None, help='Target file ("-" for stdout)')
@with_appcontext
def export_snapshot_cli(out_path):
    document = admin_service.export_snapshot(
        get_state(),
        version=current_app.config["SNAPSHOT_VERSION"],
        exported_by=current_app.config["SNAPSHOT_EXPORTED_BY"],
    )
    text = dumps_snapshot(document)
    if out_path == "-":
        click.echo(text)
        return

    out_path = out_path or snapshot_filename()
    with open(out_path, "w", encoding="utf-8") as fh:
        fh.write(text)
    payload = document["payload"]
    click.echo(
        f"PASS Exported {len(payload['products'])} products, "
        f"{len(payload['teams'])} teams to {out_path}"
    )


@snapshot_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def import_snapshot_cli(path, yes):
    """Load a snapshot file; the current configuration is replaced."""
    state = get_state()
    with open(path, "rb") as fh:
        raw = fh.read()

    try:
        pending = admin_service.request_import(state, raw)
    except ValidationError as e:
        raise click.ClickException(str(e))

    try:
        counts = _confirm_pending(state, pending, yes)
    except PersistenceError:
        _echo_warnings(state)
        return
    if counts is None:
        return
    click.echo(
        f"PASS Imported {counts['products']} products, {counts['categories']} categories, "
        f"{counts['teams']} teams, {counts['payment_methods']} payment methods"
    )


@click.group('ledger')
def ledger_group():
    """Session ledger inspection."""


@ledger_group.command('summary')
@click.option('--json', 'as_json', is_flag=True, help='Print raw JSON')
@with_appcontext
def ledger_summary(as_json):
    summary = admin_service.dashboard(get_state())
    if as_json:
        click.echo(json.dumps(summary, indent=2, ensure_ascii=False))
        return

    click.echo(f"Cash on hand: {summary['cash_on_hand']:.2f}")
    click.echo(f"Profit:       {summary['profit']:.2f}")
    for kind, total in summary["totals"].items():
        click.echo(f"  {kind:<12} {total:.2f}")
    click.echo(f"Events: {summary['event_count']}")


@ledger_group.command('undo')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def ledger_undo(yes):
    """Void the most recent transaction."""
    state = get_state()
    try:
        pending = admin_service.request_undo_last(state)
    except PreconditionError as e:
        click.echo(f"WARN  {e}")
        return

    ev = _confirm_pending(state, pending, yes)
    _echo_warnings(state)
    if ev is not None:
        click.echo(f"PASS Voided event #{ev.reverses} ({ev.amount})")


@click.group('system')
def system_group():
    """System maintenance commands."""


@system_group.command('factory-reset')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def factory_reset_cli(yes):
    """
    DANGER: wipe products, categories, teams, costing and the ledger.

    Durable state is cleared first, then memory is reset to defaults.
    """
    state = get_state()
    pending = admin_service.request_factory_reset(state)
    try:
        done = _confirm_pending(state, pending, yes)
    except PersistenceError as e:
        state.take_warnings()
        raise click.ClickException(str(e))
    if done:
        click.echo("PASS Factory reset complete.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(snapshot_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(system_group)
