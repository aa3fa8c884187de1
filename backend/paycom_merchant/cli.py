# Overview: Flask CLI command groups for bootstrap, order seeding and transaction inspection.

# backend/paycom_merchant/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask paycom init-db
#   Create all tables that do not exist yet (use `flask db upgrade` in production).
#
# Orders (bundled StoredOrder collaborator):
# - python -m flask orders create --amount 500000 --description "Course fee"
#   Create an order waiting for payment; amount is in tiyin.
# - python -m flask orders list [--state 1]
#   List orders.
#
# Transactions:
# - python -m flask transactions list [--state 2] [--limit 50]
#   List recent gateway transactions.
# - python -m flask transactions statement --from 1700000000000 --to 1700086400000
#   Print the GetStatement report for a period (milliseconds, inclusive).

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import PaycomTransaction
from .models.transactions import VALID_STATES
from .services import order_service, transaction_service
from .time_utils import to_utc_z


@click.group('paycom')
def paycom_group():
    """Merchant API bootstrap commands."""


@paycom_group.command('init-db')
@with_appcontext
def init_db():
    """Create database tables."""
    click.echo("BUILD  Creating all tables...")
    db.create_all()
    click.echo("PASS Database ready.")


@click.group('orders')
def orders_group():
    """Order inspection and seeding."""


@orders_group.command('create')
@click.option('--amount', type=int, required=True, help='Order amount in tiyin')
@click.option('--description', default=None, help='Free-form description')
@with_appcontext
def create_order(amount, description):
    """Create an order waiting for payment."""
    try:
        order = order_service.create_order(amount=amount, description=description)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--amount')
    click.echo(f"PASS Created order {order.id} for {order.amount} tiyin")


@orders_group.command('list')
@click.option('--state', type=int, default=None, help='Filter by order state')
@with_appcontext
def list_orders(state):
    """List orders."""
    orders = order_service.list_orders(state=state)

    if not orders:
        click.echo("No orders found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<6} {'Amount':<12} {'State':<6} {'Paid by':<10} {'Description'}")
    click.echo("="*80)

    for order in orders:
        paid_by = order.paid_transaction_id if order.paid_transaction_id else "-"
        click.echo(f"{order.id:<6} {order.amount:<12} {order.state:<6} {paid_by!s:<10} {order.description or ''}")

    click.echo("="*80 + "\n")


@click.group('transactions')
def transactions_group():
    """Gateway transaction inspection."""


@transactions_group.command('list')
@click.option('--state', type=click.Choice([str(s) for s in VALID_STATES]), default=None, help='Filter by state')
@click.option('--limit', type=int, default=50, help='Max rows (default: 50)')
@with_appcontext
def list_transactions(state, limit):
    """List recent transactions, newest first."""
    query = db.session.query(PaycomTransaction)
    if state is not None:
        query = query.filter_by(state=int(state))

    rows = query.order_by(PaycomTransaction.id.desc()).limit(limit).all()

    if not rows:
        click.echo("No transactions found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<6} {'Paycom ID':<26} {'Order':<10} {'Amount':<12} {'State':<6} {'Reason':<7} {'Created'}")
    click.echo("="*110)

    for row in rows:
        reason = row.reason if row.reason is not None else "-"
        click.echo(
            f"{row.id:<6} {row.paycom_transaction_id:<26} {row.order_id:<10} {row.amount:<12} "
            f"{row.state:<6} {reason!s:<7} {to_utc_z(row.create_time)}"
        )

    click.echo("="*110 + "\n")


@transactions_group.command('statement')
@click.option('--from', 'from_time', type=int, required=True, help='Period start (ms)')
@click.option('--to', 'to_time', type=int, required=True, help='Period end (ms)')
@with_appcontext
def statement(from_time, to_time):
    """Print the statement report as JSON."""
    if from_time >= to_time:
        raise click.BadParameter("--from must be before --to", param_hint='--from')

    rows = transaction_service.report(from_time, to_time)
    click.echo(json.dumps({"transactions": rows}, indent=2, ensure_ascii=False))


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(paycom_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(transactions_group)
