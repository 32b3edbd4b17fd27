import logging
import threading

import click
from flask import current_app
from flask.cli import AppGroup
from sqlalchemy.exc import IntegrityError

from models import db, Employee
from models.employee import ROLES
from services.cost import round_money
from services.live_feed import LiveFeedSubscription

logger = logging.getLogger(__name__)

employees_cli = AppGroup('employees', help='Manage employee accounts.')
dashboard_cli = AppGroup('dashboard', help='Live dashboard tools.')


@employees_cli.command('create')
@click.argument('username')
@click.argument('email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--first-name', default=None)
@click.option('--last-name', default=None)
@click.option('--role', type=click.Choice(ROLES), default='employee', show_default=True)
@click.option('--hourly-rate', type=click.FloatRange(min=0), default=0.0, show_default=True)
def create_employee_command(username, email, password, first_name, last_name, role, hourly_rate):
    """Create an employee account."""
    employee = Employee(
        username=username,
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
        hourly_rate=hourly_rate,
        is_active=True
    )
    employee.set_password(password)
    db.session.add(employee)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise click.ClickException(f"Username '{username}' or email '{email}' already exists")

    logger.info(f"Created employee {username} (ID: {employee.id}) from the command line")
    click.echo(f"Created {role} {username} (ID: {employee.id}) at {hourly_rate:.2f}/h")


def format_snapshot(snapshot, currency='€'):
    """One line per working employee plus a totals line."""
    lines = []
    for row in snapshot['employees']:
        session = row['active_session']
        if not session:
            continue
        name = f"{row['first_name'] or ''} {row['last_name'] or ''}".strip() or f"#{row['id']}"
        extra = f" (+{row['open_sessions'] - 1} more)" if row['open_sessions'] > 1 else ''
        lines.append(f"  {name}: {session['order_number']} {session['duration_minutes']} min "
                     f"{currency}{round_money(session['current_cost']):.2f}{extra}")

    totals = snapshot['totals']
    lines.append(f"[{snapshot['timestamp']}] {totals['employees_working']}/{totals['total_employees']} working, "
                 f"{round_money(totals['hours_in_progress']):.2f}h, "
                 f"{currency}{round_money(totals['cost_in_progress']):.2f} in progress")
    return '\n'.join(lines)


@dashboard_cli.command('watch')
@click.option('--interval', type=int, default=None, help='Seconds between refreshes (clamped).')
@click.option('--count', type=int, default=0, help='Stop after this many refreshes (0 = until Ctrl+C).')
def watch_dashboard_command(interval, count):
    """Print the live dashboard at a fixed interval."""
    app = current_app._get_current_object()
    currency = app.config.get('CURRENCY_SYMBOL', '€')
    done = threading.Event()
    received = []

    def show(snapshot):
        if snapshot is None:
            return
        received.append(snapshot['timestamp'])
        click.echo(format_snapshot(snapshot, currency))
        if count and len(received) >= count:
            done.set()

    subscription = LiveFeedSubscription(app, show, interval=interval)
    click.echo(f"Refreshing every {subscription.interval}s")
    subscription.start()
    try:
        done.wait()
    except KeyboardInterrupt:
        pass
    finally:
        subscription.cancel(timeout=subscription.interval)


def register_commands(app):
    app.cli.add_command(employees_cli)
    app.cli.add_command(dashboard_cli)
