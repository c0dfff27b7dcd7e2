# Overview: Flask CLI command groups for bootstrap and demo data.

# backend/billing/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to billing (PowerShell: $env:FLASK_APP="billing").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Account management (MULTI-TENANT):
# - python -m flask accounts list
# - python -m flask accounts create --name "Acme Traders" --code "ACME"
#
# Demo data:
# - python -m flask catalog seed-demo --account-id 1 [--count 10] [--seed 42]
#   Create demo products with random prices and stock levels.

import random

import click
from flask.cli import with_appcontext

from .errors import BillingError
from .extensions import db
from .models import Account
from .services import catalog_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """Drop and recreate all tables (DEV/TEST only)."""
    if not yes:
        click.confirm("This deletes ALL data. Continue?", abort=True)
    db.drop_all()
    db.create_all()
    click.echo("Database reset.")


@click.group('accounts')
def accounts_group():
    """Account (tenant) management."""


@accounts_group.command('list')
@with_appcontext
def list_accounts():
    """List all accounts."""
    accounts = db.session.query(Account).order_by(Account.id).all()
    if not accounts:
        click.echo("No accounts found.")
        return
    for account in accounts:
        status = "active" if account.is_active else "inactive"
        click.echo(f"{account.id:>4}  {account.code:<12} {account.name} ({status})")


@accounts_group.command('create')
@click.option('--name', required=True, help='Account name')
@click.option('--code', required=True, help='Short code (unique)')
@with_appcontext
def create_account_cli(name, code):
    """Create a new account."""
    code = code.strip().upper()
    if db.session.query(Account).filter_by(code=code).first():
        raise click.ClickException(f"Account code {code} already exists")
    account = Account(name=name.strip(), code=code)
    db.session.add(account)
    db.session.commit()
    click.echo(f"Created account {account.id} ({account.code})")


@click.group('catalog')
def catalog_group():
    """Catalog demo data."""


@catalog_group.command('seed-demo')
@click.option('--account-id', type=int, required=True, help='Account ID to seed')
@click.option('--count', type=int, default=10, show_default=True, help='Number of products')
@click.option('--seed', type=int, default=None, help='Random seed for repeatable data')
@with_appcontext
def seed_demo(account_id, count, seed):
    """Create demo products for an account."""
    rng = random.Random(seed)
    created = 0
    for i in range(count):
        try:
            catalog_service.create_product(account_id, {
                "name": f"Product {i + 1}",
                "sku": f"DEMO-{i + 1:03d}",
                "price": f"{rng.uniform(10, 100):.2f}",
                "quantity": rng.randrange(0, 20),
                "lowStockAt": 5,
            })
        except BillingError as exc:
            raise click.ClickException(exc.message)
        created += 1
    click.echo(f"Created {created} products for account {account_id}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(accounts_group)
    app.cli.add_command(catalog_group)
