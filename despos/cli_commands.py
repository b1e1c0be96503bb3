"""
Flask CLI commands for database management.

Commands:
- flask init-db: Create the schema and seed the default invoice type
- flask drop-db: Drop every table
"""

import click

from despos import database
from despos.models import InvoiceType

DEFAULT_INVOICE_TYPES = (
    ('cash', 'Cash Invoice'),
)


def seed_invoice_types(session) -> int:
    """Insert the default invoice types that are missing. Returns how many were added."""
    added = 0
    for code, name in DEFAULT_INVOICE_TYPES:
        if session.query(InvoiceType).filter_by(code=code).first() is None:
            session.add(InvoiceType(code=code, invoice_name=name))
            added += 1
    session.commit()
    return added


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create missing tables and seed the default invoice types."""
        try:
            database.create_all()
            added = seed_invoice_types(database.get_session())
        except Exception as e:
            database.get_session().rollback()
            click.echo(click.style(f'❌ Could not initialize the database: {e}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style('✅ Database ready', fg='green', bold=True))
        click.echo(f'   Invoice types added: {added}')

    @app.cli.command('drop-db')
    @click.confirmation_option(prompt='This drops every table. Continue?')
    def drop_db_command():
        """Drop every table."""
        database.drop_all()
        click.echo(click.style('✅ Tables dropped', fg='green'))
