"""
Setup & Initialization Commands
--------------------------------

Database schema initialization.

Commands:
    - init: Create the schema on a fresh database, or migrate an existing one
"""
import click

from corkboard.core.logging_manager import handle_cli_error
from corkboard.core.exceptions import DatabaseError
from . import get_db


@click.command()
@click.pass_context
def init(ctx):
    """Initialize or upgrade the database schema."""
    try:
        db = get_db(ctx)

        click.echo("🗄️  Initializing database schema...")
        db.initialize_schema()
        status = db.get_migration_history()
        click.echo(f"✅ Database ready (revision: {status.get('current_revision')})")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "init")
