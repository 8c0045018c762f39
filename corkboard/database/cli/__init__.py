#!/usr/bin/env python3
"""
Corkboard Database CLI
-----------------------

Command-line interface over the association engine, for operators and
scripts.

This module provides the main CLI group and shared context setup
for all commands.

Command Structure:
    - Setup & Initialization (init)
    - Tags (tags list/create/rename/delete/merge/entries)
    - Entry tags (entry-tags list/add/remove/confirm/dismiss)
    - Clusters (clusters list/show/delete/sweep)

Usage:
    # Get general help
    corkboard --help

    # Get help for a specific command group
    corkboard tags --help

    # Get help for a specific command
    corkboard tags merge --help
"""
import click
import logging
from pathlib import Path

from corkboard.core.paths import DB_PATH, LOG_DIR, MIGRATIONS_DIR
from corkboard.database import CorkboardDB


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=str(DB_PATH),
    help="Path to database file",
)
@click.option(
    "--migrations-dir",
    type=click.Path(),
    default=str(MIGRATIONS_DIR),
    help="Path to Alembic migrations directory",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Path to log directory",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, migrations_dir, log_dir, verbose):
    """Corkboard tag & cluster management CLI"""

    # Suppress Alembic INFO logging by default
    logging.getLogger("alembic").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path)
    ctx.obj["migrations_dir"] = Path(migrations_dir)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["verbose"] = verbose


def get_db(ctx) -> CorkboardDB:
    """Get or create database instance from context."""
    if "db" not in ctx.obj:
        db = CorkboardDB(
            db_path=ctx.obj["db_path"],
            migrations_dir=ctx.obj["migrations_dir"],
            log_dir=ctx.obj["log_dir"],
        )
        ctx.obj["db"] = db
        ctx.obj["logger"] = db.logger
        ctx.call_on_close(db.close)
    return ctx.obj["db"]


owner_option = click.option(
    "--owner",
    "owner_id",
    type=int,
    required=True,
    help="ID of the user owning the tags/clusters",
)


# Import and register command modules
# These imports must come after CLI group definition
from .setup import init  # noqa: E402
from .tags import tags  # noqa: E402
from .entry_tags import entry_tags  # noqa: E402
from .clusters import clusters  # noqa: E402

# Register top-level commands
cli.add_command(init)

# Register command groups
cli.add_command(tags)
cli.add_command(entry_tags)
cli.add_command(clusters)


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
