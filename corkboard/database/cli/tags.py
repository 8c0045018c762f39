"""
Tag Commands
-------------

Manage a user's tags.

Commands:
    - list: List tags, optionally with entry counts
    - create: Create a tag
    - rename: Rename a tag
    - delete: Delete a tag and its associations
    - merge: Fold tags into a target tag
    - entries: List entries carrying a tag
"""
import click

from corkboard.core.logging_manager import handle_cli_error
from corkboard.core.exceptions import DatabaseError, ValidationError
from corkboard.core.validators import DataValidator
from . import get_db, owner_option


@click.group()
@click.pass_context
def tags(ctx: click.Context) -> None:
    """Manage tags."""
    pass


@tags.command("list")
@owner_option
@click.option("--counts", is_flag=True, help="Include number of tagged entries")
@click.pass_context
def list_tags(ctx, owner_id, counts):
    """List all tags of a user."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            if counts:
                rows = db.tags.get_all_with_counts(owner_id)
            else:
                rows = db.tags.get_all(owner_id)

            if not rows:
                click.echo("No tags.")
                return

            click.echo(f"\n🏷️  Tags ({len(rows)}):\n")
            for tag in rows:
                line = f"  #{tag.id:<5} {tag.name}"
                if counts:
                    line += f" ({tag.entry_count})"
                click.echo(line)

    except DatabaseError as e:
        handle_cli_error(ctx, e, "list_tags", {"owner_id": owner_id})


@tags.command("create")
@owner_option
@click.argument("name")
@click.pass_context
def create_tag(ctx, owner_id, name):
    """Create a tag named NAME."""
    try:
        name = DataValidator.validate_tag_name(name)
        db = get_db(ctx)

        with db.session_scope():
            tag = db.tags.create(owner_id, name)
            click.echo(f"✅ Created tag #{tag.id}: {tag.name}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "create_tag", {"owner_id": owner_id, "name": name})


@tags.command("rename")
@owner_option
@click.argument("tag_id", type=int)
@click.argument("name")
@click.pass_context
def rename_tag(ctx, owner_id, tag_id, name):
    """Rename tag TAG_ID to NAME."""
    try:
        name = DataValidator.validate_tag_name(name)
        db = get_db(ctx)

        with db.session_scope():
            tag = db.tags.update(owner_id, tag_id, name=name)
            click.echo(f"✅ Renamed tag #{tag.id} to {tag.name}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "rename_tag", {"owner_id": owner_id, "tag_id": tag_id})


@tags.command("delete")
@owner_option
@click.argument("tag_id", type=int)
@click.pass_context
def delete_tag(ctx, owner_id, tag_id):
    """Delete tag TAG_ID and remove it from all entries."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            db.tags.delete(owner_id, tag_id)
            click.echo(f"🗑️  Deleted tag #{tag_id}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "delete_tag", {"owner_id": owner_id, "tag_id": tag_id})


@tags.command("merge")
@owner_option
@click.argument("target_id", type=int)
@click.argument("source_ids", type=int, nargs=-1, required=True)
@click.pass_context
def merge_tags(ctx, owner_id, target_id, source_ids):
    """Merge SOURCE_IDS into TARGET_ID."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            removed = db.merger.merge(owner_id, target_id, list(source_ids))
            click.echo(f"✅ Merged {removed} tag(s) into #{target_id}")

    except DatabaseError as e:
        handle_cli_error(
            ctx,
            e,
            "merge_tags",
            {"owner_id": owner_id, "target_id": target_id, "source_ids": source_ids},
        )


@tags.command("entries")
@owner_option
@click.argument("tag_id", type=int)
@click.pass_context
def tag_entries(ctx, owner_id, tag_id):
    """List entries carrying tag TAG_ID, newest first."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            result = db.entry_tags.get_entries_for_tag(owner_id, tag_id)

            click.echo(f"\n📰 Entries ({result['total']}):\n")
            for entry in result["entries"]:
                published = entry.published_at.strftime("%Y-%m-%d")
                click.echo(f"  #{entry.id:<5} {published}  {entry.title}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "tag_entries", {"owner_id": owner_id, "tag_id": tag_id})
