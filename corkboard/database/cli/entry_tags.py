"""
Entry Tag Commands
-------------------

Manage the tags attached to a single entry.

Commands:
    - list: Show an entry's tags and where each came from
    - add: Attach tags by name (created on demand)
    - remove: Detach a tag
    - confirm: Accept an automatic suggestion
    - dismiss: Reject an automatic suggestion
"""
import click

from corkboard.core.logging_manager import handle_cli_error
from corkboard.core.exceptions import DatabaseError, ValidationError
from corkboard.core.validators import DataValidator
from corkboard.database.models import TagSource
from . import get_db, owner_option


def _print_links(links) -> None:
    if not links:
        click.echo("No tags.")
        return
    for link in links:
        source = TagSource(link.source).display_name
        click.echo(f"  #{link.tag_id:<5} {link.tag_name} [{source}]")


@click.group("entry-tags")
@click.pass_context
def entry_tags(ctx: click.Context) -> None:
    """Manage tags attached to entries."""
    pass


@entry_tags.command("list")
@owner_option
@click.argument("entry_id", type=int)
@click.pass_context
def list_entry_tags(ctx, owner_id, entry_id):
    """List the tags of ENTRY_ID."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            _print_links(db.entry_tags.get_for_entry(owner_id, entry_id))

    except DatabaseError as e:
        handle_cli_error(
            ctx, e, "list_entry_tags", {"owner_id": owner_id, "entry_id": entry_id}
        )


@entry_tags.command("add")
@owner_option
@click.argument("entry_id", type=int)
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--source",
    type=click.Choice(TagSource.choices()),
    default=TagSource.MANUAL.value,
    show_default=True,
    help="Where the tags come from",
)
@click.pass_context
def add_entry_tags(ctx, owner_id, entry_id, names, source):
    """Attach tags NAMES to ENTRY_ID."""
    try:
        names = [DataValidator.validate_tag_name(name) for name in names]
        source = DataValidator.normalize_tag_source(source)
        db = get_db(ctx)

        with db.session_scope():
            links = db.entry_tags.attach_many_by_name(owner_id, entry_id, names, source)
            click.echo(f"✅ Entry #{entry_id} now has {len(links)} tag(s):")
            _print_links(links)

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(
            ctx, e, "add_entry_tags", {"owner_id": owner_id, "entry_id": entry_id}
        )


@entry_tags.command("remove")
@owner_option
@click.argument("entry_id", type=int)
@click.argument("tag_id", type=int)
@click.pass_context
def remove_entry_tag(ctx, owner_id, entry_id, tag_id):
    """Detach TAG_ID from ENTRY_ID."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            db.entry_tags.detach(owner_id, entry_id, tag_id)
            click.echo(f"🗑️  Removed tag #{tag_id} from entry #{entry_id}")

    except DatabaseError as e:
        handle_cli_error(
            ctx,
            e,
            "remove_entry_tag",
            {"owner_id": owner_id, "entry_id": entry_id, "tag_id": tag_id},
        )


@entry_tags.command("confirm")
@owner_option
@click.argument("entry_id", type=int)
@click.argument("tag_id", type=int)
@click.pass_context
def confirm_entry_tag(ctx, owner_id, entry_id, tag_id):
    """Accept the suggested tag TAG_ID on ENTRY_ID."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            db.entry_tags.confirm_auto(owner_id, entry_id, tag_id)
            click.echo(f"✅ Confirmed tag #{tag_id} on entry #{entry_id}")

    except DatabaseError as e:
        handle_cli_error(
            ctx,
            e,
            "confirm_entry_tag",
            {"owner_id": owner_id, "entry_id": entry_id, "tag_id": tag_id},
        )


@entry_tags.command("dismiss")
@owner_option
@click.argument("entry_id", type=int)
@click.argument("tag_id", type=int)
@click.pass_context
def dismiss_entry_tag(ctx, owner_id, entry_id, tag_id):
    """Reject the suggested tag TAG_ID on ENTRY_ID."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            db.entry_tags.dismiss_auto(owner_id, entry_id, tag_id)
            click.echo(f"🗑️  Dismissed tag #{tag_id} on entry #{entry_id}")

    except DatabaseError as e:
        handle_cli_error(
            ctx,
            e,
            "dismiss_entry_tag",
            {"owner_id": owner_id, "entry_id": entry_id, "tag_id": tag_id},
        )
