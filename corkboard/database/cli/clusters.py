"""
Cluster Commands
-----------------

Browse and maintain clusters.

Commands:
    - list: Active clusters of a user with member counts
    - show: One cluster with its member entries
    - delete: Delete a cluster
    - sweep: Remove every expired cluster (all users)
"""
import sys
import click

from corkboard.core.logging_manager import handle_cli_error
from corkboard.core.exceptions import DatabaseError
from . import get_db, owner_option


def _expiry(cluster) -> str:
    if cluster.expires_at is None:
        return "never"
    return cluster.expires_at.strftime("%Y-%m-%d %H:%M")


@click.group()
@click.pass_context
def clusters(ctx: click.Context) -> None:
    """Browse and maintain clusters."""
    pass


@clusters.command("list")
@owner_option
@click.pass_context
def list_clusters(ctx, owner_id):
    """List active clusters, newest first."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            rows = db.clusters.get_all(owner_id)
            if not rows:
                click.echo("No active clusters.")
                return

            click.echo(f"\n🧷 Clusters ({len(rows)}):\n")
            for cluster in rows:
                click.echo(
                    f"  #{cluster.id:<5} {cluster.name} "
                    f"[{cluster.entry_count} entries, expires {_expiry(cluster)}]"
                )

    except DatabaseError as e:
        handle_cli_error(ctx, e, "list_clusters", {"owner_id": owner_id})


@clusters.command("show")
@owner_option
@click.argument("cluster_id", type=int)
@click.pass_context
def show_cluster(ctx, owner_id, cluster_id):
    """Show CLUSTER_ID with its entries."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            cluster = db.clusters.get_with_entries(owner_id, cluster_id)
            if cluster is None:
                click.echo(f"❌ No cluster #{cluster_id}", err=True)
                sys.exit(1)

            click.echo(f"\n🧷 {cluster.name} (expires {_expiry(cluster)})")
            click.echo(f"📊 {cluster.entry_count} entries\n")
            for entry in cluster.entries:
                click.echo(
                    f"  #{entry.id:<5} {entry.title} "
                    f"[{entry.feed.title} / {entry.feed.category.title}]"
                )

    except DatabaseError as e:
        handle_cli_error(
            ctx, e, "show_cluster", {"owner_id": owner_id, "cluster_id": cluster_id}
        )


@clusters.command("delete")
@owner_option
@click.argument("cluster_id", type=int)
@click.pass_context
def delete_cluster(ctx, owner_id, cluster_id):
    """Delete CLUSTER_ID and its memberships."""
    try:
        db = get_db(ctx)

        with db.session_scope():
            db.clusters.delete(owner_id, cluster_id)
            click.echo(f"🗑️  Deleted cluster #{cluster_id}")

    except DatabaseError as e:
        handle_cli_error(
            ctx, e, "delete_cluster", {"owner_id": owner_id, "cluster_id": cluster_id}
        )


@clusters.command("sweep")
@click.pass_context
def sweep(ctx):
    """Remove all expired clusters."""
    try:
        db = get_db(ctx)
        removed = db.sweep_expired_clusters()
        click.echo(f"🧹 Removed {removed} expired cluster(s)")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "sweep_expired_clusters")
