"""Shelf CLI - Administrative command-line interface.

Usage: shelf <command> [options]

Commands for running the server, issuing admin tokens, and managing
bookmarks and tags in the configured store.
"""

import csv
import io
import sys
import json
import click

from . import auth
from . import records
from .rows import join_tags


# =============================================================================
# CLI Group
# =============================================================================

@click.group()
@click.version_option(version="0.1.0", prog_name="shelf")
def cli():
    """Shelf administration CLI."""
    pass


@cli.command("serve")
def serve():
    """Run the development server."""
    from .main import main
    main()


# =============================================================================
# Token Commands
# =============================================================================

@cli.group()
def token():
    """Admin token commands."""
    pass


@token.command("issue")
def token_issue():
    """Print a new admin token signed with SESSION_SECRET."""
    click.echo(auth.issue_token())


@token.command("verify")
@click.argument("value")
def token_verify(value):
    """Check whether VALUE is a valid admin token."""
    if auth.verify_token(value):
        click.echo("Token is valid.")
    else:
        click.echo("Token is invalid.", err=True)
        sys.exit(1)


# =============================================================================
# Bookmark Commands
# =============================================================================

@cli.group()
def bookmarks():
    """Bookmark commands."""
    pass


@bookmarks.command("list")
@click.option("--all", "include_private", is_flag=True, help="Include private bookmarks")
@click.option("--format", "output_format", type=click.Choice(["table", "json", "csv"]), default="table",
              help="Output format")
def bookmarks_list(include_private, output_format):
    """List bookmarks (public only unless --all)."""
    service = records.get_service()
    items = service.list_bookmarks(public_only=not include_private)

    if output_format == "json":
        click.echo(json.dumps([b.to_dict() for b in items], indent=2))
        return

    if output_format == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["id", "title", "url", "category", "tags", "visibility", "dateAdded"])
        for b in items:
            writer.writerow([b.id, b.title, b.url, b.category, join_tags(b.tags), b.visibility, b.date_added])
        click.echo(buffer.getvalue(), nl=False)
        return

    if not items:
        click.echo("No bookmarks found.")
        return

    click.echo(f"{'Title':<40} {'Category':<12} {'Visibility':<10} {'Added':<24}")
    click.echo("-" * 88)
    for b in items:
        title = b.title if len(b.title) <= 40 else b.title[:37] + "..."
        click.echo(f"{title:<40} {b.category:<12} {b.visibility:<10} {b.date_added:<24}")
    click.echo(f"\n{len(items)} bookmark(s)")


# =============================================================================
# Tag Commands
# =============================================================================

@cli.group()
def tags():
    """Tag commands."""
    pass


@tags.command("list")
def tags_list():
    """List all tags."""
    for name in records.get_service().list_tags():
        click.echo(name)


@tags.command("add")
@click.argument("name")
def tags_add(name):
    """Add tag NAME unless it already exists."""
    name = name.strip()
    if not name:
        click.echo("Error: tag name is required", err=True)
        sys.exit(2)

    service = records.get_service()
    if name in service.list_tags():
        click.echo(f"Error: tag {name!r} already exists", err=True)
        sys.exit(1)

    service.add_tag(name)
    click.echo(f"Added tag {name!r}.")


@tags.command("delete")
@click.argument("name")
def tags_delete(name):
    """Delete tag NAME. Bookmarks keep the tag string."""
    if not records.get_service().delete_tag(name.strip()):
        click.echo(f"Error: tag {name!r} not found", err=True)
        sys.exit(1)
    click.echo(f"Deleted tag {name!r}.")


# =============================================================================
# Category Commands
# =============================================================================

@cli.group()
def categories():
    """Category commands."""
    pass


@categories.command("list")
def categories_list():
    """List categories from the Categories tab."""
    for name in records.get_service().list_categories():
        click.echo(name)


if __name__ == "__main__":
    cli()
