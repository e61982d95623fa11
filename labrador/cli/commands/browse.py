"""Collection browsing CLI commands."""

from __future__ import annotations

import json
from typing import Optional

import click
from rich.table import Table

from labrador.cli.utils import adapter_from_context, console, print_exception
from labrador.exceptions import ConfigurationError, LabradorError


def _fail(ctx: click.Context, message: str, error: Exception) -> None:
    print_exception(message, error, verbose=ctx.obj.get("verbose", False))
    raise SystemExit(1) from error


@click.command(name="collections")
@click.pass_context
def collections_command(ctx: click.Context) -> None:
    """List collections (tables) in the database."""
    try:
        with adapter_from_context(ctx) as adapter:
            names = adapter.collections()
    except ConfigurationError as exc:
        _fail(ctx, "Configuration Error", exc)
    except LabradorError as exc:
        _fail(ctx, "Database Error", exc)

    if not names:
        console.print("[yellow]No collections found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Collection", style="cyan")
    for i, name in enumerate(names, start=1):
        table.add_row(str(i), name)
    console.print(table)
    console.print(f"\n[dim]Total: {len(names)} collection(s)[/dim]")


@click.command(name="primary-key")
@click.argument("collection")
@click.pass_context
def primary_key_command(ctx: click.Context, collection: str) -> None:
    """Show the primary-key field of a collection."""
    try:
        with adapter_from_context(ctx) as adapter:
            key = adapter.primary_key_for(collection)
    except ConfigurationError as exc:
        _fail(ctx, "Configuration Error", exc)
    except LabradorError as exc:
        _fail(ctx, "Database Error", exc)

    console.print(key)


@click.command(name="schema")
@click.argument("collection")
@click.pass_context
def schema_command(ctx: click.Context, collection: str) -> None:
    """Describe the fields of a collection."""
    try:
        with adapter_from_context(ctx) as adapter:
            fields = adapter.schema(collection)
    except ConfigurationError as exc:
        _fail(ctx, "Configuration Error", exc)
    except LabradorError as exc:
        _fail(ctx, "Database Error", exc)

    console.print(f"[bold blue]Collection: {collection}[/bold blue]\n")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Field", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Nullable", style="yellow")
    table.add_column("Default", style="white")
    table.add_column("Primary Key", style="blue")

    for descriptor in fields:
        table.add_row(
            str(descriptor.position),
            descriptor.field,
            descriptor.type,
            "Yes" if descriptor.nullable else "No",
            descriptor.default or "",
            "✓" if descriptor.primary_key else "",
        )
    console.print(table)


@click.command(name="find")
@click.argument("collection")
@click.option("--limit", type=click.IntRange(min=0), help="Maximum number of records")
@click.option("--skip", "--offset", "skip", type=click.IntRange(min=0), default=0, help="Records to skip first")
@click.option("--order-by", help="Field to sort by (default: primary key)")
@click.option("--direction", type=click.Choice(["asc", "desc"], case_sensitive=False), default="asc")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
def find_command(
    ctx: click.Context,
    collection: str,
    limit: Optional[int],
    skip: int,
    order_by: Optional[str],
    direction: str,
    output_format: str,
) -> None:
    """Show records of a collection."""
    try:
        with adapter_from_context(ctx) as adapter:
            records = adapter.find(
                collection,
                limit=limit,
                skip=skip,
                order_by=order_by,
                direction=direction,
            )
    except ConfigurationError as exc:
        _fail(ctx, "Configuration Error", exc)
    except LabradorError as exc:
        _fail(ctx, "Database Error", exc)

    if output_format == "json":
        click.echo(json.dumps(records, indent=2, default=str))
        return

    if not records:
        console.print("[yellow]No records found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    for name in records[0]:
        table.add_column(name, style="cyan")
    for record in records:
        table.add_row(*("" if value is None else str(value) for value in record.values()))
    console.print(table)
    console.print(f"\n[dim]{len(records)} record(s)[/dim]")


@click.command(name="status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """Show session status and record counts per collection."""
    try:
        with adapter_from_context(ctx) as adapter:
            session = adapter.session
            is_connected = adapter.connected()
            counts = {name: adapter.count(name) for name in adapter.collections()}
    except ConfigurationError as exc:
        _fail(ctx, "Configuration Error", exc)
    except LabradorError as exc:
        _fail(ctx, "Database Error", exc)

    console.print(f"Database: [cyan]{session.database}[/cyan]")
    console.print(f"User: [cyan]{session.user}[/cyan]")
    status_color = "green" if is_connected else "red"
    console.print(f"Status: [{status_color}]{'CONNECTED' if is_connected else 'DISCONNECTED'}[/{status_color}]\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Collection", style="cyan")
    table.add_column("Records", style="green", justify="right")
    for name, total in counts.items():
        table.add_row(name, str(total))
    console.print(table)
