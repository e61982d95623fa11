"""Main CLI entry point for Labrador."""

from __future__ import annotations

import click

from labrador import __version__
from labrador.cli.commands import register_commands
from labrador.cli.commands.browse import (
    collections_command,
    find_command,
    primary_key_command,
    schema_command,
    status_command,
)
from labrador.cli.commands.configuration import config_group
from labrador.cli.utils import configure_logging, console


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--db", help="Database connection name")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    config: str,
    db: str,
    verbose: bool,
) -> None:
    """Labrador - browse database collections from the command line."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        {
            "config": config,
            "db": db,
            "verbose": verbose,
        }
    )
    configure_logging(verbose)

    if version:
        console.print(f"Labrador v{__version__}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


COMMAND_REGISTRY = [
    collections_command,
    primary_key_command,
    schema_command,
    find_command,
    status_command,
    config_group,
]

register_commands(cli, COMMAND_REGISTRY)


if __name__ == "__main__":
    cli()
