"""Shared CLI utilities for Labrador."""

from __future__ import annotations

import logging
from typing import Optional

import click
from rich.console import Console

from labrador.adapters.base import RelationalAdapter
from labrador.adapters.factory import open_adapter
from labrador.config import EnvironmentSettings, get_config

# Single console instance reused across CLI modules
console = Console()


def configure_logging(verbose: bool = False, settings: Optional[EnvironmentSettings] = None) -> None:
    """Configure root logging from ``LABRADOR_LOG_LEVEL``; ``verbose`` forces DEBUG."""
    settings = settings or EnvironmentSettings()
    level = logging.DEBUG if verbose or settings.debug else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def adapter_from_context(ctx: click.Context) -> RelationalAdapter:
    """Open the adapter selected by the ``--config`` and ``--db`` options."""
    config = get_config(ctx.obj.get("config"))
    return open_adapter(ctx.obj.get("db"), config)


def print_exception(message: str, error: Exception, verbose: bool = False) -> None:
    """Render a formatted exception message.

    Args:
        message: Friendly context message to display before the exception.
        error: Original exception instance.
        verbose: When True, render the full traceback for debugging.
    """
    console.print(f"[red]{message}: {error}[/red]")
    if verbose:
        import traceback

        console.print(f"[dim]{traceback.format_exc()}[/dim]")
