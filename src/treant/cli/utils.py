# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Common CLI utilities."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape

from treant._logging import setup_logger
from treant.exceptions import TreantError
from treant.settings import TreantSettings, get_settings


TREANT_PREFIX = "[bold green]treant[/bold green]"

console = Console(markup=True, emoji=True)


def configure_logging(settings: TreantSettings | None = None) -> logging.Logger:
    """Set up the `treant` logger from settings."""
    settings = settings or get_settings()
    return setup_logger("treant", level=settings.log_level, rich=settings.rich_logging)


def report_error(error: TreantError) -> None:
    """Print an error and its suggestions."""
    console.print(f"{TREANT_PREFIX} [red]Error: {escape(str(error))}[/red]")
    if error.suggestions:
        console.print("[yellow]Suggestions:[/yellow]")
        for suggestion in error.suggestions:
            console.print(f"  • {escape(suggestion)}")


__all__ = ("TREANT_PREFIX", "configure_logging", "console", "report_error")
