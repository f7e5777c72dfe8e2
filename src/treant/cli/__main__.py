# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0

"""Treant CLI entrypoint.

Commands are registered and lazy-loaded from here.
"""

from __future__ import annotations

import sys

from cyclopts import App, Parameter
from rich.markup import escape

from treant import __version__
from treant.cli.utils import TREANT_PREFIX, console


app = App(
    "treant",
    help="Treant: typed traversal SDKs generated from tree-sitter grammars.",
    default_parameter=Parameter(negative=()),
    version=__version__,
    console=console,
)
app.command("treant.cli.commands.generate:app", name="generate", alias="gen")
app.command("treant.cli.commands.inspect:app", name="inspect")


def main() -> None:
    """Main CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print(f"\n{TREANT_PREFIX} [yellow]Interrupted.[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"{TREANT_PREFIX} [bold red]Fatal error: {escape(str(e))}[/bold red]")
        console.print_exception(max_frames=10)
        sys.exit(1)


if __name__ == "__main__":
    main()


__all__ = ("app", "main")
