# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Generate command: build a typed SDK from a tree-sitter grammar directory."""

from __future__ import annotations

import sys

from pathlib import Path
from typing import Annotated, Any, Literal

from cyclopts import App, Parameter
from rich.markup import escape

from treant.cli.utils import TREANT_PREFIX, configure_logging, console, report_error
from treant.emit import write_output
from treant.exceptions import TreantError
from treant.generator import generate_sdk
from treant.grammar.loader import load_grammar
from treant.settings import get_settings


app = App("generate", help="Generate a typed SDK from a built tree-sitter grammar.")


def namespace_options(
    *, prefix: str | None, no_prefix: bool, name: str | None, concat_mode: str
) -> dict[str, Any]:
    """Namespace configuration from command line options; unset options keep their defaults."""
    options: dict[str, Any] = {"concatMode": concat_mode}
    if no_prefix:
        options["prefix"] = None
    elif prefix is not None:
        options["prefix"] = prefix
    if name is not None:
        options["name"] = name
    return options


@app.default
def generate(
    grammar_dir: Path,
    *,
    output: Annotated[Path | None, Parameter(name=["--output", "-o"])] = None,
    prefix: str | None = None,
    no_prefix: Annotated[bool, Parameter(name="--no-prefix")] = False,
    name: str | None = None,
    concat_mode: Literal["pascal", "camel", "kebab", "snake"] = "pascal",
    clean: bool | None = None,
) -> None:
    """Generate a typed SDK from a built tree-sitter grammar.

    Args:
        grammar_dir: Grammar directory containing src/grammar.json and src/node-types.json
        output: Directory to write the SDK package to (default: TREANT_OUTPUT_DIR)
        prefix: Namespace prefix (default: Treant)
        no_prefix: Use the namespace name without any prefix
        name: Namespace name (default: the grammar's name)
        concat_mode: How prefix and name are joined
        clean: Remove a previously generated SDK at the output directory first
    """
    settings = get_settings()
    configure_logging(settings)
    target = output or settings.output_dir
    namespace = namespace_options(
        prefix=prefix, no_prefix=no_prefix, name=name, concat_mode=concat_mode
    )
    try:
        built = load_grammar(grammar_dir)
        result = generate_sdk(built, namespace)
        written = write_output(
            result, target, clean=settings.clean_output if clean is None else clean
        )
    except TreantError as e:
        report_error(e)
        sys.exit(1)
    console.print(
        f"{TREANT_PREFIX} [green]Generated {escape(result.namespace)} "
        f"({len(written)} files) in {escape(str(target))}[/green]"
    )


__all__ = ("app", "generate", "namespace_options")
