# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Inspect command: show a grammar's structure and navigation table."""

from __future__ import annotations

import sys

from pathlib import Path

from cyclopts import App
from rich.markup import escape
from rich.table import Table

from treant.cli.utils import TREANT_PREFIX, configure_logging, console, report_error
from treant.exceptions import TreantError
from treant.grammar.analysis import GrammarAnalysis, analyze_grammar
from treant.grammar.loader import load_grammar
from treant.grammar.navigation import Direction, NavigationGraph, build_navigation_graph
from treant.grammar.node_types import NodeRef
from treant.naming import categorize_anonymous


app = App("inspect", help="Show a grammar's node types and navigation table.")


def _format_targets(targets: list[NodeRef | None]) -> str:
    return ", ".join("∅" if ref is None else escape(str(ref)) for ref in targets)


def navigation_table(graph: NavigationGraph, node_types: list[NodeRef]) -> Table:
    """A table of `N(T, d)` for the given node types."""
    table = Table(show_header=True, header_style="bold blue", title="Navigation")
    table.add_column("Node type", style="cyan", no_wrap=True)
    for direction in Direction:
        table.add_column(direction.cursor_method, style="white")
    for ref in node_types:
        table.add_row(
            escape(ref.type),
            *(_format_targets(graph.sorted_reachable(ref, d)) for d in Direction),
        )
    return table


def summary_table(analysis: GrammarAnalysis, graph: NavigationGraph) -> Table:
    """Counts and notable facts about a grammar."""
    categories = categorize_anonymous(analysis.anonymous_nodes)
    table = Table(show_header=False, title=f"Grammar {escape(analysis.grammar_name)}")
    table.add_column("", style="bold")
    table.add_column("")
    table.add_row("Root rule", escape(analysis.root_rule))
    table.add_row("Named node types", str(len(analysis.named_nodes)))
    table.add_row("Supertypes", str(len(graph.catalogue.supertypes)))
    table.add_row(
        "Anonymous tokens",
        f"{len(analysis.anonymous_nodes)} ({len(categories.punctuation)} punctuation, "
        f"{len(categories.operators)} operators, {len(categories.keywords)} keywords)",
    )
    table.add_row("Semantic groupings", str(len(analysis.semantic_groupings)))
    table.add_row("Sequences", str(len(analysis.sequences)))
    table.add_row("Nullable rules", str(len(analysis.nullable_rules)))
    table.add_row("Recursive cycles", str(len(analysis.cycles)))
    return table


@app.default
def inspect_grammar(grammar_dir: Path, *, node: str | None = None) -> None:
    """Show a grammar's node types and navigation table.

    Args:
        grammar_dir: Grammar directory containing src/grammar.json and src/node-types.json
        node: Only show the navigation row for this named node type
    """
    configure_logging()
    try:
        built = load_grammar(grammar_dir)
        graph = build_navigation_graph(built.node_types, start=built.grammar.start_rule)
        analysis = analyze_grammar(built.node_types, built.grammar)
    except TreantError as e:
        report_error(e)
        sys.exit(1)
    if node is not None and node not in graph:
        console.print(
            f"{TREANT_PREFIX} [red]Error: {escape(node)} is not a named, concrete node type "
            f"of the {escape(built.name)} grammar[/red]"
        )
        sys.exit(1)
    rows = [NodeRef(node, True)] if node is not None else list(graph.node_types)
    if node is None:
        console.print(summary_table(analysis, graph))
    console.print(navigation_table(graph, rows))


__all__ = ("app", "inspect_grammar", "navigation_table", "summary_table")
