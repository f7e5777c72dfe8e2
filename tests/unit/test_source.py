# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Unit tests for the Python source helpers."""

from __future__ import annotations

import ast

import pytest

from treant.generator.source import (
    SourceWriter,
    code_span,
    frozenset_literal,
    literal_type,
    module_header,
    py_str,
    py_value,
    tuple_literal,
    union_type,
)


pytestmark = [pytest.mark.unit]


class TestLiterals:
    """Tests for rendering Python literals."""

    @pytest.mark.parametrize("value", ['"', "\\", "'", "\n", "\t", '"""', "é", "\x00", "a b"])
    def test_py_str_round_trips(self, value: str) -> None:
        """Any text renders as a string literal that evaluates back to itself."""
        rendered = py_str(value)
        assert rendered.startswith('"')
        assert ast.literal_eval(rendered) == value

    def test_py_value(self) -> None:
        """Booleans and None render as themselves, strings as literals."""
        assert py_value(None) == "None"
        assert py_value(True) == "True"
        assert py_value("x") == '"x"'

    def test_literal_type(self) -> None:
        """Literal types list values in order; no values is Never."""
        assert literal_type(["(", ")"]) == 'Literal["(", ")"]'
        assert literal_type([]) == "Never"

    def test_union_type(self) -> None:
        """Unions drop duplicates, keep order, and append None last when optional."""
        assert union_type(["A", "B", "A"]) == "A | B"
        assert union_type(["A"], optional=True) == "A | None"
        assert union_type([], optional=True) == "None"
        assert union_type([]) == "Never"

    def test_frozenset_literal(self) -> None:
        """Frozensets render their items; an empty one has no braces."""
        assert frozenset_literal(["a", None]) == 'frozenset({"a", None})'
        assert frozenset_literal([]) == "frozenset()"

    def test_tuple_literal(self) -> None:
        """One-item tuples keep their trailing comma."""
        assert tuple_literal(['"a"']) == '("a",)'
        assert tuple_literal(['"a"', '"b"']) == '("a", "b")'
        assert tuple_literal([]) == "()"

    def test_code_span(self) -> None:
        """Printable text is shown in backticks; other text as an escaped literal."""
        assert code_span("source_file") == "`source_file`"
        assert code_span("\n") == '"\\n"'


class TestSourceWriter:
    """Tests for building modules line by line."""

    def test_blocks_indent(self) -> None:
        """Block bodies are indented and blank lines stay empty."""
        writer = SourceWriter()
        with writer.block("def f(x)"):
            writer.line("if x:")
            with writer.indented():
                writer.line("return 1")
            writer.line()
            writer.line("return 0")
        assert writer.render() == (
            "def f(x):\n    if x:\n        return 1\n\n    return 0\n"
        )

    def test_docstrings(self) -> None:
        """One-line docstrings stay on one line; longer ones get a summary line."""
        writer = SourceWriter()
        with writer.block("class A"):
            writer.docstring("Short.")
        with writer.block("class B"):
            writer.docstring('Summary.\nSays "hi".')
        source = writer.render()
        assert '    """Short."""\n' in source
        assert '    """Summary.\n\n    Says \\"hi\\".\n    """\n' in source
        ast.parse(source)

    def test_render_ends_with_one_newline(self) -> None:
        """Trailing blank lines are collapsed."""
        writer = SourceWriter()
        writer.line("x = 1")
        writer.blank(3)
        assert writer.render() == "x = 1\n"

    def test_module_header(self) -> None:
        """Generated modules start with a provenance comment and future import."""
        writer = module_header("mini", "The mini grammar.")
        writer.line("X = 1")
        source = writer.render()
        assert source.splitlines()[0] == "# Generated by treant from the mini grammar. Do not edit."
        assert "from __future__ import annotations" in source
        tree = ast.parse(source)
        assert ast.get_docstring(tree) == "The mini grammar."
