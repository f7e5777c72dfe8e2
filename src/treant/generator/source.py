# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Helpers for writing Python source text.

Generated modules are assembled line by line in a `SourceWriter`. Every value
that ends up inside a string literal goes through `py_str`, so node types such
as `"` or `\\` produce valid source.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from pydantic_core import to_json


INDENT = "    "


def py_str(value: str) -> str:
    """A double-quoted Python string literal for `value`."""
    # JSON string escapes are a subset of Python's
    return to_json(value).decode("utf-8")


def py_value(value: str | bool | None) -> str:
    """A Python literal for a string, bool, or None."""
    if value is None or isinstance(value, bool):
        return repr(value)
    return py_str(value)


def doc_text(text: str) -> str:
    """Escape text for use inside a triple-quoted docstring."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def code_span(text: str) -> str:
    """Render a node type for prose: `` `text` ``, or a string literal if it is not printable."""
    return f"`{text}`" if text.isprintable() else py_str(text)


def literal_type(values: Iterable[str]) -> str:
    """`Literal["a", "b"]`, or `Never` when there are no values."""
    items = list(values)
    if not items:
        return "Never"
    return f"Literal[{', '.join(py_str(v) for v in items)}]"


def union_type(names: Iterable[str], *, optional: bool = False) -> str:
    """`A | B`, `A | None`, `None`, or `Never`."""
    members = list(dict.fromkeys(names))
    if optional:
        members.append("None")
    return " | ".join(members) if members else "Never"


def frozenset_literal(values: Iterable[str | bool | None]) -> str:
    """`frozenset({...})` in the given order, or `frozenset()`."""
    items = [py_value(v) for v in values]
    return f"frozenset({{{', '.join(items)}}})" if items else "frozenset()"


def tuple_literal(values: Iterable[str]) -> str:
    """A tuple literal of strings (items are already rendered source)."""
    items = list(values)
    if len(items) == 1:
        return f"({items[0]},)"
    return f"({', '.join(items)})"


class SourceWriter:
    """Accumulates indented lines of Python source."""

    def __init__(self) -> None:
        """Start an empty module."""
        self._lines: list[str] = []
        self._depth = 0

    def line(self, text: str = "") -> None:
        """Append one line at the current indentation (blank lines stay empty)."""
        self._lines.append(f"{INDENT * self._depth}{text}" if text else "")

    def lines(self, texts: Iterable[str]) -> None:
        """Append several lines at the current indentation."""
        for text in texts:
            self.line(text)

    def blank(self, count: int = 1) -> None:
        """Append blank lines."""
        self._lines.extend([""] * count)

    def docstring(self, text: str) -> None:
        """Append a docstring; multi-line text is indented to match."""
        first, *rest = doc_text(text).splitlines() or [""]
        if not rest:
            self.line(f'"""{first}"""')
            return
        self.line(f'"""{first}')
        self.blank()
        self.lines(rest)
        self.line('"""')

    @contextmanager
    def indented(self) -> Iterator[None]:
        """Indent lines appended inside the block."""
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    @contextmanager
    def block(self, header: str) -> Iterator[None]:
        """Append a `header:` line and indent the block's body."""
        self.line(f"{header}:")
        with self.indented():
            yield

    def render(self) -> str:
        """The finished source, ending with exactly one newline."""
        text = "\n".join(self._lines).rstrip("\n")
        return f"{text}\n"


def module_header(grammar_name: str, summary: str) -> SourceWriter:
    """Start a generated module with its docstring and the `annotations` future import."""
    writer = SourceWriter()
    writer.line(f"# Generated by treant from the {grammar_name} grammar. Do not edit.")
    writer.docstring(summary)
    writer.blank()
    writer.line("from __future__ import annotations")
    writer.blank()
    return writer


__all__ = (
    "INDENT",
    "SourceWriter",
    "code_span",
    "doc_text",
    "frozenset_literal",
    "literal_type",
    "module_header",
    "py_str",
    "py_value",
    "tuple_literal",
    "union_type",
)
