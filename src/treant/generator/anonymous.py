# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""The `anonymous_nodes.py` module: literal tokens grouped by category."""

from __future__ import annotations

from treant.generator.context import GenerationContext
from treant.generator.source import frozenset_literal, literal_type, module_header, py_str
from treant.naming import AnonymousCategory


def anonymous_nodes_module(context: GenerationContext) -> str:
    """Source of `anonymous_nodes.py`.

    For each `AnonymousCategory` the module defines a `Literal` alias (or `Never`
    when the grammar has no such tokens), a frozenset constant, and an
    `is_<category>` guard over token text.
    """
    categories = context.categories
    writer = module_header(
        context.grammar_name,
        f"Anonymous tokens of the {context.grammar_name} grammar, "
        "grouped into punctuation, operators, and keywords.",
    )
    writer.line("from typing import Final, Literal, Never, TypeAlias, TypeGuard")
    writer.blank(2)
    exported: list[str] = []
    for category in AnonymousCategory:
        writer.line(f"{category.type_alias}: TypeAlias = {literal_type(categories.of(category))}")
        exported.append(category.type_alias)
    writer.blank()
    for category in AnonymousCategory:
        writer.line(
            f"{category.constant}: Final[frozenset[str]] = "
            f"{frozenset_literal(categories.of(category))}"
        )
        exported.append(category.constant)
    writer.line(
        "ANONYMOUS_TYPES: Final[frozenset[str]] = "
        + " | ".join(category.constant for category in AnonymousCategory)
    )
    exported.append("ANONYMOUS_TYPES")
    writer.blank(2)
    with writer.block("def categorize(text: str) -> str | None"):
        writer.docstring(
            "The category of an anonymous token's text, or None if the grammar has no such token."
        )
        for category in AnonymousCategory:
            with writer.block(f"if text in {category.constant}"):
                writer.line(f"return {py_str(category.value)}")
        writer.line("return None")
    exported.append("categorize")
    for category in AnonymousCategory:
        guard = f"is_{category.value}"
        writer.blank(2)
        with writer.block(f"def {guard}(text: str) -> TypeGuard[{category.type_alias}]"):
            writer.docstring(f"Whether `text` is one of the grammar's {category.value} tokens.")
            writer.line(f"return text in {category.constant}")
        exported.append(guard)
    writer.blank(2)
    writer.line(f"__all__ = ({', '.join(py_str(name) for name in sorted(exported))},)")
    return writer.render()


__all__ = ("anonymous_nodes_module",)
