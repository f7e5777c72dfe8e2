# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0

"""Global pytest configuration and fixtures for Treant tests.

Three small grammars are provided, each as the exact `grammar.json` and
`node-types.json` text a grammar build would produce:

- `hello`: `source_file -> repeat(expression)`, `expression -> "hello"`
- `calc`: literals of every anonymous category, no fields
- `mini`: a GraphQL-like grammar with two supertypes, fields, repeated
  children, an `extra` comment, and a named and anonymous `fragment`
"""

from __future__ import annotations

import copy
import json

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from treant.grammar.loader import BuiltGrammar
from treant.grammar.node_types import NodeTypeCatalogue


# ===========================================================================
# *                    Grammar documents
# ===========================================================================


def _sym(name: str) -> dict[str, Any]:
    return {"type": "SYMBOL", "name": name}


def _str(value: str) -> dict[str, Any]:
    return {"type": "STRING", "value": value}


def _field(name: str, content: dict[str, Any]) -> dict[str, Any]:
    return {"type": "FIELD", "name": name, "content": content}


def _optional(content: dict[str, Any]) -> dict[str, Any]:
    return {"type": "CHOICE", "members": [content, {"type": "BLANK"}]}


def _seq(*members: dict[str, Any]) -> dict[str, Any]:
    return {"type": "SEQ", "members": list(members)}


def _ref(type_name: str, *, named: bool = True) -> dict[str, Any]:
    return {"type": type_name, "named": named}


def _children(
    *types: dict[str, Any], multiple: bool = False, required: bool = False
) -> dict[str, Any]:
    return {"multiple": multiple, "required": required, "types": list(types)}


HELLO_GRAMMAR: dict[str, Any] = {
    "name": "hello",
    "rules": {
        "source_file": {"type": "REPEAT", "content": _sym("expression")},
        "expression": _str("hello"),
    },
    "extras": [{"type": "PATTERN", "value": "\\s"}],
    "conflicts": [],
    "precedences": [],
    "externals": [],
    "inline": [],
    "supertypes": [],
}

HELLO_NODE_TYPES: list[dict[str, Any]] = [
    {
        "type": "expression",
        "named": True,
        "fields": {},
    },
    {
        "type": "source_file",
        "named": True,
        "root": True,
        "fields": {},
        "children": _children(_ref("expression"), multiple=True),
    },
    {"type": "hello", "named": False},
]

CALC_GRAMMAR: dict[str, Any] = {
    "name": "calc",
    "rules": {
        "program": {"type": "REPEAT", "content": _sym("statement")},
        "statement": _seq(
            _optional(_str("let")),
            _sym("number"),
            {"type": "CHOICE", "members": [_str("+"), _str("=>"), _str("...")]},
            _sym("number"),
            _str(";"),
        ),
        "number": {"type": "PATTERN", "value": "\\d+"},
    },
}

CALC_NODE_TYPES: list[dict[str, Any]] = [
    {
        "type": "number",
        "named": True,
    },
    {
        "type": "program",
        "named": True,
        "root": True,
        "fields": {},
        "children": _children(_ref("statement"), multiple=True),
    },
    {
        "type": "statement",
        "named": True,
        "fields": {},
        "children": _children(_ref("number"), multiple=True, required=True),
    },
    {"type": "+", "named": False},
    {"type": "...", "named": False},
    {"type": ";", "named": False},
    {"type": "=>", "named": False},
    {"type": "let", "named": False},
]

MINI_GRAMMAR: dict[str, Any] = {
    "name": "mini",
    "word": "name",
    "rules": {
        "document": {"type": "REPEAT1", "content": _sym("definition")},
        "definition": {"type": "CHOICE", "members": [_sym("operation"), _sym("fragment")]},
        "operation": _seq(
            _str("query"), _optional(_field("name", _sym("name"))), _sym("selection_set")
        ),
        "fragment": _seq(_str("fragment"), _field("name", _sym("name")), _sym("selection_set")),
        "selection_set": _seq(
            _str("{"), {"type": "REPEAT", "content": _sym("selection")}, _str("}")
        ),
        "selection": {"type": "CHOICE", "members": [_sym("field"), _sym("fragment_spread")]},
        "field": _seq(_field("name", _sym("name")), _optional(_sym("selection_set"))),
        "fragment_spread": _seq(_str("..."), _field("name", _sym("name"))),
        "name": {"type": "PATTERN", "value": "[_A-Za-z][_0-9A-Za-z]*"},
        "comment": {
            "type": "TOKEN",
            "content": _seq(_str("#"), {"type": "PATTERN", "value": ".*"}),
        },
    },
    "extras": [{"type": "PATTERN", "value": "[\\s,]"}, _sym("comment")],
    "conflicts": [],
    "precedences": [],
    "externals": [],
    "inline": [],
    "supertypes": ["definition", "selection"],
}

def _name_field() -> dict[str, Any]:
    return {"name": _children(_ref("name"), required=True)}


MINI_NODE_TYPES: list[dict[str, Any]] = [
    {
        "type": "definition",
        "named": True,
        "subtypes": [_ref("fragment"), _ref("operation")],
    },
    {
        "type": "selection",
        "named": True,
        "subtypes": [_ref("field"), _ref("fragment_spread")],
    },
    {"type": "comment", "named": True, "extra": True},
    {
        "type": "document",
        "named": True,
        "root": True,
        "fields": {},
        "children": _children(_ref("definition"), multiple=True, required=True),
    },
    {
        "type": "field",
        "named": True,
        "fields": _name_field(),
        "children": _children(_ref("selection_set")),
    },
    {
        "type": "fragment",
        "named": True,
        "fields": _name_field(),
        "children": _children(_ref("selection_set"), required=True),
    },
    {"type": "fragment_spread", "named": True, "fields": _name_field()},
    {"type": "name", "named": True},
    {
        "type": "operation",
        "named": True,
        "fields": {"name": _children(_ref("name"))},
        "children": _children(_ref("selection_set"), required=True),
    },
    {
        "type": "selection_set",
        "named": True,
        "fields": {},
        "children": _children(_ref("selection"), multiple=True),
    },
    {"type": "...", "named": False},
    {"type": "fragment", "named": False},
    {"type": "query", "named": False},
    {"type": "{", "named": False},
    {"type": "}", "named": False},
]

GRAMMARS: dict[str, tuple[dict[str, Any], list[dict[str, Any]]]] = {
    "hello": (HELLO_GRAMMAR, HELLO_NODE_TYPES),
    "calc": (CALC_GRAMMAR, CALC_NODE_TYPES),
    "mini": (MINI_GRAMMAR, MINI_NODE_TYPES),
}


def dump(data: Any) -> str:
    """JSON text the way `tree-sitter generate` writes it."""
    return json.dumps(data, indent=2) + "\n"


# ===========================================================================
# *                    Fixtures
# ===========================================================================


@pytest.fixture
def grammars() -> dict[str, tuple[dict[str, Any], list[dict[str, Any]]]]:
    """Decoded `(grammar, node_types)` documents by grammar name; safe to mutate."""
    return copy.deepcopy(GRAMMARS)


@pytest.fixture
def hello_sources() -> tuple[str, str]:
    """`(grammar.json, node-types.json)` text for the hello grammar."""
    return dump(HELLO_GRAMMAR), dump(HELLO_NODE_TYPES)


@pytest.fixture
def calc_sources() -> tuple[str, str]:
    """`(grammar.json, node-types.json)` text for the calc grammar."""
    return dump(CALC_GRAMMAR), dump(CALC_NODE_TYPES)


@pytest.fixture
def mini_sources() -> tuple[str, str]:
    """`(grammar.json, node-types.json)` text for the mini grammar."""
    return dump(MINI_GRAMMAR), dump(MINI_NODE_TYPES)


@pytest.fixture
def hello_built(hello_sources: tuple[str, str]) -> BuiltGrammar:
    """The hello grammar, built."""
    return BuiltGrammar.from_inputs(*hello_sources)


@pytest.fixture
def mini_built(mini_sources: tuple[str, str]) -> BuiltGrammar:
    """The mini grammar, built."""
    return BuiltGrammar.from_inputs(*mini_sources)


@pytest.fixture
def mini_catalogue() -> NodeTypeCatalogue:
    """The mini grammar's node-type catalogue."""
    return NodeTypeCatalogue.from_list(MINI_NODE_TYPES)


@pytest.fixture
def grammar_dir(tmp_path: Path) -> Callable[..., Path]:
    """Factory laying out a built grammar directory (`<dir>/src/grammar.json` etc.)."""

    def make(
        name: str = "hello", *, parser: bytes | None = None, flat: bool = False
    ) -> Path:
        grammar, node_types = GRAMMARS[name]
        root = tmp_path / f"tree-sitter-{name}"
        src = root if flat else root / "src"
        src.mkdir(parents=True, exist_ok=True)
        (src / "grammar.json").write_text(dump(grammar), encoding="utf-8")
        (src / "node-types.json").write_text(dump(node_types), encoding="utf-8")
        if parser is not None:
            (root / "parser.wasm").write_bytes(parser)
        return root

    return make
