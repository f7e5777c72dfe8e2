# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Grammar-independent SDK modules and the root package module.

`types.py` describes the parse tree objects the SDK works with as protocols
that py-tree-sitter's `Node`, `TreeCursor`, and `Tree` satisfy, so generated
SDKs have no runtime dependencies of their own.
"""

from __future__ import annotations

import keyword

from treant.generator.context import GenerationContext
from treant.generator.source import SourceWriter, module_header, py_str
from treant.naming import is_identifier


TYPES_BODY = '''\
from collections.abc import Sequence
from typing import Protocol


class SyntaxNode(Protocol):
    """A node in a parse tree."""

    @property
    def type(self) -> str: ...

    @property
    def is_named(self) -> bool: ...

    @property
    def text(self) -> bytes | None: ...

    @property
    def children(self) -> Sequence[SyntaxNode]: ...

    @property
    def named_children(self) -> Sequence[SyntaxNode]: ...

    @property
    def parent(self) -> SyntaxNode | None: ...

    @property
    def next_sibling(self) -> SyntaxNode | None: ...

    @property
    def prev_sibling(self) -> SyntaxNode | None: ...

    def child_by_field_name(self, name: str, /) -> SyntaxNode | None: ...

    def children_by_field_name(self, name: str, /) -> Sequence[SyntaxNode]: ...


class RawTreeCursor(Protocol):
    """A stateful cursor over a parse tree."""

    @property
    def node(self) -> SyntaxNode | None: ...

    @property
    def field_name(self) -> str | None: ...

    def goto_first_child(self) -> bool: ...

    def goto_next_sibling(self) -> bool: ...

    def goto_previous_sibling(self) -> bool: ...

    def goto_parent(self) -> bool: ...

    def copy(self) -> RawTreeCursor: ...


class SyntaxTree(Protocol):
    """A parsed tree."""

    @property
    def root_node(self) -> SyntaxNode: ...

    def walk(self) -> RawTreeCursor: ...


__all__ = ("RawTreeCursor", "SyntaxNode", "SyntaxTree")
'''

ERRORS_BODY = '''\
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class NavigationErrorContext:
    """Where a navigation expectation failed."""

    expected: tuple[str, ...]
    """Node types that were acceptable at this step."""
    actual: str | None
    """The node type found, or None when no node was there."""
    path: tuple[str, ...]
    """Accessor steps taken from the root navigator, ending with the failing one."""

    def describe(self) -> str:
        expected = " | ".join(self.expected) or "no node"
        actual = self.actual if self.actual is not None else "nothing"
        location = ".".join(self.path) or "<root>"
        return f"Expected {expected} at {location}, found {actual}"


class NavigationExpectationError(Exception):
    """A navigator step did not find the node type the grammar allows there."""

    def __init__(
        self, expected: str | Iterable[str], actual: str | None, path: Iterable[str] = ()
    ) -> None:
        expected = (expected,) if isinstance(expected, str) else tuple(expected)
        self.context = NavigationErrorContext(expected, actual, tuple(path))
        super().__init__(self.context.describe())

    @property
    def expected(self) -> tuple[str, ...]:
        return self.context.expected

    @property
    def actual(self) -> str | None:
        return self.context.actual

    @property
    def path(self) -> tuple[str, ...]:
        return self.context.path


__all__ = ("NavigationErrorContext", "NavigationExpectationError")
'''

UTILS_BODY = '''\
from .types import SyntaxNode


def find_child_by_type(
    node: SyntaxNode, type_name: str, *, named: bool | None = None
) -> SyntaxNode | None:
    """The first direct child of `node` with the given type, or None.

    `named` restricts the match to named (True) or anonymous (False) children.
    """
    for child in node.children:
        if child.type == type_name and (named is None or child.is_named == named):
            return child
    return None


def find_children_by_type(
    node: SyntaxNode, type_name: str, *, named: bool | None = None
) -> list[SyntaxNode]:
    """Every direct child of `node` with the given type, in order."""
    return [
        child
        for child in node.children
        if child.type == type_name and (named is None or child.is_named == named)
    ]


def node_text(node: SyntaxNode, encoding: str = "utf-8") -> str:
    """A node's source text, decoded."""
    return (node.text or b"").decode(encoding)


__all__ = ("find_child_by_type", "find_children_by_type", "node_text")
'''


def _static_module(context: GenerationContext, summary: str, body: str) -> str:
    writer = module_header(context.grammar_name, summary)
    writer.lines(body.rstrip("\n").splitlines())
    return writer.render()


def types_module(context: GenerationContext) -> str:
    """Source of `types.py`."""
    return _static_module(
        context, "Structural types for parse trees, cursors, and nodes.", TYPES_BODY
    )


def errors_module(context: GenerationContext) -> str:
    """Source of `errors.py`."""
    return _static_module(context, "Errors raised by navigators.", ERRORS_BODY)


def utils_module(context: GenerationContext) -> str:
    """Source of `utils.py`."""
    return _static_module(context, "Helpers for finding children of a node.", UTILS_BODY)


_FIXED_EXPORTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        ".anonymous_nodes",
        (
            "ANONYMOUS_TYPES",
            "KEYWORD_TYPES",
            "OPERATOR_TYPES",
            "PUNCTUATION_TYPES",
            "KeywordType",
            "OperatorType",
            "PunctuationType",
            "categorize",
            "is_keyword",
            "is_operator",
            "is_punctuation",
        ),
    ),
    (
        ".cursor",
        (
            "CURSOR_CLASSES",
            "TRANSITIONS",
            "AnonymousCursor",
            "TreeCursor",
            "can_navigate",
            "from_tree",
        ),
    ),
    (".errors", ("NavigationErrorContext", "NavigationExpectationError")),
    (".navigator", ("NAVIGATORS", "Navigator", "create")),
    (".types", ("RawTreeCursor", "SyntaxNode", "SyntaxTree")),
    (".utils", ("find_child_by_type", "find_children_by_type", "node_text")),
)


def _import(writer: SourceWriter, module: str, names: list[str]) -> None:
    writer.line(f"from {module} import (")
    with writer.indented():
        writer.lines(f"{name}," for name in names)
    writer.line(")")


def root_exports(context: GenerationContext) -> dict[str, list[str]]:
    """Names the root module imports, keyed by the relative module they come from."""
    exports = {module: list(names) for module, names in _FIXED_EXPORTS}
    exports[".nodes"] = sorted(
        name
        for descriptor in (*context.concrete, *context.supertypes)
        for name in (
            context.names_for(descriptor.ref).class_name,
            context.names_for(descriptor.ref).guard,
        )
    )
    exports[".nodes.anonymous"] = sorted(
        name
        for descriptor in context.anonymous
        for name in (
            context.names_for(descriptor.ref).class_name,
            context.names_for(descriptor.ref).guard,
        )
    )
    return dict(sorted(exports.items()))


def namespace_alias(context: GenerationContext, taken: set[str]) -> str | None:
    """The module-level alias for the namespace, if it can be a Python name."""
    namespace = context.namespace
    if not is_identifier(namespace) or keyword.iskeyword(namespace) or namespace in taken:
        return None
    return namespace


def root_module(context: GenerationContext) -> str:
    """Source of the SDK's `__init__.py`.

    Re-exports the public names of every module, records the namespace and
    grammar name, and, when the namespace is a valid identifier, binds the
    package to that name so `from <sdk> import <Namespace>` works.
    """
    exports = root_exports(context)
    exported = [
        "ARTIFACTS_DIR",
        "GRAMMAR_NAME",
        "NAMESPACE",
        "cursor",
        "navigator",
        "nodes",
        *(name for names in exports.values() for name in names),
    ]
    alias = namespace_alias(context, set(exported))
    writer = module_header(
        context.grammar_name, f"Typed traversal SDK for the {context.grammar_name} grammar."
    )
    if alias is not None:
        writer.line("import sys")
        writer.blank()
    writer.line("from pathlib import Path")
    writer.line("from typing import Final")
    writer.blank()
    writer.line("from . import cursor, navigator, nodes")
    for module, names in exports.items():
        if names:
            _import(writer, module, names)
    writer.blank(2)
    writer.line(f"NAMESPACE: Final = {py_str(context.namespace)}")
    writer.line(f"GRAMMAR_NAME: Final = {py_str(context.grammar_name)}")
    writer.line('ARTIFACTS_DIR: Final = Path(__file__).parent / "__artifacts__"')
    if alias is not None:
        writer.blank()
        writer.line(f"{alias} = sys.modules[__name__]")
        exported.append(alias)
    writer.blank(2)
    _import_all(writer, exported)
    return writer.render()


def _import_all(writer: SourceWriter, names: list[str]) -> None:
    writer.line("__all__ = (")
    with writer.indented():
        writer.lines(f"{py_str(name)}," for name in sorted(names))
    writer.line(")")


__all__ = (
    "ERRORS_BODY",
    "TYPES_BODY",
    "UTILS_BODY",
    "errors_module",
    "namespace_alias",
    "root_exports",
    "root_module",
    "types_module",
    "utils_module",
)
