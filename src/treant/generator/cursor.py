# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""The `cursor/` package: transition tables and typed cursor classes.

The navigation graph is emitted twice. `cursor/maps.py` holds it as plain data
for runtime checks (`can_navigate`), and `cursor/conditionals.py` encodes it in
the return annotations of one cursor class per node type, so a type checker
knows that `SourceFileCursor.goto_first_child()` can only produce, say, an
`ExpressionCursor` or None.
"""

from __future__ import annotations

from collections.abc import Iterator

from treant.generator.context import GenerationContext
from treant.generator.source import (
    SourceWriter,
    code_span,
    frozenset_literal,
    module_header,
    py_str,
    py_value,
    tuple_literal,
    union_type,
)
from treant.grammar.navigation import Direction, sort_key
from treant.grammar.node_types import NodeRef


type Emitted = tuple[str, str]

CURSOR_BODY = '''\
from typing import ClassVar

from ..types import RawTreeCursor, SyntaxNode, SyntaxTree


_REGISTRY: dict[str, type[TreeCursor]] = {}


class TreeCursor:
    """A cursor positioned on one node of a parse tree.

    Moves never change the cursor they are called on: each `goto_*` method
    moves a copy of the underlying cursor and returns a new cursor of the class
    registered for the node type it lands on, or None if there is no such node.
    """

    node_type: ClassVar[str | None] = None

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        if cls.node_type is not None:
            _REGISTRY[cls.node_type] = cls

    def __init__(self, raw: RawTreeCursor) -> None:
        self._raw = raw

    def __repr__(self) -> str:
        node = self._raw.node
        node_type = None if node is None else node.type
        return f"{type(self).__name__}({node_type!r})"

    @property
    def raw(self) -> RawTreeCursor:
        """The wrapped cursor."""
        return self._raw

    @property
    def node(self) -> SyntaxNode:
        """The node under the cursor."""
        node = self._raw.node
        if node is None:
            raise ValueError("cursor is not positioned on a node")
        return node

    @property
    def type(self) -> str:
        return self.node.type

    @property
    def is_named(self) -> bool:
        return self.node.is_named

    @property
    def field_name(self) -> str | None:
        """The field the current node is in, if any."""
        return self._raw.field_name

    def _move(self, step: str) -> TreeCursor | None:
        raw = self._raw.copy()
        if not getattr(raw, step)():
            return None
        return wrap(raw)

    def goto_first_child(self) -> TreeCursor | None:
        return self._move("goto_first_child")

    def goto_next_sibling(self) -> TreeCursor | None:
        return self._move("goto_next_sibling")

    def goto_previous_sibling(self) -> TreeCursor | None:
        return self._move("goto_previous_sibling")

    def goto_parent(self) -> TreeCursor | None:
        return self._move("goto_parent")


class AnonymousCursor(TreeCursor):
    """A cursor positioned on an anonymous token."""


def cursor_class(node: SyntaxNode | None) -> type[TreeCursor]:
    """The cursor class for a node: its registered class, AnonymousCursor, or TreeCursor."""
    if node is None:
        return TreeCursor
    if not node.is_named:
        return AnonymousCursor
    return _REGISTRY.get(node.type, TreeCursor)


def wrap(raw: RawTreeCursor) -> TreeCursor:
    """Wrap a raw cursor in the class for the node it is on."""
    return cursor_class(raw.node)(raw)


def from_tree(tree: SyntaxTree) -> TreeCursor:
    """A typed cursor on the root of a parse tree."""
    return wrap(tree.walk())


__all__ = ("AnonymousCursor", "TreeCursor", "cursor_class", "from_tree", "wrap")
'''

_TABLE_NAMES = {
    Direction.FIRST_CHILD: "FIRST_CHILD",
    Direction.NEXT_SIBLING: "NEXT_SIBLING",
    Direction.PREVIOUS_SIBLING: "PREVIOUS_SIBLING",
    Direction.PARENT: "PARENT",
}


def _mapping(writer: SourceWriter, header: str, rows: list[tuple[str, str]]) -> None:
    if not rows:
        writer.line(f"{header} = MappingProxyType({{}})")
        return
    writer.line(f"{header} = MappingProxyType(")
    with writer.indented():
        writer.line("{")
        with writer.indented():
            writer.lines(f"{key}: {value}," for key, value in rows)
        writer.line("}")
    writer.line(")")


def maps_module(context: GenerationContext) -> str:
    """Source of `cursor/maps.py`: the navigation graph and `SEQ` child sequences as data."""
    table = context.graph.as_table()
    writer = module_header(
        context.grammar_name,
        "Which node types each cursor step can reach, as data.\n"
        "Each table maps a named node type to the node types (None for no node) "
        "a step in that direction can land on.",
    )
    writer.line("from collections.abc import Mapping")
    writer.line("from types import MappingProxyType")
    writer.line("from typing import Final")
    writer.blank(2)
    for direction, name in _TABLE_NAMES.items():
        rows = [
            (py_str(node_type), frozenset_literal(targets))
            for node_type, targets in table[direction.value].items()
        ]
        _mapping(writer, f"{name}: Final[Mapping[str, frozenset[str | None]]]", rows)
        writer.blank()
    _mapping(
        writer,
        "TRANSITIONS: Final[Mapping[str, Mapping[str, frozenset[str | None]]]]",
        [(py_str(direction.value), name) for direction, name in _TABLE_NAMES.items()],
    )
    writer.blank()
    sequences = [
        (
            py_str(rule),
            tuple_literal(
                f"({py_str(m.type)}, {m.optional}, {py_value(m.field)})" for m in members
            ),
        )
        for rule, members in context.sequences.items()
    ]
    _mapping(
        writer,
        "SEQUENCES: Final[Mapping[str, tuple[tuple[str, bool, str | None], ...]]]",
        sequences,
    )
    writer.blank(2)
    with writer.block(
        "def can_navigate(from_type: str, to_type: str | None, direction: str) -> bool"
    ):
        writer.docstring(
            "Whether a step in `direction` from a `from_type` node can land on `to_type`.\n"
            "`to_type` None asks whether the step can find no node at all. Unknown "
            "`from_type`s are not navigable; unknown directions raise KeyError."
        )
        writer.line("row = TRANSITIONS[direction].get(from_type)")
        writer.line("return row is not None and to_type in row")
    writer.blank(2)
    writer.line(
        '__all__ = ("FIRST_CHILD", "NEXT_SIBLING", "PARENT", "PREVIOUS_SIBLING", '
        '"SEQUENCES", "TRANSITIONS", "can_navigate")'
    )
    return writer.render()


def cursor_module(context: GenerationContext) -> str:
    """Source of `cursor/cursor.py`, the grammar-independent cursor runtime."""
    writer = module_header(context.grammar_name, "Typed wrappers around a raw tree cursor.")
    writer.lines(CURSOR_BODY.rstrip("\n").splitlines())
    return writer.render()


def cursor_class_name(context: GenerationContext, ref: NodeRef) -> str:
    """The cursor class a step lands in for a node type."""
    if not ref.named:
        return "AnonymousCursor"
    return f"{context.names_for(ref).pascal}Cursor"


def _return_annotation(context: GenerationContext, targets: list[NodeRef | None]) -> str:
    classes = [cursor_class_name(context, ref) for ref in targets if ref is not None]
    return union_type(classes, optional=None in targets)


def conditionals_module(context: GenerationContext) -> str:
    """Source of `cursor/conditionals.py`: one cursor class per named, concrete node type."""
    writer = module_header(
        context.grammar_name,
        "Cursor classes whose moves are typed by the grammar.\n"
        "Each `goto_*` return annotation lists exactly the cursor classes that "
        "step can produce from that node type.",
    )
    writer.line("from types import MappingProxyType")
    writer.line("from typing import ClassVar, Final")
    writer.blank()
    for descriptor in context.concrete:
        names = context.names_for(descriptor.ref)
        writer.line(f"from ..nodes.{names.module} import {names.class_name}")
    writer.line("from .cursor import AnonymousCursor, TreeCursor, wrap")
    registry: list[tuple[str, str]] = []
    for descriptor in context.concrete:
        names = context.names_for(descriptor.ref)
        class_name = cursor_class_name(context, descriptor.ref)
        registry.append((py_str(descriptor.type), class_name))
        writer.blank(2)
        with writer.block(f"class {class_name}(TreeCursor)"):
            writer.docstring(f"A cursor on a node of type {code_span(descriptor.type)}.")
            writer.blank()
            writer.line(f"node_type: ClassVar[str | None] = {py_str(descriptor.type)}")
            writer.blank()
            writer.line("@property")
            with writer.block(f"def node(self) -> {names.class_name}"):
                writer.line("return super().node  # type: ignore[return-value]")
            for direction in Direction:
                targets = sorted(context.graph.reachable(descriptor.ref, direction), key=sort_key)
                writer.blank()
                annotation = _return_annotation(context, targets)
                with writer.block(f"def {direction.cursor_method}(self) -> {annotation}"):
                    writer.line(
                        f"return self._move({py_str(direction.cursor_method)})"
                        "  # type: ignore[return-value]"
                    )
    writer.blank(2)
    _mapping(writer, "CURSOR_CLASSES: Final[MappingProxyType[str, type[TreeCursor]]]", registry)
    writer.blank(2)
    exported = sorted(["CURSOR_CLASSES", "wrap", *(class_name for _, class_name in registry)])
    writer.line(f"__all__ = {tuple_literal(py_str(name) for name in exported)}")
    return writer.render()


def cursor_barrel(context: GenerationContext) -> str:
    """Source of `cursor/__init__.py`. Importing it registers every cursor class."""
    classes = [cursor_class_name(context, d.ref) for d in context.concrete]
    writer = module_header(
        context.grammar_name, f"Typed cursors for the {context.grammar_name} grammar."
    )
    imports = {
        ".conditionals": sorted(["CURSOR_CLASSES", *classes]),
        ".cursor": ["AnonymousCursor", "TreeCursor", "cursor_class", "from_tree", "wrap"],
        ".maps": [
            "FIRST_CHILD",
            "NEXT_SIBLING",
            "PARENT",
            "PREVIOUS_SIBLING",
            "SEQUENCES",
            "TRANSITIONS",
            "can_navigate",
        ],
    }
    exported: list[str] = []
    for module, names in imports.items():
        writer.line(f"from {module} import (")
        with writer.indented():
            writer.lines(f"{name}," for name in names)
        writer.line(")")
        exported.extend(names)
    writer.blank(2)
    writer.line(f"__all__ = {tuple_literal(py_str(name) for name in sorted(exported))}")
    return writer.render()


def emit_cursor_modules(context: GenerationContext) -> Iterator[Emitted]:
    """Yield `(path, source)` for every module under `cursor/`."""
    yield "cursor/__init__.py", cursor_barrel(context)
    yield "cursor/conditionals.py", conditionals_module(context)
    yield "cursor/cursor.py", cursor_module(context)
    yield "cursor/maps.py", maps_module(context)


__all__ = (
    "CURSOR_BODY",
    "conditionals_module",
    "cursor_barrel",
    "cursor_class_name",
    "cursor_module",
    "emit_cursor_modules",
    "maps_module",
)
