# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Per-node-type modules: `nodes/<type>.py` and `nodes/anonymous/<type>.py`.

Each concrete node type gets a `Protocol` narrowing `type` (and `is_named`) to
literals plus a `TypeGuard` function. Supertypes get a union alias of their
concrete members' protocols and a guard that accepts any of them.
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
    tuple_literal,
    union_type,
)
from treant.grammar.node_types import NodeRef, NodeTypeDescriptor


type Emitted = tuple[str, str]


def _exports(writer: SourceWriter, names: list[str]) -> None:
    writer.blank(2)
    writer.line(f"__all__ = {tuple_literal(py_str(name) for name in names)}")


def _protocol(writer: SourceWriter, class_name: str, node_type: str, *, named: bool) -> None:
    with writer.block(f"class {class_name}(_SyntaxNode, Protocol)"):
        writer.docstring(
            f"A node of type {code_span(node_type)}."
            if named
            else f"An anonymous {code_span(node_type)} token."
        )
        writer.blank()
        writer.line("@property")
        writer.line(f"def type(self) -> Literal[{py_str(node_type)}]: ...")
        writer.blank()
        writer.line("@property")
        writer.line(f"def is_named(self) -> Literal[{named}]: ...")


def concrete_module(context: GenerationContext, descriptor: NodeTypeDescriptor) -> str:
    """Source of the module for one named, concrete node type."""
    names = context.names_for(descriptor.ref)
    writer = module_header(context.grammar_name, f"The {code_span(descriptor.type)} node type.")
    writer.line("from typing import Final, Literal, Protocol, TypeGuard")
    writer.blank()
    writer.line("from ..types import SyntaxNode as _SyntaxNode")
    writer.blank(2)
    writer.line(f"TYPE: Final = {py_str(descriptor.type)}")
    writer.blank(2)
    _protocol(writer, names.class_name, descriptor.type, named=True)
    writer.blank(2)
    with writer.block(
        f"def {names.guard}(node: _SyntaxNode | None) -> TypeGuard[{names.class_name}]"
    ):
        writer.docstring(f"Whether `node` is a node of type {code_span(descriptor.type)}.")
        writer.line("return node is not None and node.is_named and node.type == TYPE")
    _exports(writer, ["TYPE", names.class_name, names.guard])
    return writer.render()


def supertype_module(context: GenerationContext, descriptor: NodeTypeDescriptor) -> str:
    """Source of the module for one supertype: a union of its concrete members."""
    names = context.names_for(descriptor.ref)
    members = context.concrete_members(descriptor.ref)
    writer = module_header(
        context.grammar_name,
        f"The {code_span(descriptor.type)} supertype: "
        f"any of its {len(members)} concrete node types.",
    )
    writer.line("from typing import Final, Never, TypeAlias, TypeGuard")
    writer.blank()
    writer.line("from ..types import SyntaxNode as _SyntaxNode")
    imports = sorted(
        (_relative_import(context, member), context.names_for(member).class_name)
        for member in members
    )
    for module, class_name in imports:
        writer.line(f"from {module} import {class_name}")
    writer.blank(2)
    writer.line(f"TYPES: Final = {frozenset_literal(dict.fromkeys(m.type for m in members))}")
    pairs = ", ".join(f"({py_str(m.type)}, {m.named})" for m in members)
    writer.line(f"_MEMBERS: Final = {f'frozenset({{{pairs}}})' if pairs else 'frozenset()'}")
    writer.blank()
    writer.line(f"{names.class_name}: TypeAlias = {union_type(c for _, c in imports)}")
    writer.blank(2)
    with writer.block(
        f"def {names.guard}(node: _SyntaxNode | None) -> TypeGuard[{names.class_name}]"
    ):
        writer.docstring(
            f"Whether `node` is any member of the {code_span(descriptor.type)} supertype."
        )
        writer.line("return node is not None and (node.type, node.is_named) in _MEMBERS")
    _exports(writer, ["TYPES", names.class_name, names.guard])
    return writer.render()


def anonymous_module(context: GenerationContext, descriptor: NodeTypeDescriptor) -> str:
    """Source of the module for one anonymous node type."""
    names = context.names_for(descriptor.ref)
    writer = module_header(
        context.grammar_name, f"The anonymous {code_span(descriptor.type)} token."
    )
    writer.line("from typing import Final, Literal, Protocol, TypeGuard")
    writer.blank()
    writer.line("from ...types import SyntaxNode as _SyntaxNode")
    writer.blank(2)
    writer.line(f"TYPE: Final = {py_str(descriptor.type)}")
    writer.blank(2)
    _protocol(writer, names.class_name, descriptor.type, named=False)
    writer.blank(2)
    with writer.block(
        f"def {names.guard}(node: _SyntaxNode | None) -> TypeGuard[{names.class_name}]"
    ):
        writer.docstring(f"Whether `node` is the anonymous {code_span(descriptor.type)} token.")
        writer.line("return node is not None and not node.is_named and node.type == TYPE")
    _exports(writer, ["TYPE", names.class_name, names.guard])
    return writer.render()


def _relative_import(context: GenerationContext, ref: NodeRef) -> str:
    # relative to a module inside `nodes/`
    return f".{context.node_module(ref)}"


def _barrel(
    context: GenerationContext,
    summary: str,
    descriptors: list[NodeTypeDescriptor],
    constants: list[tuple[str, list[str]]],
) -> str:
    writer = module_header(context.grammar_name, summary)
    writer.line("from typing import Final")
    writer.blank()
    exported: list[str] = []
    for descriptor in sorted(descriptors, key=lambda d: context.names_for(d.ref).module):
        names = context.names_for(descriptor.ref)
        writer.line(f"from .{names.module} import {names.class_name}, {names.guard}")
        exported.extend((names.class_name, names.guard))
    writer.blank(2)
    for name, values in constants:
        writer.line(f"{name}: Final = {frozenset_literal(values)}")
        exported.append(name)
    _exports(writer, sorted(exported))
    return writer.render()


def nodes_barrel(context: GenerationContext) -> str:
    """Source of `nodes/__init__.py`: every named node type's protocol and guard."""
    return _barrel(
        context,
        f"Named node types of the {context.grammar_name} grammar.",
        [*context.concrete, *context.supertypes],
        [
            ("NODE_TYPES", [d.type for d in context.concrete]),
            ("SUPERTYPES", [d.type for d in context.supertypes]),
        ],
    )


def anonymous_barrel(context: GenerationContext) -> str:
    """Source of `nodes/anonymous/__init__.py`."""
    return _barrel(
        context,
        f"Anonymous node types (literal tokens) of the {context.grammar_name} grammar.",
        list(context.anonymous),
        [("ANONYMOUS_TYPES", list(dict.fromkeys(d.type for d in context.anonymous)))],
    )


def emit_node_modules(context: GenerationContext) -> Iterator[Emitted]:
    """Yield `(path, source)` for every module under `nodes/`."""
    for descriptor in context.concrete:
        yield f"nodes/{context.names_for(descriptor.ref).module}.py", concrete_module(
            context, descriptor
        )
    for descriptor in context.supertypes:
        yield f"nodes/{context.names_for(descriptor.ref).module}.py", supertype_module(
            context, descriptor
        )
    for descriptor in context.anonymous:
        yield f"nodes/anonymous/{context.names_for(descriptor.ref).module}.py", anonymous_module(
            context, descriptor
        )
    yield "nodes/__init__.py", nodes_barrel(context)
    yield "nodes/anonymous/__init__.py", anonymous_barrel(context)


__all__ = (
    "anonymous_barrel",
    "anonymous_module",
    "concrete_module",
    "emit_node_modules",
    "nodes_barrel",
    "supertype_module",
)
