# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""The `navigator.py` module: fluent, typed access to fields and children.

Each named, concrete node type gets a `Navigator` subclass with:

- one accessor per field, returning the field's navigator (or a list for
  `multiple` fields), plus a `<field>_or_raise` variant that raises
  `NavigationExpectationError` when the field is missing or holds an
  unexpected node type
- for each named type in its positional children, `<child>()` and
  `<child>_or_raise()`, plus `<child>_all()` when children repeat

Accessor names come from field and node type names and are made unique
within each class.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import NamedTuple

from treant.generator.context import GenerationContext
from treant.generator.source import (
    SourceWriter,
    code_span,
    module_header,
    py_str,
    tuple_literal,
    union_type,
)
from treant.grammar.node_types import ChildSpec, NodeRef, NodeTypeDescriptor
from treant.naming import accessor_name_for


NAVIGATOR_BASE = '''\
N = TypeVar("N", bound=SyntaxNode)


class Navigator(Generic[N]):
    """Fluent access to a node's fields and children.

    A navigator remembers the accessor steps that led to it from the root, so a
    failed `*_or_raise` call reports where the tree did not match the grammar.
    """

    node_type: ClassVar[str | None] = None

    def __init__(self, node: N, path: Sequence[str] = ()) -> None:
        self.node = node
        self.path = tuple(path)

    def __repr__(self) -> str:
        location = ".".join(self.path) or "<root>"
        return f"{type(self).__name__}({self.node.type!r} at {location})"

    @property
    def type(self) -> str:
        return self.node.type

    @property
    def text(self) -> str:
        """The node's source text, decoded as UTF-8."""
        return (self.node.text or b"").decode("utf-8")

    def child(self, index: int) -> Navigator[Any] | None:
        """The child at `index`, named or anonymous, or None."""
        return self._at(self.node.children, index, f"child({index})")

    def named_child(self, index: int) -> Navigator[Any] | None:
        """The named child at `index`, or None."""
        return self._at(self.node.named_children, index, f"named_child({index})")

    def child_of_type(self, type_name: str) -> Navigator[Any] | None:
        """The first named child with the given type, or None."""
        return self._child_of_type(type_name, f"child_of_type({type_name!r})")

    def children_of_type(self, type_name: str) -> list[Navigator[Any]]:
        """Every named child with the given type, in order."""
        return self._children_of_type(type_name, f"children_of_type({type_name!r})")

    def _step(self, step: str) -> tuple[str, ...]:
        return (*self.path, step)

    def _at(self, children: Sequence[SyntaxNode], index: int, step: str) -> Navigator[Any] | None:
        if not -len(children) <= index < len(children):
            return None
        return wrap(children[index], self._step(step))

    def _field(self, name: str, step: str) -> Any:
        child = self.node.child_by_field_name(name)
        return None if child is None else wrap(child, self._step(step))

    def _field_or_raise(self, name: str, step: str, expected: tuple[str, ...]) -> Any:
        child = self.node.child_by_field_name(name)
        if child is None or child.type not in expected:
            actual = None if child is None else child.type
            raise NavigationExpectationError(expected, actual, self._step(step))
        return wrap(child, self._step(step))

    def _fields(self, name: str, step: str) -> list[Any]:
        children = self.node.children_by_field_name(name)
        return [wrap(child, self._step(f"{step}[{i}]")) for i, child in enumerate(children)]

    def _fields_or_raise(self, name: str, step: str, expected: tuple[str, ...]) -> list[Any]:
        children = self.node.children_by_field_name(name)
        if not children:
            raise NavigationExpectationError(expected, None, self._step(step))
        for i, child in enumerate(children):
            if child.type not in expected:
                raise NavigationExpectationError(expected, child.type, self._step(f"{step}[{i}]"))
        return [wrap(child, self._step(f"{step}[{i}]")) for i, child in enumerate(children)]

    def _child_of_type(self, type_name: str, step: str) -> Any:
        for child in self.node.named_children:
            if child.type == type_name:
                return wrap(child, self._step(step))
        return None

    def _child_of_type_or_raise(self, type_name: str, step: str) -> Any:
        found = self._child_of_type(type_name, step)
        if found is None:
            raise NavigationExpectationError((type_name,), None, self._step(step))
        return found

    def _children_of_type(self, type_name: str, step: str) -> list[Any]:
        matches = [child for child in self.node.named_children if child.type == type_name]
        return [wrap(child, self._step(f"{step}[{i}]")) for i, child in enumerate(matches)]
'''

NAVIGATOR_WRAP = '''\
def wrap(node: SyntaxNode, path: Sequence[str] = ()) -> Navigator[Any]:
    """Wrap a node in the navigator for its type.

    Anonymous nodes and node types the grammar does not declare get the base
    `Navigator`.
    """
    cls = NAVIGATORS.get(node.type, Navigator) if node.is_named else Navigator
    return cls(node, path)
'''

RESERVED_ACCESSORS = frozenset({
    "_at",
    "_child_of_type",
    "_child_of_type_or_raise",
    "_children_of_type",
    "_field",
    "_field_or_raise",
    "_fields",
    "_fields_or_raise",
    "_step",
    "child",
    "child_of_type",
    "children",
    "children_of_type",
    "named_child",
    "node",
    "node_type",
    "path",
    "text",
    "type",
    "wrap",
})
"""Attributes of the base `Navigator` that generated accessors must not shadow."""


class Accessor(NamedTuple):
    """One generated accessor family on a navigator class."""

    stem: str
    """Method name of the plain accessor; the variants add `_or_raise` and `_all`."""
    field: str | None
    """Field name for field accessors; None for child-type accessors."""
    child_type: str | None
    """Node type for child-type accessors; None for field accessors."""
    spec: ChildSpec
    targets: tuple[NodeRef, ...]


def _allocate(base: str, tag: str, suffixes: Iterable[str], taken: set[str]) -> str:
    suffixes = tuple(suffixes)
    candidates = [base, f"{base}_{tag}"]
    counter = 2
    while True:
        for stem in candidates:
            names = {f"{stem}{suffix}" for suffix in suffixes}
            if not names & taken:
                taken.update(names)
                return stem
        candidates = [f"{base}_{tag}_{counter}"]
        counter += 1


def plan_accessors(context: GenerationContext, descriptor: NodeTypeDescriptor) -> list[Accessor]:
    """Accessor families for one node type: fields sorted by name, then child types."""
    taken = set(RESERVED_ACCESSORS)
    accessors: list[Accessor] = []
    for name in sorted(descriptor.fields):
        spec = descriptor.fields[name]
        stem = _allocate(accessor_name_for(name), "field", ("", "_or_raise"), taken)
        targets = tuple(
            sorted(context.catalogue.expand_all(spec.refs), key=lambda r: (r.type, not r.named))
        )
        accessors.append(Accessor(stem, name, None, spec, targets))
    if descriptor.children is not None:
        spec = descriptor.children
        suffixes = ("", "_or_raise", "_all") if spec.multiple else ("", "_or_raise")
        for ref in sorted(context.catalogue.expand_all(spec.refs), key=lambda r: r.type):
            if not ref.named:
                continue
            stem = _allocate(accessor_name_for(ref.type), "child", suffixes, taken)
            accessors.append(Accessor(stem, None, ref.type, spec, (ref,)))
    return accessors


def navigator_class_name(context: GenerationContext, ref: NodeRef) -> str:
    """The navigator class for a node type; anonymous nodes get the base class."""
    if not ref.named:
        return "Navigator[Any]"
    return f"{context.names_for(ref).pascal}Navigator"


def _expected(targets: Sequence[NodeRef]) -> str:
    return tuple_literal(py_str(name) for name in dict.fromkeys(ref.type for ref in targets))


def _field_accessor(writer: SourceWriter, context: GenerationContext, accessor: Accessor) -> None:
    stem, field = accessor.stem, accessor.field or ""
    step = py_str(f"{stem}()")
    result = (
        union_type(navigator_class_name(context, ref) for ref in accessor.targets)
        if accessor.targets
        else "Navigator[Any]"
    )
    expected = _expected(accessor.targets)
    span = code_span(field)
    writer.blank()
    if accessor.spec.multiple:
        with writer.block(f"def {stem}(self) -> list[{result}]"):
            writer.docstring(f"Every node in the {span} field.")
            writer.line(f"return self._fields({py_str(field)}, {step})")
        writer.blank()
        with writer.block(f"def {stem}_or_raise(self) -> list[{result}]"):
            writer.docstring(
                f"Every node in the {span} field; raises NavigationExpectationError "
                "if there are none or one has an unexpected type."
            )
            writer.line(f"return self._fields_or_raise({py_str(field)}, {step}, {expected})")
        return
    with writer.block(f"def {stem}(self) -> {union_type([result], optional=True)}"):
        writer.docstring(f"The {span} field, or None.")
        writer.line(f"return self._field({py_str(field)}, {step})")
    writer.blank()
    with writer.block(f"def {stem}_or_raise(self) -> {result}"):
        writer.docstring(
            f"The {span} field; raises NavigationExpectationError "
            "if it is missing or has an unexpected type."
        )
        writer.line(f"return self._field_or_raise({py_str(field)}, {step}, {expected})")


def _child_accessor(writer: SourceWriter, context: GenerationContext, accessor: Accessor) -> None:
    stem, child_type = accessor.stem, accessor.child_type or ""
    step = py_str(f"{stem}()")
    result = navigator_class_name(context, accessor.targets[0])
    span = code_span(child_type)
    writer.blank()
    with writer.block(f"def {stem}(self) -> {result} | None"):
        writer.docstring(f"The first {span} child, or None.")
        writer.line(f"return self._child_of_type({py_str(child_type)}, {step})")
    writer.blank()
    with writer.block(f"def {stem}_or_raise(self) -> {result}"):
        writer.docstring(f"The first {span} child; raises NavigationExpectationError if absent.")
        writer.line(f"return self._child_of_type_or_raise({py_str(child_type)}, {step})")
    if accessor.spec.multiple:
        writer.blank()
        with writer.block(f"def {stem}_all(self) -> list[{result}]"):
            writer.docstring(f"Every {span} child, in order.")
            writer.line(f"return self._children_of_type({py_str(child_type)}, {step})")


def _navigator_class(
    writer: SourceWriter, context: GenerationContext, descriptor: NodeTypeDescriptor
) -> str:
    names = context.names_for(descriptor.ref)
    class_name = navigator_class_name(context, descriptor.ref)
    with writer.block(f"class {class_name}(Navigator[{names.class_name}])"):
        writer.docstring(f"Navigates a node of type {code_span(descriptor.type)}.")
        writer.blank()
        writer.line(f"node_type: ClassVar[str | None] = {py_str(descriptor.type)}")
        for accessor in plan_accessors(context, descriptor):
            if accessor.field is not None:
                _field_accessor(writer, context, accessor)
            else:
                _child_accessor(writer, context, accessor)
    return class_name


def navigator_module(context: GenerationContext) -> str:
    """Source of `navigator.py`."""
    writer = module_header(
        context.grammar_name,
        f"Typed navigators over {context.grammar_name} parse trees.\n"
        "Start with `create(tree)` and follow fields and children by name.",
    )
    writer.line("from collections.abc import Mapping, Sequence")
    writer.line("from types import MappingProxyType")
    writer.line("from typing import Any, ClassVar, Final, Generic, TypeVar")
    writer.blank()
    writer.line("from .errors import NavigationExpectationError")
    for descriptor in context.concrete:
        names = context.names_for(descriptor.ref)
        writer.line(f"from .nodes.{names.module} import {names.class_name}")
    writer.line("from .types import SyntaxNode, SyntaxTree")
    writer.blank(2)
    writer.lines(NAVIGATOR_BASE.rstrip("\n").splitlines())
    registry: list[tuple[str, str]] = []
    for descriptor in context.concrete:
        writer.blank(2)
        registry.append((descriptor.type, _navigator_class(writer, context, descriptor)))
    writer.blank(2)
    if registry:
        writer.line("NAVIGATORS: Final[Mapping[str, type[Navigator[Any]]]] = MappingProxyType(")
        with writer.indented():
            writer.line("{")
            with writer.indented():
                writer.lines(f"{py_str(node_type)}: {cls}," for node_type, cls in registry)
            writer.line("}")
        writer.line(")")
    else:
        writer.line("NAVIGATORS: Final[Mapping[str, type[Navigator[Any]]]] = MappingProxyType({})")
    root = context.root_type
    root_literal = "None" if root is None else py_str(root)
    writer.line(f"ROOT_TYPE: Final[str | None] = {root_literal}")
    writer.blank(2)
    writer.lines(NAVIGATOR_WRAP.rstrip("\n").splitlines())
    writer.blank(2)
    result = (
        "Navigator[Any]" if root is None else navigator_class_name(context, NodeRef(root, True))
    )
    with writer.block(f"def create(tree: SyntaxTree) -> {result}"):
        if root is None:
            writer.docstring("A navigator on the root of a parse tree.")
        else:
            writer.docstring(
                "A navigator on the root of a parse tree.\n"
                "Raises:\n"
                "    NavigationExpectationError: If the root node is not of type "
                f"{code_span(root)}."
            )
        writer.line("root = tree.root_node")
        with writer.block("if ROOT_TYPE is not None and root.type != ROOT_TYPE"):
            writer.line("raise NavigationExpectationError((ROOT_TYPE,), root.type, ())")
        writer.line("return wrap(root)  # type: ignore[return-value]")
    exported = sorted(["NAVIGATORS", "ROOT_TYPE", "Navigator", "create", "wrap"])
    exported.extend(sorted(cls for _, cls in registry))
    writer.blank(2)
    writer.line("__all__ = (")
    with writer.indented():
        writer.lines(f"{py_str(name)}," for name in exported)
    writer.line(")")
    return writer.render()


__all__ = (
    "NAVIGATOR_BASE",
    "NAVIGATOR_WRAP",
    "RESERVED_ACCESSORS",
    "Accessor",
    "navigator_class_name",
    "navigator_module",
    "plan_accessors",
)
