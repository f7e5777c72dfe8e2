# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""The node-type catalogue (`node-types.json`).

`node-types.json` is a flat array of node type objects:

- Always: `type` (str), `named` (bool)
- Sometimes: `root` (bool), `extra` (bool), `fields` (object), `children`
  (object), `subtypes` (array)

`fields` maps a field name to a child entry (`multiple`, `required`, `types`);
`children` is a single child entry for the unnamed positional children.
A descriptor with `subtypes` is a *supertype*: an abstract grouping such as
`expression` that never appears in a parse tree. Wherever a supertype is
referenced as a child type it stands for the union of its concrete subtypes,
which may themselves be supertypes.

Node types are identified by `NodeRef`, the `(type, named)` pair. The same
`type` string can name both a named and an anonymous node (e.g. an aliased
keyword), so the name alone is not a key.
"""

from __future__ import annotations

import logging

from collections.abc import Iterable, Iterator, Sequence
from functools import cached_property
from typing import Annotated, Any, NamedTuple

from pydantic import ConfigDict, Field, TypeAdapter, ValidationError
from pydantic_core import from_json

from treant._common import BasedModel, BaseEnum
from treant.exceptions import GrammarError, MissingNodeTypeError


logger = logging.getLogger(__name__)


class NodeRef(NamedTuple):
    """A node type's identity: its name and whether it is named."""

    type: str
    named: bool

    def __str__(self) -> str:
        return self.type if self.named else repr(self.type)


class EntryKind(BaseEnum):
    """Where a child entry comes from in a descriptor."""

    FIELD = "field"
    CHILDREN = "children"


class _NodeTypeModel(BasedModel):
    # anonymous node types can be whitespace ("\n") so nothing is stripped
    model_config = BasedModel.model_config | ConfigDict(
        frozen=True, extra="ignore", str_strip_whitespace=False
    )


class TypeRef(_NodeTypeModel):
    """A reference to a node type from a child entry or a subtype list."""

    type: Annotated[str, Field(description="The referenced node type's name.")]
    named: Annotated[bool, Field(description="Whether the referenced node type is named.")]

    @property
    def ref(self) -> NodeRef:
        """This reference as a `NodeRef`."""
        return NodeRef(self.type, self.named)


class ChildSpec(_NodeTypeModel):
    """The node types allowed in one field, or in a node's positional children.

    | required | multiple | meaning |
    |----------|----------|---------|
    | False | False | 0 or 1 |
    | False | True | 0 or more |
    | True | False | exactly 1 |
    | True | True | 1 or more |
    """

    multiple: Annotated[bool, Field(description="Whether more than one child may appear.")] = (
        False
    )
    required: Annotated[bool, Field(description="Whether at least one child must appear.")] = (
        False
    )
    types: Annotated[
        tuple[TypeRef, ...], Field(description="The node types this entry accepts.")
    ] = ()

    @property
    def refs(self) -> tuple[NodeRef, ...]:
        """The accepted types as `NodeRef`s, in declared order."""
        return tuple(t.ref for t in self.types)


class ChildEntry(NamedTuple):
    """A child entry of a descriptor together with where it was declared."""

    kind: EntryKind
    name: str | None
    spec: ChildSpec


class NodeTypeDescriptor(_NodeTypeModel):
    """One element of `node-types.json`."""

    type: Annotated[str, Field(description="The node type's name.")]
    named: Annotated[
        bool, Field(description="Whether the node type comes from a named grammar rule.")
    ]
    root: Annotated[
        bool, Field(description="Whether this is the root node type of every parse tree.")
    ] = False
    extra: Annotated[
        bool, Field(description="Whether this node can appear anywhere (comments, usually).")
    ] = False
    fields: Annotated[
        dict[str, ChildSpec],
        Field(default_factory=dict, description="Child entries keyed by field name."),
    ]
    children: Annotated[
        ChildSpec | None, Field(description="Positional (unnamed-field) children.")
    ] = None
    subtypes: Annotated[
        tuple[TypeRef, ...] | None,
        Field(description="Concrete (or nested supertype) members, for supertypes only."),
    ] = None

    @property
    def ref(self) -> NodeRef:
        """This descriptor's identity."""
        return NodeRef(self.type, self.named)

    @property
    def is_supertype(self) -> bool:
        """Whether this descriptor is an abstract grouping of subtypes."""
        return self.subtypes is not None

    @property
    def has_entries(self) -> bool:
        """Whether the node declares any fields or children."""
        return bool(self.fields) or self.children is not None

    def entries(self) -> Iterator[ChildEntry]:
        """Yield every child entry: fields sorted by name, then the positional children."""
        for name in sorted(self.fields):
            yield ChildEntry(EntryKind.FIELD, name, self.fields[name])
        if self.children is not None:
            yield ChildEntry(EntryKind.CHILDREN, None, self.children)

    def referenced(self) -> Iterator[NodeRef]:
        """Yield every node type this descriptor references, in declaration order."""
        for entry in self.entries():
            yield from entry.spec.refs
        if self.subtypes:
            yield from (t.ref for t in self.subtypes)


_DESCRIPTORS_ADAPTER: TypeAdapter[list[NodeTypeDescriptor]] = TypeAdapter(
    list[NodeTypeDescriptor]
)


class NodeTypeCatalogue:
    """A validated, indexed `node-types.json`.

    Construction checks the catalogue for internal consistency: every node type
    referenced by a field, children entry, or subtype list must itself be
    declared. All dangling references are collected and raised together as one
    `MissingNodeTypeError`.
    """

    def __init__(self, descriptors: Iterable[NodeTypeDescriptor], *, validate: bool = True) -> None:
        """Index the descriptors.

        Args:
            descriptors: The catalogue's node type descriptors
            validate: Check for dangling references (default: True)

        Raises:
            GrammarError: If two descriptors share the same `(type, named)` pair.
            MissingNodeTypeError: If any referenced node type is undeclared.
        """
        self._descriptors: tuple[NodeTypeDescriptor, ...] = tuple(descriptors)
        self._index: dict[NodeRef, NodeTypeDescriptor] = {}
        for descriptor in self._descriptors:
            if descriptor.ref in self._index:
                raise GrammarError(
                    f"Node type {descriptor.ref} is declared more than once in node-types.json",
                    details={"node_type": descriptor.type, "named": descriptor.named},
                )
            self._index[descriptor.ref] = descriptor
        if validate:
            self.validate()
        logger.debug(
            "Indexed %d node types (%d named, %d supertypes)",
            len(self._descriptors),
            len(self.named_types),
            len(self.supertypes),
        )

    @classmethod
    def from_list(cls, data: Sequence[Any]) -> NodeTypeCatalogue:
        """Build a catalogue from decoded `node-types.json` data."""
        try:
            descriptors = _DESCRIPTORS_ADAPTER.validate_python(data)
        except ValidationError as e:
            raise GrammarError(
                f"Malformed node-types.json: {e.error_count()} validation error(s)",
                details={"errors": e.errors(include_url=False)},
            ) from e
        return cls(descriptors)

    @classmethod
    def from_json(cls, data: bytes | str) -> NodeTypeCatalogue:
        """Build a catalogue from `node-types.json` text."""
        try:
            decoded = from_json(data)
        except ValueError as e:
            raise GrammarError(f"node-types.json is not valid JSON: {e}") from e
        if not isinstance(decoded, list):
            raise GrammarError("node-types.json must contain a JSON array")
        return cls.from_list(decoded)

    def validate(self) -> None:
        """Check that every referenced node type is declared.

        Raises:
            MissingNodeTypeError: Listing every undeclared node type at once.
        """
        referenced_by: dict[str, list[str]] = {}
        for descriptor in self._descriptors:
            for ref in descriptor.referenced():
                if ref not in self._index:
                    users = referenced_by.setdefault(ref.type, [])
                    if descriptor.type not in users:
                        users.append(descriptor.type)
        if referenced_by:
            raise MissingNodeTypeError(referenced_by.keys(), referenced_by=referenced_by)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[NodeTypeDescriptor]:
        return iter(self._descriptors)

    def __contains__(self, ref: object) -> bool:
        return ref in self._index

    @property
    def descriptors(self) -> tuple[NodeTypeDescriptor, ...]:
        """All descriptors, in file order."""
        return self._descriptors

    def lookup(self, type_name: str, *, named: bool = True) -> NodeTypeDescriptor:
        """Get a descriptor by name.

        Raises:
            KeyError: If no such node type is declared.
        """
        return self._index[NodeRef(type_name, named)]

    def get(self, ref: NodeRef) -> NodeTypeDescriptor | None:
        """Get a descriptor by `NodeRef`, or None."""
        return self._index.get(ref)

    @cached_property
    def named_types(self) -> tuple[NodeTypeDescriptor, ...]:
        """Named, concrete (non-supertype) descriptors sorted by name."""
        return tuple(
            sorted(
                (d for d in self._descriptors if d.named and not d.is_supertype),
                key=lambda d: d.type,
            )
        )

    @cached_property
    def anonymous_types(self) -> tuple[NodeTypeDescriptor, ...]:
        """Anonymous descriptors sorted by their literal text."""
        return tuple(sorted((d for d in self._descriptors if not d.named), key=lambda d: d.type))

    @cached_property
    def supertypes(self) -> tuple[NodeTypeDescriptor, ...]:
        """Supertype descriptors sorted by name."""
        return tuple(sorted((d for d in self._descriptors if d.is_supertype), key=lambda d: d.type))

    @cached_property
    def roots(self) -> frozenset[NodeRef]:
        """Node types marked `root: true`."""
        return frozenset(d.ref for d in self._descriptors if d.root)

    @cached_property
    def extras(self) -> frozenset[NodeRef]:
        """Node types marked `extra: true`."""
        return frozenset(d.ref for d in self._descriptors if d.extra)

    def is_supertype(self, ref: NodeRef) -> bool:
        """Whether `ref` names a declared supertype."""
        descriptor = self._index.get(ref)
        return descriptor is not None and descriptor.is_supertype

    def expand(self, ref: NodeRef) -> frozenset[NodeRef]:
        """Resolve a reference to the concrete node types it stands for.

        Concrete types expand to themselves. Supertypes expand, recursively,
        to the concrete members of their subtypes. Cycles among supertypes are
        tolerated; a supertype already being expanded contributes nothing more.
        """
        result: set[NodeRef] = set()
        seen: set[NodeRef] = set()
        stack = [ref]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            descriptor = self._index.get(current)
            if descriptor is None or not descriptor.is_supertype:
                result.add(current)
                continue
            stack.extend(t.ref for t in descriptor.subtypes or ())
        return frozenset(result)

    def expand_all(self, refs: Iterable[NodeRef]) -> frozenset[NodeRef]:
        """Expand several references into one set of concrete node types."""
        return frozenset().union(*(self.expand(ref) for ref in refs))

    def supertypes_of(self, ref: NodeRef) -> tuple[str, ...]:
        """Names of every supertype whose expansion includes `ref`, sorted."""
        return tuple(sorted(s.type for s in self.supertypes if ref in self.expand(s.ref)))


__all__ = (
    "ChildEntry",
    "ChildSpec",
    "EntryKind",
    "NodeRef",
    "NodeTypeCatalogue",
    "NodeTypeDescriptor",
    "TypeRef",
)
