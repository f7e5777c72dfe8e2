# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Navigation graph: which node types each cursor step can reach.

For every named, concrete node type `T` and every `Direction` `d`, the graph
holds `N(T, d)`, the set of node types (and possibly `None`) that a cursor on a
`T` node can land on after taking step `d`. The table is computed once from a
`NodeTypeCatalogue` and is read-only afterwards.

Rules:

- Supertype references are replaced by their concrete members while building.
- `FIRST_CHILD` is the union of every field and children entry of `T`, plus
  `None` unless some entry is required. A type with no entries maps to `{None}`.
- `PARENT` is the reverse of containment, plus `None` for roots (including the
  grammar's start rule) and for types no other type contains. `extra` types
  (comments) can sit under any node with children.
- `NEXT_SIBLING` and `PREVIOUS_SIBLING` are equal: the union, over every parent
  of `T`, of all the parent's entry types. `T` itself is only included when it
  can repeat (a `multiple` entry, or more than one entry of the same parent).
  `None` is always included. This is a context-insensitive over-approximation:
  positions within a parent are not tracked.
"""

from __future__ import annotations

import logging

from collections import defaultdict
from collections.abc import Iterator
from types import MappingProxyType
from typing import TYPE_CHECKING

from treant._common import BaseEnum
from treant.grammar.node_types import NodeRef, NodeTypeCatalogue, NodeTypeDescriptor


if TYPE_CHECKING:
    from collections.abc import Mapping


logger = logging.getLogger(__name__)

type Reachable = frozenset[NodeRef | None]
type NavigationTable = dict[str, dict[str, list[str | None]]]


class Direction(BaseEnum):
    """A single cursor step."""

    FIRST_CHILD = "first_child"
    NEXT_SIBLING = "next_sibling"
    PREVIOUS_SIBLING = "previous_sibling"
    PARENT = "parent"

    @property
    def cursor_method(self) -> str:
        """The cursor method that takes this step (e.g. `goto_first_child`)."""
        return f"goto_{self.value}"

    @property
    def is_sibling(self) -> bool:
        """Whether this step moves between siblings."""
        return self in (Direction.NEXT_SIBLING, Direction.PREVIOUS_SIBLING)


def sort_key(ref: NodeRef | None) -> tuple[bool, str, bool]:
    """Deterministic ordering for reachable sets: named types by name, `None` last."""
    if ref is None:
        return (True, "", False)
    return (False, ref.type, not ref.named)


def _as_ref(node_type: NodeRef | str) -> NodeRef:
    return node_type if isinstance(node_type, NodeRef) else NodeRef(node_type, True)


class NavigationGraph:
    """Precomputed `(node type, direction) -> reachable node types` table."""

    def __init__(
        self, catalogue: NodeTypeCatalogue, table: Mapping[tuple[NodeRef, Direction], Reachable]
    ) -> None:
        """Wrap a computed table. Use `NavigationGraph.build` to compute one."""
        self._catalogue = catalogue
        self._table = MappingProxyType(dict(table))
        self._node_types = tuple(
            sorted({ref for ref, _ in self._table}, key=lambda ref: ref.type)
        )

    @classmethod
    def build(cls, catalogue: NodeTypeCatalogue, *, start: str | None = None) -> NavigationGraph:
        """Compute the navigation graph for a catalogue.

        Args:
            catalogue: A validated node-type catalogue
            start: The grammar's start rule, treated as a root in addition to
                any descriptor marked `root: true`

        Raises:
            MissingNodeTypeError: If the catalogue has dangling references.
        """
        # a catalogue built with validate=False still gets checked here
        catalogue.validate()
        rows = catalogue.named_types
        roots = set(catalogue.roots)
        if start is not None:
            roots.add(NodeRef(start, True))

        entry_types: dict[NodeRef, list[tuple[bool, frozenset[NodeRef]]]] = {
            row.ref: [
                (entry.spec.multiple, catalogue.expand_all(entry.spec.refs))
                for entry in row.entries()
            ]
            for row in rows
        }
        extras = frozenset(
            ref for ref in catalogue.extras if ref.named and not catalogue.is_supertype(ref)
        )
        if extras:
            # extras may appear, repeatedly, among the children of any container
            for entries in entry_types.values():
                if entries:
                    entries.append((True, extras))
        table: dict[tuple[NodeRef, Direction], Reachable] = {}

        for row in rows:
            table[row.ref, Direction.FIRST_CHILD] = _first_child(row, entry_types[row.ref])

        parents: defaultdict[NodeRef, set[NodeRef]] = defaultdict(set)
        for parent, entries in entry_types.items():
            for _, members in entries:
                for member in members:
                    parents[member].add(parent)

        for row in rows:
            ref = row.ref
            row_parents: set[NodeRef | None] = set(parents.get(ref, ()))
            if ref in roots or not row_parents:
                row_parents.add(None)
            table[ref, Direction.PARENT] = frozenset(row_parents)

            siblings: set[NodeRef | None] = {None}
            for parent in parents.get(ref, ()):
                siblings |= _siblings_within(ref, entry_types[parent])
            table[ref, Direction.NEXT_SIBLING] = frozenset(siblings)
            table[ref, Direction.PREVIOUS_SIBLING] = frozenset(siblings)

        logger.debug("Built navigation graph for %d node types", len(rows))
        return cls(catalogue, table)

    @property
    def catalogue(self) -> NodeTypeCatalogue:
        """The catalogue this graph was built from."""
        return self._catalogue

    @property
    def node_types(self) -> tuple[NodeRef, ...]:
        """Every node type with a row in the table, sorted by name."""
        return self._node_types

    def __contains__(self, node_type: object) -> bool:
        if isinstance(node_type, str):
            node_type = NodeRef(node_type, True)
        return (node_type, Direction.FIRST_CHILD) in self._table

    def __iter__(self) -> Iterator[NodeRef]:
        return iter(self._node_types)

    def __len__(self) -> int:
        return len(self._node_types)

    def __getitem__(self, key: tuple[NodeRef | str, Direction]) -> Reachable:
        node_type, direction = key
        return self.reachable(node_type, direction)

    def reachable(self, node_type: NodeRef | str, direction: Direction) -> Reachable:
        """`N(T, d)`.

        Raises:
            KeyError: If `node_type` is not a named, concrete node type.
        """
        ref = _as_ref(node_type)
        try:
            return self._table[ref, direction]
        except KeyError:
            raise KeyError(
                f"{ref} has no navigation row; only named, non-supertype node types do"
            ) from None

    def sorted_reachable(
        self, node_type: NodeRef | str, direction: Direction
    ) -> list[NodeRef | None]:
        """`N(T, d)` in deterministic order."""
        return sorted(self.reachable(node_type, direction), key=sort_key)

    def children_of(self, node_type: NodeRef | str) -> frozenset[NodeRef]:
        """Node types that can be a child of `node_type`."""
        return frozenset(
            ref for ref in self.reachable(node_type, Direction.FIRST_CHILD) if ref is not None
        )

    def parents_of(self, node_type: NodeRef | str) -> frozenset[NodeRef]:
        """Node types that can contain `node_type`."""
        return frozenset(
            ref for ref in self.reachable(node_type, Direction.PARENT) if ref is not None
        )

    def siblings_of(self, node_type: NodeRef | str) -> frozenset[NodeRef]:
        """Node types that can sit next to `node_type` under a common parent."""
        return frozenset(
            ref for ref in self.reachable(node_type, Direction.NEXT_SIBLING) if ref is not None
        )

    def can_navigate(
        self, from_type: NodeRef | str, to_type: NodeRef | str | None, direction: Direction
    ) -> bool:
        """Whether a `direction` step from a `from_type` node can land on `to_type`.

        Unknown `from_type`s are reported as not navigable rather than raising.
        """
        from_ref = _as_ref(from_type)
        if from_ref not in self:
            return False
        target = None if to_type is None else _as_ref(to_type)
        return target in self.reachable(from_ref, direction)

    def as_table(self) -> NavigationTable:
        """The graph as plain data: `{direction: {type: [reachable type names or None]}}`.

        Reachable node types are reduced to their names (named and anonymous
        types with the same text collapse into one entry); `None` sorts last.
        """
        table: NavigationTable = {}
        for direction in Direction:
            rows: dict[str, list[str | None]] = {}
            for ref in self._node_types:
                names: list[str | None] = []
                for target in self.sorted_reachable(ref, direction):
                    name = None if target is None else target.type
                    if name not in names:
                        names.append(name)
                rows[ref.type] = names
            table[direction.value] = rows
        return table


def _first_child(
    row: NodeTypeDescriptor, entries: list[tuple[bool, frozenset[NodeRef]]]
) -> Reachable:
    if not entries:
        return frozenset({None})
    reachable: set[NodeRef | None] = set().union(*(members for _, members in entries))
    if not any(entry.spec.required for entry in row.entries()):
        reachable.add(None)
    return frozenset(reachable)


def _siblings_within(
    ref: NodeRef, parent_entries: list[tuple[bool, frozenset[NodeRef]]]
) -> set[NodeRef | None]:
    """Sibling candidates for `ref` inside one parent type."""
    holding = [(multiple, members) for multiple, members in parent_entries if ref in members]
    siblings: set[NodeRef | None] = set().union(*(members for _, members in parent_entries))
    repeats = len(holding) > 1 or any(multiple for multiple, _ in holding)
    if not repeats:
        siblings.discard(ref)
    return siblings


def build_navigation_graph(
    catalogue: NodeTypeCatalogue, *, start: str | None = None
) -> NavigationGraph:
    """Compute the navigation graph for a catalogue. See `NavigationGraph.build`."""
    return NavigationGraph.build(catalogue, start=start)


__all__ = (
    "Direction",
    "NavigationGraph",
    "NavigationTable",
    "Reachable",
    "build_navigation_graph",
    "sort_key",
)
