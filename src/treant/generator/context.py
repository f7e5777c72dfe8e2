# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Everything the module emitters need, computed once per generation."""

from __future__ import annotations

import logging

from dataclasses import dataclass
from functools import cached_property

from treant.grammar.analysis import SequenceMember, extract_sequences
from treant.grammar.loader import BuiltGrammar
from treant.grammar.navigation import NavigationGraph
from treant.grammar.node_types import NodeRef, NodeTypeCatalogue, NodeTypeDescriptor
from treant.naming import AnonymousCategories, NameRegistry, NodeNames, categorize_anonymous


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationContext:
    """A built grammar plus the derived tables and names used to emit its SDK."""

    built: BuiltGrammar
    namespace: str
    graph: NavigationGraph
    names: NameRegistry

    @classmethod
    def create(cls, built: BuiltGrammar, namespace: str) -> GenerationContext:
        """Derive the navigation graph and the name registry for `built`.

        Raises:
            MissingNodeTypeError: If the catalogue has dangling references.
        """
        graph = NavigationGraph.build(built.node_types, start=built.grammar.start_rule)
        names = NameRegistry(built.node_types)
        logger.debug(
            "Generation context for %r: %d concrete, %d supertypes, %d anonymous node types",
            built.name,
            len(built.node_types.named_types),
            len(built.node_types.supertypes),
            len(built.node_types.anonymous_types),
        )
        return cls(built=built, namespace=namespace, graph=graph, names=names)

    @property
    def grammar_name(self) -> str:
        return self.built.name

    @property
    def catalogue(self) -> NodeTypeCatalogue:
        return self.built.node_types

    @property
    def concrete(self) -> tuple[NodeTypeDescriptor, ...]:
        """Named, non-supertype node types sorted by name."""
        return self.catalogue.named_types

    @property
    def supertypes(self) -> tuple[NodeTypeDescriptor, ...]:
        return self.catalogue.supertypes

    @property
    def anonymous(self) -> tuple[NodeTypeDescriptor, ...]:
        return self.catalogue.anonymous_types

    @cached_property
    def categories(self) -> AnonymousCategories:
        return categorize_anonymous(self.catalogue)

    @cached_property
    def sequences(self) -> dict[str, tuple[SequenceMember, ...]]:
        """Ordered child sequences of `SEQ` rules, sorted by rule name."""
        return dict(sorted(extract_sequences(self.built.grammar.rules).items()))

    @cached_property
    def root_type(self) -> str | None:
        """The node type at the root of every parse tree, if it can be determined.

        Descriptors marked `root: true` win; otherwise the grammar's start rule,
        which tree-sitter always parses from, is used when it is a named,
        concrete node type.
        """
        concrete = {d.type for d in self.concrete}
        if roots := sorted(ref.type for ref in self.catalogue.roots if ref.type in concrete):
            return roots[0]
        start = self.built.grammar.start_rule
        return start if start in concrete else None

    def names_for(self, ref: NodeRef) -> NodeNames:
        return self.names[ref]

    def node_module(self, ref: NodeRef) -> str:
        """Module path of a node type relative to the `nodes` package (e.g. `anonymous.lparen`)."""
        names = self.names[ref]
        return names.module if ref.named else f"anonymous.{names.module}"

    def concrete_members(self, ref: NodeRef) -> list[NodeRef]:
        """The concrete node types a (possibly supertype) reference stands for, sorted."""
        return sorted(self.catalogue.expand(ref), key=lambda r: (r.type, not r.named))


__all__ = ("GenerationContext",)
