# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Structural analyses over a grammar's rules and node-type catalogue.

These complement the navigation graph: semantic groupings (choices of bare
symbols), nullable and terminal rules, ordered child sequences of `SEQ` rules,
containment relationships, cycles, and depth statistics. Everything here is
pure and deterministic; mappings are returned in rule-declaration or sorted
order.
"""

from __future__ import annotations

import logging

from collections.abc import Iterable, Mapping
from typing import Annotated, NamedTuple

from pydantic import ConfigDict, Field

from treant._common import BasedModel
from treant.grammar.grammar_json import GrammarDocument
from treant.grammar.node_types import NodeTypeCatalogue, NodeTypeDescriptor
from treant.grammar.rules import (
    BlankRule,
    ChoiceRule,
    FieldRule,
    PatternRule,
    Repeat1Rule,
    RepeatRule,
    Rule,
    SeqRule,
    StringRule,
    SymbolRule,
    child_rules,
    extract_optional_content,
    has_content,
    is_optional,
    is_precedence,
    iter_symbols,
)


logger = logging.getLogger(__name__)

_CONVENTIONAL_ROOTS = ("source_file", "program")


class SequenceMember(NamedTuple):
    """One symbol position in an ordered `SEQ` rule."""

    type: str
    optional: bool
    field: str | None = None


class NodeDepth(NamedTuple):
    """Depth statistics for a node type."""

    max_depth: int
    child_count: int


def symbol_members(rule: ChoiceRule) -> list[str]:
    """Names of the `SYMBOL` members of a choice, in order."""
    return [member.name for member in rule.members if isinstance(member, SymbolRule)]


def detect_semantic_groupings(rules: Mapping[str, Rule]) -> dict[str, list[str]]:
    """Find rules that are a `CHOICE` of two or more bare symbols.

    Such rules group alternatives the way supertypes do, e.g.
    `definition: choice($.executable_definition, $.type_system_definition)`.
    """
    groupings: dict[str, list[str]] = {}
    for name, rule in rules.items():
        if not isinstance(rule, ChoiceRule):
            continue
        members = symbol_members(rule)
        if len(members) > 1 and len(members) == len(rule.members):
            groupings[name] = members
    return groupings


def extract_child_types(rule: Rule) -> list[str]:
    """Every symbol referenced anywhere within `rule`, deduplicated, in first-seen order."""
    return list(dict.fromkeys(iter_symbols(rule)))


def _unwrap(rule: Rule) -> Rule:
    while is_precedence(rule):
        rule = rule.content  # type: ignore[union-attr]
    return rule


def _sequence_member(rule: Rule) -> SequenceMember | None:
    optional = is_optional(rule)
    if optional:
        rule = extract_optional_content(rule)
    rule = _unwrap(rule)
    match rule:
        case SymbolRule(name=name):
            return SequenceMember(name, optional)
        case FieldRule(name=field, content=SymbolRule(name=name)):
            return SequenceMember(name, optional, field)
        case _:
            return None


def extract_direct_child_types(rule: SeqRule) -> list[SequenceMember]:
    """The symbols a `SEQ` rule lists directly, each marked optional or not.

    Members that are bare symbols, optional symbols (`CHOICE(SYMBOL, BLANK)`),
    or fields wrapping a symbol are reported; literals and nested structure are
    skipped.
    """
    return [m for member in rule.members if (m := _sequence_member(member)) is not None]


def extract_sequences(rules: Mapping[str, Rule]) -> dict[str, tuple[SequenceMember, ...]]:
    """Ordered child sequences for every rule whose body is a `SEQ`.

    Precedence wrappers around the rule body are looked through. Rules whose
    sequence lists no symbols are left out.
    """
    sequences: dict[str, tuple[SequenceMember, ...]] = {}
    for name, rule in rules.items():
        body = _unwrap(rule)
        if isinstance(body, SeqRule) and (members := extract_direct_child_types(body)):
            sequences[name] = tuple(members)
    return sequences


def find_symbol_references(grammar: GrammarDocument, symbol: str) -> list[str]:
    """Names of the rules that reference `symbol`, in declaration order."""
    return [name for name, rule in grammar.rules.items() if symbol in iter_symbols(rule)]


def get_terminal_rules(rules: Mapping[str, Rule]) -> dict[str, Rule]:
    """Rules whose whole body is a `STRING` or `PATTERN`."""
    return {
        name: rule for name, rule in rules.items() if isinstance(rule, StringRule | PatternRule)
    }


def _is_nullable(rule: Rule, nullable: set[str]) -> bool:
    match rule:
        case BlankRule() | RepeatRule():
            return True
        case StringRule(value=value):
            return not value
        case PatternRule():
            return False
        case SymbolRule(name=name):
            return name in nullable
        case SeqRule(members=members):
            return all(_is_nullable(member, nullable) for member in members)
        case ChoiceRule(members=members):
            return any(_is_nullable(member, nullable) for member in members)
        case Repeat1Rule(content=content):
            return _is_nullable(content, nullable)
        case _ if has_content(rule):
            return _is_nullable(child_rules(rule)[0], nullable)
        case _:
            return False


def get_nullable_rules(rules: Mapping[str, Rule]) -> frozenset[str]:
    """Names of the rules that can match the empty string.

    Computed as a fixed point, so mutually recursive rules are handled and the
    result does not depend on declaration order.
    """
    nullable: set[str] = set()
    changed = True
    while changed:
        changed = False
        for name, rule in rules.items():
            if name not in nullable and _is_nullable(rule, nullable):
                nullable.add(name)
                changed = True
    return frozenset(nullable)


def get_root_rule_name(grammar: GrammarDocument) -> str:
    """The grammar's root rule: a conventional root name if present, otherwise the first rule."""
    for candidate in _CONVENTIONAL_ROOTS:
        if candidate in grammar.rules:
            return candidate
    return grammar.start_rule


def analyze_relationships(
    catalogue: NodeTypeCatalogue,
) -> tuple[dict[str, frozenset[str]], dict[str, frozenset[str]]]:
    """Named parent/child relationships between concrete node types.

    Supertype references are expanded; anonymous children are ignored.

    Returns:
        `(children, parents)`, both keyed by node type name in sorted order.
    """
    children: dict[str, set[str]] = {}
    parents: dict[str, set[str]] = {}
    for descriptor in catalogue.named_types:
        refs = catalogue.expand_all(
            ref for entry in descriptor.entries() for ref in entry.spec.refs
        )
        names = {ref.type for ref in refs if ref.named}
        if not names:
            continue
        children[descriptor.type] = names
        for name in names:
            parents.setdefault(name, set()).add(descriptor.type)
    return (
        {k: frozenset(v) for k, v in sorted(children.items())},
        {k: frozenset(v) for k, v in sorted(parents.items())},
    )


def find_grammar_cycles(children: Mapping[str, Iterable[str]]) -> list[list[str]]:
    """Find containment cycles (recursive structures) by depth-first search.

    Each cycle is reported as a path that starts and ends with the same node
    type, e.g. `["selection_set", "field", "selection_set"]`. Nodes are visited
    in sorted order so the result is deterministic.
    """
    visited: set[str] = set()
    on_stack: set[str] = set()
    cycles: list[list[str]] = []

    def visit(node: str, path: list[str]) -> None:
        if node in on_stack:
            cycles.append([*path[path.index(node) :], node])
            return
        if node in visited:
            return
        visited.add(node)
        on_stack.add(node)
        for child in sorted(children.get(node, ())):
            visit(child, [*path, node])
        on_stack.discard(node)

    for node in sorted(children):
        if node not in visited:
            visit(node, [])
    return cycles


def analyze_node_depths(
    named_types: Iterable[NodeTypeDescriptor], children: Mapping[str, Iterable[str]]
) -> dict[str, NodeDepth]:
    """Maximum containment depth and direct child count per node type.

    A leaf has depth 1. Node types on a common containment cycle count as one
    level: they share a depth of one more than the deepest node type reachable
    out of the cycle.
    """
    components = strongly_connected_components(children)
    memo: dict[frozenset[str], int] = {}

    def component_of(node: str) -> frozenset[str]:
        return components.get(node) or frozenset({node})

    def depth(component: frozenset[str]) -> int:
        if component not in memo:
            outside = {
                component_of(kid) for node in component for kid in children.get(node, ())
            } - {component}
            memo[component] = 1 + max((depth(other) for other in outside), default=0)
        return memo[component]

    return {
        descriptor.type: NodeDepth(
            depth(component_of(descriptor.type)), len(set(children.get(descriptor.type, ())))
        )
        for descriptor in sorted(named_types, key=lambda d: d.type)
    }


def strongly_connected_components(
    children: Mapping[str, Iterable[str]],
) -> dict[str, frozenset[str]]:
    """Map every node type to the set of node types it shares a containment cycle with.

    Node types on no cycle map to a set holding only themselves.
    """
    index: dict[str, int] = {}
    low: dict[str, int] = {}
    stack: list[str] = []
    on_stack: set[str] = set()
    result: dict[str, frozenset[str]] = {}

    def connect(node: str) -> None:
        index[node] = low[node] = len(index)
        stack.append(node)
        on_stack.add(node)
        for kid in sorted(children.get(node, ())):
            if kid not in index:
                connect(kid)
                low[node] = min(low[node], low[kid])
            elif kid in on_stack:
                low[node] = min(low[node], index[kid])
        if low[node] == index[node]:
            members: list[str] = []
            while True:
                member = stack.pop()
                on_stack.discard(member)
                members.append(member)
                if member == node:
                    break
            component = frozenset(members)
            for member in members:
                result[member] = component

    for node in sorted({*children, *(kid for kids in children.values() for kid in kids)}):
        if node not in index:
            connect(node)
    return result


class GrammarAnalysis(BasedModel):
    """A bundle of structural facts about one grammar."""

    model_config = BasedModel.model_config | ConfigDict(frozen=True, str_strip_whitespace=False)

    grammar_name: Annotated[str, Field(description="The grammar's name.")]
    named_nodes: Annotated[
        tuple[NodeTypeDescriptor, ...], Field(description="Named, concrete node types.")
    ]
    anonymous_nodes: Annotated[
        tuple[NodeTypeDescriptor, ...], Field(description="Anonymous (literal) node types.")
    ]
    rule_names: Annotated[
        tuple[str, ...], Field(description="Names of the named node types, sorted.")
    ]
    child_relationships: Annotated[
        dict[str, frozenset[str]], Field(description="Node type -> named child types.")
    ]
    parent_relationships: Annotated[
        dict[str, frozenset[str]], Field(description="Node type -> named parent types.")
    ]
    semantic_groupings: Annotated[
        dict[str, list[str]], Field(description="Rules that are a choice of bare symbols.")
    ]
    sequences: Annotated[
        dict[str, tuple[SequenceMember, ...]],
        Field(description="Ordered child sequences of SEQ rules."),
    ]
    nullable_rules: Annotated[
        frozenset[str], Field(description="Rules that can match the empty string.")
    ]
    root_rule: Annotated[str, Field(description="The grammar's root rule.")]

    @property
    def cycles(self) -> list[list[str]]:
        """Recursive containment cycles."""
        return find_grammar_cycles(self.child_relationships)

    @property
    def depths(self) -> dict[str, NodeDepth]:
        """Depth statistics per named node type."""
        return analyze_node_depths(self.named_nodes, self.child_relationships)


def analyze_grammar(catalogue: NodeTypeCatalogue, grammar: GrammarDocument) -> GrammarAnalysis:
    """Gather the structural analyses for a grammar and its catalogue."""
    children, parents = analyze_relationships(catalogue)
    analysis = GrammarAnalysis(
        grammar_name=grammar.name,
        named_nodes=catalogue.named_types,
        anonymous_nodes=catalogue.anonymous_types,
        rule_names=tuple(d.type for d in catalogue.named_types),
        child_relationships=children,
        parent_relationships=parents,
        semantic_groupings=detect_semantic_groupings(grammar.rules),
        sequences=extract_sequences(grammar.rules),
        nullable_rules=get_nullable_rules(grammar.rules),
        root_rule=get_root_rule_name(grammar),
    )
    logger.debug(
        "Analyzed grammar %r: %d named, %d anonymous node types",
        grammar.name,
        len(analysis.named_nodes),
        len(analysis.anonymous_nodes),
    )
    return analysis


__all__ = (
    "GrammarAnalysis",
    "NodeDepth",
    "SequenceMember",
    "analyze_grammar",
    "analyze_node_depths",
    "analyze_relationships",
    "detect_semantic_groupings",
    "extract_child_types",
    "extract_direct_child_types",
    "extract_sequences",
    "find_grammar_cycles",
    "find_symbol_references",
    "get_nullable_rules",
    "get_root_rule_name",
    "get_terminal_rules",
    "strongly_connected_components",
    "symbol_members",
)
