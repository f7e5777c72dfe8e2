# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Unit tests for grammar structure analysis."""

from __future__ import annotations

from typing import Any

import pytest

from treant.grammar.analysis import (
    NodeDepth,
    SequenceMember,
    analyze_grammar,
    analyze_node_depths,
    analyze_relationships,
    detect_semantic_groupings,
    extract_child_types,
    extract_direct_child_types,
    extract_sequences,
    find_grammar_cycles,
    find_symbol_references,
    get_nullable_rules,
    get_root_rule_name,
    get_terminal_rules,
    strongly_connected_components,
)
from treant.grammar.grammar_json import GrammarDocument
from treant.grammar.loader import BuiltGrammar
from treant.grammar.node_types import NodeTypeCatalogue
from treant.grammar.rules import PatternRule, SeqRule, parse_rule


pytestmark = [pytest.mark.unit]


def symbol(name: str) -> dict[str, Any]:
    return {"type": "SYMBOL", "name": name}


def literal(value: str) -> dict[str, Any]:
    return {"type": "STRING", "value": value}


def rules_of(rules: dict[str, Any]) -> dict[str, Any]:
    return {name: parse_rule(rule, location=name) for name, rule in rules.items()}


class TestRuleAnalyses:
    """Tests for analyses over grammar rules."""

    def test_semantic_groupings(self, mini_built: BuiltGrammar) -> None:
        """Choices of bare symbols are groupings; other choices are not."""
        assert detect_semantic_groupings(mini_built.grammar.rules) == {
            "definition": ["operation", "fragment"],
            "selection": ["field", "fragment_spread"],
        }

    def test_mixed_choice_is_not_a_grouping(self) -> None:
        """A choice that also has a literal member is not a grouping."""
        rules = rules_of({
            "value": {
                "type": "CHOICE",
                "members": [symbol("number"), literal("null")],
            },
            "single": {"type": "CHOICE", "members": [symbol("number")]},
        })
        assert detect_semantic_groupings(rules) == {}

    def test_sequences(self, mini_built: BuiltGrammar) -> None:
        """Sequences mark optional members and fields; literal-only sequences are skipped."""
        sequences = extract_sequences(mini_built.grammar.rules)
        assert list(sequences) == ["operation", "fragment", "field", "fragment_spread"]
        assert sequences["operation"] == (
            SequenceMember("name", True, "name"),
            SequenceMember("selection_set", False),
        )
        assert sequences["field"] == (
            SequenceMember("name", False, "name"),
            SequenceMember("selection_set", True),
        )
        assert "selection_set" not in sequences

    def test_sequences_look_through_precedence(self) -> None:
        """A precedence wrapper around a SEQ body is unwrapped."""
        rules = rules_of({
            "binary": {
                "type": "PREC_LEFT",
                "value": 1,
                "content": {
                    "type": "SEQ",
                    "members": [
                        {"type": "FIELD", "name": "left", "content": symbol("expr")},
                        literal("+"),
                        {"type": "FIELD", "name": "right", "content": symbol("expr")},
                    ],
                },
            },
        })
        assert extract_sequences(rules) == {
            "binary": (
                SequenceMember("expr", False, "left"),
                SequenceMember("expr", False, "right"),
            ),
        }

    def test_direct_child_types_skip_nested_structure(self) -> None:
        """Repeats and literals inside a SEQ are not direct children."""
        rule = parse_rule({
            "type": "SEQ",
            "members": [
                literal("{"),
                {"type": "REPEAT", "content": symbol("item")},
                symbol("tail"),
            ],
        })
        assert isinstance(rule, SeqRule)
        assert extract_direct_child_types(rule) == [SequenceMember("tail", False)]

    def test_child_types_deduplicated(self, mini_built: BuiltGrammar) -> None:
        """Every referenced symbol appears once, in first-seen order."""
        assert extract_child_types(mini_built.grammar.rule("operation")) == [
            "name",
            "selection_set",
        ]

    def test_symbol_references(self, mini_built: BuiltGrammar) -> None:
        """Rules referencing a symbol are listed in declaration order."""
        assert find_symbol_references(mini_built.grammar, "selection_set") == [
            "operation",
            "fragment",
            "field",
        ]
        assert find_symbol_references(mini_built.grammar, "document") == []

    def test_terminal_rules(self, mini_built: BuiltGrammar) -> None:
        """Only rules whose whole body is a literal or pattern are terminal."""
        terminals = get_terminal_rules(mini_built.grammar.rules)
        assert list(terminals) == ["name"]
        assert isinstance(terminals["name"], PatternRule)

    def test_nullable_rules(self, grammars: dict[str, Any]) -> None:
        """Repeats, blanks, and rules built only from nullable parts are nullable."""
        rules = rules_of({
            "program": {"type": "REPEAT", "content": symbol("item")},
            "item": symbol("maybe"),
            "maybe": {"type": "CHOICE", "members": [symbol("word"), {"type": "BLANK"}]},
            "word": {"type": "PATTERN", "value": "\\w+"},
            "empty": literal(""),
            "some": {"type": "REPEAT1", "content": symbol("word")},
        })
        assert get_nullable_rules(rules) == frozenset({"program", "item", "maybe", "empty"})
        mini = GrammarDocument.from_mapping(grammars["mini"][0])
        assert get_nullable_rules(mini.rules) == frozenset()

    def test_nullable_is_order_independent(self) -> None:
        """A rule referring to a later nullable rule is still nullable."""
        forward = {
            "outer": {"type": "SEQ", "members": [symbol("inner")]},
            "inner": {"type": "BLANK"},
        }
        backward = dict(reversed(list(forward.items())))
        assert get_nullable_rules(rules_of(forward)) == get_nullable_rules(rules_of(backward))
        assert get_nullable_rules(rules_of(forward)) == frozenset({"outer", "inner"})

    @pytest.mark.parametrize(
        ("grammar", "expected"),
        [("hello", "source_file"), ("calc", "program"), ("mini", "document")],
    )
    def test_root_rule_conventional(
        self, grammars: dict[str, Any], grammar: str, expected: str
    ) -> None:
        """Conventional root names win."""
        document = GrammarDocument.from_mapping(grammars[grammar][0])
        assert get_root_rule_name(document) == expected

    def test_root_rule_falls_back_to_start(self) -> None:
        """Without a conventional name, the first rule is the root."""
        document = GrammarDocument.from_mapping({
            "name": "toml",
            "rules": {
                "table": {"type": "REPEAT", "content": symbol("pair")},
                "pair": literal("k=v"),
            },
        })
        assert get_root_rule_name(document) == "table"

    def test_root_rule_ignores_other_names(self) -> None:
        """A later rule named like a common root does not displace the start rule."""
        document = GrammarDocument.from_mapping({
            "name": "yamlish",
            "rules": {
                "stream": {"type": "REPEAT", "content": symbol("document")},
                "document": literal("---"),
            },
        })
        assert get_root_rule_name(document) == "stream"


class TestStructure:
    """Tests for containment relationships, cycles, and depths."""

    def test_relationships(self, mini_catalogue: NodeTypeCatalogue) -> None:
        """Relationships are named, supertype-expanded, and keyed in sorted order."""
        children, parents = analyze_relationships(mini_catalogue)
        assert list(children) == [
            "document",
            "field",
            "fragment",
            "fragment_spread",
            "operation",
            "selection_set",
        ]
        assert children["document"] == frozenset({"fragment", "operation"})
        assert children["selection_set"] == frozenset({"field", "fragment_spread"})
        assert parents["name"] == frozenset({"field", "fragment", "fragment_spread", "operation"})
        assert parents["selection_set"] == frozenset({"field", "fragment", "operation"})
        assert "comment" not in parents

    def test_cycles(self, mini_catalogue: NodeTypeCatalogue) -> None:
        """The mutual recursion through selection sets is the only cycle."""
        children, _ = analyze_relationships(mini_catalogue)
        assert find_grammar_cycles(children) == [["selection_set", "field", "selection_set"]]

    def test_self_cycle(self) -> None:
        """A type that contains itself is a cycle of length one."""
        assert find_grammar_cycles({"list": ["list", "item"]}) == [["list", "list"]]

    def test_acyclic(self) -> None:
        """A tree-shaped containment relation has no cycles."""
        assert find_grammar_cycles({"a": ["b", "c"], "b": ["c"]}) == []

    def test_components(self) -> None:
        """Types on a common cycle share one component; others stand alone."""
        components = strongly_connected_components({"a": ["b"], "b": ["c", "a"], "c": ["d"]})
        assert components["a"] == components["b"] == frozenset({"a", "b"})
        assert components["c"] == frozenset({"c"})
        assert components["d"] == frozenset({"d"})

    def test_depths(self, mini_catalogue: NodeTypeCatalogue) -> None:
        """Leaves have depth 1; a cycle counts as one level."""
        children, _ = analyze_relationships(mini_catalogue)
        depths = analyze_node_depths(mini_catalogue.named_types, children)
        assert {name: depth.max_depth for name, depth in depths.items()} == {
            "comment": 1,
            "document": 5,
            "field": 3,
            "fragment": 4,
            "fragment_spread": 2,
            "name": 1,
            "operation": 4,
            "selection_set": 3,
        }
        assert depths["selection_set"] == NodeDepth(3, 2)
        assert depths["name"].child_count == 0

    def test_depths_are_order_independent(self, mini_catalogue: NodeTypeCatalogue) -> None:
        """Reordering the relation does not change the result."""
        children, _ = analyze_relationships(mini_catalogue)
        reordered = {k: sorted(v, reverse=True) for k, v in reversed(list(children.items()))}
        named = mini_catalogue.named_types
        assert analyze_node_depths(named, children) == analyze_node_depths(
            tuple(reversed(named)), reordered
        )


class TestAnalyzeGrammar:
    """Tests for the combined analysis."""

    def test_bundle(self, mini_built: BuiltGrammar) -> None:
        """The bundle gathers every analysis for the grammar."""
        analysis = analyze_grammar(mini_built.node_types, mini_built.grammar)
        assert analysis.grammar_name == "mini"
        assert analysis.root_rule == "document"
        assert analysis.rule_names[0] == "comment"
        assert len(analysis.named_nodes) == 8
        assert [d.type for d in analysis.anonymous_nodes] == ["...", "fragment", "query", "{", "}"]
        assert analysis.nullable_rules == frozenset()
        assert set(analysis.semantic_groupings) == {"definition", "selection"}
        assert analysis.cycles == [["selection_set", "field", "selection_set"]]
        assert analysis.depths["document"].max_depth == 5

    def test_hello(self, hello_built: BuiltGrammar) -> None:
        """A grammar without sequences or groupings analyzes to empty mappings."""
        analysis = analyze_grammar(hello_built.node_types, hello_built.grammar)
        assert analysis.root_rule == "source_file"
        assert analysis.sequences == {}
        assert analysis.semantic_groupings == {}
        assert analysis.nullable_rules == frozenset({"source_file"})
        assert analysis.cycles == []
