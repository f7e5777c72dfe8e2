# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Grammar models and analyses: rule trees, node-type catalogues, and the navigation graph."""

from __future__ import annotations

from treant.grammar.analysis import GrammarAnalysis, analyze_grammar, extract_sequences
from treant.grammar.grammar_json import GrammarDocument
from treant.grammar.loader import BuiltGrammar, load_grammar
from treant.grammar.navigation import Direction, NavigationGraph, build_navigation_graph
from treant.grammar.node_types import (
    ChildSpec,
    NodeRef,
    NodeTypeCatalogue,
    NodeTypeDescriptor,
    TypeRef,
)
from treant.grammar.rules import Rule, RuleKind, classify, is_optional, parse_rule


__all__ = (
    "BuiltGrammar",
    "ChildSpec",
    "Direction",
    "GrammarAnalysis",
    "GrammarDocument",
    "NavigationGraph",
    "NodeRef",
    "NodeTypeCatalogue",
    "NodeTypeDescriptor",
    "Rule",
    "RuleKind",
    "TypeRef",
    "analyze_grammar",
    "build_navigation_graph",
    "classify",
    "extract_sequences",
    "is_optional",
    "load_grammar",
    "parse_rule",
)
