# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Treant: grammar analysis and typed traversal SDK generation for tree-sitter grammars."""

from treant._version import __version__
from treant.emit import write_output
from treant.exceptions import (
    GenerationError,
    GrammarError,
    GrammarLoadError,
    InvalidNamespaceConfigError,
    MissingNodeTypeError,
    NotOptionalError,
    OutputError,
    TreantError,
    UnclassifiableRuleError,
)
from treant.generator import GeneratedArtifact, GeneratorOutput, generate, generate_sdk
from treant.grammar import (
    BuiltGrammar,
    Direction,
    GrammarDocument,
    NavigationGraph,
    NodeRef,
    NodeTypeCatalogue,
    analyze_grammar,
    build_navigation_graph,
    load_grammar,
    parse_rule,
)
from treant.naming import (
    AnonymousCategory,
    ConcatMode,
    NamespaceConfig,
    classify_anonymous,
    resolve_namespace,
)


__all__ = (
    "AnonymousCategory",
    "BuiltGrammar",
    "ConcatMode",
    "Direction",
    "GeneratedArtifact",
    "GenerationError",
    "GeneratorOutput",
    "GrammarDocument",
    "GrammarError",
    "GrammarLoadError",
    "InvalidNamespaceConfigError",
    "MissingNodeTypeError",
    "NamespaceConfig",
    "NavigationGraph",
    "NodeRef",
    "NodeTypeCatalogue",
    "NotOptionalError",
    "OutputError",
    "TreantError",
    "UnclassifiableRuleError",
    "__version__",
    "analyze_grammar",
    "build_navigation_graph",
    "classify_anonymous",
    "generate",
    "generate_sdk",
    "load_grammar",
    "parse_rule",
    "resolve_namespace",
    "write_output",
)
