# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Unit tests for `GrammarDocument`, `BuiltGrammar`, and `load_grammar`."""

from __future__ import annotations

import json

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from treant.exceptions import GrammarError, GrammarLoadError, UnclassifiableRuleError
from treant.grammar.grammar_json import GrammarDocument
from treant.grammar.loader import BuiltGrammar, load_grammar
from treant.grammar.node_types import NodeTypeCatalogue
from treant.grammar.rules import ChoiceRule, RepeatRule, SymbolRule


pytestmark = [pytest.mark.unit]


class TestGrammarDocument:
    """Tests for parsing `grammar.json`."""

    def test_from_json(self, mini_sources: tuple[str, str]) -> None:
        """Rules keep declaration order; the first rule is the start rule."""
        document = GrammarDocument.from_json(mini_sources[0])
        assert document.name == "mini"
        assert document.start_rule == "document"
        assert document.rule_names[:3] == ("document", "definition", "operation")
        assert document.supertypes == ("definition", "selection")
        assert document.word == "name"
        assert isinstance(document.rule("definition"), ChoiceRule)

    def test_optional_sections_default_empty(self, grammars: dict[str, Any]) -> None:
        """A grammar with only a name and rules is valid."""
        grammar, _ = grammars["calc"]
        document = GrammarDocument.from_mapping(grammar)
        assert document.extras == ()
        assert document.externals == ()
        assert document.word is None

    def test_unknown_top_level_keys_are_kept(self, grammars: dict[str, Any]) -> None:
        """Newer grammar files with extra keys still load."""
        grammar, _ = grammars["hello"]
        grammar["$schema"] = "https://tree-sitter.github.io/schemas/grammar.schema.json"
        grammar["reserved"] = {}
        document = GrammarDocument.from_mapping(grammar)
        assert document.name == "hello"

    def test_unknown_rule_kind_in_grammar(self, grammars: dict[str, Any]) -> None:
        """A rule of an unknown kind anywhere in the grammar is unclassifiable."""
        grammar, _ = grammars["hello"]
        grammar["rules"]["expression"] = {"type": "RESERVED", "context_name": "x"}
        with pytest.raises(UnclassifiableRuleError) as exc_info:
            GrammarDocument.from_mapping(grammar)
        assert exc_info.value.rule_type == "RESERVED"
        assert "expression" in exc_info.value.location

    def test_invalid_json(self) -> None:
        """Text that is not JSON raises GrammarError."""
        with pytest.raises(GrammarError, match="not valid JSON"):
            GrammarDocument.from_json("{not json")

    def test_json_must_be_an_object(self) -> None:
        """A JSON array is not a grammar."""
        with pytest.raises(GrammarError, match="JSON object"):
            GrammarDocument.from_json("[]")

    def test_missing_rule_lookup(self, hello_built: BuiltGrammar) -> None:
        """Looking up an undeclared rule raises GrammarError."""
        with pytest.raises(GrammarError, match="no rule named"):
            hello_built.grammar.rule("statement")

    def test_resolve_follows_symbols(self, hello_built: BuiltGrammar) -> None:
        """A SYMBOL resolves to the rule it names; other rules resolve to themselves."""
        grammar = hello_built.grammar
        source_file = grammar.rule("source_file")
        assert isinstance(source_file, RepeatRule)
        assert isinstance(source_file.content, SymbolRule)
        assert grammar.resolve(source_file.content) == grammar.rule("expression")
        assert grammar.resolve(source_file) is source_file

    def test_is_hidden(self, mini_built: BuiltGrammar) -> None:
        """Rules with a leading underscore are hidden unless they are supertypes."""
        grammar = mini_built.grammar
        assert grammar.is_hidden("_value")
        assert not grammar.is_hidden("field")


class TestBuiltGrammar:
    """Tests for assembling a built grammar from its inputs."""

    def test_text_inputs_are_kept_verbatim(self, mini_sources: tuple[str, str]) -> None:
        """JSON text is stored byte for byte."""
        built = BuiltGrammar.from_inputs(*mini_sources)
        assert built.grammar_source == mini_sources[0]
        assert built.node_types_source == mini_sources[1]
        assert built.name == "mini"
        assert built.parser_binary is None

    def test_bytes_inputs_are_decoded(self, mini_sources: tuple[str, str]) -> None:
        """Bytes are decoded as UTF-8 and kept otherwise unchanged."""
        grammar, node_types = (text.encode("utf-8") for text in mini_sources)
        built = BuiltGrammar.from_inputs(grammar, node_types)
        assert built.grammar_source == mini_sources[0]

    def test_decoded_inputs_are_serialized(self, grammars: dict[str, Any]) -> None:
        """Decoded JSON is serialized to equivalent JSON text."""
        grammar, node_types = grammars["hello"]
        built = BuiltGrammar.from_inputs(grammar, node_types)
        assert json.loads(built.grammar_source) == grammar
        assert json.loads(built.node_types_source) == node_types

    def test_parsed_inputs_are_accepted(self, hello_built: BuiltGrammar) -> None:
        """Already parsed documents can be reused."""
        rebuilt = BuiltGrammar.from_inputs(hello_built.grammar, hello_built.node_types)
        assert rebuilt.grammar is hello_built.grammar
        assert rebuilt.node_types is hello_built.node_types
        assert json.loads(rebuilt.grammar_source)["name"] == "hello"
        assert isinstance(rebuilt.node_types, NodeTypeCatalogue)


class TestLoadGrammar:
    """Tests for loading a grammar directory from disk."""

    def test_load_from_src(self, grammar_dir: Callable[..., Path]) -> None:
        """Artifacts are found under `<dir>/src`."""
        root = grammar_dir("mini")
        built = load_grammar(root)
        assert built.name == "mini"
        assert built.path == root
        assert built.grammar_source == (root / "src" / "grammar.json").read_text("utf-8")
        assert len(built.node_types) == 15

    def test_load_flat_directory(self, grammar_dir: Callable[..., Path]) -> None:
        """Artifacts directly in the directory are found too."""
        built = load_grammar(grammar_dir("hello", flat=True))
        assert built.name == "hello"

    def test_parser_binary_is_loaded(self, grammar_dir: Callable[..., Path]) -> None:
        """An optional parser.wasm is read as bytes."""
        built = load_grammar(str(grammar_dir("hello", parser=b"\x00asm\x01\x00\x00\x00")))
        assert built.parser_binary == b"\x00asm\x01\x00\x00\x00"

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A directory that does not exist raises GrammarLoadError."""
        with pytest.raises(GrammarLoadError, match="does not exist"):
            load_grammar(tmp_path / "nope")

    def test_missing_artifacts(self, tmp_path: Path) -> None:
        """A directory without grammar artifacts raises GrammarLoadError with suggestions."""
        with pytest.raises(GrammarLoadError) as exc_info:
            load_grammar(tmp_path)
        assert exc_info.value.suggestions
        assert any("tree-sitter generate" in s for s in exc_info.value.suggestions)

    def test_malformed_artifacts_propagate(self, grammar_dir: Callable[..., Path]) -> None:
        """Malformed documents raise the grammar error, not a load error."""
        root = grammar_dir("hello")
        (root / "src" / "node-types.json").write_text("{}", encoding="utf-8")
        with pytest.raises(GrammarError, match="JSON array"):
            load_grammar(root)
