# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Built grammar artifacts and loading them from a tree-sitter grammar directory.

A built grammar is what `tree-sitter generate` leaves behind:

```
tree-sitter-graphql/
    parser.wasm            (optional, from `tree-sitter build --wasm`)
    src/
        grammar.json
        node-types.json
```

`BuiltGrammar` keeps the exact text of both JSON documents next to their
parsed forms so generated SDKs can embed them byte for byte.
"""

from __future__ import annotations

import logging

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated, Any

from pydantic import ConfigDict, Field
from pydantic_core import to_json

from treant._common import BasedModel
from treant.exceptions import GrammarLoadError
from treant.grammar.grammar_json import GrammarDocument
from treant.grammar.node_types import NodeTypeCatalogue, NodeTypeDescriptor


logger = logging.getLogger(__name__)

GRAMMAR_FILE = "grammar.json"
NODE_TYPES_FILE = "node-types.json"
PARSER_FILE = "parser.wasm"

type GrammarInput = GrammarDocument | Mapping[str, Any] | str | bytes
type NodeTypesInput = NodeTypeCatalogue | Sequence[Any] | str | bytes


def _as_text(data: str | bytes) -> str:
    return data.decode("utf-8") if isinstance(data, bytes) else data


def _grammar_source(grammar: GrammarInput) -> tuple[GrammarDocument, str]:
    if isinstance(grammar, str | bytes):
        return GrammarDocument.from_json(grammar), _as_text(grammar)
    if isinstance(grammar, GrammarDocument):
        dumped = grammar.model_dump(mode="json", exclude_none=True)
        return grammar, to_json(dumped, indent=2).decode("utf-8")
    return GrammarDocument.from_mapping(grammar), to_json(grammar, indent=2).decode("utf-8")


def _node_types_source(node_types: NodeTypesInput) -> tuple[NodeTypeCatalogue, str]:
    if isinstance(node_types, str | bytes):
        return NodeTypeCatalogue.from_json(node_types), _as_text(node_types)
    if isinstance(node_types, NodeTypeCatalogue):
        dumped = [d.model_dump(mode="json", exclude_none=True) for d in node_types]
        return node_types, to_json(dumped, indent=2).decode("utf-8")
    if all(isinstance(item, NodeTypeDescriptor) for item in node_types):
        catalogue = NodeTypeCatalogue(node_types)
        return _node_types_source(catalogue)
    return NodeTypeCatalogue.from_list(node_types), to_json(list(node_types), indent=2).decode(
        "utf-8"
    )


class BuiltGrammar(BasedModel):
    """A grammar's parsed documents, their source text, and an optional compiled parser."""

    model_config = BasedModel.model_config | ConfigDict(frozen=True, str_strip_whitespace=False)

    grammar: Annotated[GrammarDocument, Field(description="The parsed grammar.json.")]
    node_types: Annotated[
        NodeTypeCatalogue, Field(description="The validated node-types.json catalogue.")
    ]
    grammar_source: Annotated[
        str, Field(description="grammar.json exactly as it was read (or serialized).")
    ]
    node_types_source: Annotated[
        str, Field(description="node-types.json exactly as it was read (or serialized).")
    ]
    parser_binary: Annotated[
        bytes | None, Field(description="The compiled WebAssembly parser, if one was built.")
    ] = None
    path: Annotated[
        Path | None, Field(description="The directory the grammar was loaded from, if any.")
    ] = None

    @classmethod
    def from_inputs(
        cls,
        grammar: GrammarInput,
        node_types: NodeTypesInput,
        *,
        parser_binary: bytes | None = None,
        path: Path | None = None,
    ) -> BuiltGrammar:
        """Build from JSON text, decoded JSON, or already parsed documents.

        Text inputs are kept verbatim. Decoded or parsed inputs are serialized
        as two-space indented JSON.

        Raises:
            GrammarError: If either document is malformed or inconsistent.
        """
        document, grammar_source = _grammar_source(grammar)
        catalogue, node_types_source = _node_types_source(node_types)
        return cls(
            grammar=document,
            node_types=catalogue,
            grammar_source=grammar_source,
            node_types_source=node_types_source,
            parser_binary=parser_binary,
            path=path,
        )

    @property
    def name(self) -> str:
        """The grammar's name."""
        return self.grammar.name


def _find_artifact_dir(directory: Path) -> Path:
    for candidate in (directory / "src", directory):
        if (candidate / GRAMMAR_FILE).is_file() and (candidate / NODE_TYPES_FILE).is_file():
            return candidate
    raise GrammarLoadError(
        f"No {GRAMMAR_FILE} and {NODE_TYPES_FILE} found in {directory}",
        details={"path": str(directory)},
        suggestions=[
            "Run `tree-sitter generate` in the grammar directory first.",
            f"Point at the grammar root or its `src` directory containing {GRAMMAR_FILE}.",
        ],
    )


def load_grammar(directory: Path | str) -> BuiltGrammar:
    """Load a built grammar from a tree-sitter grammar directory.

    Looks for `grammar.json` and `node-types.json` in `<directory>/src`, then in
    `<directory>` itself, and for an optional `parser.wasm` in either place.

    Raises:
        GrammarLoadError: If the directory or its artifacts are missing or unreadable.
        GrammarError: If the artifacts are malformed or inconsistent.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise GrammarLoadError(
            f"Grammar directory {directory} does not exist", details={"path": str(directory)}
        )
    artifacts = _find_artifact_dir(directory)
    try:
        grammar_text = (artifacts / GRAMMAR_FILE).read_text(encoding="utf-8")
        node_types_text = (artifacts / NODE_TYPES_FILE).read_text(encoding="utf-8")
        parser_binary = next(
            (
                path.read_bytes()
                for path in (directory / PARSER_FILE, artifacts / PARSER_FILE)
                if path.is_file()
            ),
            None,
        )
    except (OSError, UnicodeDecodeError) as e:
        raise GrammarLoadError(
            f"Could not read grammar artifacts from {artifacts}: {e}",
            details={"path": str(artifacts)},
        ) from e
    built = BuiltGrammar.from_inputs(
        grammar_text, node_types_text, parser_binary=parser_binary, path=directory
    )
    logger.info(
        "Loaded grammar %r from %s (%d node types%s)",
        built.name,
        artifacts,
        len(built.node_types),
        ", with parser" if parser_binary is not None else "",
    )
    return built


__all__ = (
    "GRAMMAR_FILE",
    "NODE_TYPES_FILE",
    "PARSER_FILE",
    "BuiltGrammar",
    "GrammarInput",
    "NodeTypesInput",
    "load_grammar",
)
