# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""SDK generation entry points.

`generate` turns a grammar and its node-type catalogue into the files of a
typed Python traversal SDK. It performs no I/O: the result is an ordered list
of `(path, content)` artifacts that `treant.emit.write_output` (or the caller)
can write anywhere.

Generation is deterministic and all-or-nothing. The same inputs always
produce byte-identical artifacts in the same order, and any failure raises
before a single artifact is returned.
"""

from __future__ import annotations

import logging

from collections.abc import Iterator, Mapping
from typing import Annotated, Any

from pydantic import ConfigDict, Field

from treant._common import BasedModel
from treant.exceptions import GenerationError, TreantError
from treant.generator.anonymous import anonymous_nodes_module
from treant.generator.context import GenerationContext
from treant.generator.cursor import emit_cursor_modules
from treant.generator.navigator import navigator_module
from treant.generator.nodes import emit_node_modules
from treant.generator.support import errors_module, root_module, types_module, utils_module
from treant.grammar.loader import (
    GRAMMAR_FILE,
    NODE_TYPES_FILE,
    PARSER_FILE,
    BuiltGrammar,
    GrammarInput,
    NodeTypesInput,
)
from treant.naming import NamespaceConfig, resolve_namespace


logger = logging.getLogger(__name__)

ARTIFACTS_DIR = "__artifacts__"


class GeneratedArtifact(BasedModel):
    """One generated file: a path relative to the SDK root and its content."""

    model_config = BasedModel.model_config | ConfigDict(frozen=True, str_strip_whitespace=False)

    path: Annotated[str, Field(description="POSIX path relative to the SDK root.")]
    content: Annotated[
        str | bytes, Field(description="Source text, or raw bytes for binary artifacts.")
    ]

    @property
    def is_binary(self) -> bool:
        """Whether the content is raw bytes."""
        return isinstance(self.content, bytes)


class GeneratorOutput(BasedModel):
    """Every artifact of a generated SDK, sorted by path."""

    model_config = BasedModel.model_config | ConfigDict(frozen=True, str_strip_whitespace=False)

    namespace: Annotated[str, Field(description="The resolved namespace identifier.")]
    grammar_name: Annotated[str, Field(description="Name of the grammar the SDK is for.")]
    artifacts: Annotated[
        tuple[GeneratedArtifact, ...], Field(description="Generated files, sorted by path.")
    ]

    @property
    def paths(self) -> tuple[str, ...]:
        """Artifact paths, in output order."""
        return tuple(artifact.path for artifact in self.artifacts)

    def get(self, path: str) -> GeneratedArtifact | None:
        """The artifact at `path`, or None."""
        return next((artifact for artifact in self.artifacts if artifact.path == path), None)

    def __getitem__(self, path: str) -> str | bytes:
        """Content of the artifact at `path`.

        Raises:
            KeyError: If no artifact has that path.
        """
        if (artifact := self.get(path)) is None:
            raise KeyError(path)
        return artifact.content

    def __contains__(self, path: object) -> bool:
        return any(artifact.path == path for artifact in self.artifacts)

    def __len__(self) -> int:
        return len(self.artifacts)


def _emit(context: GenerationContext) -> Iterator[tuple[str, str | bytes]]:
    built = context.built
    yield "__init__.py", root_module(context)
    yield "py.typed", ""
    yield "types.py", types_module(context)
    yield "errors.py", errors_module(context)
    yield "utils.py", utils_module(context)
    yield "anonymous_nodes.py", anonymous_nodes_module(context)
    yield "navigator.py", navigator_module(context)
    yield from emit_node_modules(context)
    yield from emit_cursor_modules(context)
    yield f"{ARTIFACTS_DIR}/{GRAMMAR_FILE}", built.grammar_source
    yield f"{ARTIFACTS_DIR}/{NODE_TYPES_FILE}", built.node_types_source
    if built.parser_binary is not None:
        yield f"{ARTIFACTS_DIR}/{PARSER_FILE}", built.parser_binary


def _collect(context: GenerationContext) -> tuple[GeneratedArtifact, ...]:
    files: dict[str, str | bytes] = {}
    for path, content in _emit(context):
        if path in files:
            raise GenerationError(
                f"Two generated files share the path {path}",
                details={"path": path, "grammar": context.grammar_name},
            )
        files[path] = content
    return tuple(
        GeneratedArtifact(path=path, content=content) for path, content in sorted(files.items())
    )


def generate_sdk(
    built: BuiltGrammar, namespace: NamespaceConfig | Mapping[str, Any] | None = None
) -> GeneratorOutput:
    """Generate the SDK for an already built grammar.

    Args:
        built: The grammar, its node-type catalogue, and their source text
        namespace: Namespace configuration; see `treant.naming.resolve_namespace`

    Raises:
        InvalidNamespaceConfigError: If the namespace configuration is invalid.
        MissingNodeTypeError: If the catalogue references undeclared node types.
        GenerationError: If emission fails for any other reason.
    """
    try:
        resolved = resolve_namespace(namespace, built.name)
        context = GenerationContext.create(built, resolved)
        artifacts = _collect(context)
    except TreantError:
        raise
    except Exception as e:
        raise GenerationError(
            f"Failed to generate the SDK for grammar {built.name!r}: {e}",
            details={"grammar": built.name, "cause": type(e).__name__},
            suggestions=["This is likely a bug in Treant; please report it with your grammar."],
        ) from e
    logger.debug(
        "Generated %d artifacts for grammar %r in namespace %r",
        len(artifacts),
        built.name,
        resolved,
    )
    return GeneratorOutput(namespace=resolved, grammar_name=built.name, artifacts=artifacts)


def generate(
    grammar: GrammarInput,
    node_types: NodeTypesInput,
    namespace: NamespaceConfig | Mapping[str, Any] | None = None,
    *,
    parser_binary: bytes | None = None,
) -> GeneratorOutput:
    """Generate a typed traversal SDK from a grammar and its node-type catalogue.

    Both documents may be given as JSON text (kept byte for byte in
    `__artifacts__/`), as decoded JSON, or as parsed models.

    Args:
        grammar: `grammar.json`
        node_types: `node-types.json`
        namespace: Namespace configuration (`prefix`, `name`, `concatMode`)
        parser_binary: Optional compiled parser, shipped as `__artifacts__/parser.wasm`

    Raises:
        GrammarError: If either document is malformed, or the catalogue references
            undeclared node types (`MissingNodeTypeError`).
        InvalidNamespaceConfigError: If the namespace configuration is invalid.
        GenerationError: If emission fails for any other reason.
    """
    built = BuiltGrammar.from_inputs(grammar, node_types, parser_binary=parser_binary)
    return generate_sdk(built, namespace)


__all__ = (
    "ARTIFACTS_DIR",
    "GeneratedArtifact",
    "GeneratorOutput",
    "generate",
    "generate_sdk",
)
