# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""The `grammar.json` document: a grammar's name and its table of rule trees."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import ConfigDict, Field, ValidationError
from pydantic_core import from_json

from treant._common import BasedModel
from treant.exceptions import GrammarError
from treant.grammar.rules import Rule, SymbolRule, translate_rule_errors


class GrammarDocument(BasedModel):
    """A parsed `grammar.json`.

    `rules` keeps the document's order; the first rule is the grammar's start
    rule. Unknown top-level keys (for example `$schema` or `reserved`) are kept
    as extra attributes so newer grammar files still load.
    """

    model_config = BasedModel.model_config | ConfigDict(
        frozen=True, extra="allow", str_strip_whitespace=False
    )

    name: Annotated[str, Field(description="The grammar's name, e.g. `graphql`.")]

    rules: Annotated[
        dict[str, Rule],
        Field(description="Rule trees keyed by rule name, in declaration order."),
    ]

    extras: Annotated[
        tuple[Rule, ...],
        Field(
            default=(),
            description="Tokens that may appear anywhere (usually whitespace and comments).",
        ),
    ]

    conflicts: Annotated[
        tuple[tuple[str, ...], ...],
        Field(default=(), description="Groups of rules with intended LR conflicts."),
    ]

    precedences: Annotated[
        tuple[tuple[Rule, ...], ...],
        Field(default=(), description="Ordered precedence levels (STRING or SYMBOL rules)."),
    ]

    externals: Annotated[
        tuple[Rule, ...],
        Field(default=(), description="Tokens produced by an external scanner."),
    ]

    inline: Annotated[
        tuple[str, ...], Field(default=(), description="Rules inlined into their call sites.")
    ]

    supertypes: Annotated[
        tuple[str, ...],
        Field(default=(), description="Hidden rules exposed as supertypes in node-types.json."),
    ]

    word: Annotated[
        str | None, Field(default=None, description="The keyword extraction token, if any.")
    ]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GrammarDocument:
        """Validate a decoded `grammar.json`.

        Raises:
            UnclassifiableRuleError: If a rule tree contains an unknown rule kind.
            GrammarError: If the document is otherwise malformed.
        """
        if isinstance(data, GrammarDocument):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise translate_rule_errors(e, location="grammar", subject="grammar document") from e

    @classmethod
    def from_json(cls, data: bytes | str) -> GrammarDocument:
        """Parse and validate `grammar.json` text."""
        try:
            decoded = from_json(data)
        except ValueError as e:
            raise GrammarError(f"grammar.json is not valid JSON: {e}") from e
        if not isinstance(decoded, dict):
            raise GrammarError("grammar.json must contain a JSON object")
        return cls.from_mapping(decoded)

    @property
    def start_rule(self) -> str:
        """The name of the first (start) rule."""
        try:
            return next(iter(self.rules))
        except StopIteration:
            raise GrammarError(f"Grammar {self.name!r} has no rules") from None

    @property
    def rule_names(self) -> tuple[str, ...]:
        """Rule names in declaration order."""
        return tuple(self.rules)

    def rule(self, name: str) -> Rule:
        """Look up a rule by name.

        Raises:
            GrammarError: If no rule has that name.
        """
        try:
            return self.rules[name]
        except KeyError:
            raise GrammarError(
                f"Grammar {self.name!r} has no rule named {name!r}", details={"rule": name}
            ) from None

    def resolve(self, rule: Rule) -> Rule:
        """Follow a `SYMBOL` reference to the rule it names; other rules are returned as-is."""
        return self.rule(rule.name) if isinstance(rule, SymbolRule) else rule

    def is_hidden(self, name: str) -> bool:
        """Whether a rule is hidden from the parse tree (leading underscore) and not a supertype."""
        return name.startswith("_") and name not in self.supertypes


__all__ = ("GrammarDocument",)
