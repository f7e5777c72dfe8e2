# sourcery skip: avoid-builtin-shadow
# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Semantic model of tree-sitter grammar rules (`grammar.json` rule trees).

Each node of a rule tree is validated into exactly one frozen model, picked by
its `type` tag. Rule trees own their children; recursion between rules is only
ever expressed through `SymbolRule` names, which are looked up in the
grammar-wide rule table (`GrammarDocument.rules`) rather than linked as objects.

Derived classifications are plain functions over a rule:

- `has_content`: the rule wraps a single `content` rule
- `has_members`: the rule holds an ordered `members` list
- `is_optional`: the rule is `CHOICE(X, BLANK)`

Every `RuleKind` falls into exactly one of the content, member, or leaf kind
sets. That partition is checked when this module is imported, and `classify`
ends in `assert_never` so a type checker flags any rule model it does not handle.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Annotated, Any, Literal, assert_never

from pydantic import ConfigDict, Field, TypeAdapter, ValidationError

from treant._common import BasedModel, BaseEnum
from treant.exceptions import GrammarError, NotOptionalError, UnclassifiableRuleError


class RuleKind(BaseEnum):
    """The closed set of rule kinds a `grammar.json` rule tree can contain."""

    SYMBOL = "SYMBOL"
    STRING = "STRING"
    PATTERN = "PATTERN"
    BLANK = "BLANK"
    SEQ = "SEQ"
    CHOICE = "CHOICE"
    REPEAT = "REPEAT"
    REPEAT1 = "REPEAT1"
    FIELD = "FIELD"
    ALIAS = "ALIAS"
    TOKEN = "TOKEN"  # noqa: S105  # a grammar rule tag, not a credential
    IMMEDIATE_TOKEN = "IMMEDIATE_TOKEN"  # noqa: S105
    PREC = "PREC"
    PREC_LEFT = "PREC_LEFT"
    PREC_RIGHT = "PREC_RIGHT"
    PREC_DYNAMIC = "PREC_DYNAMIC"

    @property
    def has_content(self) -> bool:
        """Whether rules of this kind wrap a single `content` rule."""
        return self in CONTENT_KINDS

    @property
    def has_members(self) -> bool:
        """Whether rules of this kind hold an ordered `members` list."""
        return self in MEMBER_KINDS

    @property
    def is_leaf(self) -> bool:
        """Whether rules of this kind own no child rules."""
        return self in LEAF_KINDS

    @property
    def is_precedence(self) -> bool:
        """Whether this kind is one of the precedence annotations."""
        return self in PRECEDENCE_KINDS


PRECEDENCE_KINDS: frozenset[RuleKind] = frozenset({
    RuleKind.PREC,
    RuleKind.PREC_LEFT,
    RuleKind.PREC_RIGHT,
    RuleKind.PREC_DYNAMIC,
})

CONTENT_KINDS: frozenset[RuleKind] = frozenset({
    RuleKind.ALIAS,
    RuleKind.FIELD,
    RuleKind.TOKEN,
    RuleKind.IMMEDIATE_TOKEN,
    RuleKind.REPEAT,
    RuleKind.REPEAT1,
    *PRECEDENCE_KINDS,
})

MEMBER_KINDS: frozenset[RuleKind] = frozenset({RuleKind.SEQ, RuleKind.CHOICE})

LEAF_KINDS: frozenset[RuleKind] = frozenset({
    RuleKind.SYMBOL,
    RuleKind.STRING,
    RuleKind.PATTERN,
    RuleKind.BLANK,
})


def _check_kind_partition() -> None:
    """Fail loudly if a rule kind is unhandled or handled twice."""
    groups = (CONTENT_KINDS, MEMBER_KINDS, LEAF_KINDS)
    if broken := sorted(
        kind.value for kind in RuleKind if sum(kind in group for group in groups) != 1
    ):
        raise TypeError(
            f"Rule kinds must belong to exactly one of content/members/leaf: {', '.join(broken)}"
        )


_check_kind_partition()


class _RuleModel(BasedModel):
    """Shared configuration for rule models."""

    # literal rule values are significant down to the whitespace (e.g. STRING " ")
    model_config = BasedModel.model_config | ConfigDict(
        frozen=True, extra="ignore", str_strip_whitespace=False
    )

    @property
    def kind(self) -> RuleKind:
        """The kind of this rule."""
        return RuleKind(self.type)  # type: ignore[attr-defined]


class SymbolRule(_RuleModel):
    """A reference, by name, to another rule in the grammar."""

    type: Literal["SYMBOL"] = "SYMBOL"
    name: str


class StringRule(_RuleModel):
    """A literal string token."""

    type: Literal["STRING"] = "STRING"
    value: str


class PatternRule(_RuleModel):
    """A regular expression token."""

    type: Literal["PATTERN"] = "PATTERN"
    value: str
    flags: str | None = None


class BlankRule(_RuleModel):
    """Matches the empty string."""

    type: Literal["BLANK"] = "BLANK"


class SeqRule(_RuleModel):
    """An ordered sequence of rules."""

    type: Literal["SEQ"] = "SEQ"
    members: tuple[Rule, ...]


class ChoiceRule(_RuleModel):
    """One of several alternative rules."""

    type: Literal["CHOICE"] = "CHOICE"
    members: tuple[Rule, ...]


class RepeatRule(_RuleModel):
    """Zero or more repetitions of its content."""

    type: Literal["REPEAT"] = "REPEAT"
    content: Rule


class Repeat1Rule(_RuleModel):
    """One or more repetitions of its content."""

    type: Literal["REPEAT1"] = "REPEAT1"
    content: Rule


class FieldRule(_RuleModel):
    """Names the node produced by its content as a field of the parent."""

    type: Literal["FIELD"] = "FIELD"
    name: str
    content: Rule


class AliasRule(_RuleModel):
    """Renames the node produced by its content."""

    type: Literal["ALIAS"] = "ALIAS"
    content: Rule
    named: bool
    value: str


class TokenRule(_RuleModel):
    """Collapses its content into a single token."""

    type: Literal["TOKEN"] = "TOKEN"
    content: Rule


class ImmediateTokenRule(_RuleModel):
    """A token that must follow the previous token without intervening extras."""

    type: Literal["IMMEDIATE_TOKEN"] = "IMMEDIATE_TOKEN"
    content: Rule


class PrecRule(_RuleModel):
    """Static precedence annotation."""

    type: Literal["PREC"] = "PREC"
    value: int | str
    content: Rule


class PrecLeftRule(_RuleModel):
    """Left-associative precedence annotation."""

    type: Literal["PREC_LEFT"] = "PREC_LEFT"
    value: int | str
    content: Rule


class PrecRightRule(_RuleModel):
    """Right-associative precedence annotation."""

    type: Literal["PREC_RIGHT"] = "PREC_RIGHT"
    value: int | str
    content: Rule


class PrecDynamicRule(_RuleModel):
    """Dynamic (runtime conflict resolution) precedence annotation."""

    type: Literal["PREC_DYNAMIC"] = "PREC_DYNAMIC"
    value: int
    content: Rule


Rule = Annotated[
    SymbolRule
    | StringRule
    | PatternRule
    | BlankRule
    | SeqRule
    | ChoiceRule
    | RepeatRule
    | Repeat1Rule
    | FieldRule
    | AliasRule
    | TokenRule
    | ImmediateTokenRule
    | PrecRule
    | PrecLeftRule
    | PrecRightRule
    | PrecDynamicRule,
    Field(discriminator="type"),
]
"""Any grammar rule, discriminated on its `type` tag."""

type ContentRule = (
    RepeatRule
    | Repeat1Rule
    | FieldRule
    | AliasRule
    | TokenRule
    | ImmediateTokenRule
    | PrecRule
    | PrecLeftRule
    | PrecRightRule
    | PrecDynamicRule
)
type MembersRule = SeqRule | ChoiceRule
type PrecedenceRule = PrecRule | PrecLeftRule | PrecRightRule | PrecDynamicRule

RULE_MODELS: Mapping[RuleKind, type[_RuleModel]] = {
    RuleKind.SYMBOL: SymbolRule,
    RuleKind.STRING: StringRule,
    RuleKind.PATTERN: PatternRule,
    RuleKind.BLANK: BlankRule,
    RuleKind.SEQ: SeqRule,
    RuleKind.CHOICE: ChoiceRule,
    RuleKind.REPEAT: RepeatRule,
    RuleKind.REPEAT1: Repeat1Rule,
    RuleKind.FIELD: FieldRule,
    RuleKind.ALIAS: AliasRule,
    RuleKind.TOKEN: TokenRule,
    RuleKind.IMMEDIATE_TOKEN: ImmediateTokenRule,
    RuleKind.PREC: PrecRule,
    RuleKind.PREC_LEFT: PrecLeftRule,
    RuleKind.PREC_RIGHT: PrecRightRule,
    RuleKind.PREC_DYNAMIC: PrecDynamicRule,
}

for _model in RULE_MODELS.values():
    _model.model_rebuild()

_RULE_ADAPTER: TypeAdapter[Rule] = TypeAdapter(Rule)
_RULE_TYPES: tuple[type[_RuleModel], ...] = tuple(RULE_MODELS.values())
_RULE_TAGS: frozenset[str] = frozenset(kind.value for kind in RuleKind)


def _format_location(base: str, loc: tuple[int | str, ...]) -> str:
    """Render a pydantic error location as a slash separated path."""
    # tagged-union locations interleave the tag name with the field path
    parts = [str(part) for part in loc if part not in _RULE_TAGS]
    return "/".join([base, *parts]) if parts else base


def translate_rule_errors(
    error: ValidationError, *, location: str = "<root>", subject: str = "grammar rule"
) -> GrammarError:
    """Turn a pydantic validation failure over a rule tree into a Treant error.

    Unknown rule tags become `UnclassifiableRuleError`; any other structural
    problem becomes a plain `GrammarError`.
    """
    for detail in error.errors():
        if detail["type"] in {"union_tag_invalid", "union_tag_not_found"}:
            tag = (detail.get("ctx") or {}).get("tag")
            if tag is None and isinstance(detail.get("input"), Mapping):
                tag = detail["input"].get("type")
            return UnclassifiableRuleError(tag, location=_format_location(location, detail["loc"]))
    return GrammarError(
        f"Malformed {subject} at {location}: {error.error_count()} validation error(s)",
        details={"location": location, "errors": error.errors(include_url=False)},
    )


def parse_rule(data: Mapping[str, Any] | Rule, *, location: str = "<root>") -> Rule:
    """Validate a raw rule mapping into a rule model.

    Args:
        data: A rule tree as decoded from `grammar.json`, or an already parsed rule
        location: Where the rule lives, used in error messages (e.g. a rule name)

    Returns:
        The parsed rule tree.

    Raises:
        UnclassifiableRuleError: If any node's `type` is not a known rule kind.
        GrammarError: If a node of a known kind is missing required properties.
    """
    if isinstance(data, _RULE_TYPES):
        return data
    try:
        return _RULE_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise translate_rule_errors(e, location=location) from e


def classify(rule: Rule) -> RuleKind:
    """Return the kind of a rule. Total over every rule model."""
    match rule:
        case SymbolRule():
            return RuleKind.SYMBOL
        case StringRule():
            return RuleKind.STRING
        case PatternRule():
            return RuleKind.PATTERN
        case BlankRule():
            return RuleKind.BLANK
        case SeqRule():
            return RuleKind.SEQ
        case ChoiceRule():
            return RuleKind.CHOICE
        case RepeatRule():
            return RuleKind.REPEAT
        case Repeat1Rule():
            return RuleKind.REPEAT1
        case FieldRule():
            return RuleKind.FIELD
        case AliasRule():
            return RuleKind.ALIAS
        case TokenRule():
            return RuleKind.TOKEN
        case ImmediateTokenRule():
            return RuleKind.IMMEDIATE_TOKEN
        case PrecRule():
            return RuleKind.PREC
        case PrecLeftRule():
            return RuleKind.PREC_LEFT
        case PrecRightRule():
            return RuleKind.PREC_RIGHT
        case PrecDynamicRule():
            return RuleKind.PREC_DYNAMIC
        case _:
            assert_never(rule)


def has_content(rule: Rule) -> bool:
    """Whether the rule wraps a single `content` rule."""
    return classify(rule) in CONTENT_KINDS


def has_members(rule: Rule) -> bool:
    """Whether the rule holds an ordered `members` list."""
    return classify(rule) in MEMBER_KINDS


def is_precedence(rule: Rule) -> bool:
    """Whether the rule is a precedence annotation."""
    return classify(rule) in PRECEDENCE_KINDS


def is_optional(rule: Rule) -> bool:
    """Whether the rule is a choice between exactly one rule and `BLANK`."""
    return (
        isinstance(rule, ChoiceRule)
        and len(rule.members) == 2
        and sum(isinstance(member, BlankRule) for member in rule.members) == 1
    )


def extract_optional_content(rule: Rule) -> Rule:
    """Return the non-blank member of an optional rule.

    Raises:
        NotOptionalError: If `is_optional(rule)` is false.
    """
    if not is_optional(rule):
        raise NotOptionalError(
            f"Expected CHOICE(<rule>, BLANK) but got {classify(rule).value}",
            details={"rule_type": classify(rule).value},
        )
    members = rule.members  # type: ignore[union-attr]
    return next(member for member in members if not isinstance(member, BlankRule))


def child_rules(rule: Rule) -> tuple[Rule, ...]:
    """The rules directly owned by `rule`, in order."""
    if has_members(rule):
        return rule.members  # type: ignore[union-attr]
    if has_content(rule):
        return (rule.content,)  # type: ignore[union-attr]
    return ()


def iter_rules(rule: Rule) -> Iterator[Rule]:
    """Walk a rule tree in pre-order, yielding `rule` first."""
    stack: list[Rule] = [rule]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(child_rules(current)))


def iter_symbols(rule: Rule) -> Iterator[str]:
    """Yield the names of every `SYMBOL` referenced within a rule tree, in order."""
    yield from (r.name for r in iter_rules(rule) if isinstance(r, SymbolRule))


__all__ = (
    "CONTENT_KINDS",
    "LEAF_KINDS",
    "MEMBER_KINDS",
    "PRECEDENCE_KINDS",
    "RULE_MODELS",
    "AliasRule",
    "BlankRule",
    "ChoiceRule",
    "ContentRule",
    "FieldRule",
    "ImmediateTokenRule",
    "MembersRule",
    "PatternRule",
    "PrecDynamicRule",
    "PrecLeftRule",
    "PrecRightRule",
    "PrecRule",
    "PrecedenceRule",
    "Repeat1Rule",
    "RepeatRule",
    "Rule",
    "RuleKind",
    "SeqRule",
    "StringRule",
    "SymbolRule",
    "TokenRule",
    "child_rules",
    "classify",
    "extract_optional_content",
    "has_content",
    "has_members",
    "is_optional",
    "is_precedence",
    "iter_rules",
    "iter_symbols",
    "parse_rule",
    "translate_rule_errors",
)
