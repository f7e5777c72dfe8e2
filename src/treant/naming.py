# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Naming and classification: casing, anonymous-node categories, and namespaces.

Everything in this module is a pure function of its input. Generated module,
class, and function names are derived only from node type names, never from
iteration order; when two node types sanitize to the same name the one whose
raw name sorts first keeps it and the others get a numeric suffix.
"""

from __future__ import annotations

import keyword
import logging
import re

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Annotated, Any, NamedTuple

import textcase

from pydantic import ConfigDict, Field, ValidationError, field_validator

from treant._common import BasedModel, BaseEnum
from treant.exceptions import InvalidNamespaceConfigError
from treant.grammar.node_types import NodeRef, NodeTypeCatalogue, NodeTypeDescriptor


logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "Treant"

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_WORD_CHARS = re.compile(r"[A-Za-z0-9_]")
_ALL_CAPS = re.compile(r"[A-Z_]+")
_TOKENS = re.compile(r"[A-Za-z0-9_]+|.", re.DOTALL)

SYMBOL_NAMES: MappingProxyType[str, str] = MappingProxyType({
    "!": "exclamation",
    '"': "quote",
    "#": "hash",
    "$": "dollar",
    "%": "percent",
    "&": "ampersand",
    "'": "apostrophe",
    "(": "lparen",
    ")": "rparen",
    "*": "asterisk",
    "+": "plus",
    ",": "comma",
    "-": "minus",
    ".": "dot",
    "/": "slash",
    ":": "colon",
    ";": "semicolon",
    "<": "lt",
    "=": "equals",
    ">": "gt",
    "?": "question",
    "@": "at",
    "[": "lbracket",
    "\\": "backslash",
    "]": "rbracket",
    "^": "caret",
    "_": "underscore",
    "`": "backtick",
    "{": "lbrace",
    "|": "pipe",
    "}": "rbrace",
    "~": "tilde",
    '"""': "triple_quote",
    "...": "ellipsis",
})
"""Readable names for symbols, used to build file and identifier names for anonymous nodes."""

RESERVED_MODULE_NAMES = frozenset({"anonymous", "__init__", "__main__"})
"""Stems that would shadow a generated subpackage or package file inside `nodes/`."""

RESERVED_PASCAL_NAMES = frozenset({"Anonymous", "RawTree", "Syntax", "Tree"})
"""Pascal stems whose `Node`/`Cursor` class names clash with fixed SDK classes."""


# ===========================================================================
# Anonymous node classification
# ===========================================================================


class AnonymousCategory(BaseEnum):
    """The kind of literal an anonymous node stands for."""

    PUNCTUATION = "punctuation"
    OPERATOR = "operator"
    KEYWORD = "keyword"

    @property
    def type_alias(self) -> str:
        """Name of the generated `Literal` alias for this category."""
        return f"{textcase.pascal(self.value)}Type"

    @property
    def constant(self) -> str:
        """Name of the generated frozenset constant for this category."""
        return f"{self.name}_TYPES"


def classify_anonymous(text: str) -> AnonymousCategory:
    """Classify an anonymous node by the characters of its literal text.

    - One character outside `[A-Za-z0-9_]`: punctuation (`(`, `;`)
    - Several characters, all outside `[A-Za-z0-9_]`: operator (`=>`, `...`)
    - Anything else: keyword (`query`, `true`, `@include`)
    """
    if len(text) == 1 and not _WORD_CHARS.fullmatch(text):
        return AnonymousCategory.PUNCTUATION
    if len(text) > 1 and not any(_WORD_CHARS.fullmatch(char) for char in text):
        return AnonymousCategory.OPERATOR
    return AnonymousCategory.KEYWORD


class AnonymousCategories(NamedTuple):
    """Anonymous node texts partitioned by category, each sorted."""

    punctuation: tuple[str, ...]
    operators: tuple[str, ...]
    keywords: tuple[str, ...]

    def of(self, category: AnonymousCategory) -> tuple[str, ...]:
        """The members of one category."""
        return {
            AnonymousCategory.PUNCTUATION: self.punctuation,
            AnonymousCategory.OPERATOR: self.operators,
            AnonymousCategory.KEYWORD: self.keywords,
        }[category]


def categorize_anonymous(
    node_types: Iterable[str | NodeTypeDescriptor] | NodeTypeCatalogue,
) -> AnonymousCategories:
    """Partition anonymous node types into punctuation, operators, and keywords.

    Given a catalogue, only its anonymous descriptors are considered. Duplicates
    are dropped.
    """
    if isinstance(node_types, NodeTypeCatalogue):
        node_types = node_types.anonymous_types
    texts = sorted({t if isinstance(t, str) else t.type for t in node_types})
    buckets: dict[AnonymousCategory, list[str]] = {category: [] for category in AnonymousCategory}
    for text in texts:
        buckets[classify_anonymous(text)].append(text)
    return AnonymousCategories(
        tuple(buckets[AnonymousCategory.PUNCTUATION]),
        tuple(buckets[AnonymousCategory.OPERATOR]),
        tuple(buckets[AnonymousCategory.KEYWORD]),
    )


# ===========================================================================
# Casing
# ===========================================================================


def to_pascal_case(value: str) -> str:
    """`source_file` -> `SourceFile`."""
    return textcase.pascal(value)


def to_camel_case(value: str) -> str:
    """`source_file` -> `sourceFile`."""
    return textcase.camel(value)


def to_snake_case(value: str) -> str:
    """`SourceFile` -> `source_file`."""
    return textcase.snake(value)


def to_kebab_case(value: str) -> str:
    """`SourceFile` -> `source-file`."""
    return textcase.kebab(value)


def is_identifier(value: str) -> bool:
    """Whether `value` is a letter or underscore followed by letters, digits, and underscores."""
    return bool(IDENTIFIER_PATTERN.fullmatch(value))


def safe_identifier(value: str) -> str:
    """Make `value` usable as a Python name: keywords get a trailing underscore."""
    return f"{value}_" if keyword.iskeyword(value) else value


def sanitize_node_type(node_type: str) -> str:
    """Turn a node type name into a safe file stem and identifier.

    - Known symbols and symbol sequences become words: `(` -> `lparen`, `...` -> `ellipsis`
    - Identifiers are kept, except all-caps ones get an `upper_` prefix
      (`QUERY` -> `upper_query`) so they cannot clash with their lowercase twin
    - Other text is split into words and symbols joined by underscores
      (`=>` -> `equals_gt`); characters without a name become `uXXXX`
    - Python keywords get a trailing underscore (`if` -> `if_`)
    """
    if node_type in SYMBOL_NAMES:
        return SYMBOL_NAMES[node_type]
    if is_identifier(node_type):
        if _ALL_CAPS.fullmatch(node_type):
            return f"upper_{node_type.lower()}"
        return safe_identifier(node_type)
    parts = [
        token if _WORD_CHARS.fullmatch(token[0]) else SYMBOL_NAMES.get(token, f"u{ord(token):04x}")
        for token in _TOKENS.findall(node_type)
    ]
    sanitized = re.sub(r"_{2,}", "_", "_".join(parts)).strip("_") or "empty"
    if sanitized[0].isdigit():
        sanitized = f"n{sanitized}"
    return safe_identifier(sanitized)


def accessor_name_for(name: str) -> str:
    """Method name for a field or child type accessor, safe to use in Python."""
    snake = to_snake_case(sanitize_node_type(name)) or "child"
    if snake[0].isdigit():
        snake = f"n{snake}"
    return safe_identifier(snake)


class NodeNames(NamedTuple):
    """The generated names for one node type."""

    module: str
    """File stem in `nodes/` (or `nodes/anonymous/`)."""
    snake: str
    pascal: str
    class_name: str
    guard: str


def _assign_names(
    refs: Iterable[NodeRef],
    *,
    class_suffix: str,
    guard_suffix: str,
    reserved: frozenset[str] = frozenset(),
    reserved_pascal: frozenset[str] = frozenset(),
) -> dict[NodeRef, NodeNames]:
    used_modules: set[str] = set(reserved)
    used_snake: set[str] = set()
    used_pascal: set[str] = set(reserved_pascal)
    names: dict[NodeRef, NodeNames] = {}
    for ref in sorted(refs, key=lambda r: (r.type, not r.named)):
        base = sanitize_node_type(ref.type)
        candidate, counter = base, 1
        while True:
            snake = to_snake_case(candidate) or "empty"
            pascal = to_pascal_case(candidate) or "Empty"
            if (
                candidate not in used_modules
                and snake not in used_snake
                and pascal not in used_pascal
            ):
                break
            counter += 1
            candidate = f"{base}_{counter}"
        if candidate != base:
            logger.debug("Node type %s renamed to %r to avoid a name collision", ref, candidate)
        used_modules.add(candidate)
        used_snake.add(snake)
        used_pascal.add(pascal)
        names[ref] = NodeNames(
            module=candidate,
            snake=snake,
            pascal=pascal,
            class_name=f"{pascal}{class_suffix}",
            guard=safe_identifier(f"is_{snake}_{guard_suffix}"),
        )
    return names


class NameRegistry:
    """Collision-free generated names for every node type in a catalogue.

    Named types (concrete and supertypes) share one name space and anonymous
    types another, mirroring `nodes/` and `nodes/anonymous/`.
    """

    def __init__(self, catalogue: NodeTypeCatalogue) -> None:
        """Assign names for every descriptor in the catalogue."""
        self._named = _assign_names(
            (d.ref for d in catalogue if d.named),
            class_suffix="Node",
            guard_suffix="node",
            reserved=RESERVED_MODULE_NAMES,
            reserved_pascal=RESERVED_PASCAL_NAMES,
        )
        self._anonymous = _assign_names(
            (d.ref for d in catalogue if not d.named),
            class_suffix="Token",
            guard_suffix="token",
            reserved=frozenset({"__init__"}),
        )

    def __getitem__(self, ref: NodeRef) -> NodeNames:
        return self._named[ref] if ref.named else self._anonymous[ref]

    def named(self, node_type: str) -> NodeNames:
        """Names for a named node type."""
        return self._named[NodeRef(node_type, True)]

    def anonymous(self, node_type: str) -> NodeNames:
        """Names for an anonymous node type."""
        return self._anonymous[NodeRef(node_type, False)]


# ===========================================================================
# Namespace resolution
# ===========================================================================


class ConcatMode(BaseEnum):
    """How a namespace prefix and name are joined."""

    PASCAL = "pascal"
    KEBAB = "kebab"
    SNAKE = "snake"

    @classmethod
    def _missing_(cls, value: object) -> ConcatMode | None:
        if not isinstance(value, str):
            return None
        if value.strip().lower() == "camel":
            return cls.PASCAL
        return cls.from_string(value) if cls.is_member(value) else None


class NamespaceConfig(BasedModel):
    """How the generated SDK's namespace identifier is formed.

    - `prefix`: defaults to `"Treant"`; `None` drops the prefix entirely
    - `name`: defaults to the Pascal-cased grammar name
    - `concat_mode` (alias `concatMode`): joins prefix and name; no effect without a prefix
    """

    model_config = BasedModel.model_config | ConfigDict(frozen=True, extra="forbid")

    prefix: Annotated[
        str | None, Field(description="Namespace prefix, or None for no prefix.")
    ] = DEFAULT_PREFIX
    name: Annotated[
        str | None, Field(description="Namespace base name; defaults to the grammar name.")
    ] = None
    concat_mode: Annotated[
        ConcatMode,
        Field(alias="concatMode", description="How prefix and name are joined."),
    ] = ConcatMode.PASCAL

    @field_validator("concat_mode", mode="before")
    @classmethod
    def _accept_camel(cls, value: Any) -> Any:
        return ConcatMode(value) if isinstance(value, str) else value


def _validate_identifier(field: str, value: str) -> str:
    if not is_identifier(value):
        raise InvalidNamespaceConfigError(field, value)
    return value


def _coerce_config(config: NamespaceConfig | Mapping[str, Any] | None) -> NamespaceConfig:
    if config is None:
        return NamespaceConfig()
    if isinstance(config, NamespaceConfig):
        return config
    try:
        return NamespaceConfig.model_validate(config)
    except ValidationError as e:
        detail = e.errors()[0]
        field = str(detail["loc"][0]) if detail["loc"] else "namespace"
        if field == "concatMode":
            field = "concat_mode"
        raise InvalidNamespaceConfigError(
            field, detail.get("input"), reason=detail["msg"]
        ) from e


def resolve_namespace(config: NamespaceConfig | Mapping[str, Any] | None, grammar_name: str) -> str:
    """Resolve the generated SDK's namespace identifier.

    Examples:
        >>> resolve_namespace({}, "graphql")
        'TreantGraphql'
        >>> resolve_namespace({"prefix": "My"}, "graphql")
        'MyGraphql'
        >>> resolve_namespace({"prefix": None}, "graphql")
        'Graphql'
        >>> resolve_namespace({"prefix": "My", "concatMode": "kebab"}, "graphql")
        'my-graphql'

    Raises:
        InvalidNamespaceConfigError: If `prefix` or `name` is not a valid
            identifier, naming the failing field.
    """
    resolved = _coerce_config(config)
    prefix = None if resolved.prefix is None else _validate_identifier("prefix", resolved.prefix)
    name = (
        to_pascal_case(grammar_name)
        if resolved.name is None
        else _validate_identifier("name", resolved.name)
    )
    if prefix is None:
        return name
    match resolved.concat_mode:
        case ConcatMode.KEBAB:
            return f"{to_kebab_case(prefix)}-{to_kebab_case(name)}"
        case ConcatMode.SNAKE:
            return f"{to_snake_case(prefix)}_{to_snake_case(name)}"
        case _:
            return f"{prefix}{name}"


__all__ = (
    "DEFAULT_PREFIX",
    "IDENTIFIER_PATTERN",
    "RESERVED_MODULE_NAMES",
    "RESERVED_PASCAL_NAMES",
    "SYMBOL_NAMES",
    "AnonymousCategories",
    "AnonymousCategory",
    "ConcatMode",
    "NameRegistry",
    "NamespaceConfig",
    "NodeNames",
    "accessor_name_for",
    "categorize_anonymous",
    "classify_anonymous",
    "is_identifier",
    "resolve_namespace",
    "safe_identifier",
    "sanitize_node_type",
    "to_camel_case",
    "to_kebab_case",
    "to_pascal_case",
    "to_snake_case",
)
