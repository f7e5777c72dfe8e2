# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Unified exception hierarchy for Treant.

Every error raised by grammar analysis, naming, or SDK generation inherits from
`TreantError`. None of them are recovered internally: a partially consistent
SDK is worse than a refused generation.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, ClassVar


class TreantError(Exception):
    """Base exception for all Treant errors.

    Provides structured error information including details and suggestions
    for resolution.
    """

    _issue_information: ClassVar[tuple[str, ...]] = (
        "If you think this is a bug in Treant rather than in your grammar, please open an issue",
        "and include the grammar.json and node-types.json that triggered it.",
    )

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        suggestions: list[str] | None = None,
    ) -> None:
        """Initialize Treant error.

        Args:
            message: Human-readable error message
            details: Additional context about the error
            suggestions: Actionable suggestions for resolving the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def __str__(self) -> str:
        """Return descriptive error message with context details."""
        parts = [self.message]
        if self.details:
            detail_parts = [
                f"{key.replace('_', ' ')}: {self.details[key]}"
                for key in ("field", "rule_type", "location", "path")
                if key in self.details
            ]
            if detail_parts:
                parts.append(f"({', '.join(detail_parts)})")
        return " ".join(parts)

    @property
    def report(self) -> str:
        """Generate a full error report including reporting information."""
        lines = [
            f"- Error Message: {self.message}",
            "- Details: " + ", ".join(f"{k}: {v}" for k, v in self.details.items())
            if self.details
            else "- No additional details provided.",
            "- Suggestions: " + ", ".join(self.suggestions)
            if self.suggestions
            else "- No suggestions provided.",
        ]
        return "\n".join((*type(self)._issue_information, "", *lines))


class GrammarError(TreantError):
    """Structural problems in the grammar rule tree or the node-type catalogue."""


class MissingNodeTypeError(GrammarError):
    """One or more node types are referenced by the catalogue but never declared.

    All dangling references are reported together so the grammar can be fixed
    in a single pass.
    """

    def __init__(
        self, missing: Iterable[str], *, referenced_by: dict[str, list[str]] | None = None
    ) -> None:
        """Initialize with every missing node type name.

        Args:
            missing: Names of node types referenced but absent from the catalogue
            referenced_by: Optional map from missing type to the descriptors referencing it
        """
        self.missing: tuple[str, ...] = tuple(sorted(set(missing)))
        self.referenced_by = referenced_by or {}
        super().__init__(
            f"Node type catalogue references undeclared node types: {', '.join(self.missing)}",
            details={"missing": list(self.missing), "referenced_by": self.referenced_by},
            suggestions=[
                "Regenerate node-types.json from the same grammar.json you are generating from.",
                (
                    "Check for hidden rules (leading underscore) that are referenced "
                    "but not declared as supertypes."
                ),
            ],
        )


class UnclassifiableRuleError(GrammarError):
    """A rule tree node matches none of the known rule kinds.

    This usually means the grammar was produced by a newer (or older) grammar
    format than Treant understands.
    """

    def __init__(self, rule_type: object, *, location: str = "<root>") -> None:
        """Initialize with the offending rule tag and where it was found."""
        self.rule_type = rule_type
        self.location = location
        super().__init__(
            f"Cannot classify grammar rule of type {rule_type!r}",
            details={"rule_type": rule_type, "location": location},
            suggestions=[
                "Check that grammar.json was generated by a supported tree-sitter version."
            ],
        )


class NotOptionalError(GrammarError):
    """Optional content was requested from a rule that is not an optional choice."""


class InvalidNamespaceConfigError(TreantError):
    """The namespace configuration contains an invalid prefix or name."""

    def __init__(self, field: str, value: object, reason: str | None = None) -> None:
        """Initialize with the failing field and its value."""
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid namespace {field} {value!r}: {reason or 'must be a valid identifier'}",
            details={"field": field, "value": value},
            suggestions=[
                f"Use a {field} that starts with a letter or underscore and contains only "
                "letters, digits, and underscores."
            ],
        )


class GrammarLoadError(TreantError):
    """Grammar artifacts could not be read from disk."""


class GenerationError(TreantError):
    """SDK generation failed; no artifacts were produced."""


class OutputError(TreantError):
    """Generated artifacts could not be written to disk."""


__all__ = (
    "GenerationError",
    "GrammarError",
    "GrammarLoadError",
    "InvalidNamespaceConfigError",
    "MissingNodeTypeError",
    "NotOptionalError",
    "OutputError",
    "TreantError",
    "UnclassifiableRuleError",
)
