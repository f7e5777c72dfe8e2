# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Foundational model and enum classes shared across Treant."""

from __future__ import annotations

from enum import Enum, unique
from typing import Any, Self, cast

import textcase

from pydantic import BaseModel, ConfigDict
from pydantic.fields import ComputedFieldInfo, FieldInfo


def _generate_title(model: type[Any]) -> str:
    """Generate a title for a model."""
    model_name = model.__name__ if hasattr(model, "__name__") else str(model)
    return textcase.title(model_name.replace("Model", ""))


def _generate_field_title(name: str, info: FieldInfo | ComputedFieldInfo) -> str:
    """Generate a title for a model field."""
    if titled := info.title:
        return titled
    if aliased := info.alias:
        return textcase.sentence(aliased)
    return textcase.sentence(name)


class BasedModel(BaseModel):
    """A baser `BaseModel` for all models in the Treant project."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        cache_strings="all",
        field_title_generator=_generate_field_title,
        model_title_generator=_generate_title,
        serialize_by_alias=True,
        str_strip_whitespace=True,
        use_attribute_docstrings=True,
        validate_by_alias=True,
        validate_by_name=True,
    )


@unique
class BaseEnum(Enum):
    """Common functionality for all enums in Treant.

    Members must be unique and either all strings or all integers. Members can be
    looked up from loosely formatted strings (any case, dashes or underscores).
    """

    @staticmethod
    def _deconstruct_string(value: str) -> list[str]:
        """Deconstruct a string into its component parts."""
        value = value.strip().lower().replace("-", "_")
        for underscore_length in range(4, 0, -1):
            value = value.replace("_" * underscore_length, "_")
        return [v for v in value.split("_") if v]

    @property
    def aka(self) -> tuple[str, ...]:
        """Return the case variations this member answers to."""
        if not isinstance(self.value, str):
            return (str(self.value),)
        variations = {
            variant.lower()
            for source in (self.name, self.value)
            for variant in (source, textcase.snake(source), textcase.kebab(source))
            if variant
        }
        return tuple(sorted(variations))

    @classmethod
    def aliases(cls) -> dict[str, Self]:
        """Alternate names for members, used in string conversion and identification."""
        alias_map: dict[str, Self] = {}
        for member in cls:
            for alias in getattr(member, "alias", None) or member.aka:
                alias_map.setdefault(str(alias).lower(), member)
        return alias_map

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Convert a string to the corresponding enum member.

        Flexibly handles different cases, dashes vs underscores, and declared aliases.
        """
        if cls._value_type() is int and str(value).isdigit():
            return cls(int(value))
        lowered = str(value).strip().lower()
        if literal_value := next(
            (
                member
                for member in cls
                if str(member.value).lower() == lowered or member.name.lower() == lowered
            ),
            None,
        ):
            return cast(Self, literal_value)
        if found_member := cls.aliases().get(lowered):
            return found_member
        value_parts = cls._deconstruct_string(lowered)
        if found_member := next(
            (member for member in cls if cls._deconstruct_string(member.name) == value_parts), None
        ):
            return found_member
        raise ValueError(f"{value} is not a valid {cls.__qualname__} member")

    @classmethod
    def _value_type(cls) -> type[int | str]:
        """Return the type of the enum values."""
        if all(isinstance(member.value, str) for member in cls.__members__.values()):
            return str
        if all(isinstance(member.value, int) for member in cls.__members__.values()):
            return int
        raise TypeError(
            f"All members of {cls.__qualname__} must share one value type, either str or int."
        )

    @classmethod
    def is_member(cls, value: str | int) -> bool:
        """Check if a value is a member of the enum."""
        try:
            _ = cls.from_string(str(value))
        except ValueError:
            return False
        return True

    def __str__(self) -> str:
        """Return the string representation of the enum member."""
        return self.name.replace("_", " ").lower()


__all__ = ("BaseEnum", "BasedModel")
