"""
Mapping builder - turns an ordered list of enum values into an index table.

The mapping is built once per declaration and never mutated afterwards. It
is exposed on the owning document class three ways:

- ``STATUS``: the ordered values (a tuple constant)
- ``statuses``: read-only value -> index mapping
- ``Status``: a closed StrEnum with one member per value
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from docenum.errors import InvalidDeclarationError
from docenum.specs.enum_spec import normalize_values
from docenum.strings import camelize, pluralize

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class EnumMapping:
    """Stable value <-> index table for one enum declaration."""

    alias: str
    values: tuple[str, ...]
    indices: Mapping[str, int]
    enum_class: type[StrEnum]

    @property
    def constant_name(self) -> str:
        """Class attribute holding the ordered values, e.g. ``STATUS``."""
        return self.alias.upper()

    @property
    def mapping_name(self) -> str:
        """
        Class attribute holding the index mapping, e.g. ``statuses``.

        An alias that is already plural (``roles``) would collide with the
        alias property, so its mapping lives under ``roles_indices``.
        """
        plural = pluralize(self.alias)
        return plural if plural != self.alias else f"{self.alias}_indices"

    @property
    def enum_class_name(self) -> str:
        """Class attribute holding the generated enum, e.g. ``Status``."""
        return self.enum_class.__name__

    @property
    def first(self) -> str:
        return self.values[0]

    def index_of(self, value: Any) -> int:
        """Index of a value (or enum member); KeyError if undeclared."""
        token = value.value if isinstance(value, StrEnum) else value
        return self.indices[token]

    def value_at(self, index: int) -> str:
        """Value declared at ``index``; IndexError if out of range."""
        if index < 0:
            raise IndexError(f"Enum index must not be negative, got {index}")
        return self.values[index]

    def __contains__(self, value: object) -> bool:
        return isinstance(value, str) and value in self.indices

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


def build_mapping(alias: str, values: Any) -> EnumMapping:
    """
    Build the index mapping for an enum declaration.

    Args:
        alias: Enum alias (used to derive the generated names)
        values: Ordered, distinct symbolic values

    Returns:
        EnumMapping where ``indices[values[i]] == i``

    Raises:
        InvalidDeclarationError: If values are empty, duplicated, or unusable

    Example:
        >>> mapping = build_mapping("status", ["awaiting_approval", "approved", "banned"])
        >>> mapping.indices["approved"]
        1
        >>> mapping.constant_name, mapping.mapping_name
        ('STATUS', 'statuses')
    """
    try:
        tokens = normalize_values(values)
    except ValueError as e:
        raise InvalidDeclarationError(f"Invalid values for enum '{alias}': {e}") from e

    try:
        enum_class = StrEnum(camelize(alias), [(token.upper(), token) for token in tokens])
    except (TypeError, ValueError) as e:
        raise InvalidDeclarationError(
            f"Values for enum '{alias}' cannot form an enum class: {e}"
        ) from e

    indices = MappingProxyType({token: index for index, token in enumerate(tokens)})
    logger.debug("Built mapping for enum '%s': %s", alias, dict(indices))

    return EnumMapping(
        alias=alias,
        values=tokens,
        indices=indices,
        enum_class=enum_class,
    )
