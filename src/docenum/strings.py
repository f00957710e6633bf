"""
String utility functions for docenum.

Derives the generated names (constants, mapping accessors, enum class names)
from an enum alias.
"""

from __future__ import annotations

# Irregular plurals that don't follow standard rules
_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "datum": "data",
    "medium": "media",
    "criterion": "criteria",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "status": "statuses",
    "address": "addresses",
    "access": "accesses",
}

_PLURAL_FORMS = frozenset(_IRREGULAR_PLURALS.values())


def _is_plural(lower_word: str) -> bool:
    """Heuristic for words that already read as plural (roles, tags, flags)."""
    if lower_word in _PLURAL_FORMS:
        return True
    return lower_word.endswith("s") and not lower_word.endswith(("ss", "us", "is"))


def pluralize(word: str) -> str:
    """
    Convert a snake_case word to its plural form.

    Only the last underscore-separated segment is pluralized, and a segment
    that already reads as plural is returned unchanged.

    Examples:
        >>> pluralize("status")
        'statuses'
        >>> pluralize("account_status")
        'account_statuses'
        >>> pluralize("category")
        'categories'
        >>> pluralize("roles")
        'roles'
    """
    if not word:
        return word

    head, sep, last = word.rpartition("_")
    if not last:
        return word
    lower_last = last.lower()

    if lower_last in _IRREGULAR_PLURALS:
        plural = _IRREGULAR_PLURALS[lower_last]
    elif _is_plural(lower_last):
        plural = last
    elif lower_last.endswith(("s", "x", "z", "ch", "sh")):
        plural = last + "es"
    elif lower_last.endswith("y") and len(last) > 1 and lower_last[-2] not in "aeiou":
        plural = last[:-1] + "ies"
    else:
        plural = last + "s"

    return f"{head}{sep}{plural}"


def camelize(word: str) -> str:
    """
    Convert a snake_case identifier to CamelCase.

    Examples:
        >>> camelize("account_status")
        'AccountStatus'
        >>> camelize("_private")
        'Private'
    """
    return "".join(part[:1].upper() + part[1:] for part in word.split("_") if part)
