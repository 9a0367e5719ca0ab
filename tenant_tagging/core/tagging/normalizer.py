"""
Tag name normalization.

Every equality or ordering decision on tag names goes through ``normalize()``,
which turns a raw name into the key it is compared by under a given
CaseSensitivity policy.
"""
from __future__ import annotations

from .config import CaseSensitivity

# Escape character used by the "contains" LIKE queries (see models.utils.EscapedLike)
LIKE_ESCAPE_CHAR = "!"
LIKE_WILDCARDS = ("%", "_")


def normalize(raw_name: str, policy: CaseSensitivity) -> str:
    """
    Return the comparison key for ``raw_name`` under ``policy``.

    With STRICT matching the name is its own key. Otherwise the key is the
    full Unicode case folding of the name (so "Straße" and "STRASSE" match),
    not just ASCII lowercasing.

    Empty and whitespace-only names pass through untouched; rejecting them is
    the registry's job.
    """
    if policy == CaseSensitivity.STRICT:
        return raw_name
    return raw_name.casefold()


def like_escape(fragment: str) -> str:
    """
    Escape the LIKE metacharacters in ``fragment`` so it matches literally.

    The escape character itself is escaped first, otherwise the escapes added
    for the wildcards would get doubled.
    """
    escaped = fragment.replace(LIKE_ESCAPE_CHAR, LIKE_ESCAPE_CHAR * 2)
    for wildcard in LIKE_WILDCARDS:
        escaped = escaped.replace(wildcard, LIKE_ESCAPE_CHAR + wildcard)
    return escaped


def contains_pattern(fragment: str) -> str:
    """
    LIKE pattern matching any case-folded name that contains ``fragment``.
    """
    return f"%{like_escape(normalize(fragment, CaseSensitivity.INSENSITIVE))}%"
