"""
Validation of tag names
"""
from __future__ import annotations

from .exceptions import InvalidNameError

# Longest tag name we accept, in code points.
MAX_NAME_LENGTH = 255


def validate_tag_name(name: str) -> None:
    """
    Raise InvalidNameError unless ``name`` can be stored as a tag name.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidNameError(name, "tag names cannot be blank")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidNameError(name, f"tag names cannot be longer than {MAX_NAME_LENGTH} characters")
