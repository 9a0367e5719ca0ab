"""
Exceptions raised by the tag registry
"""
from __future__ import annotations

from django.utils.translation import gettext as _


class TagRegistryError(Exception):
    """
    Base exception for the tag registry
    """

    def __init__(self, message: str = ""):
        super().__init__()
        self.message = message

    def __str__(self):
        return str(self.message)

    def __repr__(self):
        return f"{self.__class__.__name__}({str(self)})"


class InvalidNameError(TagRegistryError, ValueError):
    """
    The tag name is empty or too long. Raised before touching storage.
    """

    def __init__(self, name: str, reason: str):
        super().__init__()
        self.name = name
        self.message = _("Invalid tag name {name!r}: {reason}").format(name=name, reason=reason)


class UniquenessConflict(TagRegistryError):
    """
    Storage refused to insert a tag because one with the same key already
    exists, i.e. another caller created it first.

    ``savepoint_id`` identifies the savepoint that has to be rolled back before
    the same transaction can be used again (None if there is none).
    """

    def __init__(self, name: str, savepoint_id: str | None = None):
        super().__init__()
        self.name = name
        self.savepoint_id = savepoint_id
        self.message = _("Uniqueness conflict creating tag {name!r}").format(name=name)


class DuplicateTagError(TagRegistryError):
    """
    A tag could not be created, even after retrying, because of conflicting
    tags with the same name.
    """

    def __init__(self, name: str):
        super().__init__()
        self.name = name
        self.message = _("'{name}' has already been taken").format(name=name)


class TagRegistryAborted(TagRegistryError):
    """
    The caller's deadline passed before the request could be resolved.
    """
