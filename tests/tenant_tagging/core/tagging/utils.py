"""
Useful utilities for testing the tag registry.
"""
from __future__ import annotations

import itertools
import threading

from tenant_tagging.core.tagging.config import CaseSensitivity
from tenant_tagging.core.tagging.exceptions import UniquenessConflict
from tenant_tagging.core.tagging.models import Tag, folded_name_hash, tag_key
from tenant_tagging.core.tagging.normalizer import LIKE_ESCAPE_CHAR, normalize
from tenant_tagging.core.tagging.storage import TagStorage


def _unescape_contains_pattern(pattern: str) -> str:
    """
    Turn a pattern built by normalizer.contains_pattern() back into the
    literal fragment it searches for.
    """
    assert pattern.startswith("%") and pattern.endswith("%")
    body = pattern[1:-1]
    fragment = []
    chars = iter(body)
    for char in chars:
        if char == LIKE_ESCAPE_CHAR:
            char = next(chars)
        fragment.append(char)
    return "".join(fragment)


class InMemoryTagStorage(TagStorage):
    """
    Thread-safe TagStorage that keeps unsaved Tag instances in a list.

    Enforces the same uniqueness rules as the database (see models.tag_key()) and counts calls so
    tests can check what the registry did.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.tags: list[Tag] = []
        self.query_calls = 0
        self.insert_calls = 0
        self.rollbacks = 0

    def query_exact(self, tenant_id, keys, case_sensitivity):
        with self._lock:
            self.query_calls += 1
            return [
                tag for tag in self.tags
                if tag.tenant_id == str(tenant_id) and normalize(tag.name, case_sensitivity) in keys
            ]

    def query_contains(self, tenant_id, patterns):
        fragments = [_unescape_contains_pattern(pattern) for pattern in patterns]
        with self._lock:
            self.query_calls += 1
            return [
                tag for tag in self.tags
                if tag.tenant_id == str(tenant_id) and any(fragment in tag.name_folded for fragment in fragments)
            ]

    def insert(self, tenant_id, name, case_sensitivity):
        key = tag_key(name, case_sensitivity)
        with self._lock:
            self.insert_calls += 1
            for tag in self.tags:
                same_key = key is not None and tag.name_key == key
                if tag.tenant_id == str(tenant_id) and (same_key or tag.name == name):
                    raise UniquenessConflict(name)
            name_folded = normalize(name, CaseSensitivity.INSENSITIVE)
            tag = Tag(
                id=next(self._ids),
                tenant_id=str(tenant_id),
                name=name,
                name_folded=name_folded,
                name_hash=folded_name_hash(name_folded),
                name_key=key,
            )
            self.tags.append(tag)
            return tag

    def rollback_failed_transaction(self, conflict):
        with self._lock:
            self.rollbacks += 1

    def names(self) -> list[str]:
        return [tag.name for tag in self.tags]


class ConflictingTagStorage(InMemoryTagStorage):
    """
    InMemoryTagStorage whose inserts fail with a UniquenessConflict, as if
    another caller always got there first, for the first ``conflicts`` inserts
    (of ``only_name``, if given).
    """

    def __init__(self, conflicts: int, only_name: str | None = None):
        super().__init__()
        self.conflicts = conflicts
        self.only_name = only_name

    def insert(self, tenant_id, name, case_sensitivity):
        if self.conflicts and (self.only_name is None or name == self.only_name):
            with self._lock:
                self.insert_calls += 1
                self.conflicts -= 1
            raise UniquenessConflict(name)
        return super().insert(tenant_id, name, case_sensitivity)


class RacingTagStorage(InMemoryTagStorage):
    """
    InMemoryTagStorage that makes ``parties`` threads finish their first
    lookup before any of them moves on, so they all try to create the same
    tag at once.
    """

    def __init__(self, parties: int):
        super().__init__()
        self._barrier = threading.Barrier(parties, timeout=10)
        self._local = threading.local()

    def query_exact(self, tenant_id, keys, case_sensitivity):
        result = super().query_exact(tenant_id, keys, case_sensitivity)
        if not getattr(self._local, "waited", False):
            self._local.waited = True
            self._barrier.wait()
        return result
