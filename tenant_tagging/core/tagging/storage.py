"""
Storage used by the TagRegistry.

The registry never talks to the ORM directly; it goes through a TagStorage,
which only has to answer a handful of questions (exact lookups, "contains"
lookups, inserts) and report uniqueness conflicts. ``DjangoTagStorage`` is the
implementation backed by the ``Tag`` model.
"""
from __future__ import annotations

import abc
import functools
import logging
import operator
from typing import Sequence

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction
from django.db.models import Q

from .config import CaseSensitivity
from .exceptions import UniquenessConflict
from .models import Tag, folded_name_hash

log = logging.getLogger(__name__)


class TagStorage(abc.ABC):
    """
    What the TagRegistry needs from wherever tags are persisted.

    All queries are scoped to a single tenant.
    """

    @abc.abstractmethod
    def query_exact(self, tenant_id, keys: Sequence[str], case_sensitivity: CaseSensitivity) -> list[Tag]:
        """
        Tags whose name, normalized under ``case_sensitivity``, is one of ``keys``.

        ``keys`` are already normalized.
        """

    @abc.abstractmethod
    def query_contains(self, tenant_id, patterns: Sequence[str]) -> list[Tag]:
        """
        Tags whose case-folded name matches any of the escaped LIKE ``patterns``,
        ordered by id.
        """

    @abc.abstractmethod
    def insert(self, tenant_id, name: str, case_sensitivity: CaseSensitivity) -> Tag:
        """
        Create and return a new tag.

        Raises UniquenessConflict if a tag with the same key exists already.
        """

    @abc.abstractmethod
    def rollback_failed_transaction(self, conflict: UniquenessConflict) -> None:
        """
        Undo whatever state the failed insert that raised ``conflict`` left
        behind, so the connection can be used for the next attempt.
        """


class DjangoTagStorage(TagStorage):
    """
    TagStorage backed by the Tag model.

    Each insert runs inside its own savepoint. That keeps a failed insert from
    poisoning the caller's transaction (PostgreSQL refuses every statement
    after an error until you roll back), and lets earlier inserts in the same
    transaction survive a later conflict.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _tags(self, tenant_id):
        return Tag.objects.using(self.using).for_tenant(tenant_id)

    def query_exact(self, tenant_id, keys, case_sensitivity):
        if case_sensitivity == CaseSensitivity.STRICT:
            return list(self._tags(tenant_id).filter(name__in=keys))
        return list(self._tags(tenant_id).filter(
            name_hash__in=[folded_name_hash(key) for key in keys],
            name_folded__in=keys,
        ))

    def query_contains(self, tenant_id, patterns):
        if not patterns:
            return []
        condition = functools.reduce(
            operator.or_,
            (Q(name_folded__escaped_like=pattern) for pattern in patterns),
        )
        return list(self._tags(tenant_id).filter(condition).order_by("id"))

    def insert(self, tenant_id, name, case_sensitivity):
        # savepoint() returns None in autocommit mode, where each statement is
        # its own transaction and there is nothing to roll back.
        sid = transaction.savepoint(using=self.using)
        try:
            tag = Tag(tenant_id=str(tenant_id), name=name)
            tag.save(using=self.using, force_insert=True, case_sensitivity=case_sensitivity)
        except IntegrityError as exc:
            raise UniquenessConflict(name, savepoint_id=sid) from exc
        if sid is not None:
            transaction.savepoint_commit(sid, using=self.using)
        log.debug(f"Created tag {tag!r} for tenant {tag.tenant_id}")
        return tag

    def rollback_failed_transaction(self, conflict):
        connection = transaction.get_connection(self.using)
        if not connection.in_atomic_block or conflict.savepoint_id is None:
            return
        # The failed save() flagged the whole atomic block for rollback; clear
        # the flag first, since no query (not even ROLLBACK TO SAVEPOINT) may
        # run while it is set.
        transaction.set_rollback(False, using=self.using)
        transaction.savepoint_rollback(conflict.savepoint_id, using=self.using)
