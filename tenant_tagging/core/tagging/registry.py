"""
TagRegistry: resolves raw tag names to Tag records, per tenant.

The registry holds no locks and no mutable state. "Only one tag per (tenant,
name)" is enforced by the storage's unique constraint; when two callers race
to create the same tag, the loser gets a UniquenessConflict, rolls it back and
probes again, where it finds the winner's tag.
"""
from __future__ import annotations

import logging
import time
from typing import Iterable

from .config import CaseSensitivity, RegistryConfig, SettingsRegistryConfig
from .exceptions import DuplicateTagError, TagRegistryAborted, UniquenessConflict
from .models import Tag
from .normalizer import contains_pattern, normalize
from .storage import DjangoTagStorage, TagStorage
from .validators import validate_tag_name

log = logging.getLogger(__name__)


class TagRegistry:
    """
    Lookup and race-safe find-or-create of tags, scoped by tenant.

    The case sensitivity policy is read from ``config`` at every decision
    point, never cached, so a policy change applies to the next call (or the
    next step of a call in progress).
    """

    def __init__(self, storage: TagStorage | None = None, config: RegistryConfig | None = None):
        self.storage = storage or DjangoTagStorage()
        self.config = config or SettingsRegistryConfig()

    def _key(self, name: str) -> str:
        return normalize(name, self.config.case_sensitivity)

    def find_by_name(self, name: str, tenant_id) -> Tag | None:
        """
        The tenant's tag whose name matches ``name`` under the current policy.
        """
        policy = self.config.case_sensitivity
        tags = self.storage.query_exact(tenant_id, [normalize(name, policy)], policy)
        return tags[0] if tags else None

    def find_any_by_names(self, names: Iterable[str], tenant_id) -> list[Tag]:
        """
        All of the tenant's tags matching any of ``names``, in no particular order.
        """
        policy = self.config.case_sensitivity
        keys = list(dict.fromkeys(normalize(name, policy) for name in names))
        if not keys:
            return []
        return self.storage.query_exact(tenant_id, keys, policy)

    def find_like_any(self, names: Iterable[str], tenant_id) -> list[Tag]:
        """
        All of the tenant's tags whose name contains any of ``names``,
        ignoring case, ordered by id.

        Wildcard characters in ``names`` match literally.
        """
        patterns = list(dict.fromkeys(contains_pattern(name) for name in names))
        if not patterns:
            return []
        return self.storage.query_contains(tenant_id, patterns)

    def find_or_create_by_name(self, name: str, tenant_id) -> Tag:
        """
        Return the tenant's tag for ``name``, creating it if needed.

        Under case-insensitive matching this takes the first tag that
        *contains* ``name``, and creates without retrying if there is none, so
        it can lose a creation race. Use find_or_create_all_by_names() when
        that matters.
        """
        validate_tag_name(name)
        if self.config.case_sensitivity == CaseSensitivity.STRICT:
            return self.find_or_create_all_by_names([name], tenant_id)[0]

        existing = self.find_like_any([name], tenant_id)
        if existing:
            return existing[0]
        try:
            return self.storage.insert(tenant_id, name, self.config.case_sensitivity)
        except UniquenessConflict as conflict:
            self.storage.rollback_failed_transaction(conflict)
            raise DuplicateTagError(name) from conflict

    def find_or_create_all_by_names(
        self,
        names: Iterable[str],
        tenant_id,
        deadline: float | None = None,
    ) -> list[Tag | None]:
        """
        Resolve every name in ``names`` to a tag of the tenant, creating the
        missing ones. The result lines up with ``names``.

        Each name gets up to ``config.max_create_attempts`` attempts; if they
        all lose a creation race, DuplicateTagError is raised, or, when
        ``config.abort_batch_on_duplicate`` is off, that position is None.
        Tags created before a failure stay created.

        ``deadline`` is a time.monotonic() value; once it has passed, the call
        raises TagRegistryAborted instead of starting another attempt.
        """
        names = list(names)
        for name in names:
            validate_tag_name(name)
        if not names:
            return []

        results: list[Tag | None] = []
        for name in names:
            try:
                results.append(self._find_or_create_in_batch(name, names, tenant_id, deadline))
            except DuplicateTagError:
                if self.config.abort_batch_on_duplicate:
                    raise
                log.warning(f"Giving up on tag {name!r} for tenant {tenant_id}: it keeps conflicting")
                results.append(None)
        return results

    def _find_or_create_in_batch(self, name: str, batch: list[str], tenant_id, deadline: float | None) -> Tag:
        """
        Probe / create / retry loop for a single name of a batch.

        Each probe looks up the whole batch at once rather than just ``name``.
        """
        max_attempts = self.config.max_create_attempts
        for attempt in range(1, max_attempts + 1):
            if deadline is not None and time.monotonic() >= deadline:
                raise TagRegistryAborted(f"Deadline passed while resolving tag {name!r}")

            key = self._key(name)
            for tag in self.find_any_by_names(batch, tenant_id):
                if self._key(tag.name) == key:
                    return tag

            try:
                return self.storage.insert(tenant_id, name, self.config.case_sensitivity)
            except UniquenessConflict as conflict:
                self.storage.rollback_failed_transaction(conflict)
                log.info(
                    f"Lost the race to create tag {name!r} for tenant {tenant_id} "
                    f"(attempt {attempt} of {max_attempts})"
                )

        raise DuplicateTagError(name)
