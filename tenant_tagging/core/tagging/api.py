"""
Tag registry API

Anyone using the tenant_tagging app should use these APIs instead of creating
or modifying Tag rows directly: tag names have to go through the registry to
stay deduplicated.

No permissions are enforced by these methods; the caller is responsible for
only passing a tenant_id the current user belongs to.
"""
from __future__ import annotations

from typing import Iterable

from django.db.models import QuerySet

from .models import Tag
from .registry import TagRegistry

# Export this as part of the API
TagDoesNotExist = Tag.DoesNotExist


def get_tag_registry() -> TagRegistry:
    """
    A TagRegistry using the Django database and the TENANT_TAGGING settings.
    """
    return TagRegistry()


def find_tag(name: str, tenant_id) -> Tag | None:
    """
    Returns the tenant's tag called ``name``, or None.
    """
    return get_tag_registry().find_by_name(name, tenant_id)


def find_tags(names: Iterable[str], tenant_id) -> list[Tag]:
    """
    Returns the tenant's existing tags matching any of ``names``.
    """
    return get_tag_registry().find_any_by_names(names, tenant_id)


def search_tags(search_terms: Iterable[str], tenant_id) -> list[Tag]:
    """
    Returns the tenant's tags containing any of ``search_terms``, e.g. to power
    an autocomplete.
    """
    return get_tag_registry().find_like_any(search_terms, tenant_id)


def find_or_create_tag(name: str, tenant_id) -> Tag:
    """
    Returns the tenant's tag called ``name``, creating it if it doesn't exist.
    """
    return get_tag_registry().find_or_create_by_name(name, tenant_id)


def find_or_create_tags(names: Iterable[str], tenant_id) -> list[Tag | None]:
    """
    Returns one tag per entry of ``names``, in the same order, creating any
    that don't exist yet.
    """
    return get_tag_registry().find_or_create_all_by_names(names, tenant_id)


def get_most_used_tags(tenant_id, limit: int = 20) -> QuerySet[Tag]:
    """
    Returns the tenant's ``limit`` most used tags, most used first.
    """
    return Tag.objects.most_used(tenant_id, limit=limit)


def get_least_used_tags(tenant_id, limit: int = 20) -> QuerySet[Tag]:
    """
    Returns the tenant's ``limit`` least used tags, least used first.
    """
    return Tag.objects.least_used(tenant_id, limit=limit)


def get_tags_for_context(context: str, tenant_id) -> QuerySet[Tag]:
    """
    Returns the tenant's tags that have been applied to something in ``context``.
    """
    return Tag.objects.for_context(context, tenant_id)
