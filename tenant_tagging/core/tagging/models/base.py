"""
Tag registry data models
"""
from __future__ import annotations

from django.db import models
from django.utils.translation import gettext_lazy as _

from tenant_tagging.lib.fields import case_sensitive_char_field, create_hash_digest, hash_field, tenant_id_field

from ..config import CaseSensitivity, SettingsRegistryConfig
from ..normalizer import normalize
from ..validators import MAX_NAME_LENGTH, validate_tag_name

# casefold() can turn a single code point into as many as three.
MAX_FOLDED_LENGTH = MAX_NAME_LENGTH * 3


class TagQuerySet(models.QuerySet):
    """
    Queries over tags, always scoped to a single tenant.
    """

    def for_tenant(self, tenant_id) -> TagQuerySet:
        return self.filter(tenant_id=str(tenant_id))

    def most_used(self, tenant_id, limit: int = 20) -> TagQuerySet:
        """
        The ``limit`` tags of the tenant with the highest usage count.
        """
        return self.for_tenant(tenant_id).order_by("-usage_count", "id")[:limit]

    def least_used(self, tenant_id, limit: int = 20) -> TagQuerySet:
        """
        The ``limit`` tags of the tenant with the lowest usage count.
        """
        return self.for_tenant(tenant_id).order_by("usage_count", "id")[:limit]

    def for_context(self, context: str, tenant_id) -> TagQuerySet:
        """
        Tags of the tenant that have been applied to something in ``context``.
        """
        return self.for_tenant(tenant_id).filter(taggings__context=context).distinct()


def tag_key(name: str, case_sensitivity: CaseSensitivity) -> str | None:
    """
    The ``Tag.name_key`` of a tag called ``name`` created under ``case_sensitivity``.

    Tags created under case-insensitive matching get the digest of their
    folded name, so at most one of them exists per folded name. Tags created
    under strict matching get None: NULLs never collide in a unique index,
    and the unique (tenant_id, name) pair is all strict matching needs.
    """
    if case_sensitivity == CaseSensitivity.STRICT:
        return None
    return folded_name_hash(normalize(name, CaseSensitivity.INSENSITIVE))


def folded_name_hash(folded_name: str) -> str:
    return create_hash_digest(folded_name.encode("utf-8"))


class Tag(models.Model):
    """
    A canonical, deduplicated tag name belonging to one tenant.

    ``name`` keeps the casing the tag was first created with. The other name
    columns are projections of it:

    * ``name_folded`` is the case-folded name, used for case-insensitive
      lookups and "contains" searches. Folding happens in Python so it is full
      Unicode case folding on every database backend.
    * ``name_hash`` is the digest of ``name_folded``. Indexes go on it rather
      than on ``name_folded``, which is too long for a MySQL index.
    * ``name_key`` is set once, when the tag is created (see ``tag_key()``).
      The unique constraint on (tenant_id, name_key) is what guarantees at most
      one tag per name under case-insensitive matching, even when several
      callers race to create it.

    Create tags through the registry (or a TagStorage), which passes the case
    sensitivity it is actually using to ``save()``.
    """

    id = models.BigAutoField(primary_key=True)
    tenant_id = tenant_id_field(
        help_text=_("Tenant (company) that owns this tag."),
    )
    name = case_sensitive_char_field(
        max_length=MAX_NAME_LENGTH,
        blank=False,
        help_text=_("The tag name, as originally entered."),
    )
    name_folded = case_sensitive_char_field(
        max_length=MAX_FOLDED_LENGTH,
        editable=False,
        help_text=_("Case-folded name; maintained automatically."),
    )
    name_hash = hash_field(
        help_text=_("Digest of the case-folded name; maintained automatically."),
    )
    name_key = hash_field(
        null=True,
        default=None,
        help_text=_(
            "Digest of the case-folded name if the tag was created under case-insensitive matching,"
            " empty otherwise. Unique within a tenant."
        ),
    )
    usage_count = models.PositiveIntegerField(
        default=0,
        help_text=_("How many objects this tag is applied to. Maintained by the tagging subsystem."),
    )

    objects = TagQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["tenant_id", "name_hash"]),
            models.Index(fields=["tenant_id", "usage_count"]),
        ]
        unique_together = [
            ["tenant_id", "name"],
            ["tenant_id", "name_key"],
        ]

    def __str__(self):
        """
        User-facing string representation of a Tag: just its name.
        """
        return self.name

    def __repr__(self):
        """
        Developer-facing representation of a Tag.
        """
        return f"<{self.__class__.__name__}> ({self.id}) {self.name}"

    def __eq__(self, other):
        """
        Tags are equal if they are the same row, or share tenant and name.
        """
        if super().__eq__(other) is True:
            return True
        if not isinstance(other, Tag):
            return NotImplemented
        return str(self.tenant_id) == str(other.tenant_id) and self.name == other.name

    def __hash__(self):
        return hash((str(self.tenant_id), self.name))

    def save(self, *args, case_sensitivity: CaseSensitivity | None = None, **kwargs):
        """
        Validate the name and keep the name projections in sync with it.

        ``name_key`` is computed on the first save only, under
        ``case_sensitivity`` (default: the TENANT_TAGGING setting). It records
        the policy the tag was created under and doesn't move if the policy
        changes later.
        """
        validate_tag_name(self.name)
        self.name_folded = normalize(self.name, CaseSensitivity.INSENSITIVE)
        self.name_hash = folded_name_hash(self.name_folded)
        if self._state.adding:
            if case_sensitivity is None:
                case_sensitivity = SettingsRegistryConfig().case_sensitivity
            self.name_key = tag_key(self.name, case_sensitivity)
        super().save(*args, **kwargs)


class Tagging(models.Model):
    """
    Application of a Tag to some object of the host project, in a context
    (e.g. "skills" or "interests").

    The tagging subsystem owns these rows and the ``Tag.usage_count`` counter;
    the registry only needs them to exist so that deleting a Tag cascades.
    """

    id = models.BigAutoField(primary_key=True)
    tag = models.ForeignKey(
        Tag,
        on_delete=models.CASCADE,
        related_name="taggings",
        help_text=_("Tag applied to the object."),
    )
    tenant_id = tenant_id_field(
        help_text=_("Tenant (company) that owns the tagged object."),
    )
    object_id = case_sensitive_char_field(
        max_length=255,
        db_index=True,
        help_text=_("Identifier for the object being tagged."),
    )
    context = case_sensitive_char_field(
        max_length=128,
        default="tags",
        help_text=_("Which list of tags on the object this tagging belongs to."),
    )

    class Meta:
        indexes = [
            models.Index(fields=["tenant_id", "context"]),
        ]
        unique_together = [
            ("tag", "object_id", "context"),
        ]

    def __str__(self):
        return f"<{self.__class__.__name__}> {self.object_id} {self.context}:{self.tag_id}"
