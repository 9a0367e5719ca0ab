"""
Field helpers that keep string comparison behavior consistent across backends.

MySQL is case-insensitive by default, while SQLite and PostgreSQL are
case-sensitive. Tag names have to compare byte-for-byte in the database so that
the registry, not the database collation, decides what counts as "the same
name". These helpers pin a binary collation on the vendors that need one.
"""
from __future__ import annotations

import hashlib

from django.db import models


def create_hash_digest(data_bytes: bytes) -> str:
    """
    Create a 40-byte, lower-case hex string representation of a hash digest.

    The hash digest itself is 20-bytes using BLAKE2b.

    Tag uniqueness is enforced on these digests, so changing this function
    means recomputing every stored digest.
    """
    return hashlib.blake2b(data_bytes, digest_size=20).hexdigest()


class MultiCollationMixin:
    """
    Mixin to enable multiple, database-vendor-specific collations.

    Mix this into subclasses of CharField and TextField, the only Field types
    that store text data.
    """

    def __init__(self, *args, db_collations=None, **kwargs):
        """
        Init like any field but add ``db_collations``.

        ``db_collations`` maps vendor names to collations, like::

          {
            'mysql': 'utf8mb4_bin',
            'sqlite': 'BINARY'
          }
        """
        super().__init__(*args, **kwargs)
        self.db_collations = db_collations or {}

    def db_parameters(self, connection):
        """
        Return database parameters for this field, with the collation for
        ``connection.vendor`` if we have one.
        """
        db_params = models.Field.db_parameters(self, connection)
        if connection.vendor in self.db_collations:
            db_params["collation"] = self.db_collations[connection.vendor]
        return db_params

    def deconstruct(self):
        name, path, args, kwargs = super().deconstruct()
        if self.db_collations:
            kwargs["db_collations"] = self.db_collations
        return name, path, args, kwargs


class MultiCollationCharField(MultiCollationMixin, models.CharField):
    """
    CharField subclass with per-database-vendor collation settings.

    Django's own ``db_collation`` only takes a single value, so there's no way
    to say "use utf8mb4_bin on MySQL and BINARY on SQLite" with it.
    """


def case_sensitive_char_field(**kwargs) -> MultiCollationCharField:
    """
    Return a case-sensitive ``MultiCollationCharField``.

    Entries compare and sort byte-for-byte, and unique indexes are case
    sensitive: "Ruby" and "ruby" can both be stored in a unique column.

    Any argument you would normally pass to a ``CharField`` may be overridden.
    """
    final_kwargs = {
        "null": False,
        "db_collations": {
            "sqlite": "BINARY",
            "mysql": "utf8mb4_bin",
        },
    }
    final_kwargs.update(kwargs)

    return MultiCollationCharField(**final_kwargs)


def tenant_id_field(**kwargs) -> MultiCollationCharField:
    """
    Opaque identifier of the tenant (company) that owns a row.

    Tenants are identified by whatever the host project uses (integer ids,
    UUIDs, slugs); we store the text form and never interpret it.
    """
    return case_sensitive_char_field(max_length=64, blank=False, db_index=True, **kwargs)


def hash_field(**kwargs) -> models.CharField:
    """
    Holds a digest made with create_hash_digest().

    Long text can't go into a MySQL index (InnoDB keys are capped at 3072
    bytes), so we index and enforce uniqueness on its digest instead.
    """
    final_kwargs = {
        "max_length": 40,
        "blank": False,
        "null": False,
        "editable": False,
    }
    final_kwargs.update(kwargs)

    return models.CharField(**final_kwargs)
