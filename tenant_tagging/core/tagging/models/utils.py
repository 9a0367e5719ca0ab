"""
Utilities for tag models
"""
from django.db.models import Lookup

from tenant_tagging.lib.fields import MultiCollationCharField

from ..normalizer import LIKE_ESCAPE_CHAR


@MultiCollationCharField.register_lookup
class EscapedLike(Lookup):  # pylint: disable=abstract-method
    """
    ``field__escaped_like=pattern``: a plain SQL LIKE using our escape character.

    Unlike Django's ``contains``/``icontains``, the pattern is passed through as
    is; callers must have escaped it with ``normalizer.like_escape()``.
    """

    lookup_name = "escaped_like"

    def as_sql(self, compiler, connection):
        lhs, lhs_params = self.process_lhs(compiler, connection)
        rhs, rhs_params = self.process_rhs(compiler, connection)
        return f"{lhs} LIKE {rhs} ESCAPE '{LIKE_ESCAPE_CHAR}'", [*lhs_params, *rhs_params]
