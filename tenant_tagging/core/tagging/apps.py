"""
tagging Django application initialization.
"""

from django.apps import AppConfig


class TaggingConfig(AppConfig):
    """
    Configuration for the tenant tagging Django application.
    """

    name = "tenant_tagging.core.tagging"
    verbose_name = "Tenant Tagging"
    default_auto_field = "django.db.models.BigAutoField"
    label = "tenant_tagging"
