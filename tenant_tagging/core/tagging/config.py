"""
Runtime configuration for the tag registry.

The host project configures the registry with a ``TENANT_TAGGING`` dict in its
Django settings::

    TENANT_TAGGING = {
        "CASE_SENSITIVITY": "insensitive",  # or "strict"
        "MAX_CREATE_ATTEMPTS": 3,
        "ABORT_BATCH_ON_DUPLICATE": True,
    }

Every value is read from ``django.conf.settings`` at the moment it's needed, so
changing the settings (e.g. with ``override_settings`` in tests) changes the
registry's behavior for the very next decision it makes.
"""
from __future__ import annotations

from enum import StrEnum
from typing import Protocol

from attrs import define, field
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

SETTINGS_NAME = "TENANT_TAGGING"

DEFAULT_MAX_CREATE_ATTEMPTS = 3


class CaseSensitivity(StrEnum):
    """
    How tag names are compared with each other.
    """
    # Names are opaque strings: "Ruby" and "ruby" are different tags.
    STRICT = "strict"
    # Names are compared after full Unicode case folding: "Ruby" and "ruby" are the same tag.
    INSENSITIVE = "insensitive"


DEFAULT_CASE_SENSITIVITY = CaseSensitivity.INSENSITIVE


class RegistryConfig(Protocol):
    """
    What the TagRegistry needs to know about its configuration.
    """
    case_sensitivity: CaseSensitivity
    max_create_attempts: int
    abort_batch_on_duplicate: bool


def _parse_case_sensitivity(value) -> CaseSensitivity:
    try:
        return CaseSensitivity(value)
    except ValueError as exc:
        raise ImproperlyConfigured(
            f"{SETTINGS_NAME}['CASE_SENSITIVITY'] must be one of "
            f"{[policy.value for policy in CaseSensitivity]}, not {value!r}"
        ) from exc


def _parse_max_create_attempts(value) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ImproperlyConfigured(
            f"{SETTINGS_NAME}['MAX_CREATE_ATTEMPTS'] must be a positive integer, not {value!r}"
        )
    return value


class SettingsRegistryConfig:
    """
    RegistryConfig that re-reads the Django settings on every attribute access.
    """

    @staticmethod
    def _get(key: str, default):
        return getattr(settings, SETTINGS_NAME, {}).get(key, default)

    @property
    def case_sensitivity(self) -> CaseSensitivity:
        return _parse_case_sensitivity(self._get("CASE_SENSITIVITY", DEFAULT_CASE_SENSITIVITY))

    @property
    def max_create_attempts(self) -> int:
        return _parse_max_create_attempts(self._get("MAX_CREATE_ATTEMPTS", DEFAULT_MAX_CREATE_ATTEMPTS))

    @property
    def abort_batch_on_duplicate(self) -> bool:
        return bool(self._get("ABORT_BATCH_ON_DUPLICATE", True))


@define
class FixedRegistryConfig:
    """
    RegistryConfig held in memory, for callers that inject configuration
    directly instead of going through Django settings.

    The attributes may be changed at any time (values are validated on
    assignment too); the registry reads them on every decision.
    """
    case_sensitivity: CaseSensitivity = field(default=DEFAULT_CASE_SENSITIVITY, converter=_parse_case_sensitivity)
    max_create_attempts: int = field(default=DEFAULT_MAX_CREATE_ATTEMPTS, converter=_parse_max_create_attempts)
    abort_batch_on_duplicate: bool = True
